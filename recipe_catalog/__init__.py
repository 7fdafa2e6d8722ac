"""Recipe catalog: a JSON-file backed recipe API."""
