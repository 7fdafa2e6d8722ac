import json
import sys
from pathlib import Path

from recipe_catalog import crud
from recipe_catalog.config import get_settings
from recipe_catalog.store import RecipeStore


def load_items(path):
    """Read recipes from ``path``: either a list or a ``{"recipes": [...]}`` document."""
    data = json.loads(Path(path).read_text(encoding='utf-8'))
    if isinstance(data, dict):
        data = data.get('recipes', [])
    return [r for r in data if isinstance(r, dict)]


def main(argv=None):
    argv = sys.argv[1:] if argv is None else argv
    settings = get_settings()
    p = Path(argv[0]) if argv else Path(__file__).resolve().parents[1] / 'data' / 'seed_recipes.json'
    if not p.exists():
        print(f'{p} not found')
        return 1
    store = RecipeStore(settings.data_file)
    added = crud.import_recipes(store, load_items(p))
    print(f'Imported {added} recipes into {settings.data_file}')
    return 0


if __name__ == '__main__':
    sys.exit(main())
