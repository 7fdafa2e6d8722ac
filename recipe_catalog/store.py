"""JSON file storage for the recipe collection.

The whole collection lives in one document ``{"recipes": [...]}`` and is
always read and written as a unit.
"""

import enum
import json
import os
import tempfile
import threading
from contextlib import contextmanager, suppress
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, Iterator, Optional

import structlog
from pydantic import ValidationError

from .schemas import RecipeCollection

logger = structlog.get_logger(__name__)

_locks: Dict[Path, threading.RLock] = {}
_locks_guard = threading.Lock()


def _lock_for(path: Path) -> threading.RLock:
    with _locks_guard:
        lock = _locks.get(path)
        if lock is None:
            lock = _locks[path] = threading.RLock()
        return lock


class StoreStatus(str, enum.Enum):
    ok = "ok"
    missing = "missing"
    unreadable = "unreadable"


@dataclass
class StoreRead:
    collection: RecipeCollection
    status: StoreStatus
    error: Optional[str] = None


class Transaction:
    """Collection handed out by :meth:`RecipeStore.transaction`.

    Call :meth:`mark_dirty` after mutating ``collection`` to have it written
    back when the block exits.
    """

    def __init__(self, collection: RecipeCollection) -> None:
        self.collection = collection
        self.dirty = False
        self.written: Optional[bool] = None

    def mark_dirty(self) -> None:
        self.dirty = True


class RecipeStore:
    def __init__(self, path) -> None:
        self.path = Path(path).resolve()
        self._lock = _lock_for(self.path)

    def read_result(self) -> StoreRead:
        """Load the collection and say whether that worked."""
        if not self.path.exists():
            return StoreRead(RecipeCollection(), StoreStatus.missing)
        try:
            with self.path.open("r", encoding="utf-8") as f:
                raw = json.load(f)
            collection = RecipeCollection.model_validate(raw)
        except (OSError, ValueError, ValidationError) as e:
            # json.JSONDecodeError is a ValueError
            logger.error("error reading recipes data file", path=str(self.path), error=str(e))
            return StoreRead(RecipeCollection(), StoreStatus.unreadable, str(e))
        return StoreRead(collection, StoreStatus.ok)

    def read(self) -> RecipeCollection:
        """Load the collection, falling back to an empty one on any failure."""
        return self.read_result().collection

    def write(self, collection: RecipeCollection) -> bool:
        """Replace the file with ``collection``. Returns False on failure."""
        with self._lock:
            tmp_name = None
            try:
                payload = json.dumps(collection.model_dump(by_alias=True), indent=2, ensure_ascii=False)
                self.path.parent.mkdir(parents=True, exist_ok=True)
                fd, tmp_name = tempfile.mkstemp(
                    prefix=f".{self.path.name}.", suffix=".tmp", dir=str(self.path.parent)
                )
                with os.fdopen(fd, "w", encoding="utf-8") as f:
                    f.write(payload)
                    f.write("\n")
                os.replace(tmp_name, self.path)
            except (OSError, TypeError, ValueError) as e:
                logger.error("error writing recipes data file", path=str(self.path), error=str(e))
                if tmp_name is not None:
                    with suppress(OSError):
                        os.unlink(tmp_name)
                return False
        return True

    @contextmanager
    def transaction(self) -> Iterator[Transaction]:
        """Serialize a read-modify-write cycle against this file."""
        with self._lock:
            tx = Transaction(self.read())
            yield tx
            if tx.dirty:
                tx.written = self.write(tx.collection)
