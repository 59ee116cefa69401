from __future__ import annotations

import threading
from contextlib import contextmanager
from pathlib import Path
from typing import Any, Iterator

from json_store import atomic_write_json, read_json

from .interfaces import KeyValueDocumentStore


class PathLockRegistry:
    """
    Hands out one re-entrant lock per resolved file path.
    """

    def __init__(self) -> None:
        self._guard = threading.Lock()
        self._locks: dict[str, threading.RLock] = {}

    def lock_for(self, path: Path) -> threading.RLock:
        key = str(path.resolve())
        with self._guard:
            return self._locks.setdefault(key, threading.RLock())


GLOBAL_PATH_LOCKS = PathLockRegistry()


class DiskJsonDocumentStore(KeyValueDocumentStore):
    """
    Stores a single JSON document on disk at a fixed path.

    - Returns an empty dict for a missing file; a corrupt file raises.
    - Writes atomically.
    - `transaction()` holds the path lock across a load/modify/save cycle.
    """

    def __init__(self, path: Path):
        self._path = path

    @property
    def path(self) -> Path:
        return self._path

    def load(self) -> dict[str, Any]:
        with GLOBAL_PATH_LOCKS.lock_for(self._path):
            raw = read_json(self._path)
            return raw if isinstance(raw, dict) else {}

    def save(self, doc: dict[str, Any]) -> None:
        with GLOBAL_PATH_LOCKS.lock_for(self._path):
            atomic_write_json(self._path, doc)

    @contextmanager
    def transaction(self) -> Iterator[dict[str, Any]]:
        """Yield the loaded document; it is saved back if the block exits cleanly."""
        with GLOBAL_PATH_LOCKS.lock_for(self._path):
            doc = self.load()
            yield doc
            self.save(doc)
