from __future__ import annotations

from pathlib import Path
from typing import Any

from .json_store import atomic_write_json, read_document
from .locks import GLOBAL_PATH_LOCKS
from .settings import Settings, get_settings


class DiskJsonDocumentStore:
    """
    Stores a single JSON document on disk at a fixed path.

    - Always returns a dict (empty dict on missing or corrupt files).
    - Writes atomically.
    """

    def __init__(self, path: Path, *, settings: Settings | None = None):
        self._path = path
        self._settings = settings or get_settings()

    @property
    def path(self) -> Path:
        return self._path

    def load(self) -> dict[str, Any]:
        lock = GLOBAL_PATH_LOCKS.lock_for(self._path)
        with lock:
            return read_document(self._path)

    def save(self, doc: dict[str, Any]) -> None:
        lock = GLOBAL_PATH_LOCKS.lock_for(self._path)
        with lock:
            atomic_write_json(self._path, doc, indent=self._settings.indent, fsync=self._settings.fsync)
