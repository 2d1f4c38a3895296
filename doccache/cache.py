from __future__ import annotations

import logging
import os
import weakref
from pathlib import Path
from typing import Any, Iterator

from .converters import DEFAULT_CONVERTERS, ConverterRegistry
from .disk_store import DiskJsonDocumentStore
from .errors import InvalidKeyError, MissingValueError, ReservedKeyError
from .lifecycle import REGISTRY, CacheRegistry, flush_quietly
from .locks import GLOBAL_PATH_LOCKS
from .nodes import ObjectNode, to_node
from .ownership import RESERVED_PREFIX, bind_root, is_reserved, write_node
from .paths import normalize_path
from .settings import Settings, get_settings

logger = logging.getLogger(__name__)


class DocumentCache:
    """
    Key-value cache persisted as one JSON document.

    - Missing files are created; unreadable files are backed up and reset.
    - Every mutation is written to disk before the call returns.
    - Keys starting with "_" are internal: hidden from iteration and rejected
      by get/set/delete.
    - Nested objects returned by `get` stay attached to the document, so
      editing them is written through as well.

    Absent keys: `get(key)` returns None, `get(key, default)` stores and
    returns the default, `cache[key]` raises MissingValueError.
    """

    def __init__(
        self,
        path: str | os.PathLike[str],
        *,
        settings: Settings | None = None,
        converters: ConverterRegistry | None = None,
        registry: CacheRegistry | None = None,
    ):
        self._settings = settings or get_settings()
        self._converters = converters or DEFAULT_CONVERTERS
        self._path = normalize_path(path)
        self._lock = GLOBAL_PATH_LOCKS.lock_for(self._path)

        with self._lock:
            doc = DiskJsonDocumentStore(self._path, settings=self._settings).load()
            self._root = ObjectNode(doc)
            bind_root(self._root, self._path, self._settings)
            write_node(self._root)

        self._registry = registry or REGISTRY
        self._token: int | None = self._registry.register(self)
        self._finalizer = weakref.finalize(
            self, flush_quietly, self._root, self._lock, self._settings.shutdown_lock_timeout
        )
        logger.debug("CACHE OPEN: %s (%d keys)", self._path, len(self))

    @property
    def path(self) -> Path:
        return self._path

    @property
    def settings(self) -> Settings:
        return self._settings

    @staticmethod
    def _check_key(key: Any) -> str:
        if not isinstance(key, str) or not key:
            raise InvalidKeyError(f"cache keys must be non-empty strings, got {key!r}")
        if is_reserved(key):
            raise ReservedKeyError(key, RESERVED_PREFIX)
        return key

    # ------------------------------------------------------------------
    # Typed access
    # ------------------------------------------------------------------
    def get(self, key: str, default: Any = None, *, as_type: Any = None) -> Any:
        self._check_key(key)
        with self._lock:
            if key in self._root:
                return self._converters.decode(self._root[key], as_type)
            if default is None:
                return None

            value = to_node(self._converters.encode(default))
            # Validate before anything is written.
            self._converters.decode(value, as_type)
            self._root[key] = value
            return self._converters.decode(self._root[key], as_type)

    def set(self, key: str, value: Any) -> None:
        self._check_key(key)
        with self._lock:
            self._root[key] = self._converters.encode(value)

    def delete(self, key: str) -> None:
        self._check_key(key)
        with self._lock:
            if key not in self._root:
                raise MissingValueError(key)
            del self._root[key]

    def __getitem__(self, key: str) -> Any:
        self._check_key(key)
        with self._lock:
            if key not in self._root:
                raise MissingValueError(key)
            return self._root[key]

    def __setitem__(self, key: str, value: Any) -> None:
        self.set(key, value)

    def __delitem__(self, key: str) -> None:
        self.delete(key)

    # ------------------------------------------------------------------
    # Enumeration (public keys only)
    # ------------------------------------------------------------------
    def _public_keys(self) -> list[str]:
        with self._lock:
            return [k for k in self._root if not is_reserved(k)]

    def keys(self) -> Iterator[str]:
        yield from self._public_keys()

    def items(self) -> Iterator[tuple[str, Any]]:
        for key in self._public_keys():
            with self._lock:
                if key not in self._root:
                    continue
                value = self._root[key]
            yield key, value

    def values(self) -> Iterator[Any]:
        for _, value in self.items():
            yield value

    def __iter__(self) -> Iterator[str]:
        return self.keys()

    def __len__(self) -> int:
        return len(self._public_keys())

    def __contains__(self, key: object) -> bool:
        return isinstance(key, str) and not is_reserved(key) and key in self._root

    # ------------------------------------------------------------------
    # Persistence
    # ------------------------------------------------------------------
    def flush(self) -> Path:
        with self._lock:
            write_node(self._root)
        return self._path

    write = flush

    def _shutdown_flush(self) -> bool:
        return flush_quietly(self._root, self._lock, self._settings.shutdown_lock_timeout)

    def close(self) -> None:
        """Final flush; stops exit/interrupt/finalizer flushes for this cache."""
        if self._token is None:
            return
        self.flush()
        self._registry.unregister(self._token)
        self._token = None
        self._finalizer.detach()
        logger.debug("CACHE CLOSE: %s", self._path)

    def __enter__(self) -> DocumentCache:
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.close()

    def __repr__(self) -> str:
        return f"DocumentCache({str(self._path)!r})"
