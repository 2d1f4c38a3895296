from __future__ import annotations

import json
import logging
import math
import os
import shutil
from pathlib import Path
from typing import Any

from .errors import CacheIOError
from .paths import backup_path, ensure_dir

logger = logging.getLogger(__name__)

EMPTY_DOCUMENT = "{}"

# Documents are rebuilt into nodes recursively; deeper files are treated as corrupt.
MAX_DEPTH = 200


class _CorruptDocument(ValueError):
    pass


def _reject_constant(name: str) -> Any:
    raise _CorruptDocument(f"non-finite number {name}")


def _finite_float(text: str) -> float:
    value = float(text)
    if not math.isfinite(value):
        raise _CorruptDocument(f"number {text} is out of range")
    return value


def _depth(doc: Any) -> int:
    deepest = 0
    pending = [(doc, 1)]
    while pending:
        value, depth = pending.pop()
        if isinstance(value, dict):
            children: Any = value.values()
        elif isinstance(value, list):
            children = value
        else:
            continue
        deepest = max(deepest, depth)
        pending.extend((child, depth + 1) for child in children)
    return deepest


def _decode(raw: bytes) -> dict[str, Any]:
    try:
        # utf-8-sig also accepts files saved with a byte order mark.
        doc = json.loads(raw.decode("utf-8-sig"), parse_constant=_reject_constant, parse_float=_finite_float)
    except (ValueError, RecursionError) as e:
        # ValueError covers JSONDecodeError, UnicodeDecodeError and oversized integers.
        raise _CorruptDocument(str(e) or type(e).__name__) from e
    if not isinstance(doc, dict):
        raise _CorruptDocument(f"root is {type(doc).__name__}, expected an object")
    if _depth(doc) > MAX_DEPTH:
        raise _CorruptDocument(f"nesting deeper than {MAX_DEPTH} levels")
    return doc


def read_document(path: Path) -> dict[str, Any]:
    """
    Read a cache document from disk.

    - Missing file: parent directories and an empty `{}` document are created.
    - Unreadable content: the original bytes are copied to a timestamped
      backup next to it and the file is reset to `{}`.

    Returns the parsed root object (empty dict in both recovery cases).
    Only genuine I/O failures raise, as CacheIOError.
    """
    try:
        if not path.exists():
            ensure_dir(path.parent)
            path.write_text(EMPTY_DOCUMENT, encoding="utf-8")
            return {}
        raw = path.read_bytes()
    except OSError as e:
        raise CacheIOError(f"failed to read cache file {path}: {e}") from e

    try:
        return _decode(raw)
    except _CorruptDocument as e:
        reason = str(e)

    backup = backup_path(path)
    try:
        shutil.copyfile(path, backup)
        path.write_text(EMPTY_DOCUMENT, encoding="utf-8")
    except OSError as e:
        raise CacheIOError(f"failed to back up corrupt cache file {path}: {e}") from e

    logger.warning("CACHE READ: failed to deserialize %s (%s)", path, reason)
    logger.warning("CACHE READ: original kept as %s", backup.name)
    return {}


def dumps_document(payload: Any, *, indent: int = 2) -> str:
    return json.dumps(payload, indent=indent, ensure_ascii=False, allow_nan=False) + "\n"


def atomic_write_json(path: Path, payload: Any, *, indent: int = 2, fsync: bool = True) -> None:
    """
    Atomically write JSON to disk by writing to a temp file then replacing.

    Keys keep their insertion order so reloading preserves enumeration order.
    """
    text = dumps_document(payload, indent=indent)
    tmp_path = path.with_suffix(path.suffix + ".tmp")
    try:
        ensure_dir(path.parent)
        with tmp_path.open("w", encoding="utf-8") as f:
            f.write(text)
            if fsync:
                f.flush()
                os.fsync(f.fileno())
        tmp_path.replace(path)
    except OSError as e:
        tmp_path.unlink(missing_ok=True)
        raise CacheIOError(f"failed to write cache file {path}: {e}") from e
