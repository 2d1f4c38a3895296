from __future__ import annotations

import logging
from pathlib import Path

from .disk_store import DiskJsonDocumentStore
from .nodes import Node, ObjectNode
from .settings import Settings

logger = logging.getLogger(__name__)

RESERVED_PREFIX = "_"
FILE_BINDING_KEY = f"{RESERVED_PREFIX}cache.file_name"


def is_reserved(key: str) -> bool:
    return key.startswith(RESERVED_PREFIX)


def bind_root(root: ObjectNode, path: Path, settings: Settings | None = None) -> None:
    """Record on `root` the file it persists to."""
    root._store_silently(FILE_BINDING_KEY, str(path))
    root._bound_settings = settings


def bound_path(node: Node) -> Path | None:
    root = node._root()
    if not isinstance(root, ObjectNode):
        return None
    raw = root.get(FILE_BINDING_KEY)
    return Path(raw) if isinstance(raw, str) else None


def write_node(node: Node) -> Path | None:
    """
    Find the document owning `node` and write the whole document to its file.

    Returns the path written, or None when the tree is not bound to a file
    (a detached subtree or a free-standing node).
    """
    root = node._root()
    path = bound_path(root)
    if path is None:
        logger.debug("CACHE WRITE: node has no file binding, skipped")
        return None
    DiskJsonDocumentStore(path, settings=root._bound_settings).save(root.to_plain())
    return path
