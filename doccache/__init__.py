from __future__ import annotations

from .arguments import Arguments
from .cache import DocumentCache
from .converters import DEFAULT_CONVERTERS, ConverterRegistry, ValueKind
from .errors import (
    CacheError,
    CacheIOError,
    InvalidKeyError,
    MissingValueError,
    ReservedKeyError,
    TypeMismatchError,
)
from .json_store import atomic_write_json, read_document
from .lifecycle import REGISTRY, CacheRegistry
from .logging_config import setup_logging
from .nodes import ArrayNode, ObjectNode
from .ownership import FILE_BINDING_KEY, RESERVED_PREFIX, write_node
from .settings import Settings, get_settings

__all__ = [
    "Arguments",
    "DocumentCache",
    "DEFAULT_CONVERTERS",
    "ConverterRegistry",
    "ValueKind",
    "CacheError",
    "CacheIOError",
    "InvalidKeyError",
    "MissingValueError",
    "ReservedKeyError",
    "TypeMismatchError",
    "atomic_write_json",
    "read_document",
    "REGISTRY",
    "CacheRegistry",
    "setup_logging",
    "ArrayNode",
    "ObjectNode",
    "FILE_BINDING_KEY",
    "RESERVED_PREFIX",
    "write_node",
    "Settings",
    "get_settings",
]
