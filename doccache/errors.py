from __future__ import annotations


class CacheError(Exception):
    """Base class for every error raised by doccache."""


class ReservedKeyError(CacheError):
    """A key under the reserved prefix was read or written through the public surface."""

    def __init__(self, key: str, prefix: str):
        super().__init__(f"Key names starting with {prefix!r} are reserved for internal operations: {key!r}")
        self.key = key


class InvalidKeyError(CacheError, ValueError):
    pass


class TypeMismatchError(CacheError, TypeError):
    pass


class MissingValueError(CacheError, KeyError):
    def __init__(self, key: str):
        super().__init__(key)
        self.key = key

    def __str__(self) -> str:
        return f"Key {self.key!r} has no value and no default was given"


class CacheIOError(CacheError, OSError):
    pass
