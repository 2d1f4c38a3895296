from __future__ import annotations

import math
import weakref
from collections.abc import Mapping, MutableMapping, MutableSequence
from typing import TYPE_CHECKING, Any, Iterable, Iterator

from .errors import TypeMismatchError

if TYPE_CHECKING:
    from .settings import Settings


class Node:
    """
    A container in a cache document tree.

    Each node keeps a weak reference to the container holding it. The link is
    only used to find the document root; it never keeps a parent alive.
    """

    # Set on a document root by ownership.bind_root.
    _bound_settings: Settings | None = None

    def __init__(self) -> None:
        self._parent_ref: weakref.ref[Node] | None = None

    # Private: nested handles must not reach the root and its file binding.
    @property
    def _parent(self) -> Node | None:
        if self._parent_ref is None:
            return None
        return self._parent_ref()

    def _root(self) -> Node:
        node = self
        parent = node._parent
        while parent is not None:
            node = parent
            parent = node._parent
        return node

    def to_plain(self) -> Any:
        raise NotImplementedError

    def _attach(self, parent: Node) -> None:
        self._parent_ref = weakref.ref(parent)

    def _detach(self) -> None:
        self._parent_ref = None

    def _changed(self) -> None:
        from .ownership import write_node

        write_node(self)


def to_node(value: Any, parent: Node | None = None) -> Any:
    """
    Convert a JSON-shaped value into a tree value.

    Mappings become ObjectNode, lists and tuples become ArrayNode, scalars are
    kept as-is. Nodes are always copied so a subtree never has two parents.
    """
    if isinstance(value, Node):
        value = value.to_plain()

    if value is None or isinstance(value, (str, bool, int)):
        return value
    if isinstance(value, float):
        if not math.isfinite(value):
            raise TypeMismatchError(f"cannot store non-finite float {value!r}")
        return value

    if isinstance(value, Mapping):
        node: Node = ObjectNode(value)
    elif isinstance(value, (list, tuple)):
        node = ArrayNode(value)
    else:
        raise TypeMismatchError(f"cannot store value of type {type(value).__name__}")

    if parent is not None:
        node._attach(parent)
    return node


def to_plain(value: Any) -> Any:
    return value.to_plain() if isinstance(value, Node) else value


def _release(value: Any) -> None:
    if isinstance(value, Node):
        value._detach()


class ObjectNode(Node, MutableMapping):
    """Mapping node. Every mutation is propagated to the owning file."""

    def __init__(self, data: Mapping[str, Any] | None = None):
        super().__init__()
        self._items: dict[str, Any] = {}
        for key, value in (data or {}).items():
            self._items[self._check_key(key)] = to_node(value, self)

    @staticmethod
    def _check_key(key: Any) -> str:
        if not isinstance(key, str):
            raise TypeMismatchError(f"object keys must be str, got {type(key).__name__}")
        return key

    def __getitem__(self, key: str) -> Any:
        return self._items[key]

    def __iter__(self) -> Iterator[str]:
        return iter(self._items)

    def __len__(self) -> int:
        return len(self._items)

    def __setitem__(self, key: str, value: Any) -> None:
        self._store_silently(key, value)
        self._changed()

    def __delitem__(self, key: str) -> None:
        _release(self._items.pop(key))
        self._changed()

    def update(self, other: Any = (), /, **kwargs: Any) -> None:
        items = other.items() if isinstance(other, Mapping) else other
        # Convert everything first so a bad value leaves the node untouched.
        staged = [
            (self._check_key(key), to_node(value, self))
            for key, value in list(items) + list(kwargs.items())
        ]
        for key, child in staged:
            _release(self._items.get(key))
            self._items[key] = child
        self._changed()

    def clear(self) -> None:
        for value in self._items.values():
            _release(value)
        self._items.clear()
        self._changed()

    def _store_silently(self, key: str, value: Any) -> None:
        key = self._check_key(key)
        child = to_node(value, self)
        _release(self._items.get(key))
        self._items[key] = child

    def to_plain(self) -> dict[str, Any]:
        return {k: to_plain(v) for k, v in self._items.items()}

    def __repr__(self) -> str:
        return f"ObjectNode({self.to_plain()!r})"


class ArrayNode(Node, MutableSequence):
    """Sequence node. Every mutation is propagated to the owning file."""

    def __init__(self, values: Iterable[Any] | None = None):
        super().__init__()
        self._items: list[Any] = [to_node(v, self) for v in (values or ())]

    def __getitem__(self, index: int | slice) -> Any:
        return self._items[index]

    def __len__(self) -> int:
        return len(self._items)

    def __setitem__(self, index: int | slice, value: Any) -> None:
        if isinstance(index, slice):
            children = [to_node(v, self) for v in value]
            for old in self._items[index]:
                _release(old)
            self._items[index] = children
        else:
            child = to_node(value, self)
            _release(self._items[index])
            self._items[index] = child
        self._changed()

    def __delitem__(self, index: int | slice) -> None:
        if isinstance(index, slice):
            for old in self._items[index]:
                _release(old)
        else:
            _release(self._items[index])
        del self._items[index]
        self._changed()

    def insert(self, index: int, value: Any) -> None:
        self._items.insert(index, to_node(value, self))
        self._changed()

    def extend(self, values: Iterable[Any]) -> None:
        staged = [to_node(v, self) for v in values]
        self._items.extend(staged)
        self._changed()

    def __eq__(self, other: object) -> bool:
        if isinstance(other, (ArrayNode, list, tuple)):
            return list(self) == list(other)
        return NotImplemented

    __hash__ = None  # type: ignore[assignment]

    def to_plain(self) -> list[Any]:
        return [to_plain(v) for v in self._items]

    def __repr__(self) -> str:
        return f"ArrayNode({self.to_plain()!r})"
