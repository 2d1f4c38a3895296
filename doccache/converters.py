from __future__ import annotations

import enum
from collections.abc import Mapping
from typing import Any, Callable, NamedTuple

from pydantic import BaseModel

from .errors import TypeMismatchError
from .nodes import ArrayNode, Node, ObjectNode, to_plain


class ValueKind(enum.Enum):
    STRING = "string"
    INTEGER = "integer"
    FLOAT = "float"
    BOOLEAN = "boolean"
    STRING_LIST = "string_list"
    OBJECT = "object"


def kind_of(value: Any) -> ValueKind | None:
    """Tag of a stored value, or None for null and mixed arrays."""
    # bool is an int subclass; test it first.
    if isinstance(value, bool):
        return ValueKind.BOOLEAN
    if isinstance(value, int):
        return ValueKind.INTEGER
    if isinstance(value, float):
        return ValueKind.FLOAT
    if isinstance(value, str):
        return ValueKind.STRING
    if isinstance(value, ObjectNode):
        return ValueKind.OBJECT
    if isinstance(value, ArrayNode) and all(isinstance(v, str) for v in value):
        return ValueKind.STRING_LIST
    return None


def _mismatch(value: Any, kind: ValueKind) -> TypeMismatchError:
    found = kind_of(value)
    label = found.value if found is not None else type(value).__name__
    return TypeMismatchError(f"stored {label} value cannot be read as {kind.value}")


def _decode_string(value: Any) -> str:
    if kind_of(value) is ValueKind.STRING:
        return value
    raise _mismatch(value, ValueKind.STRING)


def _decode_integer(value: Any) -> int:
    if kind_of(value) is ValueKind.INTEGER:
        return value
    raise _mismatch(value, ValueKind.INTEGER)


def _decode_float(value: Any) -> float:
    if kind_of(value) in (ValueKind.FLOAT, ValueKind.INTEGER):
        return float(value)
    raise _mismatch(value, ValueKind.FLOAT)


def _decode_boolean(value: Any) -> bool:
    if kind_of(value) is ValueKind.BOOLEAN:
        return value
    raise _mismatch(value, ValueKind.BOOLEAN)


def _decode_string_list(value: Any) -> list[str]:
    if kind_of(value) is ValueKind.STRING_LIST:
        return list(value)
    raise _mismatch(value, ValueKind.STRING_LIST)


def _decode_object(value: Any) -> ObjectNode:
    # Passed through as the live node so nested edits reach the file.
    if kind_of(value) is ValueKind.OBJECT:
        return value
    raise _mismatch(value, ValueKind.OBJECT)


_DECODERS: dict[ValueKind, Callable[[Any], Any]] = {
    ValueKind.STRING: _decode_string,
    ValueKind.INTEGER: _decode_integer,
    ValueKind.FLOAT: _decode_float,
    ValueKind.BOOLEAN: _decode_boolean,
    ValueKind.STRING_LIST: _decode_string_list,
    ValueKind.OBJECT: _decode_object,
}

_KINDS_BY_TYPE: dict[Any, ValueKind] = {
    str: ValueKind.STRING,
    int: ValueKind.INTEGER,
    float: ValueKind.FLOAT,
    bool: ValueKind.BOOLEAN,
    list: ValueKind.STRING_LIST,
    list[str]: ValueKind.STRING_LIST,
    dict: ValueKind.OBJECT,
    ObjectNode: ValueKind.OBJECT,
}


class Converter(NamedTuple):
    encode: Callable[[Any], Any]
    decode: Callable[[Any], Any]


def _model_converter(model: type[BaseModel]) -> Converter:
    return Converter(
        encode=lambda obj: obj.model_dump(mode="json"),
        decode=lambda value: model.model_validate(to_plain(value)),
    )


class ConverterRegistry:
    """
    Conversions between host values and cache values.

    The built-in table covers str, int, float, bool, list[str] and nested
    objects. Other types are added with `register`, or `register_model` for
    pydantic models (which are also converted unregistered).
    """

    def __init__(self) -> None:
        self._custom: dict[type, Converter] = {}

    def register(self, type_: type, *, encode: Callable[[Any], Any], decode: Callable[[Any], Any]) -> None:
        if type_ in _KINDS_BY_TYPE:
            raise ValueError(f"{type_!r} has a built-in conversion")
        self._custom[type_] = Converter(encode=encode, decode=decode)

    def register_model(self, model: type[BaseModel]) -> None:
        converter = _model_converter(model)
        self.register(model, encode=converter.encode, decode=converter.decode)

    def _custom_for(self, type_: type) -> Converter | None:
        converter = self._custom.get(type_)
        if converter is not None:
            return converter
        for registered, candidate in self._custom.items():
            if issubclass(type_, registered):
                return candidate
        return None

    def encode(self, value: Any) -> Any:
        """Host value -> JSON-shaped value accepted by nodes.to_node."""
        if isinstance(value, Node):
            return value
        converter = self._custom_for(type(value))
        if converter is not None:
            return converter.encode(value)
        if isinstance(value, BaseModel):
            return value.model_dump(mode="json")
        if isinstance(value, Mapping):
            return {k: self.encode(v) for k, v in value.items()}
        if isinstance(value, (list, tuple)):
            return [self.encode(v) for v in value]
        return value

    def decode(self, value: Any, as_type: Any = None) -> Any:
        """Stored value -> `as_type`; the raw value when `as_type` is None."""
        if as_type is None:
            return value

        kind = _KINDS_BY_TYPE.get(as_type)
        if kind is not None:
            return _DECODERS[kind](value)

        if isinstance(as_type, type):
            converter = self._custom_for(as_type)
            if converter is None and issubclass(as_type, BaseModel):
                converter = _model_converter(as_type)
            if converter is not None:
                try:
                    return converter.decode(value)
                except (TypeError, ValueError) as e:
                    raise TypeMismatchError(f"stored value cannot be read as {as_type.__name__}: {e}") from e

        raise TypeMismatchError(f"no conversion registered for {as_type!r}")


DEFAULT_CONVERTERS = ConverterRegistry()
