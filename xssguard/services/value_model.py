"""
Generic value model for decoded JSON documents.

JSON values map onto native Python values:
- null   -> None
- bool   -> bool
- number -> JsonNumber (exact decimal text, never a binary float)
- string -> str
- array  -> list
- object -> dict (insertion ordered, so key order survives a round trip)
"""
from enum import Enum
from typing import Any, Union


class JsonNumber(str):
    """Verbatim decimal text of a JSON number."""

    __slots__ = ()

    def __repr__(self) -> str:
        return f"JsonNumber({str.__repr__(self)})"


JsonValue = Union[None, bool, JsonNumber, str, list, dict]


class ValueKind(str, Enum):
    """Discriminator for the JSON value union."""
    NULL = "null"
    BOOL = "bool"
    NUMBER = "number"
    STRING = "string"
    ARRAY = "array"
    OBJECT = "object"
    OTHER = "other"


def kind_of(value: Any) -> ValueKind:
    """
    Classify a runtime value.

    JsonNumber is checked before str and bool before anything numeric, since
    both are subclasses of the types they would otherwise match.
    Values outside the six JSON kinds (ints, floats, Decimals built by hand)
    are OTHER.
    """
    if value is None:
        return ValueKind.NULL
    if isinstance(value, bool):
        return ValueKind.BOOL
    if isinstance(value, JsonNumber):
        return ValueKind.NUMBER
    if isinstance(value, str):
        return ValueKind.STRING
    if isinstance(value, list):
        return ValueKind.ARRAY
    if isinstance(value, dict):
        return ValueKind.OBJECT
    return ValueKind.OTHER


def is_object_array(value: Any) -> bool:
    """True for an array whose every element is an object."""
    return kind_of(value) is ValueKind.ARRAY and all(
        kind_of(item) is ValueKind.OBJECT for item in value
    )
