"""
JSON codec.

Decodes a body into the value model with exact number text and re-encodes it
with every string leaf passed through the field policy. Output key order
matches input key order.
"""
import json
import re
from typing import Any, Union

from xssguard.services.exceptions import NotJsonError, UnsupportedValueShapeError
from xssguard.services.policy import FieldPolicy
from xssguard.services.value_model import (
    JsonNumber,
    JsonValue,
    ValueKind,
    is_object_array,
    kind_of,
)

# Identity policy used to re-serialize values under a skipped key.
_VERBATIM = FieldPolicy(sanitize=lambda text: text, skip_fields=())


def _reject_constant(name: str) -> Any:
    raise ValueError(f"Non-standard JSON constant: {name}")


def decode_json(body: Union[bytes, bytearray, str]) -> JsonValue:
    """
    Decode a JSON body.

    Raises:
        NotJsonError: on malformed, truncated or non-UTF-8 input, trailing
            data, or NaN/Infinity constants
    """
    try:
        text = body.decode("utf-8") if isinstance(body, (bytes, bytearray)) else body
        return json.loads(
            text,
            parse_int=JsonNumber,
            parse_float=JsonNumber,
            parse_constant=_reject_constant,
        )
    except (ValueError, RecursionError) as e:
        # JSONDecodeError and UnicodeDecodeError are both ValueErrors
        raise NotJsonError() from e


# Lone surrogates survive json.loads but cannot be written as UTF-8.
_LONE_SURROGATE = re.compile("[\ud800-\udfff]")


def _quote(text: str) -> str:
    quoted = json.dumps(text, ensure_ascii=False)
    return _LONE_SURROGATE.sub(lambda m: f"\\u{ord(m.group()):04x}", quoted)


def _encode_skipped(value: Any) -> str:
    """
    Quoted literal of a skipped value, never sanitized.

    Strings are quoted as they are; any other value is quoted as its JSON
    text (`123` -> `"123"`, `{"a":1}` -> `"{\"a\":1}"`).
    """
    if kind_of(value) is ValueKind.STRING:
        return _quote(value)
    return _quote(encode_value(value, _VERBATIM))


def _encode_object(obj: dict, policy: FieldPolicy) -> str:
    entries = []
    for key, item in obj.items():
        name = key if isinstance(key, str) else str(key)
        if policy.should_skip(name):
            encoded = _encode_skipped(item)
        else:
            encoded = encode_value(item, policy)
        entries.append(f"{_quote(name)}:{encoded}")
    return "{" + ",".join(entries) + "}"


def encode_value(value: Any, policy: FieldPolicy) -> str:
    """
    Encode one value, sanitizing leaves on the way.

    Numbers and booleans go through the sanitizer too and are emitted
    unquoted. Unknown runtime types are stringified, sanitized and emitted
    unquoted.
    """
    kind = kind_of(value)
    if kind is ValueKind.OBJECT:
        return _encode_object(value, policy)
    if kind is ValueKind.ARRAY:
        return "[" + ",".join(encode_value(item, policy) for item in value) + "]"
    if kind is ValueKind.STRING:
        return _quote(policy.clean(value))
    if kind is ValueKind.NUMBER:
        return policy.clean(str(value))
    if kind is ValueKind.BOOL:
        return policy.clean("true" if value else "false")
    if kind is ValueKind.NULL:
        return "null"
    return policy.clean(str(value))


def encode_document(value: Any, policy: FieldPolicy) -> bytes:
    """
    Encode a top-level document.

    Raises:
        UnsupportedValueShapeError: unless the value is an object or an array
            made only of objects, or when it is nested too deeply to encode
        NotJsonError: if a sanitized string cannot be written as UTF-8
    """
    kind = kind_of(value)
    if kind is ValueKind.OBJECT or is_object_array(value):
        try:
            return encode_value(value, policy).encode("utf-8")
        except RecursionError as e:
            raise UnsupportedValueShapeError("nesting too deep") from e
        except UnicodeEncodeError as e:
            raise NotJsonError("Body holds text that cannot be encoded") from e
    if kind is ValueKind.ARRAY:
        raise UnsupportedValueShapeError("array of non-objects")
    raise UnsupportedValueShapeError(kind.value)


def sanitize_json(body: Union[bytes, bytearray], policy: FieldPolicy) -> bytes:
    """Decode, sanitize and re-encode a JSON body."""
    return encode_document(decode_json(body), policy)
