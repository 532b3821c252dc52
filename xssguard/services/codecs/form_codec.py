"""
application/x-www-form-urlencoded codec.
"""
import re
from typing import Union
from urllib.parse import parse_qsl, quote_plus

from xssguard.services.exceptions import MalformedFormError
from xssguard.services.policy import FieldPolicy

FormPairs = list[tuple[str, list[str]]]

_BAD_ESCAPE = re.compile(r"%(?![0-9A-Fa-f]{2})")


def decode_form(body: Union[bytes, bytearray]) -> FormPairs:
    """
    Parse a urlencoded body into ordered (key, values) pairs.

    Repeated keys are grouped under their first occurrence. A pair without
    `=` has an empty value.

    Raises:
        MalformedFormError: on invalid percent escapes, `;` separators or
            bytes that are not UTF-8
    """
    try:
        text = bytes(body).decode("utf-8")
    except UnicodeDecodeError as e:
        raise MalformedFormError("Form body is not UTF-8") from e

    if ";" in text:
        raise MalformedFormError("Semicolon is not a valid form separator")
    if _BAD_ESCAPE.search(text):
        raise MalformedFormError("Invalid percent escape in form body")

    try:
        items = parse_qsl(text, keep_blank_values=True, encoding="utf-8", errors="strict")
    except UnicodeDecodeError as e:
        raise MalformedFormError("Percent-decoded form value is not UTF-8") from e

    grouped: dict[str, list[str]] = {}
    for key, value in items:
        grouped.setdefault(key, []).append(value)
    return list(grouped.items())


def encode_form(
    pairs: FormPairs,
    policy: FieldPolicy,
    *,
    keep_all_values: bool = True
) -> bytes:
    """
    Re-encode form pairs, sanitizing values of non-skipped keys.

    With keep_all_values=False only the first value of each key is written.
    """
    segments = []
    for key, values in pairs:
        chosen = values if keep_all_values else values[:1]
        for value in chosen:
            segments.append(
                f"{quote_plus(key, safe='')}={quote_plus(policy.apply(key, value), safe='')}"
            )
    return "&".join(segments).encode("ascii")


def sanitize_form(
    body: Union[bytes, bytearray],
    policy: FieldPolicy,
    *,
    keep_all_values: bool = True
) -> bytes:
    """Decode, sanitize and re-encode; an empty form is returned untouched."""
    pairs = decode_form(body)
    if not pairs:
        return bytes(body)
    return encode_form(pairs, policy, keep_all_values=keep_all_values)
