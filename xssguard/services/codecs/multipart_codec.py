"""
multipart/form-data codec.

Parts are read with python-multipart's streaming parser (the parser Starlette
uses for forms). File parts are carried through byte-for-byte; text parts go
through the field policy. The rebuilt body reuses the request's boundary so
the original Content-Type header stays valid.
"""
from dataclasses import dataclass
from typing import Optional, Union

from python_multipart.exceptions import MultipartParseError
from python_multipart.multipart import MultipartParser, parse_options_header

from xssguard.services.exceptions import (
    EmptyPartError,
    MalformedMultipartError,
)
from xssguard.services.policy import FieldPolicy

DEFAULT_MAX_PARTS = 100
DEFAULT_FILE_CONTENT_TYPE = "application/octet-stream"


@dataclass(frozen=True)
class FilePart:
    """Uploaded file; content is opaque and never sanitized."""
    field_name: str
    file_name: str
    content_type: Optional[str]
    raw: bytes


@dataclass(frozen=True)
class FieldPart:
    """Plain text form field."""
    field_name: str
    text: str


MultipartPart = Union[FilePart, FieldPart]


def boundary_from_content_type(content_type: str) -> str:
    """
    Extract the boundary parameter of a multipart Content-Type.

    Raises:
        MalformedMultipartError: if there is no boundary
    """
    _, params = parse_options_header(content_type)
    boundary = params.get(b"boundary")
    if not boundary:
        raise MalformedMultipartError("Multipart Content-Type has no boundary")
    return boundary.decode("latin-1")


def _decode_header_value(value: bytes) -> str:
    try:
        return value.decode("utf-8")
    except UnicodeDecodeError:
        return value.decode("latin-1")


class _PartCollector:
    """python-multipart callbacks that accumulate up to `max_parts` parts."""

    def __init__(self, max_parts: int):
        self.max_parts = max_parts
        self.parts: list[MultipartPart] = []
        self.ended = False
        self._seen = 0
        self._active = False
        self._headers: dict[bytes, bytes] = {}
        self._header_field = b""
        self._header_value = b""
        self._data = bytearray()

    def callbacks(self) -> dict:
        return {
            "on_part_begin": self.on_part_begin,
            "on_part_data": self.on_part_data,
            "on_part_end": self.on_part_end,
            "on_header_field": self.on_header_field,
            "on_header_value": self.on_header_value,
            "on_header_end": self.on_header_end,
            "on_end": self.on_end,
        }

    def on_part_begin(self) -> None:
        self._seen += 1
        # Parts beyond the cap are parsed but dropped
        self._active = self._seen <= self.max_parts
        self._headers = {}
        self._data = bytearray()

    def on_header_field(self, data: bytes, start: int, end: int) -> None:
        self._header_field += data[start:end]

    def on_header_value(self, data: bytes, start: int, end: int) -> None:
        self._header_value += data[start:end]

    def on_header_end(self) -> None:
        self._headers[self._header_field.lower()] = self._header_value
        self._header_field = b""
        self._header_value = b""

    def on_part_data(self, data: bytes, start: int, end: int) -> None:
        if self._active:
            self._data += data[start:end]

    def on_part_end(self) -> None:
        if not self._active:
            return
        index = len(self.parts)
        if not self._data:
            raise EmptyPartError(index)

        _, options = parse_options_header(self._headers.get(b"content-disposition"))
        if b"name" not in options:
            raise MalformedMultipartError(f"Multipart section {index} has no field name")
        field_name = _decode_header_value(options[b"name"])
        file_name = _decode_header_value(options.get(b"filename", b""))

        if file_name:
            content_type = self._headers.get(b"content-type")
            self.parts.append(FilePart(
                field_name=field_name,
                file_name=file_name,
                content_type=content_type.decode("latin-1") if content_type else None,
                raw=bytes(self._data),
            ))
            return

        try:
            text = self._data.decode("utf-8")
        except UnicodeDecodeError as e:
            raise MalformedMultipartError(
                f"Multipart section {index} is not UTF-8 text"
            ) from e
        self.parts.append(FieldPart(field_name=field_name, text=text))

    def on_end(self) -> None:
        self.ended = True


def decode_multipart(
    body: Union[bytes, bytearray],
    boundary: str,
    *,
    max_parts: int = DEFAULT_MAX_PARTS
) -> list[MultipartPart]:
    """
    Split a multipart body into ordered parts.

    Parts past `max_parts` are silently dropped.

    Raises:
        EmptyPartError: if a kept part has no content
        MalformedMultipartError: on framing errors, truncation, a part without
            a name, or a text part that is not UTF-8
    """
    collector = _PartCollector(max_parts)
    parser = MultipartParser(boundary, collector.callbacks())
    try:
        parser.write(bytes(body))
        parser.finalize()
    except MultipartParseError as e:
        raise MalformedMultipartError() from e

    if not collector.ended:
        raise MalformedMultipartError("Multipart body has no closing boundary")
    return collector.parts


def _header_param(value: str) -> str:
    return value.replace('"', "%22").replace("\r", "%0D").replace("\n", "%0A")


def encode_multipart(
    parts: list[MultipartPart],
    boundary: str,
    policy: FieldPolicy
) -> bytes:
    """Re-frame parts with `boundary`, sanitizing text parts."""
    out = bytearray()
    for part in parts:
        out += f"--{boundary}\r\n".encode("latin-1")
        name = _header_param(part.field_name)
        if isinstance(part, FilePart):
            out += (
                f'Content-Disposition: form-data; name="{name}"; '
                f'filename="{_header_param(part.file_name)}"\r\n'
            ).encode("utf-8")
            content_type = part.content_type or DEFAULT_FILE_CONTENT_TYPE
            out += f"Content-Type: {content_type}\r\n\r\n".encode("latin-1")
            out += part.raw
        else:
            out += f'Content-Disposition: form-data; name="{name}"\r\n\r\n'.encode("utf-8")
            out += policy.apply(part.field_name, part.text).encode("utf-8")
        out += b"\r\n"
    out += f"--{boundary}--\r\n".encode("latin-1")
    return bytes(out)


def sanitize_multipart(
    body: Union[bytes, bytearray],
    content_type: str,
    policy: FieldPolicy,
    *,
    max_parts: int = DEFAULT_MAX_PARTS
) -> bytes:
    """Decode, sanitize and re-frame a multipart body."""
    boundary = boundary_from_content_type(content_type)
    parts = decode_multipart(body, boundary, max_parts=max_parts)
    return encode_multipart(parts, boundary, policy)
