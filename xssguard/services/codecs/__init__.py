"""
Transport codecs: decode a body, sanitize its leaves, re-encode it.
"""
from xssguard.services.codecs.form_codec import (
    FormPairs,
    decode_form,
    encode_form,
    sanitize_form,
)
from xssguard.services.codecs.json_codec import (
    decode_json,
    encode_document,
    encode_value,
    sanitize_json,
)
from xssguard.services.codecs.multipart_codec import (
    FieldPart,
    FilePart,
    MultipartPart,
    boundary_from_content_type,
    decode_multipart,
    encode_multipart,
    sanitize_multipart,
)

__all__ = [
    "FormPairs",
    "decode_form",
    "encode_form",
    "sanitize_form",
    "decode_json",
    "encode_document",
    "encode_value",
    "sanitize_json",
    "FieldPart",
    "FilePart",
    "MultipartPart",
    "boundary_from_content_type",
    "decode_multipart",
    "encode_multipart",
    "sanitize_multipart",
]
