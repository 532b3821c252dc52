"""
Custom exceptions for the sanitization codecs.
Body-safe: messages never quote request or response content.
"""
from enum import Enum


class SanitizerErrorCode(str, Enum):
    """Error codes for codec failures."""
    NOT_JSON = "NOT_JSON"
    MALFORMED_FORM = "MALFORMED_FORM"
    MALFORMED_MULTIPART = "MALFORMED_MULTIPART"
    EMPTY_PART = "EMPTY_PART"
    UNSUPPORTED_VALUE_SHAPE = "UNSUPPORTED_VALUE_SHAPE"


class SanitizerError(Exception):
    """
    Base exception for codec errors.

    Attributes:
        error_code: Error code for logging and response
        status_code: HTTP status code to return on the request path
        message: Body-safe message
    """

    def __init__(
        self,
        error_code: SanitizerErrorCode,
        message: str = "Sanitization failed",
        status_code: int = 400
    ):
        self.error_code = error_code
        self.message = message
        self.status_code = status_code
        super().__init__(message)


class NotJsonError(SanitizerError):
    """Raised when a body declared as JSON does not parse."""

    def __init__(self, message: str = "Body is not valid JSON"):
        super().__init__(
            error_code=SanitizerErrorCode.NOT_JSON,
            message=message
        )


class MalformedFormError(SanitizerError):
    """Raised when a urlencoded body cannot be parsed."""

    def __init__(self, message: str = "Malformed urlencoded form body"):
        super().__init__(
            error_code=SanitizerErrorCode.MALFORMED_FORM,
            message=message
        )


class MalformedMultipartError(SanitizerError):
    """Raised on bad multipart framing, a missing boundary or a nameless part."""

    def __init__(self, message: str = "Malformed multipart body"):
        super().__init__(
            error_code=SanitizerErrorCode.MALFORMED_MULTIPART,
            message=message
        )


class EmptyPartError(SanitizerError):
    """Raised when a multipart section carries zero bytes."""

    def __init__(self, index: int = 0):
        super().__init__(
            error_code=SanitizerErrorCode.EMPTY_PART,
            message=f"Multipart section {index} is empty"
        )
        self.index = index


class UnsupportedValueShapeError(SanitizerError):
    """Raised when a JSON document is neither an object nor an array of objects."""

    def __init__(self, kind: str = "unknown"):
        super().__init__(
            error_code=SanitizerErrorCode.UNSUPPORTED_VALUE_SHAPE,
            message=f"Unsupported top-level JSON shape: {kind}"
        )
        self.kind = kind
