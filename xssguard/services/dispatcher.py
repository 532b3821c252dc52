"""
Routes a request or response body to the codec for its transport encoding.
"""
from enum import Enum
from typing import Optional, Union

from xssguard.services.codecs.form_codec import sanitize_form
from xssguard.services.codecs.json_codec import sanitize_json
from xssguard.services.codecs.multipart_codec import (
    DEFAULT_MAX_PARTS,
    sanitize_multipart,
)
from xssguard.services.policy import FieldPolicy

BODY_METHODS = frozenset({"POST", "PUT", "PATCH"})

JSON_MEDIA_TYPE = "application/json"
FORM_MEDIA_TYPE = "application/x-www-form-urlencoded"
MULTIPART_MEDIA_TYPE = "multipart/form-data"


class Route(str, Enum):
    """Where a request is sent for sanitization."""
    JSON = "json"
    FORM = "form"
    MULTIPART = "multipart"
    QUERY = "query"
    PASSTHROUGH = "passthrough"


def media_type(content_type: Optional[str]) -> str:
    """Lower-cased media type without parameters."""
    if not content_type:
        return ""
    return content_type.split(";", 1)[0].strip().lower()


def parse_content_length(value: Optional[str]) -> int:
    """Content-Length as int; missing or invalid counts as 0."""
    try:
        return int(value) if value else 0
    except ValueError:
        return 0


def select_route(
    method: str,
    content_type: Optional[str],
    content_length: int
) -> Route:
    """
    Pick the codec for a request.

    | Method          | Content-Type                          | Route       |
    |-----------------|---------------------------------------|-------------|
    | POST/PUT/PATCH  | application/json, length > 1          | JSON        |
    | POST/PUT/PATCH  | application/x-www-form-urlencoded     | FORM        |
    | POST/PUT/PATCH  | contains multipart/form-data          | MULTIPART   |
    | GET             | any                                   | QUERY       |
    | other           | any                                   | PASSTHROUGH |

    JSON routing keys on the declared length: a chunked JSON request with no
    Content-Length counts as 0 and passes through unsanitized.
    """
    method = method.upper()
    if method in BODY_METHODS:
        kind = media_type(content_type)
        if kind == JSON_MEDIA_TYPE and content_length > 1:
            return Route.JSON
        if kind == FORM_MEDIA_TYPE:
            return Route.FORM
        if MULTIPART_MEDIA_TYPE in (content_type or "").lower():
            return Route.MULTIPART
        return Route.PASSTHROUGH
    if method == "GET":
        return Route.QUERY
    return Route.PASSTHROUGH


def is_json_response(content_type: Optional[str]) -> bool:
    return JSON_MEDIA_TYPE in (content_type or "").lower()


class RequestDispatcher:
    """
    Shared entry point for the request and response paths.

    Codec errors (SanitizerError subclasses) propagate to the caller.
    """

    def __init__(
        self,
        policy: FieldPolicy,
        *,
        max_multipart_parts: int = DEFAULT_MAX_PARTS,
        keep_all_form_values: bool = True
    ):
        self.policy = policy
        self.max_multipart_parts = max_multipart_parts
        self.keep_all_form_values = keep_all_form_values

    def sanitize_body(
        self,
        route: Route,
        body: Union[bytes, bytearray],
        content_type: Optional[str]
    ) -> bytes:
        """Rewrite a request body for a body-carrying route."""
        if route is Route.JSON:
            return sanitize_json(body, self.policy)
        if route is Route.FORM:
            return sanitize_form(
                body,
                self.policy,
                keep_all_values=self.keep_all_form_values
            )
        if route is Route.MULTIPART:
            return sanitize_multipart(
                body,
                content_type or "",
                self.policy,
                max_parts=self.max_multipart_parts
            )
        return bytes(body)

    def sanitize_response(
        self,
        body: Union[bytes, bytearray],
        content_type: Optional[str]
    ) -> Optional[bytes]:
        """
        Rewrite a JSON response body.

        Returns None when the response is not JSON, or has no body, and must
        pass through.
        """
        if not body or not is_json_response(content_type):
            return None
        return sanitize_json(body, self.policy)
