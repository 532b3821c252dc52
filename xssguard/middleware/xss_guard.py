"""ASGI middleware that sanitizes request and response bodies.

Request side:
- GET: every non-skipped query parameter is sanitized in scope["query_string"]
- POST/PUT/PATCH with a JSON, urlencoded or multipart body: the whole body is
  buffered from ``receive``, rewritten, and replayed to the application as a
  single message with a matching Content-Length
- a codec error answers 400 and the application is never called

Response side (``sanitize_responses``):
- non-JSON responses are forwarded untouched, message by message
- JSON responses are buffered, rewritten and sent with a new Content-Length
- a codec error answers 500; the unsanitized body is never sent

This is a raw ASGI middleware (not BaseHTTPMiddleware) so it can swap the
receive/send callables and edit scope["query_string"] directly.
"""

import time
import uuid
from typing import Optional

from fastapi import status
from fastapi.responses import JSONResponse
from starlette.datastructures import Headers, MutableHeaders
from starlette.types import ASGIApp, Message, Receive, Scope, Send

from xssguard.core.config import Settings, get_settings
from xssguard.core.logging import get_safe_logger
from xssguard.core.metrics import get_metrics_collector
from xssguard.schemas.response import ErrorDetail, ErrorResponse, ResponseMetadata
from xssguard.services.dispatcher import (
    RequestDispatcher,
    Route,
    is_json_response,
    parse_content_length,
    select_route,
)
from xssguard.services.exceptions import SanitizerError
from xssguard.services.policy import FieldPolicy
from xssguard.services.query_rewriter import rewrite_scope_query

logger = get_safe_logger(__name__)

BODY_ROUTES = frozenset({Route.JSON, Route.FORM, Route.MULTIPART})

MAX_REQUEST_ID_LENGTH = 100


def get_request_id(headers: Headers) -> str:
    """X-Request-ID header if present and short enough, else a new UUID."""
    request_id = headers.get("x-request-id")
    if request_id and len(request_id) <= MAX_REQUEST_ID_LENGTH:
        return request_id
    return str(uuid.uuid4())


def error_response(
    code: str,
    message: str,
    status_code: int,
    request_id: str
) -> JSONResponse:
    """Build the JSON error body shared by both paths."""
    body = ErrorResponse(
        success=False,
        error=ErrorDetail(code=code, message=message, retryable=False),
        metadata=ResponseMetadata(request_id=request_id),
    )
    return JSONResponse(
        status_code=status_code,
        content=body.model_dump(by_alias=True),
        headers={"X-Request-ID": request_id},
    )


async def read_body(receive: Receive) -> bytes:
    """Buffer the full request body (it may arrive in several chunks)."""
    chunks: list[bytes] = []
    while True:
        message = await receive()
        if message["type"] == "http.disconnect":
            break
        body = message.get("body", b"")
        if body:
            chunks.append(body)
        if not message.get("more_body", False):
            break
    return b"".join(chunks)


def replay_receive(body: bytes, receive: Receive) -> Receive:
    """Deliver `body` once, then defer to the original receive."""
    delivered = False

    async def replay() -> Message:
        nonlocal delivered
        if not delivered:
            delivered = True
            return {"type": "http.request", "body": body, "more_body": False}
        return await receive()

    return replay


def set_content_length(scope: Scope, length: int) -> None:
    """Replace (or add) the request Content-Length header in the scope."""
    headers = MutableHeaders(scope=scope)
    headers["content-length"] = str(length)


class _ResponseSanitizer:
    """Wraps ``send`` to hold JSON response bodies until they are rewritten."""

    def __init__(
        self,
        scope: Scope,
        receive: Receive,
        send: Send,
        dispatcher: RequestDispatcher,
        request_id: str
    ):
        self.scope = scope
        self.receive = receive
        self.send = send
        self.dispatcher = dispatcher
        self.request_id = request_id
        self.metrics = get_metrics_collector()
        self.start_message: Optional[Message] = None
        self.content_type: Optional[str] = None
        self.passthrough = False
        self.body = bytearray()

    async def __call__(self, message: Message) -> None:
        message_type = message["type"]

        if message_type == "http.response.start":
            self.start_message = message
            self.content_type = Headers(raw=message["headers"]).get("content-type")
            if not is_json_response(self.content_type):
                self.passthrough = True
                self.metrics.record_response(sanitized=False)
                await self.send(message)
            return

        if message_type != "http.response.body" or self.passthrough:
            await self.send(message)
            return

        self.body += message.get("body", b"")
        if message.get("more_body", False):
            return
        await self._flush()

    async def _flush(self) -> None:
        try:
            new_body = self.dispatcher.sanitize_response(bytes(self.body), self.content_type)
        except SanitizerError as e:
            self.metrics.record_response(sanitized=False, error_code=e.error_code.value)
            logger.error(
                "Response sanitization failed",
                error_code=e.error_code.value,
                request_id=self.request_id,
                path=self.scope.get("path"),
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR
            )
            response = error_response(
                code=e.error_code.value,
                message="Response could not be sanitized",
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                request_id=self.request_id,
            )
            await response(self.scope, self.receive, self.send)
            return

        if new_body is None:
            self.metrics.record_response(sanitized=False)
            await self.send(self.start_message)
            await self.send({"type": "http.response.body", "body": bytes(self.body)})
            return

        self.metrics.record_response(sanitized=True)
        headers = MutableHeaders(scope=self.start_message)
        headers["content-length"] = str(len(new_body))
        await self.send(self.start_message)
        await self.send({"type": "http.response.body", "body": new_body})


class XSSGuardMiddleware:
    """
    Strip markup from request and response bodies.

    Usage:
        app.add_middleware(XSSGuardMiddleware)
        app.add_middleware(XSSGuardMiddleware, policy=FieldPolicy.default("token"))
    """

    def __init__(
        self,
        app: ASGIApp,
        policy: Optional[FieldPolicy] = None,
        *,
        settings: Optional[Settings] = None
    ) -> None:
        self.app = app
        self.settings = settings or get_settings()
        self.policy = policy or FieldPolicy.from_settings(self.settings)
        self.dispatcher = RequestDispatcher(
            self.policy,
            max_multipart_parts=self.settings.max_multipart_parts,
            keep_all_form_values=self.settings.keep_all_form_values,
        )
        self.metrics = get_metrics_collector()

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        headers = Headers(scope=scope)
        request_id = get_request_id(headers)
        content_type = headers.get("content-type")
        route = select_route(
            scope["method"],
            content_type,
            parse_content_length(headers.get("content-length")),
        )

        start = time.perf_counter()
        try:
            if route is Route.QUERY:
                rewrite_scope_query(scope, self.policy)
            elif route in BODY_ROUTES:
                body = await read_body(receive)
                new_body = self.dispatcher.sanitize_body(route, body, content_type)
                set_content_length(scope, len(new_body))
                receive = replay_receive(new_body, receive)
        except SanitizerError as e:
            latency_ms = int((time.perf_counter() - start) * 1000)
            self.metrics.record_request(
                route=route.value,
                latency_ms=latency_ms,
                success=False,
                error_code=e.error_code.value,
            )
            logger.error(
                "Request sanitization failed",
                error_code=e.error_code.value,
                request_id=request_id,
                method=scope["method"],
                path=scope.get("path"),
                route=route.value,
                status_code=e.status_code
            )
            response = error_response(
                code=e.error_code.value,
                message=e.message,
                status_code=e.status_code,
                request_id=request_id,
            )
            await response(scope, receive, send)
            return

        latency_ms = int((time.perf_counter() - start) * 1000)
        self.metrics.record_request(route=route.value, latency_ms=latency_ms, success=True)
        logger.debug(
            "Request inspected",
            request_id=request_id,
            method=scope["method"],
            path=scope.get("path"),
            route=route.value,
            latency_ms=latency_ms
        )

        if self.settings.sanitize_responses:
            send = _ResponseSanitizer(scope, receive, send, self.dispatcher, request_id)
        await self.app(scope, receive, send)
