"""
Body-safe logging module.
CRITICAL: Never log request or response bodies, field names or field values.
Only log: requestId, method, path, route, status, errorCode.
"""
import logging
import sys
from typing import Any, Optional

from xssguard.core.config import get_settings


def setup_logging() -> None:
    """Configure application logging with body-safe format."""
    settings = get_settings()

    if settings.log_level:
        log_level = getattr(logging, settings.log_level)
    else:
        log_level = logging.DEBUG if settings.service_env == "dev" else logging.INFO

    logging.basicConfig(
        level=log_level,
        format="%(asctime)s | %(levelname)s | %(name)s | %(message)s",
        datefmt="%Y-%m-%dT%H:%M:%S",
        handlers=[logging.StreamHandler(sys.stdout)],
        force=True
    )

    # Reduce noise from third-party libraries
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)
    logging.getLogger("python_multipart").setLevel(logging.WARNING)


class SafeLogger:
    """
    Body-safe logger wrapper.
    Only allows logging of an allow-list of context fields.
    """

    SAFE_FIELDS = frozenset({
        "request_id",
        "latency_ms",
        "status_code",
        "error_code",
        "method",
        "path",
        "route",
        "policy",
        "skip_field_count",
    })

    def __init__(self, name: str):
        self._logger = logging.getLogger(name)

    def _format_safe_context(self, context: dict[str, Any]) -> str:
        """Format only safe fields from context."""
        safe_items = []
        for key, value in context.items():
            if key in self.SAFE_FIELDS:
                safe_items.append(f"{key}={value}")
        return " | ".join(safe_items) if safe_items else ""

    def _emit(self, level: int, message: str, context: dict[str, Any]) -> None:
        ctx = self._format_safe_context(context)
        full_message = f"{message} | {ctx}" if ctx else message
        self._logger.log(level, full_message)

    def info(self, message: str, **context: Any) -> None:
        """Log info with safe context only."""
        self._emit(logging.INFO, message, context)

    def error(
        self,
        message: str,
        error_code: Optional[str] = None,
        **context: Any
    ) -> None:
        """
        Log error with safe context only.
        NEVER log exception details; parser messages may quote body bytes.
        """
        if error_code:
            context["error_code"] = error_code
        self._emit(logging.ERROR, message, context)

    def debug(self, message: str, **context: Any) -> None:
        """Log debug with safe context only."""
        self._emit(logging.DEBUG, message, context)


def get_safe_logger(name: str) -> SafeLogger:
    """Get a body-safe logger instance."""
    return SafeLogger(name)
