"""
xssguard - FastAPI Application Entry Point.

Runs the sanitizing middleware in front of the health and metrics routes.
Applications embed the middleware with `app.add_middleware(XSSGuardMiddleware)`.
"""
import uuid
from contextlib import asynccontextmanager
from typing import AsyncGenerator, Optional

from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse

from xssguard.api.health import router as health_router
from xssguard.core.config import Settings, get_settings
from xssguard.core.logging import get_safe_logger, setup_logging
from xssguard.middleware.xss_guard import XSSGuardMiddleware
from xssguard.schemas.response import ErrorDetail, ErrorResponse, ResponseMetadata
from xssguard.services.policy import FieldPolicy


# Initialize logging first
setup_logging()
logger = get_safe_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Log startup and shutdown."""
    settings = get_settings()
    logger.info(
        "Starting xssguard",
        policy=settings.sanitize_policy,
        skip_field_count=len(settings.skip_field_names())
    )

    yield

    logger.info("Shutting down xssguard")


def create_app(
    settings: Optional[Settings] = None,
    policy: Optional[FieldPolicy] = None
) -> FastAPI:
    """Create and configure the FastAPI application."""
    settings = settings or get_settings()

    app = FastAPI(
        title="xssguard",
        description="Markup sanitization for JSON, form, multipart and query traffic",
        version="0.1.0",
        docs_url="/docs" if settings.service_env == "dev" else None,
        redoc_url="/redoc" if settings.service_env == "dev" else None,
        openapi_url="/openapi.json" if settings.service_env == "dev" else None,
        lifespan=lifespan
    )

    app.add_middleware(XSSGuardMiddleware, policy=policy, settings=settings)

    # Register routes
    app.include_router(health_router)

    # Register exception handlers
    app.add_exception_handler(Exception, generic_exception_handler)

    return app


async def generic_exception_handler(
    request: Request,
    exc: Exception
) -> JSONResponse:
    """
    Handle unexpected exceptions.
    Body-safe: never log exception details.
    """
    request_id = request.headers.get("X-Request-ID", str(uuid.uuid4()))

    logger.error(
        "Unexpected error",
        error_code="INTERNAL_ERROR",
        request_id=request_id,
        status_code=500
    )

    error_response = ErrorResponse(
        success=False,
        error=ErrorDetail(
            code="INTERNAL_ERROR",
            message="Internal server error",
            retryable=True
        ),
        metadata=ResponseMetadata(requestId=request_id)
    )

    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content=error_response.model_dump(by_alias=True)
    )


# Create the application instance
app = create_app()


if __name__ == "__main__":
    import uvicorn

    settings = get_settings()
    uvicorn.run(
        "xssguard.main:app",
        host=settings.host,
        port=settings.port,
        reload=settings.service_env == "dev"
    )
