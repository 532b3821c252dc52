"""
Health check and metrics endpoints.
Body-safe: only counters in responses.
"""
from typing import Any, Dict

from fastapi import APIRouter, status
from pydantic import BaseModel, Field

from xssguard.core.config import get_settings
from xssguard.core.metrics import get_metrics_collector

router = APIRouter(tags=["health"])


# === Response Models ===

class HealthResponse(BaseModel):
    """Basic health check response."""
    ok: bool


class MetricsResponse(BaseModel):
    """Metrics response."""
    uptime_seconds: int = Field(alias="uptimeSeconds")
    total_requests: int = Field(alias="totalRequests")
    sanitized_requests: int = Field(alias="sanitizedRequests")
    error_count: int = Field(alias="errorCount")
    routes: Dict[str, int]
    error_codes: Dict[str, int] = Field(alias="errorCodes")
    responses: Dict[str, int]
    latency: Dict[str, Any]
    policy: str
    skip_field_count: int = Field(alias="skipFieldCount")

    class Config:
        populate_by_name = True


# === Endpoints ===

@router.get(
    "/healthz",
    response_model=HealthResponse,
    status_code=status.HTTP_200_OK,
    summary="Liveness probe",
    description="Returns 200 if the service is alive"
)
async def health_check() -> HealthResponse:
    return HealthResponse(ok=True)


@router.get(
    "/v1/metrics",
    response_model=MetricsResponse,
    status_code=status.HTTP_200_OK,
    summary="Sanitizer metrics",
    description="Returns aggregated sanitization counters"
)
async def get_metrics() -> MetricsResponse:
    """
    Get aggregated metrics.

    Counters only: no field names, values or bodies.
    """
    settings = get_settings()
    snapshot = get_metrics_collector().get_snapshot()

    return MetricsResponse(
        uptime_seconds=snapshot["uptime_seconds"],
        total_requests=snapshot["total_requests"],
        sanitized_requests=snapshot["sanitized_requests"],
        error_count=snapshot["error_count"],
        routes=snapshot["routes"],
        error_codes=snapshot["error_codes"],
        responses=snapshot["responses"],
        latency=snapshot["latency"],
        policy=settings.sanitize_policy,
        skip_field_count=len(settings.skip_field_names())
    )
