"""
Error response schemas.
Body-safe: messages never echo request or response content.
"""
from typing import Literal

from pydantic import BaseModel, Field


class ResponseMetadata(BaseModel):
    """Metadata included in all error responses."""
    request_id: str = Field(..., alias="requestId", description="Request ID for tracing")

    class Config:
        populate_by_name = True


class ErrorDetail(BaseModel):
    """Error details for rejected requests and responses."""
    code: Literal[
        "NOT_JSON",
        "MALFORMED_FORM",
        "MALFORMED_MULTIPART",
        "EMPTY_PART",
        "UNSUPPORTED_VALUE_SHAPE",
        "INTERNAL_ERROR"
    ] = Field(
        ...,
        description="Error code"
    )
    message: str = Field(..., description="Human-readable error message")
    retryable: bool = Field(default=False, description="Whether the request can be retried")


class ErrorResponse(BaseModel):
    """Error response."""
    success: Literal[False] = False
    error: ErrorDetail = Field(..., description="Error details")
    metadata: ResponseMetadata = Field(..., description="Response metadata")

    class Config:
        populate_by_name = True
