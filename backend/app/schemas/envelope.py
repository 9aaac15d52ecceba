"""
Portcullis Backend - Envelope Schemas
=====================================

What:  Pydantic descriptions of the response envelopes.
Who:   Referenced by route decorators (`response_model=`, `responses=`) so
       the OpenAPI document at /api-specs shows the real wire shapes. The
       bodies themselves are built by app.responses.
"""

from datetime import datetime
from typing import Dict, Generic, List, Optional, TypeVar

from pydantic import BaseModel, ConfigDict, Field

T = TypeVar("T")


class PaginationMeta(BaseModel):
    """
    Paging details for list endpoints.

    total_pages is ceil(total / limit); it is 0 for an empty table.
    """

    model_config = ConfigDict(populate_by_name=True)

    page: int = Field(description="Current page (1-based)")
    limit: int = Field(description="Items per page")
    total: int = Field(description="Total number of items")
    total_pages: int = Field(alias="totalPages", description="Number of pages")


class SuccessEnvelope(BaseModel, Generic[T]):
    success: bool = True
    message: Optional[str] = None
    data: T
    meta: Optional[PaginationMeta] = None


class FailureEnvelope(BaseModel):
    """
    What every failed request returns.

    `error` and `stack` are only present outside production.
    """

    success: bool = False
    message: str = Field(description="Human-readable error description")
    error: Optional[str] = Field(default=None, description="Exception message (non-production)")
    stack: Optional[str] = Field(default=None, description="Traceback (non-production)")


class ValidationFailureEnvelope(BaseModel):
    """
    422 body. Keys of `errors` are dot-joined field paths.

    Example:
        {
            "success": false,
            "message": "Validation Errors",
            "errors": {"email": ["value is not a valid email address"]}
        }
    """

    success: bool = False
    message: str = "Validation Errors"
    errors: Dict[str, List[str]]


class HealthResponse(BaseModel):
    status: str = Field(description="Always 'ok' while the process is serving")
    timestamp: datetime = Field(description="Server time (UTC ISO 8601)")


# Shared `responses=` fragment for route decorators
ERROR_RESPONSES = {
    400: {"model": FailureEnvelope, "description": "Bad request"},
    401: {"model": FailureEnvelope, "description": "Missing or invalid bearer token"},
    404: {"model": FailureEnvelope, "description": "Resource not found"},
    409: {"model": FailureEnvelope, "description": "Resource conflict"},
    422: {"model": ValidationFailureEnvelope, "description": "Validation errors"},
    429: {"model": FailureEnvelope, "description": "Rate limit exceeded"},
}
