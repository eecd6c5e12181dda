"""Common schemas used across the application."""

from datetime import datetime
from typing import Annotated, Any, List, Optional

from pydantic import AfterValidator, BaseModel, Field

from netpool.models.base import as_utc

# Timestamps leave the API as aware UTC whatever the backend returned
UTCDatetime = Annotated[datetime, AfterValidator(as_utc)]


class ResponseMessage(BaseModel):
    """Generic response message schema."""

    message: str = Field(..., description="Response message")


class ErrorResponse(ResponseMessage):
    """Error body returned by every failing endpoint."""

    errors: Optional[List[Any]] = Field(
        default=None, description="Field-level validation errors"
    )


class Pagination(BaseModel):
    """Pagination block of list responses."""

    total: int = Field(..., description="Total number of items")
    page: int = Field(..., description="Current page number", ge=1)
    limit: int = Field(..., description="Number of items per page", ge=1)
    pages: int = Field(..., description="Total number of pages")


class HealthCheckResponse(BaseModel):
    """Health check response schema."""

    status: str = Field(..., description="Service status", examples=["healthy"])
    version: str = Field(..., description="API version", examples=["1.0.0"])
    database: str = Field(..., description="Database status", examples=["connected"])
    pools: Optional[int] = Field(
        default=None, description="Number of registered pools", examples=[3]
    )
