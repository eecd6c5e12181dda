"""IP assignment schemas for request/response validation."""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field, field_validator

from netpool.models.base import as_utc
from netpool.schemas.common import UTCDatetime


class IpAssignmentCreate(BaseModel):
    """Schema for adding an IP to a pool's ledger."""

    ip: str = Field(
        min_length=1,
        max_length=64,
        description="IP address literal",
        examples=["10.0.0.5"],
    )
    status: Optional[str] = Field(
        default=None,
        max_length=32,
        description="Status, defaults to 'available'",
        examples=["available", "active", "reserved", "blocked"],
    )
    customer_name: Optional[str] = Field(default=None, max_length=255)
    customer_id: Optional[str] = Field(default=None, max_length=64)
    assignment_type: Optional[str] = Field(
        default=None,
        max_length=32,
        description="Assignment type; 'active' stamps last_seen",
        examples=["static", "dynamic", "active"],
    )
    mac_address: Optional[str] = Field(default=None, max_length=64)


class IpAssignmentUpdate(BaseModel):
    """Schema for a partial assignment update. The IP itself is immutable."""

    status: Optional[str] = Field(default=None, min_length=1, max_length=32)
    customer_name: Optional[str] = Field(default=None, max_length=255)
    customer_id: Optional[str] = Field(default=None, max_length=64)
    assignment_type: Optional[str] = Field(default=None, max_length=32)
    mac_address: Optional[str] = Field(default=None, max_length=64)
    last_seen: Optional[datetime] = Field(
        default=None, description="ISO-8601 timestamp; null clears it"
    )

    @field_validator("status")
    @classmethod
    def status_not_null(cls, v: Optional[str]) -> str:
        """Status may be changed but never cleared."""
        if v is None:
            raise ValueError("status cannot be null")
        return v

    @field_validator("last_seen")
    @classmethod
    def normalize_last_seen(cls, v: Optional[datetime]) -> Optional[datetime]:
        """Timestamps without an offset are taken as UTC."""
        return as_utc(v) if v is not None else None


class IpAssignmentResponse(BaseModel):
    """Schema for assignment response."""

    id: int
    pool_id: int
    ip: str
    status: str
    customer_name: Optional[str]
    customer_id: Optional[str]
    assignment_type: Optional[str]
    mac_address: Optional[str]
    last_seen: Optional[UTCDatetime]
    created_at: UTCDatetime
    updated_at: UTCDatetime

    model_config = {"from_attributes": True}


class IpAssignmentMutationResponse(BaseModel):
    """Schema returned by assignment create/update."""

    message: str
    assignment: IpAssignmentResponse
