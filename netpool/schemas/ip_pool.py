"""IP pool schemas for request/response validation."""

from typing import Dict, List, Optional

from pydantic import AliasChoices, BaseModel, Field, ValidationInfo, field_validator

from netpool.schemas.common import Pagination, UTCDatetime
from netpool.schemas.ip_assignment import IpAssignmentResponse


class IpPoolCreate(BaseModel):
    """Schema for creating a new IP pool."""

    name: str = Field(
        min_length=1,
        max_length=100,
        description="Unique pool name",
        examples=["LAN-A"],
    )
    subnet: str = Field(
        min_length=1, max_length=64, examples=["10.0.0.0/24"]
    )
    mask: str = Field(min_length=1, max_length=64, examples=["255.255.255.0"])
    gateway: str = Field(min_length=1, max_length=64, examples=["10.0.0.1"])
    dns_primary: Optional[str] = Field(default=None, max_length=64)
    dns_secondary: Optional[str] = Field(default=None, max_length=64)


class IpPoolUpdate(BaseModel):
    """Schema for a partial pool update."""

    name: Optional[str] = Field(default=None, min_length=1, max_length=100)
    subnet: Optional[str] = Field(default=None, min_length=1, max_length=64)
    mask: Optional[str] = Field(default=None, min_length=1, max_length=64)
    gateway: Optional[str] = Field(default=None, min_length=1, max_length=64)
    dns_primary: Optional[str] = Field(default=None, max_length=64)
    dns_secondary: Optional[str] = Field(default=None, max_length=64)

    @field_validator("name", "subnet", "mask", "gateway")
    @classmethod
    def required_not_null(cls, v: Optional[str], info: ValidationInfo) -> str:
        """Required pool fields may be changed but never cleared."""
        if v is None:
            raise ValueError(f"{info.field_name} cannot be null")
        return v


class IpPoolResponse(BaseModel):
    """Schema for pool response."""

    id: int
    name: str
    subnet: str
    mask: str
    gateway: str
    dns_primary: Optional[str]
    dns_secondary: Optional[str]
    created_at: UTCDatetime
    updated_at: UTCDatetime

    model_config = {"from_attributes": True}


class IpPoolSummary(IpPoolResponse):
    """Pool row in a listing, annotated with its ledger size."""

    assignment_count: int = Field(..., description="Number of assignments")


class IpPoolDetail(IpPoolResponse):
    """Pool with its full assignment collection."""

    assignments: List[IpAssignmentResponse]


class IpPoolListResponse(BaseModel):
    """Schema for paginated pool list."""

    pools: List[IpPoolSummary]
    pagination: Pagination


class IpPoolMutationResponse(BaseModel):
    """Schema returned by pool create/update."""

    message: str
    pool: IpPoolResponse


class IpAssignmentWithPool(IpAssignmentResponse):
    """Assignment in the system-wide listing, embedding its pool."""

    ip_pool: IpPoolResponse = Field(
        validation_alias=AliasChoices("ip_pool", "pool"),
    )


class IpPoolStats(BaseModel):
    """Utilization statistics for a pool."""

    pool_id: int
    pool_name: str
    subnet: str
    gateway: str
    total: Optional[int] = Field(
        ..., description="Usable host addresses; null if the subnet is unparsable"
    )
    assigned: int = Field(..., description="Number of ledger entries")
    available: Optional[int]
    usage: Optional[float] = Field(..., description="In-use ratio (0-1)")
    by_status: Dict[str, int]
    next_free_ip: Optional[str]
