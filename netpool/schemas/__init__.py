"""Schemas package for request/response validation."""

from netpool.schemas.common import (
    ResponseMessage,
    ErrorResponse,
    Pagination,
    HealthCheckResponse,
)
from netpool.schemas.ip_assignment import (
    IpAssignmentCreate,
    IpAssignmentUpdate,
    IpAssignmentResponse,
    IpAssignmentMutationResponse,
)
from netpool.schemas.ip_pool import (
    IpPoolCreate,
    IpPoolUpdate,
    IpPoolResponse,
    IpPoolSummary,
    IpPoolDetail,
    IpPoolListResponse,
    IpPoolMutationResponse,
    IpAssignmentWithPool,
    IpPoolStats,
)

__all__ = [
    "ResponseMessage",
    "ErrorResponse",
    "Pagination",
    "HealthCheckResponse",
    "IpAssignmentCreate",
    "IpAssignmentUpdate",
    "IpAssignmentResponse",
    "IpAssignmentMutationResponse",
    "IpPoolCreate",
    "IpPoolUpdate",
    "IpPoolResponse",
    "IpPoolSummary",
    "IpPoolDetail",
    "IpPoolListResponse",
    "IpPoolMutationResponse",
    "IpAssignmentWithPool",
    "IpPoolStats",
]
