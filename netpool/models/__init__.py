"""Database models package."""

from netpool.models.base import TimestampModel
from netpool.models.ip_pool import IpPool
from netpool.models.ip_assignment import (
    ACTIVE_ASSIGNMENT_TYPE,
    DEFAULT_STATUS,
    AssignmentStatus,
    IpAssignment,
)

__all__ = [
    "TimestampModel",
    "IpPool",
    "IpAssignment",
    "AssignmentStatus",
    "ACTIVE_ASSIGNMENT_TYPE",
    "DEFAULT_STATUS",
]
