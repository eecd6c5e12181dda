"""IP Assignment model: one IP of a pool bound to a consumer or state."""

from enum import Enum
from typing import Optional, TYPE_CHECKING
from datetime import datetime
from sqlmodel import Field, Relationship, Index
from sqlalchemy import DateTime, UniqueConstraint

from netpool.models.base import TimestampModel

if TYPE_CHECKING:
    from netpool.models.ip_pool import IpPool


DEFAULT_STATUS = "available"

# Assignment type that stamps last_seen at creation
ACTIVE_ASSIGNMENT_TYPE = "active"


class AssignmentStatus(str, Enum):
    """Known assignment statuses.

    The stored status is a free-form string; values outside the known set
    classify as OTHER and are kept verbatim.
    """

    AVAILABLE = "available"
    ACTIVE = "active"
    RESERVED = "reserved"
    BLOCKED = "blocked"
    OTHER = "other"

    @classmethod
    def classify(cls, value: Optional[str]) -> "AssignmentStatus":
        """Map a stored status string onto a known member or OTHER."""
        try:
            return cls(value)
        except ValueError:
            return cls.OTHER


class IpAssignment(TimestampModel, table=True):
    """Ledger entry binding an IP literal within a pool."""

    __tablename__ = "ip_assignments"

    # Primary key
    id: Optional[int] = Field(default=None, primary_key=True)

    # Foreign keys
    pool_id: int = Field(
        foreign_key="ip_pools.id",
        index=True,
        nullable=False,
        description="IP pool this assignment belongs to",
    )

    # Assignment details
    ip: str = Field(
        max_length=64,
        index=True,
        nullable=False,
        description="Assigned IP address literal",
    )
    status: str = Field(
        default=DEFAULT_STATUS,
        max_length=32,
        index=True,
        nullable=False,
        description="Status: available, active, reserved, blocked or caller-defined",
    )
    assignment_type: Optional[str] = Field(
        default=None,
        max_length=32,
        description="Assignment type (e.g., static, dynamic, active)",
    )
    mac_address: Optional[str] = Field(
        default=None,
        max_length=64,
        description="Hardware address of the consumer device",
    )

    # Consumer
    customer_name: Optional[str] = Field(
        default=None,
        max_length=255,
        description="Consumer display name",
    )
    customer_id: Optional[str] = Field(
        default=None,
        max_length=64,
        index=True,
        description="Consumer identifier",
    )

    last_seen: Optional[datetime] = Field(
        default=None,
        sa_type=DateTime(timezone=True),
        description="When the consumer was last seen on this IP",
    )

    # Relationships
    pool: "IpPool" = Relationship(back_populates="assignments")

    # Table constraints and indexes
    __table_args__ = (
        # One ledger entry per IP within a pool
        UniqueConstraint("pool_id", "ip", name="uq_pool_ip"),
        Index("ix_pool_status", "pool_id", "status"),
    )
