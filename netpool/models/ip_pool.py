"""IP Pool model for network management."""

from typing import Optional, List, TYPE_CHECKING
from sqlmodel import Field, Relationship

from netpool.models.base import TimestampModel

if TYPE_CHECKING:
    from netpool.models.ip_assignment import IpAssignment


class IpPool(TimestampModel, table=True):
    """Named IP range with its network parameters."""

    __tablename__ = "ip_pools"

    # Primary key
    id: Optional[int] = Field(default=None, primary_key=True)

    # Pool identification
    name: str = Field(
        unique=True,
        index=True,
        max_length=100,
        nullable=False,
        description="Unique pool name (e.g., 'LAN-A', 'pppoe-customers')",
    )

    # Network configuration
    subnet: str = Field(
        max_length=64,
        nullable=False,
        description="Subnet in CIDR or network address form (e.g., '10.0.0.0/24')",
    )
    mask: str = Field(
        max_length=64,
        nullable=False,
        description="Network mask (e.g., '255.255.255.0')",
    )
    gateway: str = Field(
        max_length=64,
        nullable=False,
        description="Gateway IP address (e.g., '10.0.0.1')",
    )

    # DNS
    dns_primary: Optional[str] = Field(
        default=None,
        max_length=64,
        description="Primary DNS server",
    )
    dns_secondary: Optional[str] = Field(
        default=None,
        max_length=64,
        description="Secondary DNS server",
    )

    # Relationships
    # No cascade: a pool can only be removed once its ledger is empty
    assignments: List["IpAssignment"] = Relationship(
        back_populates="pool",
        sa_relationship_kwargs={
            "passive_deletes": "all",
            "order_by": "IpAssignment.ip",
        },
    )
