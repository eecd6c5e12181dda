"""IP Pool registry service."""

import ipaddress
from typing import Any, Dict, Iterable, List, Optional, Tuple

from sqlalchemy import select, func
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from netpool.core.exceptions import ConflictError, NotFoundError, ValidationError
from netpool.models import AssignmentStatus, IpAssignment, IpPool
from netpool.utils.logger import get_logger
from netpool.utils.telemetry import get_tracer, add_span_attributes

logger = get_logger(__name__)
tracer = get_tracer()

POOL_NOT_FOUND = "IP pool not found"
DUPLICATE_POOL_NAME = "A pool with this name already exists"
POOL_HAS_ASSIGNMENTS = "Cannot delete a pool that has assigned IPs"

REQUIRED_POOL_FIELDS = ("name", "subnet", "mask", "gateway")
POOL_FIELDS = REQUIRED_POOL_FIELDS + ("dns_primary", "dns_secondary")

IPNetwork = ipaddress.IPv4Network | ipaddress.IPv6Network


# Helper functions
def _is_blank(value: Optional[str]) -> bool:
    return value is None or not str(value).strip()


def _parse_network(subnet: str, mask: str) -> Optional[IPNetwork]:
    """
    Parse a pool's subnet into a network.

    Args:
        subnet: CIDR (e.g., "10.0.0.0/24") or bare network address
        mask: Netmask or prefix length, used when subnet has no prefix

    Returns:
        The network, or None if the pair does not describe one
    """
    try:
        if "/" in subnet:
            return ipaddress.ip_network(subnet.strip(), strict=False)
        return ipaddress.ip_network(f"{subnet.strip()}/{mask.strip()}", strict=False)
    except ValueError:
        return None


def _usable_host_count(net: IPNetwork) -> int:
    """Number of addresses ``net.hosts()`` yields."""
    if net.version == 4:
        return net.num_addresses - 2 if net.prefixlen < 31 else net.num_addresses
    return net.num_addresses - 1 if net.prefixlen < 127 else net.num_addresses


def _normalize_ip(ip: str) -> str:
    """Canonical text form of an IP literal; unparsable literals pass through."""
    try:
        return str(ipaddress.ip_address(ip.strip()))
    except ValueError:
        return ip


def _first_free_host(
    net: IPNetwork, gateway: str, taken: Iterable[str]
) -> Optional[str]:
    """
    Find the first host of a network with no ledger entry.

    Args:
        net: Pool network
        gateway: Gateway address, never handed out
        taken: IP literals already present in the ledger

    Returns:
        The first free host address, or None if the network is exhausted
    """
    excluded = {_normalize_ip(ip) for ip in taken}
    excluded.add(_normalize_ip(gateway))

    for host in net.hosts():
        candidate = str(host)
        if candidate not in excluded:
            return candidate
    return None


class IPPoolService:
    """Service for IP pool registry operations."""

    async def _get_pool(
        self,
        session: AsyncSession,
        pool_id: int,
        for_update: bool = False,
    ) -> IpPool:
        stmt = select(IpPool).where(IpPool.id == pool_id)
        if for_update:
            stmt = stmt.with_for_update()
        result = await session.execute(stmt)
        pool = result.scalar_one_or_none()

        if not pool:
            logger.warning("IP pool not found", extra={"pool_id": pool_id})
            raise NotFoundError(POOL_NOT_FOUND)

        return pool

    async def _name_taken(
        self,
        session: AsyncSession,
        name: str,
        exclude_id: Optional[int] = None,
    ) -> bool:
        stmt = select(IpPool.id).where(IpPool.name == name)
        if exclude_id is not None:
            stmt = stmt.where(IpPool.id != exclude_id)
        result = await session.execute(stmt)
        return result.first() is not None

    async def _commit_pool(self, session: AsyncSession, pool: IpPool) -> None:
        """Commit, mapping a unique-name violation onto ConflictError."""
        # Rollback expires the instance, so read the name before committing
        pool_name = pool.name
        try:
            await session.commit()
        except IntegrityError as e:
            await session.rollback()
            logger.warning(
                "Pool name uniqueness violated at commit",
                extra={"pool_name": pool_name, "error": str(e.orig)},
            )
            raise ConflictError(DUPLICATE_POOL_NAME) from e
        await session.refresh(pool)

    async def list_pools(
        self,
        session: AsyncSession,
        page: int = 1,
        limit: int = 10,
    ) -> Tuple[List[Tuple[IpPool, int]], int]:
        """
        List pools ordered by name, each with its assignment count.

        Args:
            session: Database session
            page: 1-based page number
            limit: Page size

        Returns:
            Tuple of ([(pool, assignment_count), ...], total pool count)
        """
        with tracer.start_as_current_span("service.ippool.list"):
            add_span_attributes(**{"page": page, "limit": limit})

            offset = (page - 1) * limit
            assignment_count = func.count(IpAssignment.id).label("assignment_count")
            stmt = (
                select(IpPool, assignment_count)
                .outerjoin(IpAssignment, IpAssignment.pool_id == IpPool.id)
                .group_by(IpPool.id)
                .order_by(IpPool.name.asc())
                .offset(offset)
                .limit(limit)
            )
            result = await session.execute(stmt)
            rows = [(pool, count) for pool, count in result.all()]

            total_result = await session.execute(
                select(func.count()).select_from(IpPool)
            )
            total = total_result.scalar() or 0

            return rows, total

    async def get_pool(self, session: AsyncSession, pool_id: int) -> IpPool:
        """
        Get a pool with its assignments loaded.

        Raises:
            NotFoundError: If the pool doesn't exist
        """
        stmt = (
            select(IpPool)
            .where(IpPool.id == pool_id)
            .options(selectinload(IpPool.assignments))
            .execution_options(populate_existing=True)
        )
        result = await session.execute(stmt)
        pool = result.scalar_one_or_none()

        if not pool:
            raise NotFoundError(POOL_NOT_FOUND)

        return pool

    async def create_pool(
        self,
        session: AsyncSession,
        name: str,
        subnet: str,
        mask: str,
        gateway: str,
        dns_primary: Optional[str] = None,
        dns_secondary: Optional[str] = None,
    ) -> IpPool:
        """
        Create a new IP pool.

        Args:
            session: Database session
            name: Pool name (must be unique)
            subnet: Subnet, CIDR or network address
            mask: Network mask
            gateway: Gateway IP address
            dns_primary: Optional primary DNS
            dns_secondary: Optional secondary DNS

        Returns:
            Created IpPool object

        Raises:
            ValidationError: If a required field is missing or empty
            ConflictError: If the name is already taken
        """
        with tracer.start_as_current_span("service.ippool.create_pool"):
            add_span_attributes(**{"ippool.name": name, "ippool.subnet": subnet})

            if any(_is_blank(v) for v in (name, subnet, mask, gateway)):
                raise ValidationError("Name, subnet, mask and gateway are required")

            logger.info(
                "Creating new IP pool",
                extra={
                    "pool_name": name,
                    "subnet": subnet,
                    "mask": mask,
                    "gateway": gateway,
                },
            )

            if await self._name_taken(session, name):
                logger.warning("Duplicate pool name", extra={"pool_name": name})
                raise ConflictError(DUPLICATE_POOL_NAME)

            pool = IpPool(
                name=name,
                subnet=subnet,
                mask=mask,
                gateway=gateway,
                dns_primary=dns_primary,
                dns_secondary=dns_secondary,
            )

            session.add(pool)
            await self._commit_pool(session, pool)

            logger.info(
                "IP pool created successfully",
                extra={"pool_id": pool.id, "pool_name": pool.name},
            )

            return pool

    async def update_pool(
        self,
        session: AsyncSession,
        pool_id: int,
        changes: Dict[str, Any],
    ) -> IpPool:
        """
        Apply a partial update to a pool.

        Keys outside the pool's editable fields are ignored. An empty change
        set leaves the row untouched.

        Raises:
            NotFoundError: If the pool doesn't exist
            ValidationError: If a required field is set to null or empty
            ConflictError: If the new name belongs to another pool
        """
        with tracer.start_as_current_span("service.ippool.update_pool"):
            add_span_attributes(**{"ippool.id": pool_id})

            pool = await self._get_pool(session, pool_id)
            updates = {k: v for k, v in changes.items() if k in POOL_FIELDS}

            for field in REQUIRED_POOL_FIELDS:
                if field in updates and _is_blank(updates[field]):
                    raise ValidationError(f"{field} cannot be empty")

            new_name = updates.get("name")
            if new_name is not None and new_name != pool.name:
                if await self._name_taken(session, new_name, exclude_id=pool.id):
                    logger.warning(
                        "Duplicate pool name on rename",
                        extra={"pool_id": pool_id, "pool_name": new_name},
                    )
                    raise ConflictError(DUPLICATE_POOL_NAME)

            if not updates:
                return pool

            for field, value in updates.items():
                setattr(pool, field, value)

            session.add(pool)
            await self._commit_pool(session, pool)

            logger.info(
                "IP pool updated",
                extra={"pool_id": pool.id, "fields": sorted(updates)},
            )

            return pool

    async def delete_pool(self, session: AsyncSession, pool_id: int) -> None:
        """
        Delete a pool whose ledger is empty.

        Raises:
            NotFoundError: If the pool doesn't exist
            ConflictError: If the pool still has assignments
        """
        with tracer.start_as_current_span("service.ippool.delete_pool"):
            add_span_attributes(**{"ippool.id": pool_id})

            # Lock the pool so no assignment lands between the check and delete
            pool = await self._get_pool(session, pool_id, for_update=True)

            count_result = await session.execute(
                select(func.count(IpAssignment.id)).where(
                    IpAssignment.pool_id == pool.id
                )
            )
            assigned = count_result.scalar_one()

            if assigned > 0:
                logger.warning(
                    "Refusing to delete pool with assignments",
                    extra={"pool_id": pool_id, "assigned": assigned},
                )
                raise ConflictError(POOL_HAS_ASSIGNMENTS)

            await session.delete(pool)
            try:
                await session.commit()
            except IntegrityError as e:
                await session.rollback()
                raise ConflictError(POOL_HAS_ASSIGNMENTS) from e

            logger.info(
                "IP pool deleted",
                extra={"pool_id": pool_id, "pool_name": pool.name},
            )

    async def get_pool_stats(
        self,
        session: AsyncSession,
        pool_id: int,
    ) -> Dict[str, Any]:
        """
        Get utilization statistics for a pool.

        Args:
            session: Database session
            pool_id: Pool identifier

        Returns:
            Dictionary with total, assigned, available, usage, per-status
            counts and the first free host address

        Raises:
            NotFoundError: If the pool doesn't exist
        """
        with tracer.start_as_current_span("service.ippool.stats"):
            add_span_attributes(**{"ippool.id": pool_id})

            pool = await self._get_pool(session, pool_id)

            result = await session.execute(
                select(IpAssignment.ip, IpAssignment.status).where(
                    IpAssignment.pool_id == pool.id
                )
            )
            entries = result.all()

            by_status = {member.value: 0 for member in AssignmentStatus}
            for _, status in entries:
                by_status[AssignmentStatus.classify(status).value] += 1
            in_use = len(entries) - by_status[AssignmentStatus.AVAILABLE.value]

            net = _parse_network(pool.subnet, pool.mask)
            total = available = usage = next_free_ip = None
            if net is not None:
                total = _usable_host_count(net)
                available = max(total - in_use, 0)
                usage = round(in_use / total, 3) if total > 0 else 0.0
                next_free_ip = _first_free_host(
                    net, pool.gateway, (ip for ip, _ in entries)
                )

            stats = {
                "pool_id": pool.id,
                "pool_name": pool.name,
                "subnet": pool.subnet,
                "gateway": pool.gateway,
                "total": total,
                "assigned": len(entries),
                "available": available,
                "usage": usage,
                "by_status": by_status,
                "next_free_ip": next_free_ip,
            }

            logger.debug("Pool statistics retrieved", extra=stats)

            return stats
