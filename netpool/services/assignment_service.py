"""IP assignment ledger service."""

from typing import Any, Dict, List, Optional

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from netpool.core.exceptions import ConflictError, NotFoundError, ValidationError
from netpool.models import (
    ACTIVE_ASSIGNMENT_TYPE,
    DEFAULT_STATUS,
    IpAssignment,
    IpPool,
)
from netpool.models.base import utcnow
from netpool.services.ippool_service import POOL_NOT_FOUND
from netpool.utils.logger import get_logger
from netpool.utils.telemetry import (
    add_span_attributes,
    add_span_event,
    get_tracer,
    trace_operation,
)

logger = get_logger(__name__)
tracer = get_tracer()

ASSIGNMENT_NOT_FOUND = "IP assignment not found"
DUPLICATE_IP = "This IP is already assigned in this pool"

ASSIGNMENT_FIELDS = (
    "status",
    "customer_name",
    "customer_id",
    "assignment_type",
    "mac_address",
    "last_seen",
)


def _ip_order(dialect_name: str):
    """Ascending IP ordering by plain code-point comparison."""
    if dialect_name == "postgresql":
        return IpAssignment.ip.collate("C").asc()
    return IpAssignment.ip.asc()


class AssignmentService:
    """Service for the per-pool IP assignment ledger."""

    async def _ensure_pool(
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

    async def _get_assignment(
        self,
        session: AsyncSession,
        pool_id: int,
        assignment_id: int,
    ) -> IpAssignment:
        result = await session.execute(
            select(IpAssignment).where(
                IpAssignment.id == assignment_id,
                IpAssignment.pool_id == pool_id,
            )
        )
        assignment = result.scalar_one_or_none()

        if not assignment:
            logger.warning(
                "IP assignment not found",
                extra={"pool_id": pool_id, "assignment_id": assignment_id},
            )
            raise NotFoundError(ASSIGNMENT_NOT_FOUND)

        return assignment

    async def _ip_taken(self, session: AsyncSession, pool_id: int, ip: str) -> bool:
        result = await session.execute(
            select(IpAssignment.id).where(
                IpAssignment.pool_id == pool_id,
                IpAssignment.ip == ip,
            )
        )
        return result.first() is not None

    async def add_assignment(
        self,
        session: AsyncSession,
        pool_id: int,
        ip: str,
        status: Optional[str] = None,
        customer_name: Optional[str] = None,
        customer_id: Optional[str] = None,
        assignment_type: Optional[str] = None,
        mac_address: Optional[str] = None,
    ) -> IpAssignment:
        """
        Add an IP to a pool's ledger.

        The pre-check gives the duplicate error its message; the
        (pool_id, ip) unique constraint catches whatever races past it.

        Args:
            session: Database session
            pool_id: Pool to assign from
            ip: IP address literal
            status: Initial status, "available" when absent
            customer_name: Consumer display name
            customer_id: Consumer identifier
            assignment_type: Assignment type; "active" stamps last_seen
            mac_address: Consumer hardware address

        Returns:
            Created IpAssignment

        Raises:
            ValidationError: If ip is empty
            NotFoundError: If the pool doesn't exist
            ConflictError: If the pool already holds this IP
        """
        with tracer.start_as_current_span("service.assignment.add"):
            add_span_attributes(**{"ippool.id": pool_id, "assignment.ip": ip})

            if not ip or not ip.strip():
                raise ValidationError("IP is required")

            logger.info(
                "Adding IP assignment",
                extra={
                    "pool_id": pool_id,
                    "ip": ip,
                    "assignment_type": assignment_type,
                    "customer_id": customer_id,
                },
            )

            pool = await self._ensure_pool(session, pool_id, for_update=True)

            if await self._ip_taken(session, pool.id, ip):
                logger.warning(
                    "IP already assigned in pool",
                    extra={"pool_id": pool_id, "ip": ip},
                )
                raise ConflictError(DUPLICATE_IP)

            assignment = IpAssignment(
                pool_id=pool.id,
                ip=ip,
                status=status or DEFAULT_STATUS,
                customer_name=customer_name,
                customer_id=customer_id,
                assignment_type=assignment_type,
                mac_address=mac_address,
                last_seen=(
                    utcnow()
                    if assignment_type == ACTIVE_ASSIGNMENT_TYPE
                    else None
                ),
            )
            session.add(assignment)
            try:
                await session.commit()
            except IntegrityError as e:
                await session.rollback()
                # A pool deleted meanwhile fails the foreign key instead
                await self._ensure_pool(session, pool_id)
                add_span_event("assignment.unique_violation", {"assignment.ip": ip})
                logger.warning(
                    "Duplicate IP rejected by unique constraint",
                    extra={"pool_id": pool_id, "ip": ip},
                )
                raise ConflictError(DUPLICATE_IP) from e
            await session.refresh(assignment)

            logger.info(
                "IP assigned successfully",
                extra={
                    "pool_id": pool_id,
                    "assignment_id": assignment.id,
                    "ip": ip,
                    "status": assignment.status,
                },
            )

            return assignment

    async def update_assignment(
        self,
        session: AsyncSession,
        pool_id: int,
        assignment_id: int,
        changes: Dict[str, Any],
    ) -> IpAssignment:
        """
        Apply a partial update to an assignment.

        Only status, consumer fields, assignment type, hardware address and
        last_seen can change. Status is free-form; no transition rules apply.

        Raises:
            NotFoundError: If the pool/assignment pair doesn't resolve
            ValidationError: If status is set to null or empty
        """
        with tracer.start_as_current_span("service.assignment.update"):
            add_span_attributes(
                **{"ippool.id": pool_id, "assignment.id": assignment_id}
            )

            assignment = await self._get_assignment(session, pool_id, assignment_id)
            updates = {k: v for k, v in changes.items() if k in ASSIGNMENT_FIELDS}

            if "status" in updates and not updates["status"]:
                raise ValidationError("status cannot be empty")

            if not updates:
                return assignment

            for field, value in updates.items():
                setattr(assignment, field, value)

            session.add(assignment)
            await session.commit()
            await session.refresh(assignment)

            logger.info(
                "IP assignment updated",
                extra={
                    "pool_id": pool_id,
                    "assignment_id": assignment_id,
                    "fields": sorted(updates),
                },
            )

            return assignment

    async def delete_assignment(
        self,
        session: AsyncSession,
        pool_id: int,
        assignment_id: int,
    ) -> None:
        """
        Remove an assignment from the ledger.

        Raises:
            NotFoundError: If the pool/assignment pair doesn't resolve
        """
        with tracer.start_as_current_span("service.assignment.delete"):
            add_span_attributes(
                **{"ippool.id": pool_id, "assignment.id": assignment_id}
            )

            assignment = await self._get_assignment(session, pool_id, assignment_id)

            await session.delete(assignment)
            await session.commit()

            logger.info(
                "IP assignment removed",
                extra={
                    "pool_id": pool_id,
                    "assignment_id": assignment_id,
                    "ip": assignment.ip,
                },
            )

    async def list_pool_assignments(
        self,
        session: AsyncSession,
        pool_id: int,
        status: Optional[str] = None,
        customer_id: Optional[str] = None,
    ) -> List[IpAssignment]:
        """
        List a pool's assignments ordered by IP as a plain string.

        Raises:
            NotFoundError: If the pool doesn't exist
        """
        await self._ensure_pool(session, pool_id)

        stmt = select(IpAssignment).where(IpAssignment.pool_id == pool_id)
        if status:
            stmt = stmt.where(IpAssignment.status == status)
        if customer_id:
            stmt = stmt.where(IpAssignment.customer_id == customer_id)
        stmt = stmt.order_by(_ip_order(session.get_bind().dialect.name))

        result = await session.execute(stmt)
        return list(result.scalars().all())

    async def list_assignments(
        self,
        session: AsyncSession,
        status: Optional[str] = None,
        customer_id: Optional[str] = None,
        pool_id: Optional[int] = None,
    ) -> List[IpAssignment]:
        """List assignments across all pools, each with its pool loaded."""
        with trace_operation(
            "service.assignment.list",
            {
                "filter.status": status,
                "filter.customer_id": customer_id,
                "ippool.id": pool_id,
            },
        ):
            stmt = (
                select(IpAssignment)
                .options(selectinload(IpAssignment.pool))
                .execution_options(populate_existing=True)
            )
            if status:
                stmt = stmt.where(IpAssignment.status == status)
            if customer_id:
                stmt = stmt.where(IpAssignment.customer_id == customer_id)
            if pool_id is not None:
                stmt = stmt.where(IpAssignment.pool_id == pool_id)
            stmt = stmt.order_by(
                _ip_order(session.get_bind().dialect.name),
                IpAssignment.pool_id.asc(),
            )

            result = await session.execute(stmt)
            return list(result.scalars().all())
