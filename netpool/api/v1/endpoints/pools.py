"""IP pool and per-pool assignment endpoints."""

import math
from typing import Annotated, List, Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from netpool.api.deps import (
    get_assignment_service,
    get_current_principal,
    get_db,
    get_ippool_service,
)
from netpool.config import settings
from netpool.schemas import (
    IpAssignmentCreate,
    IpAssignmentMutationResponse,
    IpAssignmentResponse,
    IpAssignmentUpdate,
    IpPoolCreate,
    IpPoolDetail,
    IpPoolListResponse,
    IpPoolMutationResponse,
    IpPoolResponse,
    IpPoolStats,
    IpPoolSummary,
    IpPoolUpdate,
    Pagination,
    ResponseMessage,
)
from netpool.services.assignment_service import AssignmentService
from netpool.services.ippool_service import IPPoolService
from netpool.utils.context import set_context

router = APIRouter()


@router.get(
    "",
    response_model=IpPoolListResponse,
    summary="List IP pools",
    description="List pools ordered by name, each with its assignment count.",
)
async def list_pools(
    principal: Annotated[str, Depends(get_current_principal)],
    session: Annotated[AsyncSession, Depends(get_db)],
    pool_service: Annotated[IPPoolService, Depends(get_ippool_service)],
    page: int = Query(1, ge=1, description="Page number"),
    limit: int = Query(
        settings.DEFAULT_PAGE_SIZE,
        ge=1,
        le=settings.MAX_PAGE_SIZE,
        description="Items per page",
    ),
) -> IpPoolListResponse:
    """List pools with pagination."""
    rows, total = await pool_service.list_pools(session, page=page, limit=limit)

    pools = [
        IpPoolSummary.model_validate({**pool.model_dump(), "assignment_count": count})
        for pool, count in rows
    ]

    return IpPoolListResponse(
        pools=pools,
        pagination=Pagination(
            total=total,
            page=page,
            limit=limit,
            pages=math.ceil(total / limit),
        ),
    )


@router.get(
    "/{pool_id}",
    response_model=IpPoolDetail,
    summary="Get IP pool",
    description="Get a pool with its full assignment collection.",
)
async def get_pool(
    pool_id: int,
    principal: Annotated[str, Depends(get_current_principal)],
    session: Annotated[AsyncSession, Depends(get_db)],
    pool_service: Annotated[IPPoolService, Depends(get_ippool_service)],
) -> IpPoolDetail:
    """Get pool details."""
    pool = await pool_service.get_pool(session, pool_id)
    return IpPoolDetail.model_validate(pool)


@router.get(
    "/{pool_id}/stats",
    response_model=IpPoolStats,
    summary="Get IP pool statistics",
    description="Host capacity, usage, per-status counts and the next free IP.",
)
async def get_pool_stats(
    pool_id: int,
    principal: Annotated[str, Depends(get_current_principal)],
    session: Annotated[AsyncSession, Depends(get_db)],
    pool_service: Annotated[IPPoolService, Depends(get_ippool_service)],
) -> IpPoolStats:
    """Get pool statistics."""
    stats = await pool_service.get_pool_stats(session, pool_id)
    return IpPoolStats(**stats)


@router.post(
    "",
    response_model=IpPoolMutationResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create IP pool",
)
async def create_pool(
    pool_data: IpPoolCreate,
    principal: Annotated[str, Depends(get_current_principal)],
    session: Annotated[AsyncSession, Depends(get_db)],
    pool_service: Annotated[IPPoolService, Depends(get_ippool_service)],
) -> IpPoolMutationResponse:
    """Create a new pool."""
    set_context(action="pool.create")

    pool = await pool_service.create_pool(session, **pool_data.model_dump())

    return IpPoolMutationResponse(
        message="IP pool created successfully",
        pool=IpPoolResponse.model_validate(pool),
    )


@router.put(
    "/{pool_id}",
    response_model=IpPoolMutationResponse,
    summary="Update IP pool",
    description="Partial update; only the fields sent are changed.",
)
async def update_pool(
    pool_id: int,
    pool_data: IpPoolUpdate,
    principal: Annotated[str, Depends(get_current_principal)],
    session: Annotated[AsyncSession, Depends(get_db)],
    pool_service: Annotated[IPPoolService, Depends(get_ippool_service)],
) -> IpPoolMutationResponse:
    """Update pool fields."""
    set_context(action="pool.update", pool_id=pool_id)

    pool = await pool_service.update_pool(
        session, pool_id, pool_data.model_dump(exclude_unset=True)
    )

    return IpPoolMutationResponse(
        message="IP pool updated successfully",
        pool=IpPoolResponse.model_validate(pool),
    )


@router.delete(
    "/{pool_id}",
    response_model=ResponseMessage,
    summary="Delete IP pool",
    description="Delete a pool. Fails while the pool has any assignment.",
)
async def delete_pool(
    pool_id: int,
    principal: Annotated[str, Depends(get_current_principal)],
    session: Annotated[AsyncSession, Depends(get_db)],
    pool_service: Annotated[IPPoolService, Depends(get_ippool_service)],
) -> ResponseMessage:
    """Delete a pool."""
    set_context(action="pool.delete", pool_id=pool_id)

    await pool_service.delete_pool(session, pool_id)

    return ResponseMessage(message="IP pool removed successfully")


@router.get(
    "/{pool_id}/assignments",
    response_model=List[IpAssignmentResponse],
    summary="List pool assignments",
    description="Assignments of a pool ordered by IP (string order).",
)
async def list_pool_assignments(
    pool_id: int,
    principal: Annotated[str, Depends(get_current_principal)],
    session: Annotated[AsyncSession, Depends(get_db)],
    assignment_service: Annotated[AssignmentService, Depends(get_assignment_service)],
    status_filter: Optional[str] = Query(
        None, alias="status", description="Filter by status"
    ),
    customer_id: Optional[str] = Query(None, description="Filter by customer"),
) -> List[IpAssignmentResponse]:
    """List a pool's assignments."""
    assignments = await assignment_service.list_pool_assignments(
        session, pool_id, status=status_filter, customer_id=customer_id
    )
    return [IpAssignmentResponse.model_validate(a) for a in assignments]


@router.post(
    "/{pool_id}/assignments",
    response_model=IpAssignmentMutationResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Assign IP",
)
async def add_assignment(
    pool_id: int,
    assignment_data: IpAssignmentCreate,
    principal: Annotated[str, Depends(get_current_principal)],
    session: Annotated[AsyncSession, Depends(get_db)],
    assignment_service: Annotated[AssignmentService, Depends(get_assignment_service)],
) -> IpAssignmentMutationResponse:
    """Add an IP to a pool."""
    set_context(action="assignment.add", pool_id=pool_id)

    assignment = await assignment_service.add_assignment(
        session, pool_id, **assignment_data.model_dump()
    )

    return IpAssignmentMutationResponse(
        message="IP assigned successfully",
        assignment=IpAssignmentResponse.model_validate(assignment),
    )


@router.put(
    "/{pool_id}/assignments/{assignment_id}",
    response_model=IpAssignmentMutationResponse,
    summary="Update IP assignment",
)
async def update_assignment(
    pool_id: int,
    assignment_id: int,
    assignment_data: IpAssignmentUpdate,
    principal: Annotated[str, Depends(get_current_principal)],
    session: Annotated[AsyncSession, Depends(get_db)],
    assignment_service: Annotated[AssignmentService, Depends(get_assignment_service)],
) -> IpAssignmentMutationResponse:
    """Update an assignment."""
    set_context(
        action="assignment.update", pool_id=pool_id, assignment_id=assignment_id
    )

    assignment = await assignment_service.update_assignment(
        session,
        pool_id,
        assignment_id,
        assignment_data.model_dump(exclude_unset=True),
    )

    return IpAssignmentMutationResponse(
        message="IP assignment updated successfully",
        assignment=IpAssignmentResponse.model_validate(assignment),
    )


@router.delete(
    "/{pool_id}/assignments/{assignment_id}",
    response_model=ResponseMessage,
    summary="Delete IP assignment",
)
async def delete_assignment(
    pool_id: int,
    assignment_id: int,
    principal: Annotated[str, Depends(get_current_principal)],
    session: Annotated[AsyncSession, Depends(get_db)],
    assignment_service: Annotated[AssignmentService, Depends(get_assignment_service)],
) -> ResponseMessage:
    """Remove an assignment."""
    set_context(
        action="assignment.delete", pool_id=pool_id, assignment_id=assignment_id
    )

    await assignment_service.delete_assignment(session, pool_id, assignment_id)

    return ResponseMessage(message="IP assignment removed successfully")
