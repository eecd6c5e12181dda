"""System-wide IP assignment listing."""

from typing import Annotated, List, Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from netpool.api.deps import get_assignment_service, get_current_principal, get_db
from netpool.schemas import IpAssignmentWithPool
from netpool.services.assignment_service import AssignmentService

router = APIRouter()


@router.get(
    "",
    response_model=List[IpAssignmentWithPool],
    summary="List all IP assignments",
    description="Assignments across every pool, each embedding its pool.",
)
async def list_assignments(
    principal: Annotated[str, Depends(get_current_principal)],
    session: Annotated[AsyncSession, Depends(get_db)],
    assignment_service: Annotated[AssignmentService, Depends(get_assignment_service)],
    status_filter: Optional[str] = Query(
        None, alias="status", description="Filter by status"
    ),
    customer_id: Optional[str] = Query(None, description="Filter by customer"),
    ip_pool_id: Optional[int] = Query(None, description="Filter by pool"),
) -> List[IpAssignmentWithPool]:
    """List assignments system-wide."""
    assignments = await assignment_service.list_assignments(
        session,
        status=status_filter,
        customer_id=customer_id,
        pool_id=ip_pool_id,
    )
    return [IpAssignmentWithPool.model_validate(a) for a in assignments]
