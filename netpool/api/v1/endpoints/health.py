"""Liveness endpoint with a registry reachability check."""

from typing import Annotated, Optional

from fastapi import APIRouter, Depends
from sqlalchemy import func, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from netpool import __version__
from netpool.api.deps import get_db
from netpool.models import IpPool
from netpool.schemas import HealthCheckResponse
from netpool.utils.logger import get_logger

logger = get_logger(__name__)

router = APIRouter()


@router.get("", response_model=HealthCheckResponse)
async def health_check(
    db: Annotated[AsyncSession, Depends(get_db)],
) -> HealthCheckResponse:
    """
    Report API version and whether the pool registry can be read.

    Counting pools exercises both the connection and the schema, so a
    database without netpool's tables reports as degraded. No
    authentication required.
    """
    pool_count: Optional[int] = None
    try:
        result = await db.execute(select(func.count()).select_from(IpPool))
        pool_count = result.scalar_one()
        database_status = "connected"
    except SQLAlchemyError as e:
        await db.rollback()
        logger.warning("Health check could not read pools", extra={"error": str(e)})
        database_status = f"error: {e.__class__.__name__}"

    return HealthCheckResponse(
        status="healthy" if database_status == "connected" else "degraded",
        version=__version__,
        database=database_status,
        pools=pool_count,
    )
