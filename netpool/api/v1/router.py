"""Main router for API v1."""

from fastapi import APIRouter

from netpool.api.v1.endpoints import health, ip_assignments, pools
from netpool.schemas import ErrorResponse

# Error bodies documented on every authenticated route
ERROR_RESPONSES = {
    400: {"model": ErrorResponse, "description": "Invalid request or conflict"},
    401: {"model": ErrorResponse, "description": "Missing or invalid token"},
    404: {"model": ErrorResponse, "description": "Pool or assignment not found"},
}

# Create main API v1 router
api_router = APIRouter()

api_router.include_router(
    health.router,
    prefix="/health",
    tags=["Health"],
)

api_router.include_router(
    pools.router,
    prefix="/pools",
    tags=["IP Pools"],
    responses=ERROR_RESPONSES,
)

api_router.include_router(
    ip_assignments.router,
    prefix="/ip-assignments",
    tags=["IP Assignments"],
    responses=ERROR_RESPONSES,
)
