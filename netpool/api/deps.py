"""Dependencies for API endpoints."""

from typing import Annotated, AsyncGenerator

from fastapi import Depends
from fastapi.security import OAuth2PasswordBearer
from sqlalchemy.ext.asyncio import AsyncSession

from netpool.config import settings
from netpool.core.security import verify_token
from netpool.core.exceptions import AuthenticationError
from netpool.database import get_async_session
from netpool.services.assignment_service import AssignmentService
from netpool.services.ippool_service import IPPoolService
from netpool.utils.context import set_context

# Bearer tokens are issued by the auth service at AUTH_TOKEN_URL
oauth2_scheme = OAuth2PasswordBearer(tokenUrl=settings.AUTH_TOKEN_URL)


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """Get database session."""
    async for session in get_async_session():
        yield session


async def get_current_principal(
    token: Annotated[str, Depends(oauth2_scheme)],
) -> str:
    """Verify the bearer token and return its subject."""
    subject = verify_token(token, token_type="access")
    if subject is None:
        raise AuthenticationError("Could not validate credentials")

    set_context(principal=subject)
    return subject


def get_ippool_service() -> IPPoolService:
    """Get IP pool service instance."""
    return IPPoolService()


def get_assignment_service() -> AssignmentService:
    """Get assignment service instance."""
    return AssignmentService()
