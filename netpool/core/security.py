"""JWT access token handling.

Tokens are minted by the external auth service with a shared secret; this
service only verifies them. ``create_access_token`` exists for scripts and
tests that need a token signed with the same secret.
"""

from datetime import datetime, timedelta, UTC
from typing import Any, Optional

from jose import JWTError, jwt

from netpool.config import settings


def create_access_token(
    subject: str | Any,
    expires_delta: Optional[timedelta] = None,
) -> str:
    """Create JWT access token."""
    if expires_delta:
        expire = datetime.now(UTC) + expires_delta
    else:
        expire = datetime.now(UTC) + timedelta(
            minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES
        )

    to_encode = {"exp": expire, "sub": str(subject), "type": "access"}
    encoded_jwt = jwt.encode(
        to_encode, settings.SECRET_KEY, algorithm=settings.ALGORITHM
    )
    return encoded_jwt


def verify_token(token: str, token_type: str = "access") -> Optional[str]:
    """Verify JWT token and return the subject."""
    try:
        payload = jwt.decode(
            token,
            settings.SECRET_KEY,
            algorithms=[settings.ALGORITHM],
        )
        token_sub: str = payload.get("sub")
        token_typ: str = payload.get("type")

        if token_sub is None or token_typ != token_type:
            return None

        return token_sub
    except JWTError:
        return None
