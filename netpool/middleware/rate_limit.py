"""Rate limiting using SlowAPI."""

from slowapi import Limiter
from slowapi.util import get_remote_address

from netpool.config import settings

# Applied to every route through SlowAPIMiddleware
limiter = Limiter(
    key_func=get_remote_address,
    default_limits=[f"{settings.RATE_LIMIT_PER_MINUTE}/minute"],
    storage_uri="memory://",
    enabled=settings.RATE_LIMIT_ENABLED,
)
