"""Rate limiting service for API endpoints."""

import logging

from fastapi import Request
from slowapi import Limiter
from slowapi.util import get_remote_address

from shopfront.auth.models import Principal
from shopfront.config import settings

logger = logging.getLogger(__name__)


def get_principal_or_ip(request: Request) -> str:
    """
    Rate limit key: the authenticated principal's user id, else the client IP.

    The principal is attached to ``request.state`` by the auth dependency.
    """
    principal: Principal | None = getattr(request.state, "principal", None)

    if principal is not None:
        return f"user:{principal.user_id}"

    return f"ip:{get_remote_address(request)}"


limiter = Limiter(
    key_func=get_principal_or_ip,
    default_limits=[],  # Applied per endpoint
    storage_uri="memory://",
    enabled=settings.rate_limit_enabled,
)


class RateLimitTiers:
    """
    Rate limit tiers for different endpoint categories.

    Limits are per user for authenticated endpoints and per IP otherwise.
    """

    # Reads
    DEFAULT = ["100 per minute", "1000 per hour"]

    # State-changing operations (POST/PUT)
    WRITE = ["30 per minute", "200 per hour"]

    # Login/callback/logout
    AUTH = ["20 per minute", "100 per hour"]


# These decorators require the endpoint to take a 'request: Request' parameter
default_rate_limit = limiter.limit(";".join(RateLimitTiers.DEFAULT))
write_rate_limit = limiter.limit(";".join(RateLimitTiers.WRITE))
auth_rate_limit = limiter.limit(";".join(RateLimitTiers.AUTH))
