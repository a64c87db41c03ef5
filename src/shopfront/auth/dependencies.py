"""FastAPI dependencies for bearer token authentication."""

import logging
from datetime import UTC, datetime

from fastapi import HTTPException, Request, status

from shopfront.auth.authenticator import RequestAuthenticator
from shopfront.auth.exceptions import AuthenticationError, MissingCredentialError
from shopfront.auth.models import Principal
from shopfront.auth.session_tokens import SessionTokenIssuer
from shopfront.config import settings
from shopfront.services import PostHogService

logger = logging.getLogger(__name__)
analytics = PostHogService.from_settings(settings)


def get_authenticator(request: Request) -> RequestAuthenticator:
    """
    Return the authenticator built during application startup.

    Raises:
        RuntimeError: If the application lifespan has not run
    """
    authenticator = getattr(request.app.state, "authenticator", None)
    if authenticator is None:
        raise RuntimeError(
            "Authenticator not initialized. Ensure the application lifespan has started."
        )
    return authenticator


def get_session_issuer(request: Request) -> SessionTokenIssuer:
    """Return the session token issuer built during application startup."""
    issuer = getattr(request.app.state, "session_issuer", None)
    if issuer is None:
        raise RuntimeError(
            "Session token issuer not initialized. Ensure the application lifespan has started."
        )
    return issuer


async def get_current_principal(request: Request) -> Principal:
    """
    Authenticate the request's bearer token and attach the principal.

    Tries the self-issued session token first, then the identity provider's
    ID token. The principal is stored on ``request.state.principal`` for the
    rate limiter and other downstream consumers.

    Returns:
        Principal for the authenticated caller

    Raises:
        HTTPException: 401 if the header is missing/malformed or no verifier accepts the token

    Example:
        @router.get("/me")
        async def me(principal: Principal = Depends(get_current_principal)):
            return {"user_id": principal.user_id}
    """
    authenticator = get_authenticator(request)
    try:
        principal = await authenticator.authenticate(request.headers.get("Authorization"))
    except MissingCredentialError as e:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=str(e),
            headers={"WWW-Authenticate": "Bearer"},
        )
    except AuthenticationError as e:
        logger.warning(f"Authentication failed: {e}", extra={"error": str(e)})
        analytics.capture(
            distinct_id="anonymous",
            event="authentication_failed",
            properties={"error": type(e).__name__},
        )
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid token",
            headers={"WWW-Authenticate": "Bearer"},
        )

    request.state.principal = principal
    analytics.capture(
        distinct_id=str(principal.user_id),
        event="user_authenticated",
        properties={
            "timestamp": datetime.now(UTC).isoformat(),
            "auth_type": principal.auth_type.value,
        },
    )
    return principal


async def get_optional_principal(request: Request) -> Principal | None:
    """Like ``get_current_principal`` but returns None instead of raising 401."""
    authenticator = get_authenticator(request)
    try:
        principal = await authenticator.authenticate(request.headers.get("Authorization"))
    except AuthenticationError:
        return None

    request.state.principal = principal
    return principal
