"""API handlers for the OIDC login flow."""

import logging

from fastapi import APIRouter, Depends, HTTPException, Request, status
from fastapi.responses import JSONResponse, PlainTextResponse, RedirectResponse

from shopfront.auth.cookies import (
    PKCE_COOKIE_NAME,
    clear_flow_cookies,
    clear_session_cookies,
    set_flow_cookie,
)
from shopfront.auth.dependencies import get_current_principal, get_optional_principal
from shopfront.auth.exceptions import DiscoveryError
from shopfront.auth.models import AuthType, Principal, UserInfoResponse
from shopfront.auth.session import SessionBootstrapper
from shopfront.config import settings
from shopfront.services import PostHogService
from shopfront.services.rate_limiter import auth_rate_limit, default_rate_limit

logger = logging.getLogger(__name__)
analytics = PostHogService.from_settings(settings)

router = APIRouter(prefix="/auth", tags=["auth"])


def get_bootstrapper(request: Request) -> SessionBootstrapper:
    """
    Return the login flow driver, or 503 when no identity provider is configured.
    """
    bootstrapper = getattr(request.app.state, "bootstrapper", None)
    if bootstrapper is None:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="OIDC login is not configured",
        )
    return bootstrapper


@router.get("/login")
@auth_rate_limit
async def login(
    request: Request,
    bootstrapper: SessionBootstrapper = Depends(get_bootstrapper),
) -> RedirectResponse:
    """
    Start the OIDC login by redirecting to the provider.

    Sets the state cookie (and the PKCE verifier cookie when PKCE is enabled),
    each valid for five minutes.

    Raises:
        HTTPException: 503 if OIDC is not configured or the provider cannot be reached
    """
    try:
        flow = await bootstrapper.begin_login()
    except DiscoveryError as e:
        logger.error(f"Cannot start OIDC login: {e}", exc_info=True)
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Identity provider unavailable",
        ) from e

    response = RedirectResponse(flow.redirect_url, status_code=status.HTTP_307_TEMPORARY_REDIRECT)
    set_flow_cookie(
        response, bootstrapper.state_cookie_name, flow.state_token, settings.oidc_cookie_secure
    )
    if flow.code_verifier:
        set_flow_cookie(response, PKCE_COOKIE_NAME, flow.code_verifier, settings.oidc_cookie_secure)
    return response


@router.get("/callback")
@auth_rate_limit
async def callback(
    request: Request,
    code: str | None = None,
    state: str | None = None,
    error: str | None = None,
    bootstrapper: SessionBootstrapper = Depends(get_bootstrapper),
):
    """
    Complete the OIDC login and issue a session token.

    Failures are returned as plain text with status 400 (bad or replayed
    callback) or 500 (provider exchange/verification failure). The state and
    PKCE cookies are cleared on every response.

    Example Response:
        {
            "user": {"id": "...", "email": "user@example.com", "name": "Jane", "picture": null, "provider": "oidc"},
            "access_token": "eyJ...",
            "token_type": "Bearer",
            "expires_in": 86400
        }
    """
    flow = await bootstrapper.complete_callback(code, state, error, request.cookies)

    if flow.error is not None:
        response = PlainTextResponse(str(flow.error), status_code=flow.error.status_code)
    else:
        result = flow.result
        analytics.capture(
            distinct_id=str(result.user.id),
            event="user_logged_in",
            properties={"provider": result.user.provider},
        )
        response = JSONResponse(result.model_dump(mode="json"))

    clear_flow_cookies(response, bootstrapper.state_cookie_name, settings.oidc_cookie_secure)
    return response


@router.post("/logout")
@auth_rate_limit
async def logout(
    request: Request,
    principal: Principal | None = Depends(get_optional_principal),
) -> JSONResponse:
    """
    Clear authentication cookies and tell the client to discard its token.

    Session tokens cannot be revoked server-side. When the caller authenticated
    with a provider-issued token and the provider has a known logout URL, the
    response also carries ``oidc_logout_url``.
    """
    instructions: dict[str, str] = {
        "client_action": "clear_token",
        "description": "Remove the JWT token from client storage (localStorage, sessionStorage, etc.)",
    }
    body: dict = {"message": "Successfully logged out", "instructions": instructions}

    provider = getattr(request.app.state, "oidc_provider", None)
    if principal is not None and principal.auth_type is AuthType.EXTERNAL and provider is not None:
        logout_url = provider.logout_url()
        if logout_url:
            body["oidc_logout_url"] = logout_url
            instructions["oidc_logout"] = (
                "Consider redirecting to oidc_logout_url to clear provider session"
            )

    response = JSONResponse(body, headers={"Cache-Control": "no-cache, no-store, must-revalidate"})
    clear_session_cookies(response, settings.oidc_state_cookie_name, settings.oidc_cookie_secure)

    if principal is not None:
        analytics.capture(
            distinct_id=str(principal.user_id),
            event="user_logged_out",
            properties={"auth_type": principal.auth_type.value},
        )
        logger.info(f"Logout successful for user {principal.email}")

    return response


@router.get("/userinfo", response_model=UserInfoResponse)
@default_rate_limit
async def userinfo(
    request: Request,
    principal: Principal = Depends(get_current_principal),
) -> UserInfoResponse:
    """Return the identity of the authenticated caller."""
    return UserInfoResponse(
        user_id=principal.user_id,
        email=principal.email,
        auth_type=principal.auth_type,
        provider=principal.provider,
    )
