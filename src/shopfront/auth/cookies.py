"""Cookie helpers for the OIDC login flow."""

from fastapi import Response

PKCE_COOKIE_NAME = "oidc_pkce_verifier"
LEGACY_SESSION_COOKIES = ("auth_token", "session_id", "oidc_session")
FLOW_COOKIE_MAX_AGE = 300  # 5 minutes


def set_flow_cookie(response: Response, name: str, value: str, secure: bool) -> None:
    """Set a short-lived login flow cookie (state or PKCE verifier)."""
    response.set_cookie(
        key=name,
        value=value,
        max_age=FLOW_COOKIE_MAX_AGE,
        path="/",
        secure=secure,
        httponly=True,
        samesite="lax",
    )


def clear_cookie(response: Response, name: str, secure: bool) -> None:
    """Expire a cookie with the same attributes it was set with."""
    response.delete_cookie(
        key=name,
        path="/",
        secure=secure,
        httponly=True,
        samesite="lax",
    )


def clear_flow_cookies(response: Response, state_cookie_name: str, secure: bool) -> None:
    clear_cookie(response, state_cookie_name, secure)
    clear_cookie(response, PKCE_COOKIE_NAME, secure)


def clear_session_cookies(response: Response, state_cookie_name: str, secure: bool) -> None:
    """Expire the flow cookies and any legacy session cookies."""
    clear_flow_cookies(response, state_cookie_name, secure)
    for name in LEGACY_SESSION_COOKIES:
        clear_cookie(response, name, secure)
