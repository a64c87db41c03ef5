"""OIDC login flow: login redirect, callback handling and session token issuance."""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Mapping

from shopfront.auth import pkce
from shopfront.auth.cookies import PKCE_COOKIE_NAME
from shopfront.auth.exceptions import (
    AuthFlowError,
    ExchangeError,
    ExchangeFailureError,
    IdentityVerificationError,
    MissingAuthCodeError,
    MissingIdentityTokenError,
    MissingStateError,
    MissingVerifierError,
    ProfileError,
    ProviderReportedError,
    SessionIssueError,
    StateMismatchError,
    VerificationFailureError,
)
from shopfront.auth.models import IdentityClaims, LoginResponse, UserProfile
from shopfront.auth.oidc import OIDCProvider
from shopfront.auth.session_tokens import SessionTokenIssuer

logger = logging.getLogger(__name__)

# Advertised to clients regardless of the ID token's own lifetime.
SESSION_EXPIRES_IN_SECONDS = 86400


class FlowState(str, Enum):
    IDLE = "idle"
    AWAITING_CALLBACK = "awaiting_callback"
    AUTHENTICATED = "authenticated"
    REJECTED = "rejected"


_TRANSITIONS: dict[FlowState, set[FlowState]] = {
    FlowState.IDLE: {FlowState.AWAITING_CALLBACK},
    FlowState.AWAITING_CALLBACK: {FlowState.AUTHENTICATED, FlowState.REJECTED},
    FlowState.AUTHENTICATED: set(),
    FlowState.REJECTED: set(),
}


@dataclass
class LoginFlow:
    """
    One login attempt.

    A flow is created ``IDLE`` by the login endpoint and moves to
    ``AWAITING_CALLBACK`` once the redirect is built. The callback endpoint
    resumes it (the only record of the attempt is the state/PKCE cookies)
    and ends it ``AUTHENTICATED`` with a ``result`` or ``REJECTED`` with an
    ``error``.
    """

    state: FlowState = FlowState.IDLE
    state_token: str | None = None
    code_verifier: str | None = None
    redirect_url: str | None = None
    result: LoginResponse | None = None
    error: AuthFlowError | None = None

    def _move(self, target: FlowState) -> None:
        if target not in _TRANSITIONS[self.state]:
            raise RuntimeError(f"Invalid login flow transition: {self.state.value} -> {target.value}")
        self.state = target

    def await_callback(self, redirect_url: str) -> None:
        self.redirect_url = redirect_url
        self._move(FlowState.AWAITING_CALLBACK)

    def authenticate(self, result: LoginResponse) -> None:
        self._move(FlowState.AUTHENTICATED)
        self.result = result

    def reject(self, error: AuthFlowError) -> None:
        self._move(FlowState.REJECTED)
        self.error = error


class SessionBootstrapper:
    """
    Drives the authorization-code login against an ``OIDCProvider`` and
    exchanges a verified identity for a self-issued session token.

    Attributes:
        provider: Identity provider client
        issuer: Session token issuer
        use_pkce: Whether to send a PKCE challenge and require the verifier cookie
        state_cookie_name: Name of the state cookie
    """

    def __init__(
        self,
        provider: OIDCProvider,
        issuer: SessionTokenIssuer,
        use_pkce: bool = False,
        state_cookie_name: str = "oidc_state",
    ):
        self.provider = provider
        self.issuer = issuer
        self.use_pkce = use_pkce
        self.state_cookie_name = state_cookie_name

    async def begin_login(self) -> LoginFlow:
        """
        Start a login attempt.

        Returns:
            Flow in ``AWAITING_CALLBACK`` with the state token, optional PKCE
            verifier and the provider redirect URL

        Raises:
            DiscoveryError: If the provider metadata cannot be loaded
        """
        flow = LoginFlow(state_token=pkce.generate_state())
        challenge = None
        if self.use_pkce:
            flow.code_verifier = pkce.generate_code_verifier()
            challenge = pkce.code_challenge(flow.code_verifier)

        redirect_url = await self.provider.authorization_url(flow.state_token, challenge)
        flow.await_callback(redirect_url)
        return flow

    async def complete_callback(
        self,
        code: str | None,
        state: str | None,
        error: str | None,
        cookies: Mapping[str, str],
    ) -> LoginFlow:
        """
        Finish a login attempt from the provider callback.

        Never raises for flow failures: the returned flow is either
        ``AUTHENTICATED`` with ``result`` or ``REJECTED`` with ``error``.
        """
        flow = LoginFlow(state=FlowState.AWAITING_CALLBACK, state_token=state)
        try:
            result = await self._complete(code, state, error, cookies)
        except AuthFlowError as e:
            logger.warning(
                f"OIDC callback rejected: {e}",
                extra={"error_type": type(e).__name__, "status_code": e.status_code},
            )
            flow.reject(e)
            return flow

        flow.authenticate(result)
        logger.info(
            f"OIDC login completed for {result.user.email}",
            extra={"user_id": str(result.user.id)},
        )
        return flow

    async def _complete(
        self,
        code: str | None,
        state: str | None,
        error: str | None,
        cookies: Mapping[str, str],
    ) -> LoginResponse:
        # Provider errors short-circuit before any cookie is read
        if error:
            raise ProviderReportedError(f"OIDC error: {error}")
        if not code:
            raise MissingAuthCodeError("Missing authorization code")
        if not state:
            raise MissingStateError("Missing state parameter")

        stored_state = cookies.get(self.state_cookie_name)
        if not stored_state:
            raise StateMismatchError("Missing state cookie")
        if stored_state != state:
            raise StateMismatchError("Invalid state parameter")

        code_verifier = None
        if self.use_pkce:
            code_verifier = cookies.get(PKCE_COOKIE_NAME)
            if not code_verifier:
                raise MissingVerifierError("Missing PKCE verifier")

        try:
            token_set = await self.provider.exchange_code(code, code_verifier)
        except ExchangeError as e:
            raise ExchangeFailureError("Failed to exchange token") from e

        if not token_set.id_token:
            raise MissingIdentityTokenError("No id_token in token response")

        try:
            claims = await self.provider.verify_identity_token(
                token_set.id_token, access_token=token_set.access_token
            )
        except IdentityVerificationError as e:
            raise VerificationFailureError("Failed to verify ID token") from e

        try:
            profile = await self.provider.fetch_profile(token_set)
        except ProfileError as e:
            logger.warning(f"Failed to get user info, using token claims: {e}")
            profile = self._profile_from_claims(claims)

        email = profile.email or claims.email or ""
        try:
            access_token = self.issuer.issue(profile.id, email)
        except ValueError as e:
            raise SessionIssueError("Failed to generate token") from e

        return LoginResponse(
            user=profile.model_copy(update={"email": email}),
            access_token=access_token,
            token_type="Bearer",
            expires_in=SESSION_EXPIRES_IN_SECONDS,
        )

    @staticmethod
    def _profile_from_claims(claims: IdentityClaims) -> UserProfile:
        return UserProfile(
            id=claims.sub,
            email=claims.email or "",
            name=claims.name,
            picture=claims.picture,
            provider="oidc",
        )
