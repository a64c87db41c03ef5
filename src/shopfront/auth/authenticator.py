"""Bearer token authentication across self-issued and provider-issued tokens."""

import logging
from dataclasses import dataclass
from typing import Awaitable, Callable

from shopfront.auth.exceptions import (
    IdentityVerificationError,
    InvalidCredentialError,
    MissingCredentialError,
)
from shopfront.auth.models import AuthType, Principal
from shopfront.auth.oidc import OIDCProvider
from shopfront.auth.session_tokens import SessionTokenIssuer

logger = logging.getLogger(__name__)

# Errors a strategy may raise to mean "this verifier does not accept the token"
_REJECTIONS = (InvalidCredentialError, IdentityVerificationError)


@dataclass(frozen=True)
class AuthStrategy:
    """A verifier tagged with the kind of principal it produces."""

    auth_type: AuthType
    verify: Callable[[str], Awaitable[Principal]]


def extract_bearer_token(authorization: str | None) -> str:
    """
    Return the token from an ``Authorization: Bearer <token>`` header.

    Raises:
        MissingCredentialError: Header absent, not Bearer, or empty token
    """
    if not authorization:
        raise MissingCredentialError("Authorization header required")

    scheme, _, token = authorization.strip().partition(" ")
    token = token.strip()
    if scheme.lower() != "bearer" or not token or " " in token:
        raise MissingCredentialError("Invalid authorization header format")
    return token


class RequestAuthenticator:
    """
    Resolves a bearer token to a ``Principal`` by trying each strategy in order.

    The self-issued verifier runs first (local HMAC check), then the external
    provider when one is configured. The first strategy to accept the token
    wins, so a token is accepted if either verifier accepts it.

    Example:
        >>> authenticator = RequestAuthenticator.build(issuer, provider)
        >>> principal = await authenticator.authenticate("Bearer eyJ...")
        >>> principal.auth_type
        <AuthType.SELF_ISSUED: 'self_issued'>
    """

    def __init__(self, strategies: list[AuthStrategy]):
        if not strategies:
            raise ValueError("At least one authentication strategy is required")
        self.strategies = strategies

    @classmethod
    def build(
        cls, issuer: SessionTokenIssuer, provider: OIDCProvider | None = None
    ) -> "RequestAuthenticator":
        async def verify_self_issued(token: str) -> Principal:
            claims = issuer.verify(token)
            return Principal(
                user_id=claims.sub, email=claims.email, auth_type=AuthType.SELF_ISSUED
            )

        strategies = [AuthStrategy(AuthType.SELF_ISSUED, verify_self_issued)]

        if provider is not None:

            async def verify_external(token: str) -> Principal:
                claims = await provider.verify_identity_token(token)
                return Principal(
                    user_id=claims.sub,
                    email=claims.email,
                    auth_type=AuthType.EXTERNAL,
                    provider=claims.iss,
                )

            strategies.append(AuthStrategy(AuthType.EXTERNAL, verify_external))

        return cls(strategies)

    async def authenticate(self, authorization: str | None) -> Principal:
        """
        Authenticate an Authorization header value.

        Raises:
            MissingCredentialError: No usable bearer token
            InvalidCredentialError: Every strategy rejected the token
        """
        token = extract_bearer_token(authorization)

        failures: list[str] = []
        for strategy in self.strategies:
            try:
                principal = await strategy.verify(token)
            except _REJECTIONS as e:
                failures.append(f"{strategy.auth_type.value}: {e}")
                continue

            logger.debug(
                "Bearer token accepted",
                extra={"auth_type": strategy.auth_type.value, "user_id": str(principal.user_id)},
            )
            return principal

        logger.info("Bearer token rejected", extra={"failures": failures})
        raise InvalidCredentialError("Invalid token")
