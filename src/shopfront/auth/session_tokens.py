"""Self-issued session tokens (HS256 JWTs signed with the server secret)."""

import logging
from datetime import UTC, datetime, timedelta
from uuid import UUID

from jose import ExpiredSignatureError, JWTError, jwt
from pydantic import ValidationError

from shopfront.auth.exceptions import (
    InvalidSignatureError,
    MalformedTokenError,
    TokenExpiredError,
)
from shopfront.auth.models import SessionClaims

logger = logging.getLogger(__name__)

SIGNING_ALGORITHM = "HS256"
HMAC_ALGORITHMS = ["HS256", "HS384", "HS512"]


class SessionTokenIssuer:
    """
    Issues and verifies session tokens for customers and OIDC logins.

    Tokens carry ``sub``, ``email``, ``iat`` and ``exp`` and are only
    invalidated by expiry; there is no revocation list.

    Attributes:
        secret: Symmetric signing secret
        ttl: Token lifetime

    Example:
        >>> issuer = SessionTokenIssuer(secret="s3cret", ttl=timedelta(hours=24))
        >>> token = issuer.issue(user_id, "user@example.com")
        >>> issuer.verify(token).email
        'user@example.com'
    """

    def __init__(self, secret: str, ttl: timedelta = timedelta(hours=24)):
        if not secret:
            raise ValueError("Session token secret must not be empty")
        if ttl <= timedelta(0):
            raise ValueError("Session token lifetime must be positive")
        self.secret = secret
        self.ttl = ttl

    def issue(self, subject_id: UUID | str, email: str, now: datetime | None = None) -> str:
        """
        Issue a signed session token.

        Args:
            subject_id: User or customer UUID
            email: Email address to embed
            now: Issue time override (defaults to current UTC time)

        Returns:
            Compact HS256 JWT
        """
        issued_at = now or datetime.now(UTC)
        claims = {
            "sub": str(UUID(str(subject_id))),
            "email": email,
            "iat": int(issued_at.timestamp()),
            "exp": int((issued_at + self.ttl).timestamp()),
        }
        return jwt.encode(claims, self.secret, algorithm=SIGNING_ALGORITHM)

    def verify(self, token: str) -> SessionClaims:
        """
        Verify a session token and return its claims.

        Expiry is checked before the signature, so an expired token is always
        reported as expired whatever it was signed with.

        Raises:
            MalformedTokenError: Token cannot be decoded or claims are invalid
            TokenExpiredError: Token is past its expiry
            InvalidSignatureError: Non-HMAC algorithm or signature mismatch
        """
        try:
            header = jwt.get_unverified_header(token)
            unverified = jwt.get_unverified_claims(token)
        except JWTError as e:
            raise MalformedTokenError(f"Token could not be decoded: {e}") from e

        expiry = unverified.get("exp")
        if not isinstance(expiry, (int, float)) or isinstance(expiry, bool):
            raise MalformedTokenError("Token has no numeric expiry")
        if expiry <= datetime.now(UTC).timestamp():
            raise TokenExpiredError("Token has expired")

        if header.get("alg") not in HMAC_ALGORITHMS:
            raise InvalidSignatureError(f"Unexpected signing method: {header.get('alg')}")

        try:
            payload = jwt.decode(token, self.secret, algorithms=HMAC_ALGORITHMS)
        except ExpiredSignatureError as e:
            raise TokenExpiredError("Token has expired") from e
        except JWTError as e:
            raise InvalidSignatureError(f"Token signature verification failed: {e}") from e

        try:
            return SessionClaims.model_validate(payload)
        except ValidationError as e:
            raise MalformedTokenError(f"Token claims are invalid: {e}") from e
