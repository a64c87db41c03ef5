"""Data models for authentication."""

from enum import Enum
from uuid import UUID

from pydantic import BaseModel, Field, field_serializer, field_validator, model_validator


class AuthType(str, Enum):
    """Which verifier accepted a bearer token."""

    SELF_ISSUED = "self_issued"
    EXTERNAL = "external"


class SessionClaims(BaseModel):
    """
    Claims carried by a self-issued session token.

    Attributes:
        sub: Customer/user UUID
        email: Email address the token was issued for
        iat: Issue time (Unix seconds)
        exp: Expiry (Unix seconds), always after ``iat``
    """

    sub: UUID
    email: str
    iat: int
    exp: int

    @model_validator(mode="after")
    def _expiry_after_issue(self) -> "SessionClaims":
        if self.exp <= self.iat:
            raise ValueError("exp must be after iat")
        return self


class IdentityClaims(BaseModel):
    """
    Claims from a verified identity provider ID token.

    ``aud`` may arrive as a bare string or a list of strings. It is always
    held as a non-empty list and serialized back to a bare string when it has
    exactly one entry.

    Example:
        >>> claims = IdentityClaims(sub=user_id, iss="https://idp", aud="client-1", iat=0, exp=60)
        >>> claims.aud
        ['client-1']
        >>> claims.model_dump()["aud"]
        'client-1'
    """

    sub: UUID
    email: str | None = None
    name: str | None = None
    picture: str | None = None
    iss: str
    aud: list[str]
    iat: int
    exp: int

    @field_validator("aud", mode="before")
    @classmethod
    def _normalize_audience(cls, value: str | list[str]) -> list[str]:
        if isinstance(value, str):
            value = [value]
        if not isinstance(value, list) or not value:
            raise ValueError("audience must be a string or a non-empty list of strings")
        if not all(isinstance(entry, str) for entry in value):
            raise ValueError("audience entries must be strings")
        return value

    @field_serializer("aud")
    def _serialize_audience(self, aud: list[str]) -> str | list[str]:
        return aud[0] if len(aud) == 1 else aud


class TokenSet(BaseModel):
    """Token endpoint response."""

    access_token: str
    token_type: str = "Bearer"
    refresh_token: str | None = None
    expires_in: int | None = None
    id_token: str | None = None
    scope: str | None = None


class UserProfile(BaseModel):
    """User profile returned to the client after a successful login."""

    id: UUID
    email: str
    name: str | None = None
    picture: str | None = None
    provider: str = "oidc"


class Principal(BaseModel):
    """
    Authenticated caller attached to ``request.state.principal``.

    Attributes:
        user_id: Subject UUID from the accepted token
        email: Email claim
        auth_type: Verifier that accepted the token
        provider: Issuer URL (external tokens only)
    """

    user_id: UUID
    email: str | None = None
    auth_type: AuthType
    provider: str | None = None


class LoginResponse(BaseModel):
    """Body of a successful OIDC callback."""

    user: UserProfile
    access_token: str
    token_type: str = "Bearer"
    expires_in: int = Field(default=86400)


class UserInfoResponse(BaseModel):
    """Body of ``GET /auth/userinfo``."""

    user_id: UUID
    email: str | None
    auth_type: AuthType
    provider: str | None
