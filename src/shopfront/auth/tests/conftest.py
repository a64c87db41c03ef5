"""Shared fixtures for authentication tests."""

import time
from collections.abc import Callable
from datetime import timedelta
from typing import Any

import httpx
import pytest
from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric import rsa
from jose import jwk, jwt

from shopfront.auth.oidc import OIDCProvider
from shopfront.auth.session_tokens import SessionTokenIssuer
from shopfront.auth.tests.fake_idp import (
    CLIENT_ID,
    CLIENT_SECRET,
    ISSUER,
    KEY_ID,
    REDIRECT_URL,
    USER_ID,
    FakeIdentityProvider,
)


def _generate_private_pem() -> str:
    key = rsa.generate_private_key(public_exponent=65537, key_size=2048)
    return key.private_bytes(
        encoding=serialization.Encoding.PEM,
        format=serialization.PrivateFormat.PKCS8,
        encryption_algorithm=serialization.NoEncryption(),
    ).decode()


@pytest.fixture(scope="session")
def rsa_private_pem() -> str:
    return _generate_private_pem()


@pytest.fixture(scope="session")
def other_private_pem() -> str:
    """A second key the provider never publishes."""
    return _generate_private_pem()


@pytest.fixture(scope="session")
def public_jwk(rsa_private_pem: str) -> dict[str, Any]:
    public = jwk.construct(rsa_private_pem, algorithm="RS256").public_key().to_dict()
    public.update({"kid": KEY_ID, "use": "sig", "alg": "RS256"})
    return public


@pytest.fixture
def make_id_token(rsa_private_pem: str) -> Callable[..., str]:
    """
    Build an RS256 ID token signed with the published key.

    Keyword arguments override claims (``None`` drops the claim); ``kid``
    and ``key`` override the header key id and the signing key.
    """

    def _make(kid: str = KEY_ID, key: str | None = None, **overrides: Any) -> str:
        now = int(time.time())
        claims = {
            "sub": str(USER_ID),
            "email": "jane@example.com",
            "name": "Jane Wanjiku",
            "iss": ISSUER,
            "aud": CLIENT_ID,
            "iat": now,
            "exp": now + 3600,
        }
        claims.update(overrides)
        claims = {k: v for k, v in claims.items() if v is not None}
        return jwt.encode(claims, key or rsa_private_pem, algorithm="RS256", headers={"kid": kid})

    return _make


@pytest.fixture
def idp(public_jwk: dict[str, Any]) -> FakeIdentityProvider:
    return FakeIdentityProvider(public_jwk)


@pytest.fixture
def provider(idp: FakeIdentityProvider) -> OIDCProvider:
    """OIDCProvider wired to the fake identity provider."""
    http_client = httpx.AsyncClient(transport=httpx.MockTransport(idp.handle))
    return OIDCProvider(
        provider_url=ISSUER,
        client_id=CLIENT_ID,
        client_secret=CLIENT_SECRET,
        redirect_url=REDIRECT_URL,
        scopes=["openid", "offline_access", "email"],
        http_client=http_client,
    )


@pytest.fixture
def session_issuer() -> SessionTokenIssuer:
    return SessionTokenIssuer(secret="test-session-secret", ttl=timedelta(hours=24))
