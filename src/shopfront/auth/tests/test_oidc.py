"""Tests for the OpenID Connect provider client."""

import time
from collections.abc import Callable

import httpx
import pytest
from jose import jwk

from shopfront.auth.exceptions import (
    DiscoveryError,
    ExchangeError,
    IdentityVerificationError,
    MalformedSubjectError,
    ProfileError,
)
from shopfront.auth.models import TokenSet
from shopfront.auth.oidc import GOOGLE_LOGOUT_URL, OIDCProvider
from shopfront.auth.tests.fake_idp import (
    CLIENT_ID,
    CLIENT_SECRET,
    ISSUER,
    REDIRECT_URL,
    USER_ID,
    FakeIdentityProvider,
)


@pytest.mark.asyncio
class TestDiscovery:
    """Tests for provider metadata discovery."""

    async def test_discover_fetches_and_caches_metadata(
        self, provider: OIDCProvider, idp: FakeIdentityProvider
    ):
        """Test the discovery document is fetched once and reused."""
        first = await provider.discover()
        second = await provider.discover()

        assert first["token_endpoint"] == f"{ISSUER}/token"
        assert second is first
        assert idp.paths() == ["/.well-known/openid-configuration"]

    async def test_discover_http_error_raises_discovery_error(
        self, provider: OIDCProvider, idp: FakeIdentityProvider
    ):
        idp.discovery_status = 500

        with pytest.raises(DiscoveryError):
            await provider.discover()

    async def test_discover_missing_endpoint_raises_discovery_error(
        self, provider: OIDCProvider, idp: FakeIdentityProvider
    ):
        del idp.discovery["jwks_uri"]

        with pytest.raises(DiscoveryError, match="jwks_uri"):
            await provider.discover()

    async def test_issuer_follows_discovered_metadata(
        self, provider: OIDCProvider, idp: FakeIdentityProvider
    ):
        idp.discovery["issuer"] = "https://idp.example.com/tenant"

        await provider.discover()

        assert provider.issuer == "https://idp.example.com/tenant"


@pytest.mark.asyncio
class TestAuthorizationUrl:
    """Tests for building the provider redirect."""

    async def test_contains_client_parameters(self, provider: OIDCProvider):
        url = httpx.URL(await provider.authorization_url("state-123"))

        assert url.path == "/authorize"
        assert url.params["response_type"] == "code"
        assert url.params["client_id"] == CLIENT_ID
        assert url.params["redirect_uri"] == REDIRECT_URL
        assert url.params["scope"] == "openid offline_access email"
        assert url.params["state"] == "state-123"
        assert url.params["access_type"] == "offline"
        assert "code_challenge" not in url.params

    async def test_includes_pkce_challenge(self, provider: OIDCProvider):
        url = httpx.URL(await provider.authorization_url("state-123", code_challenge="abc"))

        assert url.params["code_challenge"] == "abc"
        assert url.params["code_challenge_method"] == "S256"


@pytest.mark.asyncio
class TestExchangeCode:
    """Tests for the authorization code exchange."""

    async def test_posts_form_with_client_credentials(
        self, provider: OIDCProvider, idp: FakeIdentityProvider
    ):
        """Test client_secret_post authentication and the PKCE verifier."""
        idp.token_response["id_token"] = "raw-id-token"

        token_set = await provider.exchange_code("auth-code", code_verifier="verifier")

        assert token_set.access_token == "provider-access-token"
        assert token_set.id_token == "raw-id-token"
        assert idp.token_form() == {
            "grant_type": "authorization_code",
            "code": "auth-code",
            "redirect_uri": REDIRECT_URL,
            "client_id": CLIENT_ID,
            "client_secret": CLIENT_SECRET,
            "code_verifier": "verifier",
        }

    async def test_omits_verifier_without_pkce(
        self, provider: OIDCProvider, idp: FakeIdentityProvider
    ):
        await provider.exchange_code("auth-code")

        assert "code_verifier" not in idp.token_form()

    async def test_error_status_raises_exchange_error(
        self, provider: OIDCProvider, idp: FakeIdentityProvider
    ):
        idp.token_status = 400
        idp.token_response = {"error": "invalid_grant"}

        with pytest.raises(ExchangeError):
            await provider.exchange_code("auth-code")

    async def test_response_without_access_token_raises_exchange_error(
        self, provider: OIDCProvider, idp: FakeIdentityProvider
    ):
        idp.token_response = {"token_type": "Bearer"}

        with pytest.raises(ExchangeError):
            await provider.exchange_code("auth-code")


@pytest.mark.asyncio
class TestVerifyIdentityToken:
    """Tests for ID token verification against the provider JWKS."""

    async def test_valid_token_returns_claims(
        self, provider: OIDCProvider, make_id_token: Callable[..., str]
    ):
        claims = await provider.verify_identity_token(make_id_token())

        assert claims.sub == USER_ID
        assert claims.email == "jane@example.com"
        assert claims.iss == ISSUER
        assert claims.aud == [CLIENT_ID]

    async def test_accepts_audience_list_containing_client(
        self, provider: OIDCProvider, make_id_token: Callable[..., str]
    ):
        claims = await provider.verify_identity_token(make_id_token(aud=[CLIENT_ID, "other"]))

        assert claims.aud == [CLIENT_ID, "other"]

    async def test_wrong_audience_rejected(
        self, provider: OIDCProvider, make_id_token: Callable[..., str]
    ):
        with pytest.raises(IdentityVerificationError):
            await provider.verify_identity_token(make_id_token(aud="someone-else"))

    async def test_wrong_issuer_rejected(
        self, provider: OIDCProvider, make_id_token: Callable[..., str]
    ):
        with pytest.raises(IdentityVerificationError):
            await provider.verify_identity_token(make_id_token(iss="https://evil.example.com"))

    async def test_expired_token_rejected(
        self, provider: OIDCProvider, make_id_token: Callable[..., str]
    ):
        now = int(time.time())
        token = make_id_token(iat=now - 7200, exp=now - 3600)

        with pytest.raises(IdentityVerificationError):
            await provider.verify_identity_token(token)

    async def test_expiry_within_leeway_accepted(
        self, provider: OIDCProvider, make_id_token: Callable[..., str]
    ):
        now = int(time.time())
        claims = await provider.verify_identity_token(make_id_token(exp=now - 2))

        assert claims.sub == USER_ID

    async def test_foreign_signature_rejected(
        self,
        provider: OIDCProvider,
        make_id_token: Callable[..., str],
        other_private_pem: str,
    ):
        """Test a token signed with an unpublished key under a known kid is rejected."""
        with pytest.raises(IdentityVerificationError):
            await provider.verify_identity_token(make_id_token(key=other_private_pem))

    async def test_missing_kid_rejected(
        self, provider: OIDCProvider, make_id_token: Callable[..., str]
    ):
        with pytest.raises(IdentityVerificationError, match="kid"):
            await provider.verify_identity_token(make_id_token(kid=""))

    async def test_unknown_kid_refreshes_jwks(
        self,
        provider: OIDCProvider,
        idp: FakeIdentityProvider,
        make_id_token: Callable[..., str],
        other_private_pem: str,
    ):
        """Test a rotated key is picked up by refreshing the cached JWKS."""
        await provider.verify_identity_token(make_id_token())
        rotated = jwk.construct(other_private_pem, algorithm="RS256").public_key().to_dict()
        rotated.update({"kid": "rotated-key", "use": "sig", "alg": "RS256"})
        idp.jwks["keys"].append(rotated)

        claims = await provider.verify_identity_token(
            make_id_token(kid="rotated-key", key=other_private_pem)
        )

        assert claims.sub == USER_ID
        assert idp.paths().count("/jwks") == 2

    async def test_kid_absent_after_refresh_rejected(
        self, provider: OIDCProvider, make_id_token: Callable[..., str]
    ):
        with pytest.raises(IdentityVerificationError, match="signing key"):
            await provider.verify_identity_token(make_id_token(kid="never-published"))

    async def test_malformed_jwks_rejected(
        self,
        provider: OIDCProvider,
        idp: FakeIdentityProvider,
        make_id_token: Callable[..., str],
    ):
        """Test a key set that is not a JSON object fails verification instead of crashing."""
        idp.jwks = ["not", "an", "object"]

        with pytest.raises(IdentityVerificationError, match="not a key set"):
            await provider.verify_identity_token(make_id_token())

    async def test_non_uuid_subject_raises_malformed_subject(
        self, provider: OIDCProvider, make_id_token: Callable[..., str]
    ):
        with pytest.raises(MalformedSubjectError):
            await provider.verify_identity_token(make_id_token(sub="google-oauth2|1234"))

    async def test_hmac_token_rejected(self, provider: OIDCProvider, session_issuer):
        token = session_issuer.issue(USER_ID, "jane@example.com")

        with pytest.raises(IdentityVerificationError):
            await provider.verify_identity_token(token)


@pytest.mark.asyncio
class TestFetchProfile:
    """Tests for reading the user-info endpoint."""

    async def test_returns_profile(self, provider: OIDCProvider, idp: FakeIdentityProvider):
        profile = await provider.fetch_profile(TokenSet(access_token="provider-access-token"))

        assert profile.id == USER_ID
        assert profile.picture == "https://cdn.example.com/jane.png"
        assert profile.provider == "oidc"
        userinfo_request = idp.requests[-1]
        assert userinfo_request.headers["Authorization"] == "Bearer provider-access-token"

    async def test_error_status_raises_profile_error(
        self, provider: OIDCProvider, idp: FakeIdentityProvider
    ):
        idp.userinfo_status = 500

        with pytest.raises(ProfileError):
            await provider.fetch_profile(TokenSet(access_token="provider-access-token"))

    async def test_missing_userinfo_endpoint_raises_profile_error(
        self, provider: OIDCProvider, idp: FakeIdentityProvider
    ):
        del idp.discovery["userinfo_endpoint"]

        with pytest.raises(ProfileError):
            await provider.fetch_profile(TokenSet(access_token="provider-access-token"))


@pytest.mark.parametrize(
    ("provider_url", "expected"),
    [
        ("https://accounts.google.com", GOOGLE_LOGOUT_URL),
        (
            "https://login.microsoftonline.com/tenant/v2.0",
            "https://login.microsoftonline.com/tenant/v2.0/oauth2/logout",
        ),
        ("https://shop.eu.auth0.com/", "https://shop.eu.auth0.com/v2/logout"),
        ("https://shop.okta.com", "https://shop.okta.com/oauth2/v1/logout"),
        (
            "https://keycloak.example.com/realms/shop",
            "https://keycloak.example.com/realms/shop/protocol/openid-connect/logout",
        ),
        (
            "https://shop.projects.oryapis.com",
            "https://shop.projects.oryapis.com/oauth2/sessions/logout",
        ),
        ("https://idp.example.com", None),
    ],
)
def test_logout_url(provider_url: str, expected: str | None):
    provider = OIDCProvider(provider_url, CLIENT_ID, CLIENT_SECRET, REDIRECT_URL)
    assert provider.logout_url() == expected
