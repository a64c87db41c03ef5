"""OpenID Connect provider client: discovery, code exchange, ID token verification."""

import logging
from typing import Any
from urllib.parse import urlparse

import httpx
from jose import JWTError, jwt
from pydantic import ValidationError
from tenacity import retry, retry_if_exception_type, stop_after_attempt, wait_exponential

from shopfront.auth.exceptions import (
    DiscoveryError,
    ExchangeError,
    IdentityVerificationError,
    MalformedSubjectError,
    ProfileError,
)
from shopfront.auth.jwks import JWKSCache
from shopfront.auth.models import IdentityClaims, TokenSet, UserProfile
from shopfront.config import Settings

logger = logging.getLogger(__name__)

ID_TOKEN_ALGORITHMS = ["RS256", "ES256"]

# Provider host fragment -> logout path appended to the provider URL.
# ``None`` means the provider uses a fixed global logout URL instead.
_LOGOUT_PATHS: list[tuple[str, str | None]] = [
    ("accounts.google.com", None),
    ("login.microsoftonline.com", "/oauth2/logout"),
    ("auth0.com", "/v2/logout"),
    ("okta.com", "/oauth2/v1/logout"),
    ("keycloak", "/protocol/openid-connect/logout"),
    ("oryapis.com", "/oauth2/sessions/logout"),
]
GOOGLE_LOGOUT_URL = "https://accounts.google.com/logout"


class OIDCProvider:
    """
    Talks to one OpenID Connect identity provider.

    Provider metadata is discovered from
    ``<provider_url>/.well-known/openid-configuration`` on first use (or
    eagerly via ``discover()`` at startup) and cached. ID tokens are verified
    against the provider JWKS through a ``JWKSCache``.

    Attributes:
        provider_url: Issuer base URL
        client_id: OAuth client id (also the expected ID token audience)
        redirect_url: Callback URL registered with the provider
        scopes: Requested scopes
        leeway: Clock skew tolerance in seconds for ID token checks

    Example:
        >>> provider = OIDCProvider.from_settings(settings)
        >>> await provider.discover()
        >>> url = await provider.authorization_url(state)
        >>> tokens = await provider.exchange_code(code)
        >>> claims = await provider.verify_identity_token(tokens.id_token)
    """

    def __init__(
        self,
        provider_url: str,
        client_id: str,
        client_secret: str,
        redirect_url: str,
        scopes: list[str] | None = None,
        jwks_cache_ttl: int = 3600,
        leeway: int = 10,
        http_client: httpx.AsyncClient | None = None,
    ):
        self.provider_url = provider_url.rstrip("/")
        self.client_id = client_id
        self.client_secret = client_secret
        self.redirect_url = redirect_url
        self.scopes = scopes or ["openid"]
        self.jwks_cache_ttl = jwks_cache_ttl
        self.leeway = leeway
        self._owns_client = http_client is None
        self._http_client = http_client or httpx.AsyncClient(
            timeout=httpx.Timeout(10.0, read=30.0, connect=10.0, write=10.0)
        )
        self._metadata: dict[str, Any] | None = None
        self._jwks: JWKSCache | None = None

    @classmethod
    def from_settings(
        cls, settings: Settings, http_client: httpx.AsyncClient | None = None
    ) -> "OIDCProvider":
        return cls(
            provider_url=settings.oidc_provider_url,
            client_id=settings.oidc_client_id,
            client_secret=settings.oidc_client_secret,
            redirect_url=settings.oidc_redirect_url,
            scopes=settings.oidc_scope_list,
            jwks_cache_ttl=settings.jwks_cache_ttl_seconds,
            leeway=settings.jwt_leeway_seconds,
            http_client=http_client,
        )

    @property
    def issuer(self) -> str:
        """Expected ``iss`` value; the discovered issuer once metadata is loaded."""
        if self._metadata and self._metadata.get("issuer"):
            return self._metadata["issuer"]
        return self.provider_url

    async def discover(self) -> dict[str, Any]:
        """
        Fetch and cache provider metadata.

        Returns:
            The discovery document

        Raises:
            DiscoveryError: If the document cannot be fetched or lacks required endpoints
        """
        if self._metadata is not None:
            return self._metadata

        url = f"{self.provider_url}/.well-known/openid-configuration"
        try:
            logger.info(f"Discovering OIDC provider metadata from {url}")
            metadata = await self._fetch_metadata(url)
        except (httpx.HTTPError, ValueError) as e:
            logger.error(
                f"OIDC discovery failed for {self.provider_url}: {e}",
                extra={"error_type": "oidc_discovery_failed"},
            )
            raise DiscoveryError(f"Failed to discover OIDC provider: {e}") from e

        missing = [
            field
            for field in ("authorization_endpoint", "token_endpoint", "jwks_uri")
            if not metadata.get(field)
        ]
        if missing:
            raise DiscoveryError(f"Provider metadata missing required fields: {missing}")

        self._metadata = metadata
        self._jwks = JWKSCache(
            jwks_url=metadata["jwks_uri"],
            cache_ttl=self.jwks_cache_ttl,
            http_client=self._http_client,
        )
        logger.info(
            "OIDC provider discovered",
            extra={"issuer": metadata.get("issuer"), "jwks_uri": metadata["jwks_uri"]},
        )
        return metadata

    @retry(
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=0.5, max=4),
        retry=retry_if_exception_type(httpx.TransportError),
        reraise=True,
    )
    async def _fetch_metadata(self, url: str) -> dict[str, Any]:
        # Connection-level failures only; HTTP error statuses are not retried
        response = await self._http_client.get(url)
        response.raise_for_status()
        return response.json()

    async def authorization_url(self, state: str, code_challenge: str | None = None) -> str:
        """
        Build the provider authorization URL for a login attempt.

        Args:
            state: Single-use state token, echoed back on the callback
            code_challenge: PKCE S256 challenge, when PKCE is enabled

        Returns:
            Absolute URL to redirect the browser to
        """
        metadata = await self.discover()
        params = {
            "response_type": "code",
            "client_id": self.client_id,
            "redirect_uri": self.redirect_url,
            "scope": " ".join(self.scopes),
            "state": state,
            "access_type": "offline",
        }
        if code_challenge:
            params["code_challenge"] = code_challenge
            params["code_challenge_method"] = "S256"

        return str(httpx.URL(metadata["authorization_endpoint"]).copy_merge_params(params))

    async def exchange_code(self, code: str, code_verifier: str | None = None) -> TokenSet:
        """
        Exchange an authorization code for a token set.

        Args:
            code: Authorization code from the callback
            code_verifier: PKCE verifier matching the challenge sent at login

        Raises:
            ExchangeError: On transport failure, non-2xx response or unreadable body
        """
        try:
            metadata = await self.discover()
        except DiscoveryError as e:
            raise ExchangeError(str(e)) from e

        form = {
            "grant_type": "authorization_code",
            "code": code,
            "redirect_uri": self.redirect_url,
            "client_id": self.client_id,
            "client_secret": self.client_secret,
        }
        if code_verifier:
            form["code_verifier"] = code_verifier

        try:
            response = await self._http_client.post(
                metadata["token_endpoint"],
                data=form,
                headers={"Accept": "application/json"},
            )
        except httpx.HTTPError as e:
            raise ExchangeError(f"Token request failed: {e}") from e

        if response.is_error:
            logger.warning(
                f"Token endpoint returned {response.status_code}",
                extra={"status_code": response.status_code, "body": response.text[:500]},
            )
            raise ExchangeError(f"Token endpoint returned {response.status_code}")

        try:
            return TokenSet.model_validate(response.json())
        except (ValueError, ValidationError) as e:
            raise ExchangeError(f"Invalid token response: {e}") from e

    async def verify_identity_token(
        self, raw_token: str, access_token: str | None = None
    ) -> IdentityClaims:
        """
        Verify an ID token and return its normalized claims.

        Checks the signature against the provider JWKS (RS256/ES256), the
        issuer, the audience (this client's id) and expiry. The subject must
        be a UUID.

        Args:
            raw_token: Compact ID token
            access_token: Access token from the same response, enabling the ``at_hash`` check

        Raises:
            IdentityVerificationError: Any signature or claim check failed
            MalformedSubjectError: The subject is not a UUID
        """
        try:
            await self.discover()
        except DiscoveryError as e:
            raise IdentityVerificationError(str(e)) from e

        try:
            header = jwt.get_unverified_header(raw_token)
        except JWTError as e:
            raise IdentityVerificationError(f"ID token could not be decoded: {e}") from e

        if header.get("alg") not in ID_TOKEN_ALGORITHMS:
            raise IdentityVerificationError(f"Unsupported ID token algorithm: {header.get('alg')}")

        kid = header.get("kid")
        if not kid:
            raise IdentityVerificationError("ID token header missing 'kid' (key ID)")

        try:
            signing_key = await self._jwks.get_signing_key(kid)
        except (KeyError, httpx.HTTPError, ValueError) as e:
            raise IdentityVerificationError(f"No usable signing key: {e}") from e

        try:
            payload = jwt.decode(
                raw_token,
                signing_key,
                algorithms=ID_TOKEN_ALGORITHMS,
                audience=self.client_id,
                issuer=self.issuer,
                access_token=access_token,
                options={
                    "verify_at_hash": access_token is not None,
                    "require_exp": True,
                    "require_iat": True,
                    "leeway": self.leeway,
                },
            )
        except JWTError as e:
            logger.warning(
                f"ID token verification failed: {e}",
                extra={"error_type": "id_token_verification_failed", "error": str(e)},
            )
            raise IdentityVerificationError(f"ID token verification failed: {e}") from e

        try:
            return IdentityClaims.model_validate(payload)
        except ValidationError as e:
            if any(error["loc"] == ("sub",) for error in e.errors()):
                raise MalformedSubjectError(
                    f"ID token subject is not a valid user id: {payload.get('sub')!r}"
                ) from e
            raise IdentityVerificationError(f"ID token claims are invalid: {e}") from e

    async def fetch_profile(self, token_set: TokenSet) -> UserProfile:
        """
        Read the user-info endpoint with the access token.

        Raises:
            ProfileError: On any failure; callers fall back to ID token claims
        """
        try:
            metadata = await self.discover()
            endpoint = metadata.get("userinfo_endpoint")
            if not endpoint:
                raise ProfileError("Provider does not advertise a userinfo endpoint")

            response = await self._http_client.get(
                endpoint,
                headers={"Authorization": f"Bearer {token_set.access_token}"},
            )
            response.raise_for_status()
            info = response.json()
            return UserProfile(
                id=info.get("sub"),
                email=info.get("email") or "",
                name=info.get("name"),
                picture=info.get("picture"),
                provider="oidc",
            )
        except ProfileError:
            raise
        except (DiscoveryError, httpx.HTTPError, ValueError, ValidationError) as e:
            raise ProfileError(f"Failed to get user info: {e}") from e

    def logout_url(self) -> str | None:
        """Return the provider's logout URL, or None for unknown providers."""
        host = urlparse(self.provider_url).netloc.lower()
        for fragment, path in _LOGOUT_PATHS:
            if fragment in host:
                return GOOGLE_LOGOUT_URL if path is None else f"{self.provider_url}{path}"
        return None

    async def close(self) -> None:
        """Close the HTTP client if this provider created it."""
        if self._jwks is not None:
            await self._jwks.close()
        if self._owns_client:
            await self._http_client.aclose()
        logger.info("OIDC provider closed")
