"""Identity provider signing keys, fetched from ``jwks_uri`` and cached by key id."""

import logging
from datetime import UTC, datetime
from typing import Any

import httpx
from jose import jwk
from jose.exceptions import JOSEError

logger = logging.getLogger(__name__)

_ALGORITHM_BY_KTY = {"RSA": "RS256", "EC": "ES256"}


def _usable_keys(key_set: list[Any]) -> dict[str, dict[str, Any]]:
    """Index the JWKs that carry a ``kid`` and parse as RSA/EC keys."""
    keys: dict[str, dict[str, Any]] = {}
    for key_data in key_set:
        if not isinstance(key_data, dict):
            logger.warning(f"Ignoring JWK entry that is not an object: {type(key_data).__name__}")
            continue

        kid = key_data.get("kid")
        if not kid:
            logger.warning("Ignoring JWK without 'kid'")
            continue

        algorithm = _ALGORITHM_BY_KTY.get(key_data.get("kty"), key_data.get("alg", "RS256"))
        try:
            jwk.construct(key_data, algorithm=algorithm)
        except (JOSEError, KeyError, TypeError, ValueError) as e:
            logger.warning(f"Ignoring unusable JWK {kid}: {e}", extra={"kid": kid})
            continue
        keys[kid] = key_data
    return keys


class JWKSCache:
    """
    Provider signing keys held in memory for ``cache_ttl`` seconds.

    A lookup reloads the set when it is stale, and once more when the key id
    is unknown so that provider key rotation is picked up without waiting for
    the TTL. Reloads triggered by unknown key ids happen at most once per
    ``min_refresh_interval`` seconds. Keys are kept as JWK dicts, which
    ``jose.jwt.decode`` accepts as-is.

    Example:
        >>> cache = JWKSCache(metadata["jwks_uri"], cache_ttl=3600, http_client=client)
        >>> key = await cache.get_signing_key(header["kid"])
    """

    def __init__(
        self,
        jwks_url: str,
        cache_ttl: int = 3600,
        http_client: httpx.AsyncClient | None = None,
        min_refresh_interval: int = 60,
    ):
        self.jwks_url = jwks_url
        self.cache_ttl = cache_ttl
        self.min_refresh_interval = min_refresh_interval
        self._keys: dict[str, dict[str, Any]] = {}
        self._loaded_at: datetime | None = None
        self._forced_at: datetime | None = None
        self._owns_client = http_client is None
        self._http_client = http_client or httpx.AsyncClient(timeout=httpx.Timeout(10.0))

    @property
    def key_ids(self) -> list[str]:
        return list(self._keys)

    def _is_stale(self) -> bool:
        if self._loaded_at is None:
            return True
        return (datetime.now(UTC) - self._loaded_at).total_seconds() >= self.cache_ttl

    def _may_force_refresh(self) -> bool:
        if self._forced_at is None:
            return True
        elapsed = (datetime.now(UTC) - self._forced_at).total_seconds()
        return elapsed >= self.min_refresh_interval

    async def get_signing_key(self, kid: str) -> dict[str, Any]:
        """
        Return the JWK for ``kid``.

        Raises:
            KeyError: The key id is absent even after a reload
            httpx.HTTPError: The key set could not be fetched
            ValueError: The provider response is not a key set
        """
        if self._is_stale():
            await self.refresh_keys()

        if kid not in self._keys and self._may_force_refresh():
            logger.info(
                f"Unknown key id '{kid}', reloading JWKS",
                extra={"kid": kid, "cached_kids": self.key_ids},
            )
            self._forced_at = datetime.now(UTC)
            await self.refresh_keys()

        try:
            return self._keys[kid]
        except KeyError:
            raise KeyError(f"Key ID '{kid}' not in provider JWKS {self.key_ids}") from None

    async def refresh_keys(self) -> None:
        """Replace the cached keys with the provider's current set."""
        try:
            response = await self._http_client.get(self.jwks_url)
            response.raise_for_status()
        except httpx.HTTPError as e:
            logger.error(
                f"Failed to fetch JWKS from {self.jwks_url}: {e}",
                extra={"error_type": "jwks_fetch_failed"},
            )
            raise

        try:
            payload = response.json()
        except ValueError as e:
            raise ValueError(f"JWKS response is not JSON: {e}") from e
        if not isinstance(payload, dict) or not isinstance(payload.get("keys", []), list):
            logger.error(
                "JWKS response is not a key set",
                extra={"error_type": "jwks_malformed", "jwks_url": self.jwks_url},
            )
            raise ValueError("JWKS response is not a key set")

        self._keys = _usable_keys(payload.get("keys", []))
        self._loaded_at = datetime.now(UTC)
        if not self._keys:
            logger.warning("Provider JWKS has no usable keys", extra={"jwks_url": self.jwks_url})
        logger.info(
            f"Loaded {len(self._keys)} signing keys",
            extra={"key_ids": self.key_ids, "ttl_seconds": self.cache_ttl},
        )

    async def close(self) -> None:
        if self._owns_client:
            await self._http_client.aclose()
