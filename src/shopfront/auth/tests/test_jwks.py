"""Tests for JWKS cache module."""

from datetime import UTC, datetime, timedelta
from typing import Any

import httpx
import pytest

from shopfront.auth.jwks import JWKSCache
from shopfront.auth.tests.fake_idp import ISSUER, KEY_ID, FakeIdentityProvider


@pytest.fixture
def cache(idp: FakeIdentityProvider) -> JWKSCache:
    client = httpx.AsyncClient(transport=httpx.MockTransport(idp.handle))
    return JWKSCache(f"{ISSUER}/jwks", cache_ttl=3600, http_client=client)


@pytest.mark.asyncio
class TestJWKSCache:
    """Tests for JWKSCache class."""

    async def test_first_lookup_loads_keys(self, cache: JWKSCache, public_jwk: dict[str, Any]):
        key = await cache.get_signing_key(KEY_ID)

        assert key == public_jwk
        assert cache.key_ids == [KEY_ID]

    async def test_fresh_cache_is_reused(self, cache: JWKSCache, idp: FakeIdentityProvider):
        await cache.get_signing_key(KEY_ID)
        await cache.get_signing_key(KEY_ID)

        assert idp.paths() == ["/jwks"]

    async def test_stale_cache_is_reloaded(self, cache: JWKSCache, idp: FakeIdentityProvider):
        await cache.get_signing_key(KEY_ID)
        cache._loaded_at = datetime.now(UTC) - timedelta(hours=2)

        await cache.get_signing_key(KEY_ID)

        assert idp.paths() == ["/jwks", "/jwks"]

    async def test_keys_without_kid_or_unparseable_are_skipped(
        self, cache: JWKSCache, idp: FakeIdentityProvider, public_jwk: dict[str, Any]
    ):
        """Test only usable keys are indexed."""
        no_kid = {k: v for k, v in public_jwk.items() if k != "kid"}
        broken = {"kid": "broken", "kty": "OKP", "alg": "RS256"}
        idp.jwks = {"keys": [no_kid, broken, public_jwk]}

        await cache.refresh_keys()

        assert cache.key_ids == [KEY_ID]

    async def test_unknown_kid_raises_key_error(
        self, cache: JWKSCache, idp: FakeIdentityProvider
    ):
        with pytest.raises(KeyError):
            await cache.get_signing_key("missing")

        # Initial load plus one reload for the unknown kid
        assert idp.paths() == ["/jwks", "/jwks"]

    async def test_close_leaves_shared_client_open(self, cache: JWKSCache):
        await cache.close()

        assert not cache._http_client.is_closed

    async def test_repeated_unknown_kid_reloads_once_per_interval(
        self, cache: JWKSCache, idp: FakeIdentityProvider
    ):
        """Test lookups for unknown key ids share one reload inside the interval."""
        for _ in range(3):
            with pytest.raises(KeyError):
                await cache.get_signing_key("made-up")

        assert idp.paths() == ["/jwks", "/jwks"]

        cache._forced_at = datetime.now(UTC) - timedelta(seconds=cache.min_refresh_interval)
        with pytest.raises(KeyError):
            await cache.get_signing_key("made-up")

        assert idp.paths() == ["/jwks", "/jwks", "/jwks"]

    @pytest.mark.parametrize("payload", [["not", "an", "object"], {"keys": "none"}])
    async def test_response_that_is_not_a_key_set_raises_value_error(
        self, cache: JWKSCache, idp: FakeIdentityProvider, payload: Any
    ):
        idp.jwks = payload

        with pytest.raises(ValueError, match="not a key set"):
            await cache.refresh_keys()

    async def test_non_object_entries_are_skipped(
        self, cache: JWKSCache, idp: FakeIdentityProvider, public_jwk: dict[str, Any]
    ):
        idp.jwks = {"keys": ["rsa", 42, None, public_jwk]}

        await cache.refresh_keys()

        assert cache.key_ids == [KEY_ID]
