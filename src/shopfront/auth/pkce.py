"""PKCE verifier/challenge and login state helpers."""

import base64
import hashlib
import secrets

VERIFIER_MIN_LENGTH = 43
VERIFIER_MAX_LENGTH = 128


def _b64url(data: bytes) -> str:
    return base64.urlsafe_b64encode(data).rstrip(b"=").decode("ascii")


def generate_state() -> str:
    """Return a fresh single-use state token (32 random bytes, URL-safe)."""
    return secrets.token_urlsafe(32)


def generate_code_verifier() -> str:
    """
    Return a PKCE code verifier.

    64 random bytes encode to 86 URL-safe characters, inside the 43-128
    range RFC 7636 requires.
    """
    verifier = _b64url(secrets.token_bytes(64))
    return verifier[:VERIFIER_MAX_LENGTH]


def code_challenge(verifier: str) -> str:
    """Return the S256 challenge for ``verifier``: base64url(SHA-256), no padding."""
    if not VERIFIER_MIN_LENGTH <= len(verifier) <= VERIFIER_MAX_LENGTH:
        raise ValueError(
            f"Code verifier must be {VERIFIER_MIN_LENGTH}-{VERIFIER_MAX_LENGTH} characters"
        )
    return _b64url(hashlib.sha256(verifier.encode("ascii")).digest())
