"""Tests for self-issued session tokens."""

from datetime import UTC, datetime, timedelta
from uuid import UUID

import pytest
from jose import jwt

from shopfront.auth.exceptions import (
    InvalidCredentialError,
    InvalidSignatureError,
    MalformedTokenError,
    TokenExpiredError,
)
from shopfront.auth.session_tokens import SessionTokenIssuer

USER_ID = UUID("0f8d1c1e-3c55-4a8e-9a0e-7d2b6f1c2a10")


class TestSessionTokenIssuer:
    """Tests for SessionTokenIssuer."""

    def test_issue_then_verify_returns_claims(self, session_issuer: SessionTokenIssuer):
        """Test a freshly issued token verifies with the same subject and email."""
        token = session_issuer.issue(USER_ID, "jane@example.com")

        claims = session_issuer.verify(token)

        assert claims.sub == USER_ID
        assert claims.email == "jane@example.com"
        assert claims.exp - claims.iat == 24 * 3600

    def test_issue_uses_hs256(self, session_issuer: SessionTokenIssuer):
        token = session_issuer.issue(USER_ID, "jane@example.com")
        assert jwt.get_unverified_header(token)["alg"] == "HS256"

    def test_rejects_empty_secret(self):
        with pytest.raises(ValueError):
            SessionTokenIssuer(secret="")

    def test_expired_token_raises_expired(self, session_issuer: SessionTokenIssuer):
        """Test a token past its expiry is reported as expired."""
        issued = datetime.now(UTC) - timedelta(hours=25)
        token = session_issuer.issue(USER_ID, "jane@example.com", now=issued)

        with pytest.raises(TokenExpiredError):
            session_issuer.verify(token)

    def test_expired_token_with_wrong_secret_still_reports_expired(
        self, session_issuer: SessionTokenIssuer
    ):
        """Test expiry is checked before the signature."""
        other = SessionTokenIssuer(secret="some-other-secret")
        token = other.issue(USER_ID, "jane@example.com", now=datetime.now(UTC) - timedelta(days=2))

        with pytest.raises(TokenExpiredError):
            session_issuer.verify(token)

    def test_wrong_secret_raises_invalid_signature(self, session_issuer: SessionTokenIssuer):
        token = SessionTokenIssuer(secret="some-other-secret").issue(USER_ID, "jane@example.com")

        with pytest.raises(InvalidSignatureError):
            session_issuer.verify(token)

    def test_rsa_signed_token_raises_invalid_signature(
        self, session_issuer: SessionTokenIssuer, rsa_private_pem: str
    ):
        """Test a non-HMAC algorithm is rejected even with valid claims."""
        now = int(datetime.now(UTC).timestamp())
        token = jwt.encode(
            {"sub": str(USER_ID), "email": "jane@example.com", "iat": now, "exp": now + 60},
            rsa_private_pem,
            algorithm="RS256",
        )

        with pytest.raises(InvalidSignatureError):
            session_issuer.verify(token)

    def test_garbage_raises_malformed(self, session_issuer: SessionTokenIssuer):
        with pytest.raises(MalformedTokenError):
            session_issuer.verify("not-a-jwt")

    def test_missing_expiry_raises_malformed(self, session_issuer: SessionTokenIssuer):
        token = jwt.encode(
            {"sub": str(USER_ID), "email": "jane@example.com"},
            session_issuer.secret,
            algorithm="HS256",
        )

        with pytest.raises(MalformedTokenError):
            session_issuer.verify(token)

    def test_non_uuid_subject_raises_malformed(self, session_issuer: SessionTokenIssuer):
        """Test a correctly signed token whose subject is not a UUID is malformed."""
        now = int(datetime.now(UTC).timestamp())
        token = jwt.encode(
            {"sub": "google-oauth2|1234", "email": "jane@example.com", "iat": now, "exp": now + 60},
            session_issuer.secret,
            algorithm="HS256",
        )

        with pytest.raises(MalformedTokenError):
            session_issuer.verify(token)

    def test_verification_errors_are_invalid_credentials(self, session_issuer: SessionTokenIssuer):
        with pytest.raises(InvalidCredentialError):
            session_issuer.verify("not-a-jwt")

    @pytest.mark.parametrize("lifetime", [0, -60])
    def test_expiry_not_after_issue_time_raises_malformed(
        self, session_issuer: SessionTokenIssuer, lifetime: int
    ):
        """Test a signed, unexpired token whose expiry precedes its issue time is malformed."""
        exp = int(datetime.now(UTC).timestamp()) + 300
        token = jwt.encode(
            {"sub": str(USER_ID), "email": "jane@example.com", "iat": exp - lifetime, "exp": exp},
            session_issuer.secret,
            algorithm="HS256",
        )

        with pytest.raises(MalformedTokenError):
            session_issuer.verify(token)
