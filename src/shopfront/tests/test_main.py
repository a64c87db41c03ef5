"""Tests for application wiring: health check, lifespan state, router mounting."""

from fastapi.testclient import TestClient

from shopfront.auth import RequestAuthenticator, SessionTokenIssuer
from shopfront.auth.models import AuthType
from shopfront.config import settings
from shopfront.notifications import NotificationDispatcher


def test_health_check(client: TestClient) -> None:
    response = client.get("/health")
    assert response.status_code == 200
    assert response.json() == {"status": "ok"}


def test_lifespan_populates_app_state(client: TestClient) -> None:
    state = client.app.state
    assert isinstance(state.session_issuer, SessionTokenIssuer)
    assert isinstance(state.authenticator, RequestAuthenticator)
    assert isinstance(state.dispatcher, NotificationDispatcher)
    assert state.db is not None


def test_without_oidc_client_id_only_session_tokens_are_accepted(client: TestClient) -> None:
    state = client.app.state
    assert state.oidc_provider is None
    assert state.bootstrapper is None
    assert [s.auth_type for s in state.authenticator.strategies] == [AuthType.SELF_ISSUED]


def test_login_unavailable_without_oidc(client: TestClient) -> None:
    response = client.get(f"{settings.api_prefix}/auth/login", follow_redirects=False)
    assert response.status_code == 503


def test_logout_works_without_oidc(client: TestClient) -> None:
    response = client.post(f"{settings.api_prefix}/auth/logout")
    assert response.status_code == 200
    assert response.json()["instructions"]["client_action"] == "clear_token"
