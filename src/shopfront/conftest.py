"""Pytest configuration and shared fixtures."""

import os

# Settings are read at import time; pin the ones tests depend on first.
os.environ["RATE_LIMIT_ENABLED"] = "false"
os.environ["OIDC_CLIENT_ID"] = ""
os.environ["JWT_SECRET"] = "test-jwt-secret"
os.environ["COURIER_API_KEY"] = ""
os.environ["POSTHOG_API_KEY"] = ""

from collections.abc import Iterator  # noqa: E402
from unittest.mock import MagicMock  # noqa: E402
from uuid import UUID  # noqa: E402

import pytest  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402

from shopfront.database import get_db  # noqa: E402
from shopfront.main import app  # noqa: E402
from shopfront.tests.fakes import InMemoryQueryBuilder, seeded_tables  # noqa: E402


@pytest.fixture
def fake_db() -> InMemoryQueryBuilder:
    """In-memory database seeded with one category, two products and one customer."""
    return InMemoryQueryBuilder(seeded_tables())


@pytest.fixture
def client(fake_db: InMemoryQueryBuilder) -> Iterator[TestClient]:
    """
    Provide FastAPI test client with the lifespan running.

    The database dependency is replaced by ``fake_db`` and order notifications
    by a ``MagicMock`` reachable as ``client.app.state.order_notifier``.

    Example:
        >>> def test_health(client):
        >>>     response = client.get("/health")
        >>>     assert response.status_code == 200
    """
    app.dependency_overrides[get_db] = lambda: fake_db
    with TestClient(app) as test_client:
        app.state.order_notifier = MagicMock()
        yield test_client
    app.dependency_overrides.clear()


@pytest.fixture
def auth_headers(client: TestClient) -> dict[str, str]:
    """Bearer headers carrying a session token from the running app's issuer."""
    token = client.app.state.session_issuer.issue(
        UUID("123e4567-e89b-12d3-a456-426614174000"), "tester@example.com"
    )
    return {"Authorization": f"Bearer {token}"}
