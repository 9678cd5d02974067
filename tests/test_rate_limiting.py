import pytest
from types import SimpleNamespace
from fastapi.testclient import TestClient
from limits import parse_many
from unittest.mock import patch, AsyncMock
from uuid import uuid4

from app.core import rate_limit
from app.core.rate_limit import limiter
from app.core.security import create_access_token, get_current_user
from app.main import app


@pytest.fixture
def client():
    return TestClient(app)


@pytest.fixture
def two_per_minute(monkeypatch):
    monkeypatch.setattr(rate_limit, "default_limits", parse_many("2/minute"))
    limiter.enabled = True
    limiter.reset()
    yield


def test_third_request_in_window_is_rejected(client, two_per_minute):
    """Anonymous callers are counted per IP, before authentication"""
    statuses = [client.get("/api/v1/households").status_code for _ in range(3)]

    assert statuses == [401, 401, 429]


def test_rejection_uses_error_envelope(client, two_per_minute):
    for _ in range(2):
        client.get("/api/v1/notifications")

    response = client.get("/api/v1/notifications")

    assert response.status_code == 429
    body = response.json()
    assert body["success"] is False
    assert body["error"]["code"] == "RATE_LIMITED"
    assert "request_id" in body


def test_health_is_never_throttled(client, two_per_minute):
    statuses = [client.get("/health").status_code for _ in range(5)]

    assert statuses == [200] * 5


def test_disabled_limiter_lets_everything_through(client, two_per_minute):
    limiter.enabled = False

    statuses = [client.get("/api/v1/households").status_code for _ in range(5)]

    assert statuses == [401] * 5


def test_authenticated_users_have_separate_budgets(client, two_per_minute):
    alice, bob = uuid4(), uuid4()
    app.dependency_overrides[get_current_user] = lambda: SimpleNamespace(id=uuid4())
    try:
        with patch('app.api.v1.households.household_service.list_households', new_callable=AsyncMock) as mock_list:
            mock_list.return_value = []

            def get_as(user_id):
                headers = {"Authorization": f"Bearer {create_access_token(user_id)}"}
                return client.get("/api/v1/households", headers=headers).status_code

            assert [get_as(alice) for _ in range(3)] == [200, 200, 429]
            assert get_as(bob) == 200
    finally:
        app.dependency_overrides.clear()
