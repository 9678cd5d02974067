import pytest
from datetime import datetime, timezone
from types import SimpleNamespace
from fastapi.testclient import TestClient
from unittest.mock import patch, AsyncMock
from uuid import uuid4

from app.core.errors import InvalidCredentials, PermissionDenied, ResourceNotFound
from app.core.rate_limit import get_user_or_ip
from app.core.security import create_access_token, get_current_user
from app.main import app


@pytest.fixture
def user():
    return SimpleNamespace(id=uuid4(), email="chef@example.com", name="Chef")


@pytest.fixture
def client(user):
    app.dependency_overrides[get_current_user] = lambda: user
    yield TestClient(app)
    app.dependency_overrides.clear()


def household_stub(**overrides):
    data = dict(id=uuid4(), name="Flat 4B", description=None, invite_code="ABC123",
                created_at=datetime(2024, 6, 15, tzinfo=timezone.utc))
    data.update(overrides)
    return SimpleNamespace(**data)


class TestHouseholdRoutes:
    def test_list_households(self, client, user):
        """Returns the caller's households in the success envelope"""
        with patch('app.api.v1.households.household_service.list_households', new_callable=AsyncMock) as mock_list:
            mock_list.return_value = [household_stub()]

            response = client.get("/api/v1/households")

            assert response.status_code == 200
            body = response.json()
            assert body["success"] is True
            assert body["data"][0]["invite_code"] == "ABC123"
            mock_list.assert_awaited_once_with(user.id)

    def test_permission_denied_maps_to_403(self, client):
        with patch('app.api.v1.households.household_service.delete_household', new_callable=AsyncMock) as mock_delete:
            mock_delete.side_effect = PermissionDenied("deleting household")

            response = client.delete(f"/api/v1/households/{uuid4()}")

            assert response.status_code == 403
            body = response.json()
            assert body["success"] is False
            assert body["error"]["code"] == "PERMISSION_DENIED"
            assert "request_id" in body

    def test_missing_household_maps_to_404(self, client):
        with patch('app.api.v1.households.household_service.get_household', new_callable=AsyncMock) as mock_get:
            mock_get.side_effect = ResourceNotFound("Household")

            response = client.get(f"/api/v1/households/{uuid4()}")

            assert response.status_code == 404
            assert response.json()["error"]["code"] == "RESOURCE_NOT_FOUND"

    def test_create_household_validates_name(self, client):
        response = client.post("/api/v1/households", json={"name": ""})
        assert response.status_code == 422
        assert response.json()["error"]["code"] == "validation_error"


class TestReminderRoutes:
    def test_generate_reports_created_count(self, client):
        kitchen_id = uuid4()
        reminder = SimpleNamespace(
            id=uuid4(), kitchen_id=kitchen_id, type="LOW_STOCK", title="Low stock: Milk",
            description=None, scheduled_at=datetime(2024, 6, 15, tzinfo=timezone.utc),
            is_completed=False, is_recurring=False, frequency=None, entity_id=str(uuid4()), meta={},
        )
        with patch('app.api.v1.reminders.reminder_service.generate_smart_reminders', new_callable=AsyncMock) as mock_generate:
            mock_generate.return_value = [reminder]

            response = client.post(f"/api/v1/reminders/kitchens/{kitchen_id}/generate")

            assert response.status_code == 200
            data = response.json()["data"]
            assert data["reminders_created"] == 1
            assert data["reminders"][0]["type"] == "LOW_STOCK"


class TestAuthentication:
    def test_missing_token_is_rejected(self):
        client = TestClient(app)
        response = client.get("/api/v1/households")
        assert response.status_code == 401
        assert response.json()["error"]["code"] == "UNAUTHORIZED"

    def test_garbage_token_is_rejected(self):
        client = TestClient(app)
        response = client.get("/api/v1/households", headers={"Authorization": "Bearer not-a-jwt"})
        assert response.status_code == 401

    def test_rate_limit_key_prefers_user(self):
        user_id = uuid4()
        request = SimpleNamespace(
            headers={"Authorization": f"Bearer {create_access_token(user_id)}"},
            client=SimpleNamespace(host="10.0.0.1"),
        )
        assert get_user_or_ip(request) == f"user:{user_id}"

        request.headers = {}
        assert get_user_or_ip(request) == "ip:10.0.0.1"


class TestAuthRoutes:
    def test_register_returns_bearer_token(self):
        client = TestClient(app)
        user = SimpleNamespace(id=uuid4(), email="chef@example.com", name="Chef",
                               created_at=datetime(2024, 6, 15, tzinfo=timezone.utc))
        with patch('app.api.v1.auth.auth_service.register', new_callable=AsyncMock) as mock_register:
            mock_register.return_value = (user, "signed-token")

            response = client.post("/api/v1/auth/register",
                                   json={"email": "chef@example.com", "password": "s3cret-pass", "name": "Chef"})

            assert response.status_code == 201
            data = response.json()["data"]
            assert data["access_token"] == "signed-token"
            assert data["token_type"] == "bearer"
            assert data["user"]["email"] == "chef@example.com"
            mock_register.assert_awaited_once_with("chef@example.com", "s3cret-pass", "Chef")

    def test_register_rejects_short_password(self):
        client = TestClient(app)
        response = client.post("/api/v1/auth/register", json={"email": "chef@example.com", "password": "123"})
        assert response.status_code == 422

    def test_invalid_login_maps_to_401(self):
        client = TestClient(app)
        with patch('app.api.v1.auth.auth_service.login', new_callable=AsyncMock) as mock_login:
            mock_login.side_effect = InvalidCredentials()

            response = client.post("/api/v1/auth/login", json={"email": "chef@example.com", "password": "nope"})

            assert response.status_code == 401
            assert response.json()["error"]["message"] == "Invalid email or password."


class TestShoppingRoutes:
    def test_generate_returns_items_and_totals(self, client):
        kitchen_id = uuid4()
        list_id = uuid4()
        entries = [
            SimpleNamespace(id=uuid4(), shopping_list_id=list_id, name=name, quantity=1, unit="pcs",
                            linked_item_id=None, is_purchased=purchased, price=price, notes=None)
            for name, purchased, price in [("Milk", True, 1.5), ("Bread", False, 2.0)]
        ]
        shopping_list = SimpleNamespace(
            id=list_id, kitchen_id=kitchen_id, type="WEEKLY", title="Weekly Shopping - Week of 2024-06-15",
            description=None, for_date=None, is_completed=False,
            created_at=datetime(2024, 6, 15, tzinfo=timezone.utc), items=entries,
        )
        with patch('app.api.v1.shopping.shopping_service.generate_auto_shopping_list', new_callable=AsyncMock) as mock_generate:
            mock_generate.return_value = shopping_list

            response = client.post(f"/api/v1/shopping/kitchens/{kitchen_id}/generate", json={"type": "WEEKLY"})

            assert response.status_code == 201
            data = response.json()["data"]
            assert [i["name"] for i in data["items"]] == ["Milk", "Bread"]
            assert data["total_items"] == 2
            assert data["completed_items"] == 1
            assert data["estimated_total"] == 3.5
