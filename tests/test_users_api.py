"""
DevOps Learning API: User Endpoint Tests
========================================

What:  HTTP-level tests for /api/users through the full FastAPI stack.
How:   HTTPX AsyncClient with ASGITransport; the app is wired to the
       in-memory store from conftest.py.

What we test:
    ✅ Full CRUD lifecycle with envelope shape and status codes
    ✅ 400 for invalid payloads, duplicate email, malformed JSON
    ✅ 404 for well-formed absent ids; 500 for malformed ids on GET
"""

from datetime import datetime

import pytest

ABSENT_ID = "000000000000000000000000"


def _parse(timestamp: str) -> datetime:
    return datetime.fromisoformat(timestamp.replace("Z", "+00:00"))


class TestCreateUser:

    @pytest.mark.asyncio
    async def test_create_returns_201_envelope(self, test_client, sample_user):
        response = await test_client.post("/api/users", json=sample_user)

        assert response.status_code == 201
        body = response.json()
        assert body["success"] is True
        assert body["message"] == "User created successfully"
        assert body["data"]["email"] == "test@example.com"
        assert body["data"]["role"] == "user"
        assert body["data"]["age"] == 25
        assert body["data"]["_id"] == body["data"]["id"]
        assert "createdAt" in body["data"] and "updatedAt" in body["data"]
        assert "error" not in body

    @pytest.mark.asyncio
    async def test_role_defaults_to_user(self, test_client):
        response = await test_client.post(
            "/api/users", json={"name": "No Role", "email": "norole@example.com"}
        )
        assert response.status_code == 201
        assert response.json()["data"]["role"] == "user"
        assert "age" not in response.json()["data"]

    @pytest.mark.asyncio
    async def test_duplicate_email_returns_400(self, test_client, sample_user):
        await test_client.post("/api/users", json=sample_user)

        response = await test_client.post(
            "/api/users", json={**sample_user, "email": "TEST@EXAMPLE.COM"}
        )

        assert response.status_code == 400
        body = response.json()
        assert body["success"] is False
        assert body["message"] == "Error creating user"
        assert "already exists" in body["error"]

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "payload",
        [
            {"name": "A", "email": "a@example.com", "age": -1},
            {"name": "A", "email": "a@example.com", "role": "superuser"},
            {"email": "a@example.com"},
            {"name": "A"},
            {"name": "   ", "email": "a@example.com"},
            {"name": "A", "email": "a@example.com", "age": True},
            {"name": "A", "email": "a@example.com", "age": "25"},
            {"name": "A", "email": "a@example.com", "age": 25.5},
        ],
    )
    async def test_invalid_payload_returns_400(self, test_client, payload):
        response = await test_client.post("/api/users", json=payload)

        assert response.status_code == 400
        assert response.json()["success"] is False
        assert response.json()["error"].startswith("User validation failed")

    @pytest.mark.asyncio
    async def test_malformed_json_returns_400(self, test_client):
        response = await test_client.post(
            "/api/users",
            content=b"{not json",
            headers={"Content-Type": "application/json"},
        )
        assert response.status_code == 400
        assert response.json()["success"] is False

    @pytest.mark.asyncio
    async def test_array_body_returns_400(self, test_client):
        response = await test_client.post("/api/users", json=[{"name": "A"}])
        assert response.status_code == 400


class TestReadUsers:

    @pytest.mark.asyncio
    async def test_list_includes_count(self, test_client, sample_user):
        await test_client.post("/api/users", json=sample_user)
        await test_client.post("/api/users", json={"name": "B", "email": "b@example.com"})

        response = await test_client.get("/api/users")

        assert response.status_code == 200
        body = response.json()
        assert body["success"] is True
        assert body["count"] == 2
        assert [u["email"] for u in body["data"]] == ["test@example.com", "b@example.com"]

    @pytest.mark.asyncio
    async def test_list_empty(self, test_client):
        body = (await test_client.get("/api/users")).json()
        assert body["data"] == []
        assert body["count"] == 0

    @pytest.mark.asyncio
    async def test_get_round_trip(self, test_client, sample_user):
        created = (await test_client.post("/api/users", json=sample_user)).json()["data"]

        response = await test_client.get(f"/api/users/{created['_id']}")

        assert response.status_code == 200
        assert response.json()["data"] == created

    @pytest.mark.asyncio
    async def test_get_absent_returns_404(self, test_client):
        response = await test_client.get(f"/api/users/{ABSENT_ID}")

        assert response.status_code == 404
        assert response.json() == {"success": False, "message": "User not found"}

    @pytest.mark.asyncio
    async def test_get_malformed_id_returns_500(self, test_client):
        response = await test_client.get("/api/users/not-an-id")

        assert response.status_code == 500
        body = response.json()
        assert body["message"] == "Error fetching user"
        assert "ObjectId" in body["error"]


class TestUpdateUser:

    @pytest.mark.asyncio
    async def test_partial_update(self, test_client, sample_user):
        created = (await test_client.post("/api/users", json=sample_user)).json()["data"]

        response = await test_client.put(f"/api/users/{created['id']}", json={"age": 26})

        assert response.status_code == 200
        data = response.json()["data"]
        assert data["age"] == 26
        assert data["name"] == "Test User"
        assert data["email"] == created["email"]
        assert data["createdAt"] == created["createdAt"]
        assert _parse(data["updatedAt"]) > _parse(created["updatedAt"])

    @pytest.mark.asyncio
    async def test_update_absent_returns_404(self, test_client):
        response = await test_client.put(f"/api/users/{ABSENT_ID}", json={"age": 30})
        assert response.status_code == 404

    @pytest.mark.asyncio
    async def test_update_invalid_returns_400(self, test_client, sample_user):
        created = (await test_client.post("/api/users", json=sample_user)).json()["data"]

        response = await test_client.put(f"/api/users/{created['id']}", json={"age": -3})

        assert response.status_code == 400
        assert response.json()["message"] == "Error updating user"

    @pytest.mark.asyncio
    async def test_update_malformed_id_returns_400(self, test_client):
        response = await test_client.put("/api/users/xyz", json={"age": 30})
        assert response.status_code == 400


class TestDeleteUser:

    @pytest.mark.asyncio
    async def test_delete_returns_snapshot_then_404(self, test_client, sample_user):
        created = (await test_client.post("/api/users", json=sample_user)).json()["data"]

        first = await test_client.delete(f"/api/users/{created['id']}")
        second = await test_client.delete(f"/api/users/{created['id']}")

        assert first.status_code == 200
        assert first.json()["message"] == "User deleted successfully"
        assert first.json()["data"] == created
        assert second.status_code == 404
        assert (await test_client.get(f"/api/users/{created['id']}")).status_code == 404

    @pytest.mark.asyncio
    async def test_delete_malformed_id_returns_500(self, test_client):
        response = await test_client.delete("/api/users/123")
        assert response.status_code == 500
