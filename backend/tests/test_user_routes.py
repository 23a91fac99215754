"""
HealthAPI Backend — Account, Profile and Measurement Endpoint Tests
=====================================================================

What we test:
    ✅ GET /users returns the bearer's account; missing/bad bearer → 401
    ✅ DELETE /users removes the account and everything it owns
    ✅ Profile read and update (range validation)
    ✅ Measurement CRUD, partial update, ownership isolation
    ✅ /health and the X-Request-ID header
"""

import uuid

import pytest
from sqlalchemy import func, select

from app.models import Measurement, Profile, RefreshToken, User

from conftest import TEST_PASSWORD, api_register_and_login, bearer

EMAIL = "alice@example.com"


async def count_rows(session_factory, model) -> int:
    async with session_factory() as session:
        return (await session.execute(select(func.count()).select_from(model))).scalar()


class TestUsersEndpoint:
    @pytest.mark.asyncio
    async def test_current_user(self, test_client, outbox):
        tokens = await api_register_and_login(test_client, outbox)

        response = await test_client.get("/users", headers=bearer(tokens))

        assert response.status_code == 200
        body = response.json()
        assert body["email"] == EMAIL
        assert body["verified"] is True
        uuid.UUID(body["id"])

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "headers",
        [{}, {"Authorization": "Bearer garbage"}, {"Authorization": "Basic dXNlcjpwYXNz"}],
    )
    async def test_bad_bearer_is_401(self, test_client, headers):
        response = await test_client.get("/users", headers=headers)

        assert response.status_code == 401
        assert response.json()["error"] == "unauthorized"

    @pytest.mark.asyncio
    async def test_refresh_token_is_not_a_bearer(self, test_client, outbox):
        tokens = await api_register_and_login(test_client, outbox)

        response = await test_client.get(
            "/users", headers={"Authorization": f"Bearer {tokens['refreshToken']}"}
        )

        assert response.status_code == 401

    @pytest.mark.asyncio
    async def test_delete_account_cascades(self, test_client, outbox, session_factory):
        tokens = await api_register_and_login(test_client, outbox)
        other = await api_register_and_login(test_client, outbox, email="bob@example.com")
        await test_client.post("/measurements", json={"weight": 70.5}, headers=bearer(tokens))
        await test_client.post("/measurements", json={"weight": 82.0}, headers=bearer(other))

        response = await test_client.delete("/users", headers=bearer(tokens))

        assert response.status_code == 200
        assert response.json()["email"] == EMAIL
        assert await count_rows(session_factory, User) == 1
        assert await count_rows(session_factory, Profile) == 1
        assert await count_rows(session_factory, Measurement) == 1
        assert await count_rows(session_factory, RefreshToken) == 1

        # The access token outlives the account but no longer authorizes anything
        response = await test_client.get("/users", headers=bearer(tokens))
        assert response.status_code == 401
        response = await test_client.patch("/auth/tokens", json={"refreshToken": tokens["refreshToken"]})
        assert response.status_code == 400

        # The email is free again
        response = await test_client.post("/users", json={"email": EMAIL, "password": TEST_PASSWORD})
        assert response.status_code == 201


class TestProfilesEndpoint:
    @pytest.mark.asyncio
    async def test_profile_created_at_registration(self, test_client, outbox):
        tokens = await api_register_and_login(test_client, outbox)

        response = await test_client.get("/profiles", headers=bearer(tokens))

        assert response.status_code == 200
        body = response.json()
        assert body["height"] is None
        assert "userId" in body and "updatedAt" in body

    @pytest.mark.asyncio
    async def test_update_height(self, test_client, outbox):
        tokens = await api_register_and_login(test_client, outbox)

        response = await test_client.patch("/profiles", json={"height": 178}, headers=bearer(tokens))
        assert response.status_code == 200
        assert response.json()["height"] == 178

        response = await test_client.get("/profiles", headers=bearer(tokens))
        assert response.json()["height"] == 178

    @pytest.mark.asyncio
    async def test_empty_patch_keeps_height(self, test_client, outbox):
        tokens = await api_register_and_login(test_client, outbox)
        await test_client.patch("/profiles", json={"height": 178}, headers=bearer(tokens))

        response = await test_client.patch("/profiles", json={}, headers=bearer(tokens))

        assert response.status_code == 200
        assert response.json()["height"] == 178

    @pytest.mark.asyncio
    async def test_explicit_null_clears_height(self, test_client, outbox):
        tokens = await api_register_and_login(test_client, outbox)
        await test_client.patch("/profiles", json={"height": 178}, headers=bearer(tokens))

        response = await test_client.patch("/profiles", json={"height": None}, headers=bearer(tokens))

        assert response.status_code == 200
        assert response.json()["height"] is None

    @pytest.mark.asyncio
    @pytest.mark.parametrize("height", [0, 20, 400])
    async def test_out_of_range_height_is_400(self, test_client, outbox, height):
        tokens = await api_register_and_login(test_client, outbox)

        response = await test_client.patch("/profiles", json={"height": height}, headers=bearer(tokens))

        assert response.status_code == 400

    @pytest.mark.asyncio
    async def test_requires_bearer(self, test_client):
        response = await test_client.get("/profiles")
        assert response.status_code == 401


class TestMeasurementsEndpoint:
    @pytest.mark.asyncio
    async def test_create_and_get(self, test_client, outbox):
        tokens = await api_register_and_login(test_client, outbox)

        response = await test_client.post(
            "/measurements", json={"weight": 70.5, "waist": 81.0}, headers=bearer(tokens)
        )
        assert response.status_code == 201
        created = response.json()
        assert created["weight"] == 70.5
        assert created["waist"] == 81.0
        assert created["chest"] is None

        response = await test_client.get(f"/measurements/{created['id']}", headers=bearer(tokens))
        assert response.status_code == 200
        fetched = response.json()
        assert fetched["id"] == created["id"]
        assert fetched["weight"] == 70.5
        assert fetched["waist"] == 81.0

    @pytest.mark.asyncio
    async def test_list_is_scoped_to_the_user(self, test_client, outbox):
        alice = await api_register_and_login(test_client, outbox)
        bob = await api_register_and_login(test_client, outbox, email="bob@example.com")
        for weight in (70.0, 70.4, 69.8):
            await test_client.post("/measurements", json={"weight": weight}, headers=bearer(alice))
        await test_client.post("/measurements", json={"weight": 90.0}, headers=bearer(bob))

        response = await test_client.get("/measurements", headers=bearer(alice))

        assert response.status_code == 200
        body = response.json()
        assert body["totalCount"] == 3
        assert response.headers["X-Total-Count"] == "3"
        assert sorted(m["weight"] for m in body["measurements"]) == [69.8, 70.0, 70.4]

        response = await test_client.get("/measurements?limit=2", headers=bearer(alice))
        assert len(response.json()["measurements"]) == 2
        assert response.json()["totalCount"] == 3

    @pytest.mark.asyncio
    async def test_other_users_measurement_is_404(self, test_client, outbox):
        alice = await api_register_and_login(test_client, outbox)
        bob = await api_register_and_login(test_client, outbox, email="bob@example.com")
        response = await test_client.post("/measurements", json={"weight": 90.0}, headers=bearer(bob))
        bobs_id = response.json()["id"]

        for method in ("get", "delete"):
            response = await getattr(test_client, method)(f"/measurements/{bobs_id}", headers=bearer(alice))
            assert response.status_code == 404
        response = await test_client.patch(
            f"/measurements/{bobs_id}", json={"weight": 1.0}, headers=bearer(alice)
        )
        assert response.status_code == 404

        response = await test_client.get(f"/measurements/{bobs_id}", headers=bearer(bob))
        assert response.json()["weight"] == 90.0

    @pytest.mark.asyncio
    async def test_partial_update(self, test_client, outbox):
        tokens = await api_register_and_login(test_client, outbox)
        response = await test_client.post(
            "/measurements", json={"weight": 70.5, "chest": 100.0}, headers=bearer(tokens)
        )
        measurement_id = response.json()["id"]

        response = await test_client.patch(
            f"/measurements/{measurement_id}", json={"chest": None, "hips": 95.5}, headers=bearer(tokens)
        )

        assert response.status_code == 200
        body = response.json()
        assert body["weight"] == 70.5
        assert body["chest"] is None
        assert body["hips"] == 95.5

    @pytest.mark.asyncio
    async def test_weight_cannot_be_cleared(self, test_client, outbox):
        tokens = await api_register_and_login(test_client, outbox)
        response = await test_client.post("/measurements", json={"weight": 70.5}, headers=bearer(tokens))
        measurement_id = response.json()["id"]

        response = await test_client.patch(
            f"/measurements/{measurement_id}", json={"weight": None}, headers=bearer(tokens)
        )

        assert response.status_code == 400
        assert response.json()["details"] == {"field": "weight"}

    @pytest.mark.asyncio
    async def test_delete(self, test_client, outbox):
        tokens = await api_register_and_login(test_client, outbox)
        response = await test_client.post("/measurements", json={"weight": 70.5}, headers=bearer(tokens))
        measurement_id = response.json()["id"]

        response = await test_client.delete(f"/measurements/{measurement_id}", headers=bearer(tokens))
        assert response.status_code == 200

        response = await test_client.get(f"/measurements/{measurement_id}", headers=bearer(tokens))
        assert response.status_code == 404

    @pytest.mark.asyncio
    @pytest.mark.parametrize("body", [{}, {"weight": -1}, {"weight": 70, "waist": 0}])
    async def test_invalid_body_is_400(self, test_client, outbox, body):
        tokens = await api_register_and_login(test_client, outbox)

        response = await test_client.post("/measurements", json=body, headers=bearer(tokens))

        assert response.status_code == 400


class TestHealthAndRequestId:
    @pytest.mark.asyncio
    async def test_health(self, test_client):
        response = await test_client.get("/health")

        assert response.status_code == 200
        body = response.json()
        assert body["status"] == "healthy"
        assert body["database"] == "connected"

    @pytest.mark.asyncio
    async def test_request_id_is_echoed(self, test_client):
        response = await test_client.get("/users", headers={"X-Request-ID": "trace-123"})

        assert response.headers["X-Request-ID"] == "trace-123"
        assert response.json()["request_id"] == "trace-123"

    @pytest.mark.asyncio
    async def test_request_id_is_generated(self, test_client):
        response = await test_client.get("/health")
        assert response.headers["X-Request-ID"]
