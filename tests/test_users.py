"""
Tests for manager user administration.

These tests verify:
  - A manager creates staff accounts with a role; the new user can log in
  - Duplicate emails and duplicate names are refused with 409
  - A manager edits name, phone, role and the active flag of another user
  - A deactivated user can no longer log in
  - Non-managers can do neither
"""

import uuid

from conftest import PASSWORD, role_id


def new_user(**overrides):
    body = {
        "email": "rania@example.com",
        "password": PASSWORD,
        "name": "Rania Cashier",
        "phone": "+218 91 000 0000",
    }
    body.update(overrides)
    return body


class TestCreateUser:
    async def test_manager_creates_user_with_role(self, manager, client):
        cashier_role = await role_id(manager, "cashier")
        response = await manager.client.post("/users", json=new_user(role_id=cashier_role))
        assert response.status_code == 201
        data = response.json()
        assert data["email"] == "rania@example.com"
        assert data["role_id"] == cashier_role
        assert data["role_name"] == "cashier"
        assert "hashed_password" not in data

        login = await client.post(
            "/auth/login", json={"email": "rania@example.com", "password": PASSWORD}
        )
        assert login.status_code == 200
        assert login.json()["role_name"] == "cashier"

    async def test_without_role(self, manager):
        response = await manager.client.post("/users", json=new_user())
        assert response.status_code == 201
        assert response.json()["role_name"] is None

    async def test_duplicate_email(self, manager, cashier):
        response = await manager.client.post("/users", json=new_user(email=cashier.email.upper()))
        assert response.status_code == 409
        assert response.json()["error_type"] == "duplicate_email"

    async def test_duplicate_name(self, manager, cashier):
        response = await manager.client.post("/users", json=new_user(name=cashier.name.lower()))
        assert response.status_code == 409
        assert response.json()["error_type"] == "conflict"

    async def test_unknown_role(self, manager):
        response = await manager.client.post("/users", json=new_user(role_id=str(uuid.uuid4())))
        assert response.status_code == 404

        users = (await manager.client.get("/users")).json()
        assert "rania@example.com" not in {u["email"] for u in users}

    async def test_non_manager_is_denied(self, treasurer):
        response = await treasurer.client.post("/users", json=new_user())
        assert response.status_code == 403


class TestUpdateUser:
    async def test_manager_edits_profile_and_role(self, manager, cashier):
        treasurer_role = await role_id(manager, "treasurer")
        response = await manager.client.patch(
            f"/users/{cashier.id}",
            json={"name": "Carla Treasurer", "phone": "0912345678", "role_id": treasurer_role},
        )
        assert response.status_code == 200
        data = response.json()
        assert data["name"] == "Carla Treasurer"
        assert data["phone"] == "0912345678"
        assert data["role_name"] == "treasurer"
        assert data["email"] == cashier.email

        me = (await cashier.client.get("/users/me")).json()
        assert me["role_id"] == treasurer_role

    async def test_rename_to_taken_name(self, manager, cashier, second_cashier):
        response = await manager.client.patch(
            f"/users/{second_cashier.id}", json={"name": cashier.name}
        )
        assert response.status_code == 409
        me = (await second_cashier.client.get("/users/me")).json()
        assert me["name"] == second_cashier.name

    async def test_keeping_own_name_is_not_a_conflict(self, manager, cashier):
        response = await manager.client.patch(
            f"/users/{cashier.id}", json={"name": cashier.name, "phone": "1"}
        )
        assert response.status_code == 200

    async def test_deactivated_user_cannot_log_in(self, manager, cashier, client):
        response = await manager.client.patch(f"/users/{cashier.id}", json={"is_active": False})
        assert response.status_code == 200
        assert response.json()["is_active"] is False

        login = await client.post(
            "/auth/login", json={"email": cashier.email, "password": PASSWORD}
        )
        assert login.status_code == 401

    async def test_unknown_user(self, manager):
        response = await manager.client.patch(f"/users/{uuid.uuid4()}", json={"phone": "1"})
        assert response.status_code == 404

    async def test_non_manager_is_denied(self, cashier, second_cashier):
        response = await cashier.client.patch(
            f"/users/{second_cashier.id}", json={"name": "Someone Else"}
        )
        assert response.status_code == 403
