from __future__ import annotations

import pytest
from httpx import AsyncClient

pytestmark = pytest.mark.asyncio


async def test_register_login_and_me(client: AsyncClient) -> None:
    register_resp = await client.post(
        "/api/v1/auth/register",
        json={"email": "auth@example.com", "password": "Secure123!", "full_name": "Auth User"},
    )
    assert register_resp.status_code == 201
    assert register_resp.json()["data"]["email"] == "auth@example.com"

    login_resp = await client.post(
        "/api/v1/auth/login", json={"email": "auth@example.com", "password": "Secure123!"}
    )
    assert login_resp.status_code == 200
    tokens = login_resp.json()["data"]
    assert tokens["token_type"] == "bearer"

    headers = {"Authorization": f"Bearer {tokens['access_token']}"}
    me_resp = await client.get("/api/v1/auth/me", headers=headers)
    assert me_resp.status_code == 200
    me = me_resp.json()["data"]
    assert me["email"] == "auth@example.com"
    assert me["full_name"] == "Auth User"


async def test_login_with_wrong_password(client: AsyncClient) -> None:
    await client.post(
        "/api/v1/auth/register",
        json={"email": "wrong@example.com", "password": "Secure123!"},
    )
    login_resp = await client.post(
        "/api/v1/auth/login", json={"email": "wrong@example.com", "password": "Nope12345"}
    )
    assert login_resp.status_code == 401
    assert login_resp.json()["error"]["message"] == "Invalid credentials"


async def test_me_requires_token(client: AsyncClient) -> None:
    resp = await client.get("/api/v1/auth/me")
    assert resp.status_code == 401
    assert resp.json()["error"]["message"] == "Authentication required"

    invalid = await client.get("/api/v1/auth/me", headers={"Authorization": "Bearer garbage"})
    assert invalid.status_code == 401
