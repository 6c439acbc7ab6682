import time

import jwt
import pytest
from httpx import ASGITransport, AsyncClient

from auth.auth_handler import decode_jwt, sign_jwt
from auth.rbac import Permission, Role, has_permission
from core.environment import get_jwt_settings
from models.user import User


@pytest.mark.asyncio
async def test_register_and_login(async_client, async_db_session):
    user = {
        "fullname": "Integration User",
        "email": "intuser@example.com",
        "password": "strongpass"
    }

    resp = await async_client.post("/auth/register", json=user)
    assert resp.status_code == 200
    token = resp.json()["access_token"]
    assert decode_jwt(token)["role"] == "user"

    stored = await async_db_session.get(User, user["email"])
    assert stored.role == Role.USER.value
    assert stored.password != user["password"]

    login = {"email": user["email"], "password": user["password"]}
    resp = await async_client.post("/auth/login", json=login)
    assert resp.status_code == 200
    assert decode_jwt(resp.json()["access_token"])["user_id"] == user["email"]


@pytest.mark.asyncio
async def test_register_duplicate_email(async_client):
    user = {"fullname": "Dup", "email": "dup@example.com", "password": "strongpass"}
    assert (await async_client.post("/auth/register", json=user)).status_code == 200

    resp = await async_client.post("/auth/register", json=user)
    assert resp.status_code == 409


@pytest.mark.asyncio
async def test_login_failures(async_client):
    resp = await async_client.post("/auth/login", json={"email": "nobody@example.com", "password": "whatever1"})
    assert resp.status_code == 404

    user = {"fullname": "Someone", "email": "someone@example.com", "password": "strongpass"}
    await async_client.post("/auth/register", json=user)
    resp = await async_client.post("/auth/login", json={"email": user["email"], "password": "wrongpass"})
    assert resp.status_code == 401


@pytest.mark.asyncio
async def test_registered_user_cannot_manage_catalog(async_client):
    user = {"fullname": "Viewer", "email": "viewer@example.com", "password": "strongpass"}
    token = (await async_client.post("/auth/register", json=user)).json()["access_token"]

    resp = await async_client.get("/makes", headers={"Authorization": f"Bearer {token}"})
    assert resp.status_code == 401


def test_sign_and_decode_round_trip():
    payload = decode_jwt(sign_jwt("owner@example.com", "owner")["access_token"])
    assert payload["user_id"] == "owner@example.com"
    assert payload["role"] == "owner"


def test_decode_rejects_expired_and_tampered_tokens():
    settings = get_jwt_settings()
    expired = jwt.encode(
        {"user_id": "a@example.com", "role": "owner", "expires": time.time() - 10},
        settings["secret"],
        algorithm=settings["algorithm"],
    )
    assert decode_jwt(expired) is None

    forged = jwt.encode(
        {"user_id": "a@example.com", "role": "owner", "expires": time.time() + 60},
        "another-secret",
        algorithm=settings["algorithm"],
    )
    assert decode_jwt(forged) is None


def test_role_permissions():
    assert has_permission("owner", Permission.MANAGE_VEHICLES)
    assert has_permission("owner", Permission.MANAGE_TAXONOMY)
    assert has_permission("user", Permission.VIEW_CATALOG)
    assert not has_permission("user", Permission.MANAGE_VEHICLES)
    assert not has_permission("admin", Permission.VIEW_CATALOG)


def test_missing_secret_refuses_to_sign_or_decode(monkeypatch):
    token = sign_jwt("owner@example.com", "owner")["access_token"]
    monkeypatch.delenv("JWT_SECRET")

    with pytest.raises(RuntimeError):
        sign_jwt("owner@example.com", "owner")
    with pytest.raises(RuntimeError):
        decode_jwt(token)


@pytest.mark.asyncio
async def test_token_signed_with_guessable_secret_is_not_accepted(test_app, monkeypatch):
    monkeypatch.delenv("JWT_SECRET")
    forged = jwt.encode(
        {"user_id": "attacker@example.com", "role": "owner", "expires": time.time() + 3600},
        "change-me",
        algorithm="HS256",
    )

    transport = ASGITransport(app=test_app, raise_app_exceptions=False)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        resp = await client.get("/vehicles", headers={"Authorization": f"Bearer {forged}"})

    assert resp.status_code == 500
    assert "data" not in resp.json()
