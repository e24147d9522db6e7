"""
Tests for signup, login, profile and the user dashboard
"""
from datetime import datetime

import pytest


@pytest.mark.asyncio
async def test_signup_creates_profile_and_syncs_user(client, db, platform):
    response = await client.post("/auth/signup", json={
        "email": "Nova@Example.com",
        "password": "secret123",
        "name": "Nova Cliente",
        "phone": "11 97777-6666",
    })

    assert response.status_code == 201
    data = response.json()
    assert data["token"]
    assert "password_hash" not in data["user"]
    assert data["user"]["credits"] == 0
    assert data["user"]["role"] == "user"

    stored = await db.users.find_one({"email": "nova@example.com"})
    assert stored["phone"] == "11977776666"
    assert stored["sync_status"] == "synced"
    assert platform.actions() == ["sync_user"]
    assert platform.calls[0]["json"]["user"]["external_user_id"] == str(stored["_id"])


@pytest.mark.asyncio
async def test_signup_survives_sync_failure(client, db, platform):
    platform.function_status = 500

    response = await client.post("/auth/signup", json={"email": "x@example.com", "password": "secret123", "name": "X"})

    assert response.status_code == 201
    stored = await db.users.find_one({"email": "x@example.com"})
    assert stored["sync_status"] == "error"


@pytest.mark.asyncio
async def test_duplicate_email_is_conflict(client, user):
    response = await client.post("/auth/signup", json={
        "email": "cliente@example.com", "password": "secret123", "name": "Outra",
    })
    assert response.status_code == 409


@pytest.mark.asyncio
async def test_signup_validates_phone(client):
    response = await client.post("/auth/signup", json={
        "email": "y@example.com", "password": "secret123", "name": "Y", "phone": "123",
    })
    assert response.status_code == 422


@pytest.mark.asyncio
async def test_login(client, user):
    ok = await client.post("/auth/login", json={"email": "cliente@example.com", "password": "secret123"})
    wrong = await client.post("/auth/login", json={"email": "cliente@example.com", "password": "nope"})
    unknown = await client.post("/auth/login", json={"email": "ninguem@example.com", "password": "nope"})

    assert ok.status_code == 200
    assert ok.json()["token"]
    assert wrong.status_code == 401
    assert unknown.status_code == 404


@pytest.mark.asyncio
async def test_login_token_authenticates(client, user):
    login = await client.post("/auth/login", json={"email": "cliente@example.com", "password": "secret123"})
    token = login.json()["token"]

    me = await client.get("/users/me", headers={"Authorization": f"Bearer {token}"})

    assert me.status_code == 200
    assert me.json()["result"]["email"] == "cliente@example.com"
    assert "password_hash" not in me.json()["result"]


@pytest.mark.asyncio
async def test_disabled_account_is_forbidden(client, db, user, user_headers):
    await db.users.update_one({"_id": user["_id"]}, {"$set": {"is_enabled": False}})

    response = await client.get("/users/me", headers=user_headers)

    assert response.status_code == 403


@pytest.mark.asyncio
async def test_update_profile(client, user_headers):
    response = await client.patch("/users/me", json={"name": "Nome Novo"}, headers=user_headers)

    assert response.status_code == 200
    assert response.json()["result"]["name"] == "Nome Novo"

    empty = await client.patch("/users/me", json={}, headers=user_headers)
    assert empty.status_code == 400


@pytest.mark.asyncio
async def test_dashboard_totals(client, db, user, user_headers, plan):
    now = datetime.utcnow()
    await db.payment_transactions.insert_many([
        {"user_id": user["_id"], "plan_id": plan["_id"], "stripe_session_id": "cs_1", "status": "completed",
         "credits_added": 100, "amount_cents": 8000, "purchase_type": "new_account", "created_at": now},
        {"user_id": user["_id"], "plan_id": plan["_id"], "stripe_session_id": "cs_2", "status": "completed",
         "credits_added": 100, "amount_cents": 6400, "purchase_type": "new_account", "created_at": now},
        {"user_id": user["_id"], "plan_id": plan["_id"], "stripe_session_id": "cs_3", "status": "failed",
         "credits_added": 100, "amount_cents": 8000, "purchase_type": "new_account", "created_at": now},
    ])
    await db.accounts.insert_one({
        "plan_id": plan["_id"], "account_data": "login: a / senha: b", "is_used": True,
        "used_by": user["_id"], "used_at": now, "created_at": now,
    })

    response = await client.get("/users/me/dashboard", headers=user_headers)

    result = response.json()["result"]
    assert result["total_credits_added"] == 200
    assert result["total_spent_cents"] == 14400
    assert len(result["transactions"]) == 3
    assert result["transactions"][0]["plan_name"] == "100 créditos"
    assert result["accounts"][0]["account_data"] == "login: a / senha: b"
    assert result["recharges"] == []

    accounts = await client.get("/users/me/accounts", headers=user_headers)
    assert accounts.json()["result"][0]["plan_name"] == "100 créditos"


@pytest.mark.asyncio
async def test_profile_requires_login(client):
    response = await client.get("/users/me")
    assert response.status_code == 401
