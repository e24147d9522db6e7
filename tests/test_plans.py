"""
Tests for the storefront catalogue, plan admin and plan sync
"""
from types import SimpleNamespace
from unittest.mock import AsyncMock

import pytest
import stripe


@pytest.mark.asyncio
async def test_storefront_groups_plans_with_display_fields(client, stocked_plan, recharge_plan):
    response = await client.get("/plans")

    assert response.status_code == 200
    result = response.json()["result"]
    new_account = result["new_account"][0]
    assert new_account["display_price"] == "R$ 80,00"
    assert new_account["competitor_display_price"] == "R$ 100,00"
    assert new_account["competitor_discount_percent"] == 20
    assert new_account["available_accounts"] == 1
    assert result["recharge"][0]["display_price"] == "R$ 45,00"


@pytest.mark.asyncio
async def test_storefront_hides_inactive_plans(client, db, plan):
    await db.credit_plans.update_one({"_id": plan["_id"]}, {"$set": {"active": False}})

    response = await client.get("/plans")

    assert response.json()["result"] == {"new_account": [], "recharge": []}


@pytest.mark.asyncio
async def test_admin_creates_plan_and_syncs_it(client, db, admin_headers, platform):
    response = await client.post(
        "/admin/plans",
        json={"name": "300 créditos", "credits": 300, "price_cents": 20000, "stripe_price_id": "price_300"},
        headers=admin_headers,
    )

    assert response.status_code == 201
    plan_id = response.json()["result"]["id"]
    stored = await db.credit_plans.find_one({"name": "300 créditos"})
    assert str(stored["_id"]) == plan_id
    assert stored["plan_type"] == "new_account"

    assert platform.actions() == ["sync_plan"]
    assert platform.calls[0]["json"]["plan"]["id"] == plan_id


@pytest.mark.asyncio
async def test_plan_creation_survives_sync_failure(client, db, admin_headers, platform):
    platform.function_status = 500

    response = await client.post("/admin/plans", json={"name": "Plano", "credits": 10}, headers=admin_headers)

    assert response.status_code == 201
    assert await db.credit_plans.count_documents({}) == 1


@pytest.mark.asyncio
async def test_negative_credits_are_rejected(client, admin_headers):
    response = await client.post("/admin/plans", json={"name": "Plano", "credits": -1}, headers=admin_headers)
    assert response.status_code == 422


@pytest.mark.asyncio
async def test_admin_updates_plan(client, admin_headers, plan):
    response = await client.patch(f"/admin/plans/{plan['_id']}", json={"price_cents": 8500}, headers=admin_headers)

    assert response.status_code == 200
    assert response.json()["result"]["display_price"] == "R$ 85,00"


@pytest.mark.asyncio
async def test_empty_update_is_rejected(client, admin_headers, plan):
    response = await client.patch(f"/admin/plans/{plan['_id']}", json={}, headers=admin_headers)
    assert response.status_code == 400


@pytest.mark.asyncio
async def test_plan_admin_requires_admin(client, user_headers):
    response = await client.post("/admin/plans", json={"name": "Plano", "credits": 10}, headers=user_headers)
    assert response.status_code == 403


@pytest.mark.asyncio
async def test_sync_all_sends_batch(client, admin_headers, plan, recharge_plan, platform):
    response = await client.post("/admin/plans/sync", json={"action": "sync_all"}, headers=admin_headers)

    assert response.status_code == 200
    body = platform.calls[-1]["json"]
    assert body["action"] == "sync_plans"
    assert {p["name"] for p in body["plans"]} == {"100 créditos", "Recarga 50 créditos"}


@pytest.mark.asyncio
async def test_sync_with_no_plans(client, admin_headers, platform):
    response = await client.post("/admin/plans/sync", json={"action": "sync_all"}, headers=admin_headers)

    assert response.json()["message"] == "No plans to sync"
    assert platform.calls == []


@pytest.mark.asyncio
async def test_sync_rejects_bad_requests(client, admin_headers, plan):
    bad_action = await client.post("/admin/plans/sync", json={"action": "nope"}, headers=admin_headers)
    missing_id = await client.post("/admin/plans/sync", json={"action": "sync_plan"}, headers=admin_headers)

    assert bad_action.status_code == 400
    assert missing_id.status_code == 400


@pytest.mark.asyncio
async def test_sync_upstream_failure_is_bad_gateway(client, admin_headers, plan, platform):
    platform.function_status = 500
    platform.function_body = {"error": "db down"}

    response = await client.post(
        "/admin/plans/sync",
        json={"action": "sync_plan", "plan_id": str(plan["_id"])},
        headers=admin_headers,
    )

    assert response.status_code == 502
    assert "db down" in response.json()["detail"]


@pytest.mark.asyncio
async def test_import_from_stripe(client, db, admin_headers, plan, monkeypatch):
    products = SimpleNamespace(data=[
        {"id": "prod_1", "name": "200 créditos", "metadata": {}},
        {"id": "prod_2", "name": "100 créditos", "metadata": {}},
        {"id": "prod_3", "name": "Pacote misterioso", "metadata": {}},
        {"id": "prod_4", "name": "Sem preço", "metadata": {"credits": "5"}},
    ])
    prices = SimpleNamespace(data=[
        {"id": "price_200", "product": "prod_1", "unit_amount": 15000},
        {"id": "price_100_new", "product": "prod_2", "unit_amount": 7900},
        {"id": "price_x", "product": "prod_3", "unit_amount": 500},
    ])
    monkeypatch.setattr(stripe.Product, "list_async", AsyncMock(return_value=products))
    monkeypatch.setattr(stripe.Price, "list_async", AsyncMock(return_value=prices))

    response = await client.post("/admin/plans/import-stripe", headers=admin_headers)

    assert response.status_code == 200
    actions = {r["name"]: r["action"] for r in response.json()["result"]}
    assert actions == {"200 créditos": "created", "100 créditos": "linked", "Pacote misterioso": "skipped"}

    created = await db.credit_plans.find_one({"stripe_price_id": "price_200"})
    assert created["credits"] == 200
    assert created["price_cents"] == 15000
    linked = await db.credit_plans.find_one({"_id": plan["_id"]})
    assert linked["stripe_price_id"] == "price_100_new"
    assert linked["price_cents"] == 7900
