"""
Shared pytest fixtures.

The Mongo handle is swapped for mongomock-motor before any service module
imports it, and every outbound call to the platform goes through a recording
httpx.MockTransport.
"""
import os

os.environ.setdefault("ENV_MODE", "local")
os.environ.setdefault("JWT_SECRET", "test-secret")
os.environ.setdefault("STRIPE_SECRET_KEY", "sk_test_dummy")
os.environ["STRIPE_WEBHOOK_SECRET"] = ""
os.environ["MAIL_USERNAME"] = ""
os.environ["MAIL_PASSWORD"] = ""
os.environ.setdefault("PLATFORM_ANON_KEY", "anon-test-key")
os.environ.setdefault("PLATFORM_REST_URL", "https://platform.test/rest/v1")
os.environ.setdefault("PLATFORM_FUNCTIONS_URL", "https://platform.test/functions/v1")

import json
from datetime import datetime

import httpx
import pytest
import pytest_asyncio
from mongomock_motor import AsyncMongoMockClient

import app.db.mongo as mongo

mongo.db = AsyncMongoMockClient()["creditshub_test"]

from app.main import app as fastapi_app
from app.db.mongo import ensure_indexes
from app.clients.platform import platform_client
from app.models.user import UserCreate
from app.services.auth_service import create_user, create_access_token


COLLECTIONS = [
    "users",
    "credit_plans",
    "payment_transactions",
    "credit_adjustments",
    "stripe_events",
    "accounts",
    "recharge_requests",
    "support_tickets",
    "support_messages",
    "counters",
    "digital_products",
]


class FakePlatform:
    """Stands in for Server B and records every request it receives."""

    def __init__(self):
        self.calls = []
        self.coupon = []
        self.function_status = 200
        self.function_body = {"success": True}
        self.rpc_status = 200

    def handler(self, request: httpx.Request) -> httpx.Response:
        body = json.loads(request.content or b"{}")
        self.calls.append({"url": str(request.url), "headers": request.headers, "json": body})
        if "/rpc/validate_coupon" in str(request.url):
            return httpx.Response(self.rpc_status, json=self.coupon)
        return httpx.Response(self.function_status, json=self.function_body)

    def actions(self):
        return [c["json"].get("action") for c in self.calls if "/functions/" in c["url"]]


@pytest.fixture
def db():
    return mongo.db


@pytest_asyncio.fixture(autouse=True)
async def clean_db():
    for name in COLLECTIONS:
        await getattr(mongo.db, name).delete_many({})
    await ensure_indexes()
    yield


@pytest.fixture(autouse=True)
def platform(monkeypatch):
    fake = FakePlatform()
    monkeypatch.setattr(platform_client, "_transport", httpx.MockTransport(fake.handler))
    return fake


@pytest_asyncio.fixture
async def client():
    transport = httpx.ASGITransport(app=fastapi_app)
    async with httpx.AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac


@pytest_asyncio.fixture
async def user():
    return await create_user(UserCreate(
        email="cliente@example.com",
        password="secret123",
        name="Cliente Teste",
        phone="(11) 98888-7777",
    ))


@pytest_asyncio.fixture
async def admin():
    return await create_user(UserCreate(
        email="admin@example.com",
        password="admin123",
        name="Admin",
    ), role="admin")


@pytest.fixture
def user_headers(user):
    return {"Authorization": f"Bearer {create_access_token(str(user['_id']))}"}


@pytest.fixture
def admin_headers(admin):
    return {"Authorization": f"Bearer {create_access_token(str(admin['_id']))}"}


@pytest_asyncio.fixture
async def plan():
    doc = {
        "name": "100 créditos",
        "credits": 100,
        "price_cents": 8000,
        "plan_type": "new_account",
        "stripe_price_id": "price_100",
        "competitor_price_cents": 10000,
        "active": True,
        "created_at": datetime.utcnow(),
    }
    res = await mongo.db.credit_plans.insert_one(doc)
    doc["_id"] = res.inserted_id
    return doc


@pytest_asyncio.fixture
async def recharge_plan():
    doc = {
        "name": "Recarga 50 créditos",
        "credits": 50,
        "price_cents": 4500,
        "plan_type": "recharge",
        "stripe_price_id": "price_recharge_50",
        "competitor_price_cents": None,
        "active": True,
        "created_at": datetime.utcnow(),
    }
    res = await mongo.db.credit_plans.insert_one(doc)
    doc["_id"] = res.inserted_id
    return doc


@pytest_asyncio.fixture
async def stocked_plan(plan):
    await mongo.db.accounts.insert_one({
        "plan_id": plan["_id"],
        "account_data": "login: conta1@example.com / senha: abc123",
        "is_used": False,
        "used_by": None,
        "used_at": None,
        "created_at": datetime.utcnow(),
    })
    return plan


@pytest.fixture
def make_event():
    return checkout_event


def checkout_event(user_id, plan_id, purchase_type="new_account", session_id="cs_test_1", event_id="evt_1",
                   amount_total=8000, metadata_extra=None):
    metadata = {
        "user_id": str(user_id) if user_id else "",
        "plan_id": str(plan_id) if plan_id else "",
        "purchase_type": purchase_type,
        "coupon_id": "",
        "coupon_code": "",
        "affiliate_id": "",
        "affiliate_product_id": "",
    }
    metadata.update(metadata_extra or {})
    return {
        "id": event_id,
        "type": "checkout.session.completed",
        "data": {
            "object": {
                "id": session_id,
                "amount_subtotal": amount_total,
                "amount_total": amount_total,
                "total_details": {"amount_discount": 0},
                "customer_email": "cliente@example.com",
                "metadata": metadata,
            }
        },
    }
