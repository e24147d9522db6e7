"""
Tests for the Server B client against a mocked transport
"""
import json
import httpx
import pytest
from app.clients.platform import PlatformClient, PlatformError


def build_client(handler):
    return PlatformClient(
        rest_url="https://platform.test/rest/v1/",
        functions_url="https://platform.test/functions/v1",
        anon_key="anon",
        product_id="prod-uuid",
        transport=httpx.MockTransport(handler),
    )


@pytest.mark.asyncio
async def test_validate_coupon_takes_first_row_of_list():
    seen = {}

    def handler(request):
        seen["url"] = str(request.url)
        seen["apikey"] = request.headers["apikey"]
        seen["body"] = json.loads(request.content)
        return httpx.Response(200, json=[{"coupon_id": "cp_1", "is_active": True}, {"coupon_id": "cp_2"}])

    coupon = await build_client(handler).validate_coupon("  PROMO20 ")

    assert coupon == {"coupon_id": "cp_1", "is_active": True}
    assert seen["url"] == "https://platform.test/rest/v1/rpc/validate_coupon"
    assert seen["apikey"] == "anon"
    assert seen["body"] == {"p_coupon_code": "PROMO20", "p_product_id": "prod-uuid"}


@pytest.mark.asyncio
async def test_validate_coupon_accepts_object_response():
    client = build_client(lambda request: httpx.Response(200, json={"coupon_id": "cp_9", "is_active": True}))
    assert (await client.validate_coupon("X"))["coupon_id"] == "cp_9"


@pytest.mark.asyncio
async def test_validate_coupon_empty_list_is_none():
    client = build_client(lambda request: httpx.Response(200, json=[]))
    assert await client.validate_coupon("NOPE") is None


@pytest.mark.asyncio
async def test_validate_coupon_error_status_raises():
    client = build_client(lambda request: httpx.Response(500, json={"message": "boom"}))
    with pytest.raises(PlatformError) as exc_info:
        await client.validate_coupon("X")
    assert exc_info.value.status_code == 500
    assert exc_info.value.body == {"message": "boom"}


@pytest.mark.asyncio
async def test_sync_payment_uses_bearer_and_unified_function():
    seen = {}

    def handler(request):
        seen["url"] = str(request.url)
        seen["auth"] = request.headers["Authorization"]
        seen["body"] = json.loads(request.content)
        return httpx.Response(200, json={"success": True})

    result = await build_client(handler).sync_payment({"external_payment_id": "abc"})

    assert result == {"ok": True, "status_code": 200, "data": {"success": True}}
    assert seen["url"] == "https://platform.test/functions/v1/sync-unified-data"
    assert seen["auth"] == "Bearer anon"
    assert seen["body"] == {"action": "sync_payment", "payment": {"external_payment_id": "abc"}}


@pytest.mark.asyncio
async def test_sync_plans_single_and_batch_payloads():
    bodies = []

    def handler(request):
        bodies.append(json.loads(request.content))
        return httpx.Response(200, json={"success": True})

    client = build_client(handler)
    await client.sync_plans([{"id": "p1"}])
    await client.sync_plans([{"id": "p1"}, {"id": "p2"}])

    assert bodies[0] == {"product_id": "prod-uuid", "action": "sync_plan", "plan": {"id": "p1"}}
    assert bodies[1] == {"product_id": "prod-uuid", "action": "sync_plans", "plans": [{"id": "p1"}, {"id": "p2"}]}


@pytest.mark.asyncio
async def test_function_failure_is_reported_not_raised():
    client = build_client(lambda request: httpx.Response(502, text="bad gateway"))
    result = await client.sync_user({"external_user_id": "u1"})
    assert result["ok"] is False
    assert result["status_code"] == 502
    assert result["data"] == {"raw": "bad gateway"}
