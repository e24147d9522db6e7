"""Pushes plans, users and payments to Server B.

Callers on the purchase and signup paths use the ``*_quietly`` helpers,
which log and swallow failures. Admin endpoints use the plain functions
and get a :class:`PlatformError` back when Server B refuses the payload.
"""
import json
import uuid
from datetime import datetime
from fastapi import HTTPException, status
from app.db.mongo import db
from app.clients.platform import platform_client, PlatformError
from app.utils.enums.sync import SyncStatus
from app.utils.mongo import to_object_id
from app.utils.logger import logger


def _blank_to_none(value):
    if value is None:
        return None
    value = str(value).strip()
    return value or None


def plan_payload(plan: dict) -> dict:
    return {
        "id": str(plan["_id"]),
        "name": plan.get("name"),
        "price_cents": plan.get("price_cents"),
        "credits": plan.get("credits"),
        "stripe_price_id": plan.get("stripe_price_id"),
        "active": plan.get("active", True),
        "competitor_price_cents": plan.get("competitor_price_cents"),
        "plan_type": plan.get("plan_type"),
    }


def payment_payload(user_id, plan_id, amount_cents: int, affiliate_id, affiliate_coupon_id, environment: str) -> dict:
    # Server B wants its own UUID, not the Stripe session id
    return {
        "external_payment_id": str(uuid.uuid4()),
        "external_user_id": str(user_id),
        "product_id": platform_client.product_id,
        "plan_id": str(plan_id) if plan_id else None,
        "amount": (amount_cents or 0) / 100,
        "billing_reason": "one_time_purchase",
        "status": "paid",
        "affiliate_id": _blank_to_none(affiliate_id),
        "affiliate_coupon_id": _blank_to_none(affiliate_coupon_id),
        "environment": environment,
    }


async def sync_payment_quietly(payment: dict) -> dict:
    """Returns the ``sync_status``/``sync_response``/``synced_at`` fields to store."""
    logger.info("[SYNC] Syncing payment to external server", external_payment_id=payment["external_payment_id"])
    try:
        result = await platform_client.sync_payment(payment)
        sync_status = SyncStatus.SYNCED if result["ok"] else SyncStatus.ERROR
        sync_response = json.dumps(result["data"])
        if not result["ok"]:
            logger.warning("[SYNC] Payment sync to external server failed", response=result["data"])
    except Exception as e:
        sync_status = SyncStatus.ERROR
        sync_response = str(e)
        logger.error("[SYNC] Error syncing payment to external server", error=sync_response)

    return {
        "sync_status": sync_status.value,
        "sync_response": sync_response,
        "synced_at": datetime.utcnow(),
    }


async def sync_plans(action: str, plan_id: str = None) -> dict:
    if action == "sync_plan":
        if not plan_id:
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Missing required field: plan_id for sync_plan action")
        plan = await db.credit_plans.find_one({"_id": to_object_id(plan_id, "plan id")})
        if not plan:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=f"Plan not found: {plan_id}")
        plans = [plan]
    elif action == "sync_all":
        plans = await db.credit_plans.find({"active": True}).sort("credits", 1).to_list(length=None)
    else:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Invalid action: {action}. Use 'sync_plan' or 'sync_all'"
        )

    if not plans:
        return {"success": True, "message": "No plans to sync"}

    logger.info("[SYNC] Sending plans to external server", count=len(plans))
    result = await platform_client.sync_plans([plan_payload(p) for p in plans])
    if not result["ok"]:
        error = result["data"].get("error") if isinstance(result["data"], dict) else None
        raise PlatformError(f"External sync failed: {error or 'Unknown error'}", result["status_code"], result["data"])

    return {
        "success": True,
        "message": f"Synced {len(plans)} plan(s) to external server",
        "external_response": result["data"],
    }


async def sync_plan_quietly(plan_id) -> None:
    try:
        await sync_plans("sync_plan", str(plan_id))
    except Exception as e:
        logger.warning("[SYNC] Plan sync failed", plan_id=str(plan_id), error=str(e))


async def sync_user(user_id) -> dict:
    object_id = to_object_id(user_id, "user id")
    user = await db.users.find_one({"_id": object_id})
    if not user:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Profile not found")

    last_tx = await db.payment_transactions.find_one(
        {"user_id": object_id, "status": "completed"},
        sort=[("created_at", -1)]
    )
    payload = {
        "external_user_id": str(object_id),
        "product_id": platform_client.product_id,
        "email": user.get("email"),
        "name": user.get("name"),
        "phone": user.get("phone") or "",
        "plan_id": str(last_tx["plan_id"]) if last_tx else None,
    }

    try:
        result = await platform_client.sync_user(payload)
    except Exception as e:
        await db.users.update_one({"_id": object_id}, {"$set": {
            "sync_status": SyncStatus.ERROR.value,
            "sync_response": str(e),
            "synced_at": datetime.utcnow(),
        }})
        raise PlatformError(f"External sync failed: {str(e)}")

    sync_response = json.dumps(result["data"])
    await db.users.update_one({"_id": object_id}, {"$set": {
        "sync_status": SyncStatus.SYNCED.value if result["ok"] else SyncStatus.ERROR.value,
        "sync_response": sync_response,
        "synced_at": datetime.utcnow(),
    }})

    if not result["ok"]:
        raise PlatformError(f"External sync failed: {sync_response}", result["status_code"], result["data"])
    return {"success": True, "message": "User synced successfully", "sync_response": result["data"]}


async def sync_user_quietly(user_id) -> None:
    try:
        await sync_user(user_id)
    except Exception as e:
        logger.warning("[SYNC] Error syncing user to external server", user_id=str(user_id), error=str(e))


async def retry_payment_sync(event_id) -> dict:
    object_id = to_object_id(event_id, "event id")
    event = await db.stripe_events.find_one({"_id": object_id})
    if not event:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Event not found")
    if event.get("event_type") != "checkout.session.completed":
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Only checkout.session.completed events can be synced"
        )

    session = event.get("event_data") or {}
    metadata = session.get("metadata") or {}
    user_id = event.get("user_id") or metadata.get("user_id")
    if not user_id:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="user_id not found in event")

    payment = payment_payload(
        user_id=user_id,
        plan_id=event.get("plan_id") or metadata.get("plan_id"),
        amount_cents=event.get("amount_total") or session.get("amount_total") or 0,
        affiliate_id=event.get("affiliate_id") or metadata.get("affiliate_id"),
        affiliate_coupon_id=event.get("affiliate_coupon_id") or metadata.get("coupon_id"),
        environment=event.get("environment") or "test",
    )
    logger.info("[SYNC] Retrying sync for event", event_id=str(object_id))

    outcome = await sync_payment_quietly(payment)
    await db.stripe_events.update_one({"_id": object_id}, {"$set": outcome})

    if outcome["sync_status"] != SyncStatus.SYNCED.value:
        raise PlatformError(f"External sync failed: {outcome['sync_response']}")
    return {
        "success": True,
        "message": "Payment synced successfully",
        "sync_response": json.loads(outcome["sync_response"]),
    }


async def fetch_stripe_events(sync_status: str = None, limit: int = 100):
    try:
        query = {}
        if sync_status:
            query["sync_status"] = sync_status
        return await db.stripe_events.find(query).sort("created_at", -1).to_list(length=limit)
    except Exception as e:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Error while fetching stripe events: {str(e)}"
        )
