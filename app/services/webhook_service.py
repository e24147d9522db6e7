import json
from datetime import datetime
from typing import Optional
import stripe
from fastapi import HTTPException, status
from pymongo.errors import DuplicateKeyError
from app.db.mongo import db
from app.clients.platform import platform_client
from app.clients.stripe_client import STRIPE_WEBHOOK_SECRET, stripe_environment
from app.services.account_service import allocate_account
from app.services.sync_service import payment_payload, sync_payment_quietly
from app.utils.email import send_account_delivery_email
from app.clients.email import MAIL_ENABLED
from app.utils.enums.plan import PlanType
from app.utils.enums.recharge import RechargeStatus
from app.utils.enums.sync import SyncStatus
from app.utils.mongo import to_object_id
from app.utils.logger import logger


CHECKOUT_COMPLETED = "checkout.session.completed"


def parse_event(body: bytes, signature: Optional[str], webhook_secret: str = None) -> dict:
    secret = STRIPE_WEBHOOK_SECRET if webhook_secret is None else webhook_secret
    if secret:
        if not signature:
            logger.warning("[WEBHOOK] Missing stripe-signature header")
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Missing stripe-signature header")
        try:
            stripe.Webhook.construct_event(body, signature, secret)
        except (ValueError, stripe.SignatureVerificationError) as e:
            logger.warning("[WEBHOOK] Webhook signature verification failed", error=str(e))
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Webhook signature verification failed")
        logger.info("[WEBHOOK] Webhook signature verified")
    else:
        logger.info("[WEBHOOK] Processing without signature verification (development mode)")

    try:
        event = json.loads(body)
    except ValueError:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Invalid payload")
    if not isinstance(event, dict) or "type" not in event:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Invalid payload")
    return event


async def record_event(event: dict, environment: str):
    event_object = (event.get("data") or {}).get("object") or {}
    metadata = event_object.get("metadata") or {}
    total_details = event_object.get("total_details") or {}

    try:
        await db.stripe_events.insert_one({
            "event_id": event.get("id"),
            "event_type": event.get("type"),
            "event_data": event_object,
            "user_id": metadata.get("user_id") or None,
            "plan_id": metadata.get("plan_id") or None,
            "product_id": platform_client.product_id,
            "email": metadata.get("user_email") or event_object.get("customer_email") or event_object.get("email"),
            "environment": environment,
            "affiliate_id": metadata.get("affiliate_id") or None,
            "affiliate_coupon_id": metadata.get("coupon_id") or None,
            "amount_subtotal": event_object.get("amount_subtotal"),
            "amount_discount": total_details.get("amount_discount"),
            "amount_total": event_object.get("amount_total"),
            "processed": False,
            "sync_status": SyncStatus.PENDING.value,
            "created_at": datetime.utcnow(),
        })
        logger.info("[WEBHOOK] Stripe event logged", event_id=event.get("id"))
    except DuplicateKeyError:
        logger.info("[WEBHOOK] Stripe event already logged", event_id=event.get("id"))


async def mark_event_processed(event_id: str, sync_fields: dict = None):
    update = {"processed": True}
    if sync_fields:
        update.update(sync_fields)
    await db.stripe_events.update_one({"event_id": event_id}, {"$set": update})


async def _deliver_account(user: dict, plan: dict, account: dict):
    if not MAIL_ENABLED or not user.get("email"):
        return
    try:
        await send_account_delivery_email(user["email"], plan["name"], account["account_data"])
        logger.info("[WEBHOOK] Account data mailed to user", user_id=str(user["_id"]))
    except Exception as e:
        logger.warning("[WEBHOOK] Error mailing account data", user_id=str(user["_id"]), error=str(e))


async def credit_checkout_session(session: dict, environment: str) -> dict:
    metadata = session.get("metadata") or {}
    user_id = metadata.get("user_id")
    plan_id = metadata.get("plan_id")
    purchase_type = metadata.get("purchase_type") or PlanType.NEW_ACCOUNT.value

    if not user_id or not plan_id:
        logger.warning("[WEBHOOK] Missing metadata", user_id=user_id, plan_id=plan_id)
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Missing metadata")

    plan = await db.credit_plans.find_one({"_id": to_object_id(plan_id, "plan id")})
    if not plan:
        logger.warning("[WEBHOOK] Plan not found", plan_id=plan_id)
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Plan not found")

    user_object_id = to_object_id(user_id, "user id")
    user = await db.users.find_one({"_id": user_object_id})
    if not user:
        logger.warning("[WEBHOOK] Profile not found", user_id=user_id)
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Profile not found")

    amount_cents = session.get("amount_total") or plan.get("price_cents") or 0

    # The unique index on stripe_session_id keeps a redelivered event from crediting twice
    try:
        tx = await db.payment_transactions.insert_one({
            "user_id": user_object_id,
            "plan_id": plan["_id"],
            "stripe_session_id": session.get("id"),
            "status": "completed",
            "credits_added": plan["credits"],
            "amount_cents": amount_cents,
            "purchase_type": purchase_type,
            "fulfilled": False,
            "created_at": datetime.utcnow(),
        })
        tx_id = tx.inserted_id
    except DuplicateKeyError:
        existing = await db.payment_transactions.find_one({"stripe_session_id": session.get("id")})
        if existing.get("fulfilled", True):
            logger.info("[WEBHOOK] Session already credited", session_id=session.get("id"))
            return {"received": True, "duplicate": True}
        logger.info("[WEBHOOK] Resuming fulfilment of credited session", session_id=session.get("id"))
        tx_id = existing["_id"]
    else:
        try:
            await db.users.update_one({"_id": user_object_id}, {"$inc": {"credits": plan["credits"]}})
        except Exception:
            await db.payment_transactions.delete_one({"_id": tx_id})
            raise
        logger.info("[WEBHOOK] Credits updated", user_id=user_id, credits_added=plan["credits"])

    if purchase_type == PlanType.NEW_ACCOUNT.value:
        account = await allocate_account(plan["_id"], user_object_id, transaction_id=tx_id)
        if account:
            logger.info("[WEBHOOK] Account assigned to user", account_id=str(account["_id"]))
            await _deliver_account(user, plan, account)
        else:
            logger.warning("[WEBHOOK] No available account found", plan_id=plan_id)

    if purchase_type == PlanType.RECHARGE.value:
        # the buyer submits the link on the success page
        await db.recharge_requests.update_one(
            {"transaction_id": tx_id},
            {"$setOnInsert": {
                "user_id": user_object_id,
                "plan_id": plan["_id"],
                "recharge_link": "",
                "status": RechargeStatus.PENDING_LINK.value,
                "credits_added": plan["credits"],
                "completed_at": None,
                "created_at": datetime.utcnow(),
            }},
            upsert=True
        )
        logger.info("[WEBHOOK] Recharge request created with pending_link status", user_id=user_id)

    await db.payment_transactions.update_one({"_id": tx_id}, {"$set": {"fulfilled": True}})

    payment = payment_payload(
        user_id=user_id,
        plan_id=plan_id,
        amount_cents=amount_cents,
        affiliate_id=metadata.get("affiliate_id"),
        affiliate_coupon_id=metadata.get("coupon_id"),
        environment=environment,
    )
    return {"received": True, "sync": await sync_payment_quietly(payment)}


async def handle_stripe_webhook(body: bytes, signature: Optional[str]) -> dict:
    logger.info("[WEBHOOK] Webhook received")
    event = parse_event(body, signature)
    environment = stripe_environment()
    logger.info("[WEBHOOK] Event type", type=event["type"], environment=environment)

    await record_event(event, environment)

    sync_fields = None
    if event["type"] == CHECKOUT_COMPLETED:
        session = (event.get("data") or {}).get("object") or {}
        logger.info("[WEBHOOK] Checkout session completed", session_id=session.get("id"))
        result = await credit_checkout_session(session, environment)
        if result.get("duplicate"):
            return {"received": True, "duplicate": True}
        sync_fields = result["sync"]

    await mark_event_processed(event.get("id"), sync_fields)
    logger.info("[WEBHOOK] Event marked as processed", sync_status=(sync_fields or {}).get("sync_status"))
    return {"received": True}
