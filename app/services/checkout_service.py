import stripe
from fastapi import HTTPException, status
from app.db.mongo import db
from app.config import get_settings
from app.clients.platform import platform_client
from app.models.checkout import CheckoutRequest
from app.services.auth_service import authenticate_bearer
from app.services.coupon_service import validate_coupon_code, coupon_attribution, save_user_coupon, stored_coupon
from app.services.account_service import count_available_accounts
from app.utils.enums.plan import PlanType
from app.utils.mongo import to_object_id
from app.utils.logger import logger


async def find_customer_id(email: str):
    customers = await stripe.Customer.list_async(email=email, limit=1)
    if customers.data:
        return customers.data[0].id
    return None


async def resolve_stripe_coupon(coupon) -> str:
    """Stripe coupon id for a platform coupon, created on first use."""
    try:
        existing = await stripe.Coupon.retrieve_async(coupon.coupon_id)
        logger.info("[CHECKOUT] Found existing Stripe coupon", stripe_coupon_id=existing.id)
        return existing.id
    except stripe.StripeError:
        params = {"id": coupon.coupon_id, "name": coupon.name}
        if coupon.type == "percentage":
            params["percent_off"] = coupon.value
        else:
            params["amount_off"] = int(round(coupon.value * 100))
            params["currency"] = "brl"
        created = await stripe.Coupon.create_async(**params)
        logger.info("[CHECKOUT] Created new Stripe coupon", stripe_coupon_id=created.id)
        return created.id


async def _load_plan(plan_id: str):
    plan = await db.credit_plans.find_one({"_id": to_object_id(plan_id, "plan id")})
    if not plan or not plan.get("active", True):
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Plan not found")
    return plan


async def create_checkout_session(authorization: str, payload: CheckoutRequest, origin: str = None) -> dict:
    logger.info("[CHECKOUT] Function started")

    user = await authenticate_bearer(authorization)
    user_id = str(user["_id"])
    logger.info("[CHECKOUT] User authenticated", user_id=user_id)

    if not payload.priceId or not payload.planId:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="priceId and planId are required")
    if not payload.purchaseType:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="purchaseType is required")
    if payload.purchaseType not in (PlanType.NEW_ACCOUNT.value, PlanType.RECHARGE.value):
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=f"Invalid purchaseType: {payload.purchaseType}")

    plan = await _load_plan(payload.planId)
    if plan.get("stripe_price_id") and plan["stripe_price_id"] != payload.priceId:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="priceId does not match plan")
    if payload.purchaseType != plan.get("plan_type", PlanType.NEW_ACCOUNT.value):
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="purchaseType does not match plan")
    if payload.purchaseType == PlanType.NEW_ACCOUNT.value and await count_available_accounts(plan["_id"]) == 0:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="No accounts available for this plan")

    logger.info(
        "[CHECKOUT] Request body parsed",
        plan_id=payload.planId,
        purchase_type=payload.purchaseType,
        coupon_code=payload.couponCode,
    )

    customer_id = await find_customer_id(user["email"])

    product_id = platform_client.product_id
    coupon_metadata = {
        "coupon_id": None,
        "coupon_code": None,
        "affiliate_id": None,
        "affiliate_product_id": product_id,
    }
    stripe_coupon_id = None

    if payload.couponCode:
        try:
            coupon = await validate_coupon_code(payload.couponCode)
            if coupon:
                stripe_coupon_id = await resolve_stripe_coupon(coupon)
                coupon_metadata = coupon_attribution(coupon, product_id)
                await save_user_coupon(user_id, coupon)
                logger.info("[CHECKOUT] Coupon metadata set", **coupon_metadata)
        except Exception as e:
            # purchase continues without a discount
            stripe_coupon_id = None
            logger.warning("[CHECKOUT] Error applying coupon", error=str(e))

    if not coupon_metadata["coupon_id"]:
        sticky = stored_coupon(user)
        if sticky:
            coupon_metadata = {**sticky, "affiliate_product_id": product_id}
            logger.info("[CHECKOUT] Using stored coupon for attribution (no discount applied)", **coupon_metadata)

    return_origin = origin or get_settings().DEFAULT_ORIGIN
    session_config = {
        "line_items": [{"price": payload.priceId, "quantity": 1}],
        "mode": "payment",
        "ui_mode": "embedded",
        "return_url": f"{return_origin}/payment-success?session_id={{CHECKOUT_SESSION_ID}}",
        "metadata": {
            "user_id": user_id,
            "plan_id": payload.planId,
            "purchase_type": payload.purchaseType,
            "coupon_id": coupon_metadata["coupon_id"] or "",
            "coupon_code": coupon_metadata["coupon_code"] or "",
            "affiliate_id": coupon_metadata["affiliate_id"] or "",
            "affiliate_product_id": coupon_metadata["affiliate_product_id"] or "",
        },
    }
    if customer_id:
        session_config["customer"] = customer_id
    else:
        session_config["customer_email"] = user["email"]

    if stripe_coupon_id:
        session_config["discounts"] = [{"coupon": stripe_coupon_id}]
        logger.info("[CHECKOUT] Discount applied to session", stripe_coupon_id=stripe_coupon_id)

    session = await stripe.checkout.Session.create_async(**session_config)
    logger.info("[CHECKOUT] Checkout session created", session_id=session.id)

    return {"clientSecret": session.client_secret}
