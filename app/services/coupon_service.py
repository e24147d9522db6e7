from typing import Optional
from fastapi import HTTPException, status
from app.db.mongo import db
from app.clients.platform import platform_client
from app.models.coupon import CouponData
from app.utils.mongo import to_object_id
from app.utils.pricing import apply_discount, format_brl
from app.utils.logger import logger


async def validate_coupon_code(code: str) -> Optional[CouponData]:
    """Look ``code`` up on the platform. Errors are logged and read as invalid."""
    if not code or not code.strip():
        return None
    try:
        raw = await platform_client.validate_coupon(code)
    except Exception as e:
        logger.warning("[COUPON] Error validating coupon", code=code, error=str(e))
        return None

    if not raw:
        return None

    coupon = CouponData.model_validate(raw)
    if not coupon.is_valid:
        logger.info("[COUPON] Coupon not valid or not active", code=code)
        return None
    return coupon


def price_with_coupon(price_cents: int, coupon: Optional[CouponData]) -> dict:
    final_cents = apply_discount(price_cents, coupon.type, coupon.value) if coupon else price_cents
    return {
        "price_cents": price_cents,
        "final_price_cents": final_cents,
        "display_price": format_brl(final_cents),
        "original_display_price": format_brl(price_cents),
    }


def coupon_attribution(coupon: CouponData, default_product_id: str) -> dict:
    return {
        "coupon_id": coupon.affiliate_coupon_id,
        "coupon_code": coupon.custom_code or coupon.code,
        "affiliate_id": coupon.affiliate_id,
        "affiliate_product_id": coupon.product_id or default_product_id,
    }


async def save_user_coupon(user_id, coupon: CouponData):
    await db.users.update_one(
        {"_id": to_object_id(user_id, "user id")},
        {"$set": {
            "last_coupon_code": coupon.custom_code or coupon.code,
            "last_affiliate_id": coupon.affiliate_id,
            "last_affiliate_coupon_id": coupon.affiliate_coupon_id,
        }}
    )


async def clear_user_coupon(user_id):
    result = await db.users.update_one(
        {"_id": to_object_id(user_id, "user id")},
        {"$set": {
            "last_coupon_code": None,
            "last_affiliate_id": None,
            "last_affiliate_coupon_id": None,
        }}
    )
    if result.matched_count == 0:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="User Not Found")


def stored_coupon(user: dict) -> Optional[dict]:
    if not user:
        return None
    if not (user.get("last_affiliate_coupon_id") or user.get("last_affiliate_id") or user.get("last_coupon_code")):
        return None
    return {
        "coupon_code": user.get("last_coupon_code"),
        "affiliate_id": user.get("last_affiliate_id"),
        "coupon_id": user.get("last_affiliate_coupon_id"),
    }
