import re
from datetime import datetime
import stripe
from app.db.mongo import db
from app.utils.enums.plan import PlanType
from app.utils.logger import logger

CREDITS_IN_NAME = re.compile(r"(\d+)\s*cr[eé]ditos?", re.IGNORECASE)


def credits_from_product(product) -> int:
    match = CREDITS_IN_NAME.search(product.get("name") or "")
    if match:
        return int(match.group(1))
    metadata = product.get("metadata") or {}
    try:
        return int(metadata.get("credits") or 0)
    except (TypeError, ValueError):
        return 0


async def _upsert_plan_from_price(product, price) -> dict:
    name = product.get("name")
    credits = credits_from_product(product)
    price_cents = price.get("unit_amount") or 0
    stripe_price_id = price.get("id")

    existing = await db.credit_plans.find_one({"stripe_price_id": stripe_price_id})
    if existing:
        await db.credit_plans.update_one({"_id": existing["_id"]}, {"$set": {
            "name": name,
            "credits": credits,
            "price_cents": price_cents,
            "active": True,
        }})
        return {"action": "updated", "name": name, "credits": credits, "price_cents": price_cents}

    by_name = await db.credit_plans.find_one({"name": name})
    if by_name:
        await db.credit_plans.update_one({"_id": by_name["_id"]}, {"$set": {
            "stripe_price_id": stripe_price_id,
            "credits": credits or by_name.get("credits", 0),
            "price_cents": price_cents or by_name.get("price_cents", 0),
            "active": True,
        }})
        return {"action": "linked", "name": name, "stripe_price_id": stripe_price_id}

    if credits > 0:
        await db.credit_plans.insert_one({
            "name": name,
            "credits": credits,
            "price_cents": price_cents,
            "plan_type": PlanType.NEW_ACCOUNT.value,
            "stripe_price_id": stripe_price_id,
            "competitor_price_cents": None,
            "active": True,
            "created_at": datetime.utcnow(),
        })
        return {"action": "created", "name": name, "credits": credits, "price_cents": price_cents}

    return {"action": "skipped", "name": name, "reason": "Could not determine credits amount"}


async def import_stripe_products() -> dict:
    products = await stripe.Product.list_async(active=True, limit=100)
    prices = await stripe.Price.list_async(active=True, limit=100)
    logger.info("[STRIPE-SYNC] Fetched Stripe catalogue", products=len(products.data), prices=len(prices.data))

    results = []
    for product in products.data:
        product_prices = [p for p in prices.data if p.get("product") == product.get("id")]
        if not product_prices:
            logger.info("[STRIPE-SYNC] Product has no prices, skipping", product_id=product.get("id"))
            continue

        # first active price is the main one
        try:
            results.append(await _upsert_plan_from_price(product, product_prices[0]))
        except Exception as e:
            logger.error("[STRIPE-SYNC] Error syncing product", name=product.get("name"), error=str(e))
            results.append({"action": "error", "name": product.get("name"), "error": str(e)})

    synced = len([r for r in results if r["action"] not in ("error", "skipped")])
    logger.info("[STRIPE-SYNC] Sync completed", synced=synced, total=len(results))
    return {"success": True, "results": results, "message": f"Synced {synced} products"}
