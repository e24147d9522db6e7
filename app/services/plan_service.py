from fastapi import HTTPException, status
from app.db.mongo import db
from datetime import datetime
from app.services.account_service import count_available_accounts
from app.services.sync_service import sync_plan_quietly
from app.utils.enums.plan import PlanType
from app.utils.mongo import to_object_id
from app.utils.pricing import format_brl, competitor_discount_percent


def _with_display_fields(plan: dict) -> dict:
    plan["display_price"] = format_brl(plan.get("price_cents") or 0)
    plan["competitor_display_price"] = (
        format_brl(plan["competitor_price_cents"]) if plan.get("competitor_price_cents") else None
    )
    plan["competitor_discount_percent"] = competitor_discount_percent(
        plan.get("price_cents") or 0, plan.get("competitor_price_cents")
    )
    return plan


async def fetch_storefront_plans():
    try:
        plans = await db.credit_plans.find({"active": True}).sort("credits", 1).to_list(length=None)
        result = {"new_account": [], "recharge": []}
        for plan in plans:
            plan = _with_display_fields(plan)
            if plan.get("plan_type") == PlanType.RECHARGE.value:
                result["recharge"].append(plan)
            else:
                plan["available_accounts"] = await count_available_accounts(plan["_id"])
                result["new_account"].append(plan)
        return result
    except HTTPException as http_err:
        raise http_err
    except Exception as e:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Error while fetching plans: {str(e)}"
        )


async def fetch_plans():
    try:
        plans = await db.credit_plans.find().sort("credits", 1).to_list(length=None)
        return [_with_display_fields(p) for p in plans]
    except HTTPException as http_err:
        raise http_err
    except Exception as e:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Error while fetching plans: {str(e)}"
        )


async def add_plan_to_db(payload):
    try:
        res = await db.credit_plans.insert_one({
            "name": payload.name,
            "credits": payload.credits,
            "price_cents": payload.price_cents,
            "plan_type": payload.plan_type.value,
            "stripe_price_id": payload.stripe_price_id,
            "competitor_price_cents": payload.competitor_price_cents,
            "active": payload.active,
            "created_at": datetime.utcnow()
        })
        await sync_plan_quietly(res.inserted_id)
        return str(res.inserted_id)
    except HTTPException as http_err:
        raise http_err
    except Exception as e:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Error while adding plan: {str(e)}"
        )


async def update_plan_by_id(update_data, id):
    try:
        object_id = to_object_id(id, "plan id")
        if "plan_type" in update_data and update_data["plan_type"] is not None:
            update_data["plan_type"] = PlanType(update_data["plan_type"]).value

        result = await db.credit_plans.update_one({"_id": object_id}, {"$set": update_data})
        if result.matched_count == 0:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Plan not found")

        await sync_plan_quietly(object_id)
        updated_plan = await db.credit_plans.find_one({"_id": object_id})
        return _with_display_fields(updated_plan)
    except HTTPException as http_err:
        raise http_err
    except Exception as e:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Error while updating plan: {str(e)}"
        )
