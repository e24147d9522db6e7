import re
from fastapi import HTTPException, status
from app.db.mongo import db
from datetime import datetime
from app.services.account_service import fetch_user_accounts
from app.services.recharge_service import fetch_user_recharges
from app.utils.mongo import to_object_id
from app.utils.logger import logger

# never leaves the service
PRIVATE_FIELDS = {"password_hash": 0}


async def fetch_users(type_filter: str = None, search: str = None):
    try:
        query = {}
        if type_filter:
            query["role"] = type_filter
        if search:
            pattern = {"$regex": re.escape(search), "$options": "i"}
            query["$or"] = [{"name": pattern}, {"email": pattern}, {"phone": pattern}]

        cursor = db.users.find(query, PRIVATE_FIELDS).sort("created_at", -1)
        return await cursor.to_list(length=None)
    except HTTPException as http_err:
        raise http_err
    except Exception as e:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Error while fetching users: {str(e)}"
        )


async def fetch_user_by_id(id):
    try:
        user = await db.users.find_one({"_id": to_object_id(id, "user id")}, PRIVATE_FIELDS)
        if not user:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="User Not Found")
        return user
    except HTTPException as http_err:
        raise http_err
    except Exception as e:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Error while fetching user by id: {str(e)}"
        )


async def edit_user_details(user_id, update_data):
    try:
        object_id = to_object_id(user_id, "user id")
        update_fields = {}
        for field in ["name", "phone"]:
            if field in update_data and update_data[field] is not None:
                update_fields[field] = update_data[field]

        if not update_fields:
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="No fields to update")

        result = await db.users.update_one({"_id": object_id}, {"$set": update_fields})
        if result.matched_count == 0:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="User not found")

        return await db.users.find_one({"_id": object_id}, PRIVATE_FIELDS)
    except HTTPException as http_err:
        raise http_err
    except Exception as e:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Error while editing logged in user: {str(e)}"
        )


async def fetch_user_transactions(user_id):
    transactions = await db.payment_transactions.find(
        {"user_id": to_object_id(user_id, "user id")}
    ).sort("created_at", -1).to_list(length=None)
    plan_ids = list({t["plan_id"] for t in transactions})
    plans = await db.credit_plans.find({"_id": {"$in": plan_ids}}).to_list(length=None)
    plan_names = {p["_id"]: p["name"] for p in plans}
    for tx in transactions:
        tx["plan_name"] = plan_names.get(tx["plan_id"])
    return transactions


async def fetch_dashboard(user_id):
    try:
        user = await fetch_user_by_id(user_id)
        transactions = await fetch_user_transactions(user_id)
        completed = [t for t in transactions if t.get("status") == "completed"]
        return {
            "credits": user.get("credits", 0),
            "transactions": transactions,
            "accounts": await fetch_user_accounts(user_id),
            "recharges": await fetch_user_recharges(user_id),
            "total_credits_added": sum(t.get("credits_added", 0) for t in completed),
            "total_spent_cents": sum(t.get("amount_cents", 0) for t in completed),
        }
    except HTTPException as http_err:
        raise http_err
    except Exception as e:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Error while fetching dashboard: {str(e)}"
        )


async def assign_credits_to_user(id, payload, admin_id):
    try:
        object_id = to_object_id(id, "user id")
        result = await db.users.update_one({"_id": object_id}, {"$inc": {"credits": payload.credits}})
        if result.matched_count == 0:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="User Not Found")

        await db.credit_adjustments.insert_one({
            "user_id": object_id,
            "credits_change": payload.credits,
            "reason": payload.reason,
            "granted_by": to_object_id(admin_id, "admin id"),
            "created_at": datetime.utcnow()
        })
        logger.info("[USERS] Credits granted", user_id=str(object_id), credits=payload.credits)

        user = await db.users.find_one({"_id": object_id}, {"credits": 1})
        return user["credits"]
    except HTTPException as http_err:
        raise http_err
    except Exception as e:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Error while assigning credits to user: {str(e)}"
        )


async def fetch_recent_transactions(limit: int = 50):
    try:
        transactions = await db.payment_transactions.find().sort("created_at", -1).to_list(length=limit)
        user_ids = list({t["user_id"] for t in transactions})
        users = await db.users.find({"_id": {"$in": user_ids}}, {"name": 1, "email": 1}).to_list(length=None)
        user_map = {u["_id"]: u for u in users}
        for tx in transactions:
            tx["user"] = user_map.get(tx["user_id"])
        return transactions
    except HTTPException as http_err:
        raise http_err
    except Exception as e:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Error while fetching transactions: {str(e)}"
        )
