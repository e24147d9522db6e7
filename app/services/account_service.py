from fastapi import HTTPException, status
from pymongo import ReturnDocument
from app.db.mongo import db
from datetime import datetime
from app.utils.enums.plan import PlanType
from app.utils.mongo import to_object_id


async def count_available_accounts(plan_id) -> int:
    return await db.accounts.count_documents({"plan_id": to_object_id(plan_id, "plan id"), "is_used": False})


async def allocate_account(plan_id, user_id, transaction_id=None):
    """Claim one unused account of ``plan_id`` for ``user_id``.

    With a ``transaction_id`` the claim is tied to that purchase, and an
    account already claimed for it is returned instead of a new one.
    Returns the claimed document or ``None`` when the plan has no stock.
    """
    if transaction_id is not None:
        claimed = await db.accounts.find_one({"transaction_id": transaction_id})
        if claimed:
            return claimed

    return await db.accounts.find_one_and_update(
        {"plan_id": to_object_id(plan_id, "plan id"), "is_used": False},
        {"$set": {
            "is_used": True,
            "used_by": to_object_id(user_id, "user id"),
            "used_at": datetime.utcnow(),
            "transaction_id": transaction_id,
        }},
        sort=[("created_at", 1)],
        return_document=ReturnDocument.AFTER
    )


async def add_account(payload):
    try:
        plan = await db.credit_plans.find_one({"_id": to_object_id(payload.plan_id, "plan id")})
        if not plan:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Plan not found")
        if plan.get("plan_type") == PlanType.RECHARGE.value:
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Recharge plans do not hold accounts")

        res = await db.accounts.insert_one({
            "plan_id": plan["_id"],
            "account_data": payload.account_data,
            "is_used": False,
            "used_by": None,
            "used_at": None,
            "created_at": datetime.utcnow()
        })
        return str(res.inserted_id)
    except HTTPException as http_err:
        raise http_err
    except Exception as e:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Error while adding account: {str(e)}"
        )


async def fetch_accounts(plan_id: str = None, is_used: bool = None):
    try:
        query = {}
        if plan_id:
            query["plan_id"] = to_object_id(plan_id, "plan id")
        if is_used is not None:
            query["is_used"] = is_used

        accounts = await db.accounts.find(query).sort("created_at", -1).to_list(length=None)
        plan_ids = list({a["plan_id"] for a in accounts})
        plans = await db.credit_plans.find({"_id": {"$in": plan_ids}}).to_list(length=None)
        plan_names = {p["_id"]: p["name"] for p in plans}
        for account in accounts:
            account["plan_name"] = plan_names.get(account["plan_id"])
        return accounts
    except HTTPException as http_err:
        raise http_err
    except Exception as e:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Error while fetching accounts: {str(e)}"
        )


async def update_account_data(id, account_data: str):
    try:
        object_id = to_object_id(id, "account id")
        result = await db.accounts.update_one({"_id": object_id}, {"$set": {"account_data": account_data}})
        if result.matched_count == 0:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Account not found")
        return await db.accounts.find_one({"_id": object_id})
    except HTTPException as http_err:
        raise http_err
    except Exception as e:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Error while updating account: {str(e)}"
        )


async def mark_account_used(id):
    try:
        result = await db.accounts.update_one(
            {"_id": to_object_id(id, "account id")},
            {"$set": {"is_used": True, "used_at": datetime.utcnow()}}
        )
        if result.matched_count == 0:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Account not found")
    except HTTPException as http_err:
        raise http_err
    except Exception as e:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Error while marking account as used: {str(e)}"
        )


async def delete_account(id):
    try:
        result = await db.accounts.delete_one({"_id": to_object_id(id, "account id")})
        if result.deleted_count == 0:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Account not found")
    except HTTPException as http_err:
        raise http_err
    except Exception as e:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Error while deleting account: {str(e)}"
        )


async def fetch_user_accounts(user_id):
    try:
        accounts = await db.accounts.find(
            {"used_by": to_object_id(user_id, "user id")}
        ).sort("used_at", -1).to_list(length=None)
        plan_ids = list({a["plan_id"] for a in accounts})
        plans = await db.credit_plans.find({"_id": {"$in": plan_ids}}).to_list(length=None)
        plan_names = {p["_id"]: p["name"] for p in plans}
        return [
            {
                "_id": a["_id"],
                "account_data": a["account_data"],
                "used_at": a.get("used_at"),
                "plan_name": plan_names.get(a["plan_id"]),
            }
            for a in accounts
        ]
    except HTTPException as http_err:
        raise http_err
    except Exception as e:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Error while fetching user accounts: {str(e)}"
        )
