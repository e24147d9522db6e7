from fastapi import HTTPException, status
from app.db.mongo import db
from datetime import datetime
from app.utils.enums.recharge import RechargeStatus
from app.utils.mongo import to_object_id
from app.utils.logger import logger


async def _plan_names(plan_ids):
    plans = await db.credit_plans.find({"_id": {"$in": list(plan_ids)}}).to_list(length=None)
    return {p["_id"]: p["name"] for p in plans}


async def fetch_user_recharges(user_id):
    try:
        recharges = await db.recharge_requests.find(
            {"user_id": to_object_id(user_id, "user id")}
        ).sort("created_at", -1).to_list(length=None)
        plan_names = await _plan_names({r["plan_id"] for r in recharges})
        for recharge in recharges:
            recharge["plan_name"] = plan_names.get(recharge["plan_id"])
        return recharges
    except HTTPException as http_err:
        raise http_err
    except Exception as e:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Error while fetching recharge requests: {str(e)}"
        )


async def submit_recharge_link(id, user_id, recharge_link: str):
    try:
        object_id = to_object_id(id, "recharge id")
        recharge = await db.recharge_requests.find_one({"_id": object_id, "user_id": to_object_id(user_id, "user id")})
        if not recharge:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Recharge request not found")
        if recharge["status"] not in (RechargeStatus.PENDING_LINK.value, RechargeStatus.PENDING.value):
            raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Recharge request is already finished")

        await db.recharge_requests.update_one({"_id": object_id}, {"$set": {
            "recharge_link": recharge_link,
            "status": RechargeStatus.PENDING.value,
        }})
        logger.info("[RECHARGE] Link submitted", recharge_id=str(object_id))
        return await db.recharge_requests.find_one({"_id": object_id})
    except HTTPException as http_err:
        raise http_err
    except Exception as e:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Error while submitting recharge link: {str(e)}"
        )


async def fetch_all_recharges(status_filter: str = None):
    try:
        query = {}
        if status_filter:
            query["status"] = status_filter
        recharges = await db.recharge_requests.find(query).sort("created_at", -1).to_list(length=None)

        user_ids = list({r["user_id"] for r in recharges})
        users = await db.users.find(
            {"_id": {"$in": user_ids}},
            {"name": 1, "email": 1, "phone": 1}
        ).to_list(length=None)
        user_map = {u["_id"]: u for u in users}
        plan_names = await _plan_names({r["plan_id"] for r in recharges})

        for recharge in recharges:
            recharge["user"] = user_map.get(recharge["user_id"])
            recharge["plan_name"] = plan_names.get(recharge["plan_id"])

        pending_count = await db.recharge_requests.count_documents({"status": RechargeStatus.PENDING.value})
        return {"recharges": recharges, "pending_count": pending_count}
    except HTTPException as http_err:
        raise http_err
    except Exception as e:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Error while fetching recharge requests: {str(e)}"
        )


async def change_recharge_status(id, new_status: RechargeStatus):
    try:
        object_id = to_object_id(id, "recharge id")
        update_data = {"status": new_status.value}
        if new_status == RechargeStatus.COMPLETED:
            update_data["completed_at"] = datetime.utcnow()
        else:
            update_data["completed_at"] = None

        result = await db.recharge_requests.update_one({"_id": object_id}, {"$set": update_data})
        if result.matched_count == 0:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Recharge request not found")

        logger.info("[RECHARGE] Status changed", recharge_id=str(object_id), status=new_status.value)
        return await db.recharge_requests.find_one({"_id": object_id})
    except HTTPException as http_err:
        raise http_err
    except Exception as e:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Error while updating recharge status: {str(e)}"
        )
