from fastapi import APIRouter, HTTPException, status, Depends, Query
from app.models.recharge import RechargeLinkRequest, RechargeStatusUpdate
from app.deps.auth_deps import get_current_user
from app.services.recharge_service import fetch_user_recharges, submit_recharge_link, fetch_all_recharges, change_recharge_status
from app.utils.admin import is_user_admin
from app.utils.mongo import convert_mongo


router = APIRouter()
admin_router = APIRouter()


@router.get("")
async def get_my_recharges(current_user = Depends(get_current_user)):
    try:
        recharges = await fetch_user_recharges(current_user["_id"])
        return {"message": "Recharge Requests Fetched Successfully", "result": convert_mongo(recharges)}
    except HTTPException as http_err:
        raise http_err
    except Exception as e:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Error while fetching recharge requests: {str(e)}"
        )


@router.post("/{id}/link")
async def add_recharge_link(id: str, payload: RechargeLinkRequest, current_user = Depends(get_current_user)):
    try:
        recharge = await submit_recharge_link(id, current_user["_id"], payload.recharge_link)
        return {"message": "Recharge Link Submitted Successfully", "result": convert_mongo(recharge)}
    except HTTPException as http_err:
        raise http_err
    except Exception as e:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Error while submitting recharge link: {str(e)}"
        )


@admin_router.get("")
async def get_all_recharges(status_filter: str = Query(None, alias="status"), current_user = Depends(get_current_user)):
    try:
        if not is_user_admin(current_user):
            raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="You don't have access to this feature")

        result = await fetch_all_recharges(status_filter)
        return {"message": "Recharge Requests Fetched Successfully", "result": convert_mongo(result)}
    except HTTPException as http_err:
        raise http_err
    except Exception as e:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Error while fetching recharge requests: {str(e)}"
        )


@admin_router.patch("/{id}")
async def update_recharge_status(id: str, payload: RechargeStatusUpdate, current_user = Depends(get_current_user)):
    try:
        if not is_user_admin(current_user):
            raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="You don't have access to this feature")

        recharge = await change_recharge_status(id, payload.status)
        return {"message": "Recharge Status Updated Successfully", "result": convert_mongo(recharge)}
    except HTTPException as http_err:
        raise http_err
    except Exception as e:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Error while updating recharge status: {str(e)}"
        )
