from fastapi import APIRouter, HTTPException, status, Depends
from app.models.plan import PlanRequest, PlanUpdateRequest, PlanSyncRequest
from app.deps.auth_deps import get_current_user
from app.clients.platform import PlatformError
from app.services.plan_service import fetch_storefront_plans, fetch_plans, add_plan_to_db, update_plan_by_id
from app.services.sync_service import sync_plans
from app.services.stripe_sync_service import import_stripe_products
from app.utils.admin import is_user_admin
from app.utils.mongo import convert_mongo
from app.utils.logger import logger
import stripe


router = APIRouter()
admin_router = APIRouter()


@router.get("")
async def get_storefront_plans():
    try:
        plans = await fetch_storefront_plans()
        return {"message": "Plans Fetched Successfully", "result": convert_mongo(plans)}
    except HTTPException as http_err:
        raise http_err
    except Exception as e:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Error while fetching plans: {str(e)}"
        )


@admin_router.get("")
async def get_all_plans(current_user = Depends(get_current_user)):
    try:
        if not is_user_admin(current_user):
            raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="You don't have access to this feature")

        plans = await fetch_plans()
        return {"message": "Plans Fetched Successfully", "result": convert_mongo(plans)}
    except HTTPException as http_err:
        raise http_err
    except Exception as e:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Error while fetching plans: {str(e)}"
        )


@admin_router.post("", status_code=status.HTTP_201_CREATED)
async def add_plan(payload: PlanRequest, current_user = Depends(get_current_user)):
    try:
        if not is_user_admin(current_user):
            raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="You don't have access to this feature")

        plan_id = await add_plan_to_db(payload)
        return {"message": "Plan Added Successfully", "result": {"id": plan_id}}
    except HTTPException as http_err:
        raise http_err
    except Exception as e:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Error while adding plan: {str(e)}"
        )


@admin_router.patch("/{id}")
async def update_plan(id: str, plan_update: PlanUpdateRequest, current_user = Depends(get_current_user)):
    try:
        if not is_user_admin(current_user):
            raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="You don't have access to this feature")

        update_data = plan_update.dict(exclude_unset=True)
        if not update_data:
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="No fields to update")

        updated_plan = await update_plan_by_id(update_data, id)
        return {"message": "Plan Updated Successfully", "result": convert_mongo(updated_plan)}
    except HTTPException as http_err:
        raise http_err
    except Exception as e:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Error while updating plan: {str(e)}"
        )


@admin_router.post("/sync")
async def sync_plans_to_platform(payload: PlanSyncRequest, current_user = Depends(get_current_user)):
    try:
        if not is_user_admin(current_user):
            raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="You don't have access to this feature")

        result = await sync_plans(payload.action, payload.plan_id)
        return {"message": result["message"], "result": result}
    except HTTPException as http_err:
        raise http_err
    except PlatformError as e:
        logger.warning("[SYNC] Plan sync rejected", error=str(e))
        raise HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail=str(e))
    except Exception as e:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Error while syncing plans: {str(e)}"
        )


@admin_router.post("/import-stripe")
async def import_plans_from_stripe(current_user = Depends(get_current_user)):
    try:
        if not is_user_admin(current_user):
            raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="You don't have access to this feature")

        result = await import_stripe_products()
        return {"message": result["message"], "result": result["results"]}
    except HTTPException as http_err:
        raise http_err
    except stripe.StripeError as e:
        logger.error("[STRIPE-SYNC] Stripe request failed", error=str(e))
        raise HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail=f"Stripe error: {str(e)}")
    except Exception as e:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Error while importing Stripe products: {str(e)}"
        )
