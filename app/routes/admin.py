from fastapi import APIRouter, HTTPException, status, Depends, Query
from app.models.login import AdminLoginRequest
from app.models.user import CreditGrant
from app.deps.auth_deps import get_current_user
from app.clients.platform import PlatformError
from app.services.auth_service import get_user_by_email, verify_password, create_access_token
from app.services.user_service import fetch_users, fetch_user_by_id, assign_credits_to_user, fetch_recent_transactions
from app.services.sync_service import sync_user, fetch_stripe_events, retry_payment_sync
from app.utils.admin import is_user_admin
from app.utils.mongo import convert_mongo
from app.utils.logger import logger
import json
from bson import json_util

router = APIRouter()


@router.post("/login")
async def login_for_admin(payload: AdminLoginRequest):
    try:
        admin = await get_user_by_email(payload.email)
        if not admin or not verify_password(payload.password, admin.get("password_hash")):
            raise HTTPException(
                status_code=status.HTTP_401_UNAUTHORIZED,
                detail="Invalid email or password"
            )
        if not is_user_admin(admin):
            raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="You don't have access to this feature")

        token = create_access_token(subject=str(admin["_id"]))
        return {"message": "Admin Logged In Successfully", "token": token}
    except HTTPException as http_err:
        raise http_err
    except Exception as e:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Unexpected error: {str(e)}"
        )


@router.get("/users")
async def get_users(role: str = Query(None), search: str = Query(None), current_user = Depends(get_current_user)):
    try:
        if not is_user_admin(current_user):
            raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="You don't have access to this feature")

        users = await fetch_users(type_filter=role, search=search)
        result_json = json.loads(json_util.dumps(users))
        return {"message": "Users Fetched Successfully", "result": result_json}
    except HTTPException as http_err:
        raise http_err
    except Exception as e:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Error while fetching users: {str(e)}"
        )


@router.get("/users/{id}")
async def get_user(id: str, current_user = Depends(get_current_user)):
    try:
        if not is_user_admin(current_user):
            raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="You don't have access to this feature")

        user = await fetch_user_by_id(id)
        return {"message": "User Fetched Successfully", "result": convert_mongo(user)}
    except HTTPException as http_err:
        raise http_err
    except Exception as e:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Error while fetching user: {str(e)}"
        )


@router.post("/users/{id}/credits")
async def add_credits_to_user(id: str, payload: CreditGrant, current_user = Depends(get_current_user)):
    try:
        if not is_user_admin(current_user):
            raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="You don't have access to this feature")

        credits = await assign_credits_to_user(id, payload, current_user["_id"])
        return {"message": "Credits Added Successfully", "result": {"credits": credits}}
    except HTTPException as http_err:
        raise http_err
    except Exception as e:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Error while adding credits: {str(e)}"
        )


@router.post("/users/{id}/sync")
async def sync_user_to_platform(id: str, current_user = Depends(get_current_user)):
    try:
        if not is_user_admin(current_user):
            raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="You don't have access to this feature")

        result = await sync_user(id)
        return {"message": "User Synced Successfully", "result": result}
    except HTTPException as http_err:
        raise http_err
    except PlatformError as e:
        logger.warning("[SYNC] User sync rejected", user_id=id, error=str(e))
        raise HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail=str(e))
    except Exception as e:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Error while syncing user: {str(e)}"
        )


@router.get("/transactions")
async def get_transactions(limit: int = Query(50, ge=1, le=500), current_user = Depends(get_current_user)):
    try:
        if not is_user_admin(current_user):
            raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="You don't have access to this feature")

        transactions = await fetch_recent_transactions(limit)
        return {"message": "Transactions Fetched Successfully", "result": convert_mongo(transactions)}
    except HTTPException as http_err:
        raise http_err
    except Exception as e:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Error while fetching transactions: {str(e)}"
        )


@router.get("/stripe-events")
async def get_stripe_events(sync_status: str = Query(None), current_user = Depends(get_current_user)):
    try:
        if not is_user_admin(current_user):
            raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="You don't have access to this feature")

        events = await fetch_stripe_events(sync_status)
        return {"message": "Stripe Events Fetched Successfully", "result": convert_mongo(events)}
    except HTTPException as http_err:
        raise http_err
    except Exception as e:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Error while fetching stripe events: {str(e)}"
        )


@router.post("/stripe-events/{id}/retry-sync")
async def retry_stripe_event_sync(id: str, current_user = Depends(get_current_user)):
    try:
        if not is_user_admin(current_user):
            raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="You don't have access to this feature")

        result = await retry_payment_sync(id)
        return {"message": "Payment Synced Successfully", "result": result}
    except HTTPException as http_err:
        raise http_err
    except PlatformError as e:
        logger.warning("[SYNC] Payment retry rejected", event_id=id, error=str(e))
        raise HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail=str(e))
    except Exception as e:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Error while retrying payment sync: {str(e)}"
        )
