from fastapi import HTTPException, APIRouter, status, Depends
from app.deps.auth_deps import get_current_user
from app.services.user_service import fetch_user_by_id, edit_user_details, fetch_dashboard
from app.services.account_service import fetch_user_accounts
from app.utils.mongo import convert_mongo
from app.models.user import UserUpdate


router = APIRouter()


@router.get("/me")
async def get_user_details(current_user = Depends(get_current_user)):
    try:
        details = await fetch_user_by_id(current_user["_id"])
        return {"message": "User Details Fetched Successfully", "result": convert_mongo(details)}
    except HTTPException as http_err:
        raise http_err
    except Exception as e:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Error while fetching user details: {str(e)}"
        )


@router.patch("/me")
async def update_user_details(payload: UserUpdate, current_user = Depends(get_current_user)):
    try:
        update_data = payload.dict(exclude_unset=True)
        updated_user = await edit_user_details(current_user["_id"], update_data)
        return {"message": "User Updated Successfully", "result": convert_mongo(updated_user)}
    except HTTPException as http_err:
        raise http_err
    except Exception as e:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Error while updating user details: {str(e)}"
        )


@router.get("/me/dashboard")
async def get_dashboard(current_user = Depends(get_current_user)):
    try:
        result = await fetch_dashboard(current_user["_id"])
        return {"message": "Dashboard Fetched Successfully", "result": convert_mongo(result)}
    except HTTPException as http_err:
        raise http_err
    except Exception as e:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Error while fetching dashboard: {str(e)}"
        )


@router.get("/me/accounts")
async def get_my_accounts(current_user = Depends(get_current_user)):
    try:
        accounts = await fetch_user_accounts(current_user["_id"])
        return {"message": "Accounts Fetched Successfully", "result": convert_mongo(accounts)}
    except HTTPException as http_err:
        raise http_err
    except Exception as e:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Error while fetching accounts: {str(e)}"
        )
