from fastapi import APIRouter, HTTPException, status, Depends, Query
from typing import Optional
from app.models.account import AccountCreate, AccountUpdate
from app.deps.auth_deps import get_current_user
from app.services.account_service import add_account, fetch_accounts, update_account_data, mark_account_used, delete_account
from app.utils.admin import is_user_admin
from app.utils.mongo import convert_mongo


router = APIRouter()


@router.get("")
async def get_accounts(plan_id: str = Query(None), is_used: Optional[bool] = Query(None), current_user = Depends(get_current_user)):
    try:
        if not is_user_admin(current_user):
            raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="You don't have access to this feature")

        accounts = await fetch_accounts(plan_id, is_used)
        return {"message": "Accounts Fetched Successfully", "result": convert_mongo(accounts)}
    except HTTPException as http_err:
        raise http_err
    except Exception as e:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Error while fetching accounts: {str(e)}"
        )


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_account(payload: AccountCreate, current_user = Depends(get_current_user)):
    try:
        if not is_user_admin(current_user):
            raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="You don't have access to this feature")

        account_id = await add_account(payload)
        return {"message": "Account Added Successfully", "result": {"id": account_id}}
    except HTTPException as http_err:
        raise http_err
    except Exception as e:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Error while adding account: {str(e)}"
        )


@router.patch("/{id}")
async def update_account(id: str, payload: AccountUpdate, current_user = Depends(get_current_user)):
    try:
        if not is_user_admin(current_user):
            raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="You don't have access to this feature")

        account = await update_account_data(id, payload.account_data)
        return {"message": "Account Updated Successfully", "result": convert_mongo(account)}
    except HTTPException as http_err:
        raise http_err
    except Exception as e:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Error while updating account: {str(e)}"
        )


@router.post("/{id}/mark-used")
async def set_account_used(id: str, current_user = Depends(get_current_user)):
    try:
        if not is_user_admin(current_user):
            raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="You don't have access to this feature")

        await mark_account_used(id)
        return {"message": "Account Marked As Used Successfully"}
    except HTTPException as http_err:
        raise http_err
    except Exception as e:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Error while marking account as used: {str(e)}"
        )


@router.delete("/{id}")
async def remove_account(id: str, current_user = Depends(get_current_user)):
    try:
        if not is_user_admin(current_user):
            raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="You don't have access to this feature")

        await delete_account(id)
        return {"message": "Account Deleted Successfully"}
    except HTTPException as http_err:
        raise http_err
    except Exception as e:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Error while deleting account: {str(e)}"
        )
