from fastapi import APIRouter, HTTPException, status
from app.models.user import UserCreate
from app.models.login import LoginRequest
from app.services.auth_service import create_access_token, create_user, login_user
from app.services.sync_service import sync_user_quietly
from app.utils.mongo import convert_mongo
from app.utils.logger import logger


router = APIRouter()


def _public_user(user: dict) -> dict:
    user_dict = convert_mongo(dict(user))
    user_dict.pop("password_hash", None)
    return user_dict


@router.post("/signup", status_code=status.HTTP_201_CREATED)
async def signup(payload: UserCreate):
    try:
        user = await create_user(payload)
        await sync_user_quietly(user["_id"])

        token = create_access_token(subject=str(user["_id"]))
        return {"message": "User Signed Up Successfully", "token": token, "user": _public_user(user)}
    except HTTPException as http_err:
        raise http_err
    except Exception as e:
        logger.error("[AUTH] Signup failed", error=str(e))
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Unexpected error: {str(e)}"
        )


@router.post("/login")
async def login(payload: LoginRequest):
    try:
        user = await login_user(payload.email, payload.password)
        token = create_access_token(subject=str(user["_id"]))
        return {"message": "User Logged In Successfully", "token": token, "user": _public_user(user)}
    except HTTPException as http_err:
        raise http_err
    except Exception as e:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Unexpected error: {str(e)}"
        )
