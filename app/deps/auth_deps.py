from fastapi.security import OAuth2PasswordBearer
from fastapi import HTTPException, status, Depends
from app.services.auth_service import decode_access_token, get_user_by_id
from app.utils.admin import is_user_admin

oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/auth/login")

async def get_current_user(token: str = Depends(oauth2_scheme)):
    user_id = decode_access_token(token)
    user = await get_user_by_id(user_id)
    if not user:
        raise HTTPException(status_code=404, detail="User not found")
    if not is_user_admin(user) and not user.get("is_enabled", True):
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Account Disabled")
    user["_id"] = str(user["_id"])
    return user