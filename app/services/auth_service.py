import bcrypt
import hashlib
from jose import jwt, JWTError
from datetime import datetime, timedelta
from fastapi import HTTPException, status
from pymongo.errors import DuplicateKeyError
from app.db.mongo import db
from app.config import get_settings
from app.utils.mongo import to_object_id
from app.utils.logger import logger


_settings = get_settings()

JWT_SECRET = _settings.JWT_SECRET
JWT_ALGO = _settings.JWT_ALGO
ACCESS_TOKEN_EXPIRE_MINUTES = _settings.ACCESS_TOKEN_EXPIRE_MINUTES


def _pw_to_digest(password: str) -> bytes:
    return hashlib.sha256(password.encode("utf-8")).digest()


def hash_password(password: str) -> str:
    digest = _pw_to_digest(password)
    salt = bcrypt.gensalt()
    hashed = bcrypt.hashpw(digest, salt)
    return hashed.decode("utf-8")


def verify_password(plain_password: str, stored_hash: str) -> bool:
    if not stored_hash:
        return False
    digest = _pw_to_digest(plain_password)
    return bcrypt.checkpw(digest, stored_hash.encode("utf-8"))


def create_access_token(subject: str, expires_delta: timedelta = None):
    now = datetime.utcnow()
    exp = now + (expires_delta or timedelta(minutes=ACCESS_TOKEN_EXPIRE_MINUTES))
    payload = {
        "sub": str(subject),
        "iat": now,
        "exp": exp,
    }
    return jwt.encode(payload, JWT_SECRET, algorithm=JWT_ALGO)


def decode_access_token(token: str) -> str:
    """Return the user id carried by ``token`` or raise 401."""
    try:
        payload = jwt.decode(token, JWT_SECRET, algorithms=[JWT_ALGO])
    except JWTError:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid token")

    user_id = payload.get("sub")
    if not user_id:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid auth token")
    return user_id


async def authenticate_bearer(authorization: str):
    """Resolve an ``Authorization`` header value to an enabled user document."""
    if not authorization:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="No authorization header provided")

    token = authorization.replace("Bearer ", "", 1).strip()
    if not token:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="No authorization header provided")

    user_id = decode_access_token(token)
    user = await get_user_by_id(user_id)
    if not user:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="User not authenticated")
    if user.get("role") != "admin" and not user.get("is_enabled", True):
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Account Disabled")
    return user


async def get_user_by_email(email: str):
    try:
        return await db.users.find_one({"email": email.strip().lower()})
    except HTTPException:
        raise
    except Exception as e:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Error fetching user by email: {str(e)}"
        )


async def get_user_by_id(user_id):
    try:
        return await db.users.find_one({"_id": to_object_id(user_id, "user id")})
    except HTTPException:
        raise
    except Exception as e:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Error fetching user by id: {str(e)}"
        )


async def create_user(payload, role: str = "user"):
    user_doc = {
        "email": payload.email.strip().lower(),
        "password_hash": hash_password(payload.password),
        "name": payload.name,
        "phone": payload.phone or "",
        "role": role,
        "credits": 0,
        "is_enabled": True,
        "last_coupon_code": None,
        "last_affiliate_id": None,
        "last_affiliate_coupon_id": None,
        "sync_status": None,
        "created_at": datetime.utcnow(),
    }
    try:
        res = await db.users.insert_one(user_doc)
    except DuplicateKeyError:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Este email já está cadastrado.")

    user_doc["_id"] = res.inserted_id
    logger.info("[AUTH] User created", user_id=str(res.inserted_id), role=role)
    return user_doc


async def login_user(email: str, password: str):
    user = await get_user_by_email(email)
    if not user:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Email não cadastrado")
    if not verify_password(password, user.get("password_hash")):
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Senha incorreta.")
    if not user.get("is_enabled", True):
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Account Disabled")
    return user
