from fastapi import APIRouter, HTTPException, status, Header
from fastapi.responses import JSONResponse
from app.models.checkout import CheckoutRequest
from app.services.checkout_service import create_checkout_session
from app.utils.logger import logger


router = APIRouter()


@router.post("")
async def create_checkout(
    payload: CheckoutRequest,
    authorization: str = Header(None),
    origin: str = Header(None)
):
    # the storefront reads {"error": ...} rather than {"detail": ...}
    try:
        return await create_checkout_session(authorization, payload, origin)
    except HTTPException as http_err:
        logger.warning("[CHECKOUT] Request rejected", status_code=http_err.status_code, error=http_err.detail)
        return JSONResponse(status_code=http_err.status_code, content={"error": http_err.detail})
    except Exception as e:
        logger.error("[CHECKOUT] Error", error=str(e))
        return JSONResponse(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, content={"error": str(e)})
