from fastapi import APIRouter, HTTPException, status, Request, Header
from fastapi.responses import JSONResponse
from app.services.webhook_service import handle_stripe_webhook
from app.utils.logger import logger


router = APIRouter()


@router.post("/stripe")
async def stripe_webhook(request: Request, stripe_signature: str = Header(None)):
    body = await request.body()
    try:
        return await handle_stripe_webhook(body, stripe_signature)
    except HTTPException as http_err:
        return JSONResponse(status_code=http_err.status_code, content={"error": http_err.detail})
    except Exception as e:
        logger.error("[WEBHOOK] Error processing webhook", error=str(e))
        return JSONResponse(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, content={"error": str(e)})
