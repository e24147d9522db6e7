from fastapi import APIRouter, HTTPException, status, Depends
from app.models.coupon import CouponValidateRequest
from app.deps.auth_deps import get_current_user
from app.services.coupon_service import validate_coupon_code, save_user_coupon, clear_user_coupon, stored_coupon


router = APIRouter()


@router.post("/validate")
async def validate_coupon(payload: CouponValidateRequest):
    try:
        coupon = await validate_coupon_code(payload.code)
        return {"valid": coupon is not None, "coupon": coupon.model_dump() if coupon else None}
    except HTTPException as http_err:
        raise http_err
    except Exception as e:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Error while validating coupon: {str(e)}"
        )


@router.get("/me")
async def get_my_coupon(current_user = Depends(get_current_user)):
    return {"message": "Coupon Fetched Successfully", "result": stored_coupon(current_user)}


@router.put("/me")
async def set_my_coupon(payload: CouponValidateRequest, current_user = Depends(get_current_user)):
    try:
        coupon = await validate_coupon_code(payload.code)
        if not coupon:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Cupom inválido ou expirado")

        await save_user_coupon(current_user["_id"], coupon)
        return {"message": "Coupon Saved Successfully", "result": coupon.model_dump()}
    except HTTPException as http_err:
        raise http_err
    except Exception as e:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Error while saving coupon: {str(e)}"
        )


@router.delete("/me")
async def remove_my_coupon(current_user = Depends(get_current_user)):
    try:
        await clear_user_coupon(current_user["_id"])
        return {"message": "Coupon Cleared Successfully"}
    except HTTPException as http_err:
        raise http_err
    except Exception as e:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Error while clearing coupon: {str(e)}"
        )
