from fastapi import APIRouter, HTTPException, status, Depends, File, Form, UploadFile
from app.deps.auth_deps import get_current_user
from app.services.product_service import fetch_products, add_product, delete_product
from app.utils.admin import is_user_admin
from app.utils.mongo import convert_mongo


router = APIRouter()


@router.get("")
async def get_products(current_user = Depends(get_current_user)):
    try:
        if not is_user_admin(current_user):
            raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="You don't have access to this feature")

        products = await fetch_products()
        return {"message": "Products Fetched Successfully", "result": convert_mongo(products)}
    except HTTPException as http_err:
        raise http_err
    except Exception as e:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Error while fetching products: {str(e)}"
        )


@router.post("", status_code=status.HTTP_201_CREATED)
async def upload_product(
    name: str = Form(...),
    description: str = Form(None),
    credits_required: int = Form(0),
    file: UploadFile = File(...),
    current_user = Depends(get_current_user)
):
    try:
        if not is_user_admin(current_user):
            raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="You don't have access to this feature")

        product_id = await add_product(name, description, credits_required, file)
        return {"message": "Product Added Successfully", "result": {"id": product_id}}
    except HTTPException as http_err:
        raise http_err
    except Exception as e:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Error while adding product: {str(e)}"
        )


@router.delete("/{id}")
async def remove_product(id: str, current_user = Depends(get_current_user)):
    try:
        if not is_user_admin(current_user):
            raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="You don't have access to this feature")

        await delete_product(id)
        return {"message": "Product Deleted Successfully"}
    except HTTPException as http_err:
        raise http_err
    except Exception as e:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Error while deleting product: {str(e)}"
        )
