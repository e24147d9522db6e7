import asyncio
import time
from fastapi import HTTPException, status
from app.db.mongo import db
from datetime import datetime
from app.clients.aws import s3_client, S3_BUCKET
from app.utils.mongo import to_object_id
from app.utils.logger import logger

PRODUCTS_PREFIX = "digital-products"


async def fetch_products():
    try:
        return await db.digital_products.find().sort("created_at", -1).to_list(length=None)
    except Exception as e:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Error while fetching products: {str(e)}"
        )


async def add_product(name: str, description: str, credits_required: int, upload):
    try:
        if credits_required < 0:
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="credits_required cannot be negative")

        s3_key = f"{PRODUCTS_PREFIX}/{int(time.time() * 1000)}-{upload.filename}"
        await asyncio.to_thread(
            s3_client.upload_fileobj,
            Fileobj=upload.file,
            Bucket=S3_BUCKET,
            Key=s3_key,
            ExtraArgs={"ContentType": upload.content_type or "application/octet-stream"},
        )

        res = await db.digital_products.insert_one({
            "name": name,
            "description": description or None,
            "file_url": s3_key,
            "credits_required": credits_required,
            "created_at": datetime.utcnow()
        })
        logger.info("[PRODUCTS] Product created", product_id=str(res.inserted_id), key=s3_key)
        return str(res.inserted_id)
    except HTTPException as http_err:
        raise http_err
    except Exception as e:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Error while creating product: {str(e)}"
        )


async def delete_product(id):
    try:
        object_id = to_object_id(id, "product id")
        product = await db.digital_products.find_one({"_id": object_id})
        if not product:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Product not found")

        await asyncio.to_thread(s3_client.delete_object, Bucket=S3_BUCKET, Key=product["file_url"])
        await db.digital_products.delete_one({"_id": object_id})
    except HTTPException as http_err:
        raise http_err
    except Exception as e:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Error while deleting product: {str(e)}"
        )
