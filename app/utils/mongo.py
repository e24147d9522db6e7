from bson import ObjectId
from bson.errors import InvalidId
from datetime import datetime, date
from fastapi import HTTPException, status


def convert_mongo(item):
    if isinstance(item, list):
        return [convert_mongo(i) for i in item]
    if isinstance(item, dict):
        return {k: convert_mongo(v) for k, v in item.items()}
    if isinstance(item, ObjectId):
        return str(item)
    if isinstance(item, (datetime, date)):
        return item.isoformat()
    return item


def to_object_id(value, label: str = "id") -> ObjectId:
    if isinstance(value, ObjectId):
        return value
    try:
        return ObjectId(value)
    except (InvalidId, TypeError):
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=f"Invalid {label}")
