from motor.motor_asyncio import AsyncIOMotorClient
from pymongo import ASCENDING, DESCENDING
from app.config import get_settings

_settings = get_settings()

# Create async Mongo client
_client = AsyncIOMotorClient(_settings.MONGO_URI)
db = _client[_settings.MONGO_DB]


async def ensure_indexes(database=None):
    database = database if database is not None else db

    await database.users.create_index([("email", ASCENDING)], unique=True)
    # one transaction per checkout session, guards against webhook redelivery
    await database.payment_transactions.create_index([("stripe_session_id", ASCENDING)], unique=True)
    await database.payment_transactions.create_index([("user_id", ASCENDING), ("created_at", DESCENDING)])
    await database.stripe_events.create_index([("event_id", ASCENDING)], unique=True)
    await database.accounts.create_index([("plan_id", ASCENDING), ("is_used", ASCENDING)])
    await database.recharge_requests.create_index([("user_id", ASCENDING), ("created_at", DESCENDING)])
    await database.support_messages.create_index([("ticket_id", ASCENDING), ("created_at", ASCENDING)])
