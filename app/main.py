from contextlib import asynccontextmanager
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from app.config import get_settings
from app.db.mongo import ensure_indexes
from app.routes import auth, admin, user, plans, accounts, recharges, support, products, coupons, checkout, webhook
from app.utils.logger import logger


@asynccontextmanager
async def lifespan(app: FastAPI):
    await ensure_indexes()
    logger.info("Indexes ensured, application started")
    yield


app = FastAPI(lifespan=lifespan)

app.add_middleware(
    CORSMiddleware,
    allow_origins=get_settings().CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(auth.router, prefix="/auth")
app.include_router(user.router, prefix="/users")
app.include_router(plans.router, prefix="/plans")
app.include_router(coupons.router, prefix="/coupons")
app.include_router(checkout.router, prefix="/checkout")
app.include_router(webhook.router, prefix="/webhooks")
app.include_router(recharges.router, prefix="/recharges")
app.include_router(support.router, prefix="/support")

app.include_router(admin.router, prefix="/admin")
app.include_router(plans.admin_router, prefix="/admin/plans")
app.include_router(accounts.router, prefix="/admin/accounts")
app.include_router(recharges.admin_router, prefix="/admin/recharges")
app.include_router(support.admin_router, prefix="/admin/support")
app.include_router(products.router, prefix="/admin/products")


@app.get("/")
async def root():
    return {"message": "Welcome to the CreditsHub API!"}
