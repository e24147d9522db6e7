from functools import lru_cache
from typing import List
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    MONGO_URI: str = "mongodb://localhost:27017"
    MONGO_DB: str = "creditshub"

    JWT_SECRET: str = "change-me"
    JWT_ALGO: str = "HS256"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 60 * 24 * 7

    STRIPE_SECRET_KEY: str = ""
    STRIPE_WEBHOOK_SECRET: str = ""

    # Server B: the hosted platform that validates coupons and receives syncs
    PLATFORM_REST_URL: str = "https://adpnzkvzvjbervzrqhhx.supabase.co/rest/v1"
    PLATFORM_FUNCTIONS_URL: str = "https://adpnzkvzvjbervzrqhhx.supabase.co/functions/v1"
    PLATFORM_ANON_KEY: str = ""
    PLATFORM_PRODUCT_ID: str = "9453f6dc-5257-43d9-9b04-3bdfd5188ed1"
    PLATFORM_TIMEOUT_SECONDS: float = 15.0

    DEFAULT_ORIGIN: str = "http://localhost:5173"
    CORS_ORIGINS: List[str] = ["*"]

    AWS_REGION: str = "eu-north-1"
    AWS_S3_BUCKET: str = ""
    AWS_ACCESS_KEY_ID: str = ""
    AWS_SECRET_ACCESS_KEY: str = ""

    MAIL_USERNAME: str = ""
    MAIL_PASSWORD: str = ""
    MAIL_SERVER: str = "smtp.gmail.com"
    MAIL_PORT: int = 587

    ENV_MODE: str = "LOCAL"
    LOGGING_LEVEL: str = "INFO"

    model_config = SettingsConfigDict(
        env_file=".env",
        extra="ignore"
    )


@lru_cache()
def get_settings():
    return Settings()
