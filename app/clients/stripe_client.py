import stripe
from app.config import get_settings

_settings = get_settings()

stripe.api_key = _settings.STRIPE_SECRET_KEY
STRIPE_WEBHOOK_SECRET = _settings.STRIPE_WEBHOOK_SECRET


def stripe_environment() -> str:
    key = stripe.api_key or ""
    return "production" if key.startswith("sk_live_") else "test"
