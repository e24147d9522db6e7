from decimal import Decimal, ROUND_HALF_UP
from typing import Optional


def _round_half_up(value: Decimal) -> int:
    return int(value.quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def apply_discount(price_cents: int, discount_type: Optional[str], value) -> int:
    """Price in cents after a coupon.

    ``percentage`` takes ``value`` percent off, ``fixed`` takes ``value`` reais
    off. Unknown types leave the price untouched. Never below zero.
    """
    if value is None or discount_type not in ("percentage", "fixed"):
        return price_cents

    amount = Decimal(str(value))
    if discount_type == "percentage":
        final = _round_half_up(Decimal(price_cents) * (1 - amount / 100))
    else:
        final = _round_half_up(Decimal(price_cents) - amount * 100)
    return max(0, final)


def format_brl(price_cents: int) -> str:
    if not price_cents:
        return "A definir"
    reais = (Decimal(price_cents) / 100).quantize(Decimal("0.01"), rounding=ROUND_HALF_UP)
    return f"R$ {reais:.2f}".replace(".", ",")


def competitor_discount_percent(price_cents: int, competitor_price_cents: Optional[int]) -> int:
    if not competitor_price_cents or competitor_price_cents <= 0 or price_cents <= 0:
        return 0
    return _round_half_up(
        (Decimal(competitor_price_cents - price_cents) / Decimal(competitor_price_cents)) * 100
    )
