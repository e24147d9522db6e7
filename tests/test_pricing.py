"""
Coupon discount math and BRL display formatting
"""
import pytest
from app.utils.pricing import apply_discount, format_brl, competitor_discount_percent
from app.models.coupon import CouponData
from app.services.coupon_service import price_with_coupon


def test_percentage_discount():
    assert apply_discount(10000, "percentage", 20) == 8000


def test_fixed_discount_is_in_reais():
    assert apply_discount(10000, "fixed", 15) == 8500


def test_percentage_rounds_half_up():
    # 999 * 0.5 = 499.5
    assert apply_discount(999, "percentage", 50) == 500


@pytest.mark.parametrize("discount_type, value", [("percentage", 150), ("fixed", 500)])
def test_discount_never_goes_below_zero(discount_type, value):
    assert apply_discount(10000, discount_type, value) == 0


def test_unknown_type_leaves_price_untouched():
    assert apply_discount(10000, "bogus", 20) == 10000
    assert apply_discount(10000, "percentage", None) == 10000


def test_display_prices():
    assert format_brl(8000) == "R$ 80,00"
    assert format_brl(8500) == "R$ 85,00"
    assert format_brl(123456) == "R$ 1234,56"


def test_zero_price_displays_as_undefined():
    assert format_brl(0) == "A definir"


def test_competitor_discount_percent():
    assert competitor_discount_percent(8000, 10000) == 20
    assert competitor_discount_percent(8000, None) == 0
    assert competitor_discount_percent(0, 10000) == 0


def test_price_with_coupon():
    coupon = CouponData(coupon_id="cp_1", code="PROMO20", type="percentage", value=20, is_active=True)
    priced = price_with_coupon(10000, coupon)
    assert priced["final_price_cents"] == 8000
    assert priced["display_price"] == "R$ 80,00"
    assert priced["original_display_price"] == "R$ 100,00"

    fixed = CouponData(coupon_id="cp_2", code="MENOS15", type="fixed", value=15, is_active=True)
    assert price_with_coupon(10000, fixed)["display_price"] == "R$ 85,00"


def test_price_without_coupon():
    assert price_with_coupon(8000, None)["display_price"] == "R$ 80,00"
