from pydantic import BaseModel, constr
from typing import Optional


class CouponValidateRequest(BaseModel):
    code: constr(strip_whitespace=True, min_length=1)


class CouponData(BaseModel):
    coupon_id: Optional[str] = None
    code: Optional[str] = None
    name: Optional[str] = None
    description: Optional[str] = None
    type: Optional[str] = None
    value: Optional[float] = None
    is_active: bool = False
    product_id: Optional[str] = None
    affiliate_coupon_id: Optional[str] = None
    affiliate_id: Optional[str] = None
    affiliate_name: Optional[str] = None
    affiliate_avatar_url: Optional[str] = None
    custom_code: Optional[str] = None

    model_config = {"extra": "allow"}

    @property
    def is_valid(self) -> bool:
        return bool(self.coupon_id and self.is_active)
