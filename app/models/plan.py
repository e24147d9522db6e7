from pydantic import BaseModel, field_validator
from typing import Optional
from app.utils.enums.plan import PlanType


class PlanRequest(BaseModel):
    name: str
    credits: int
    price_cents: int = 0
    plan_type: PlanType = PlanType.NEW_ACCOUNT
    stripe_price_id: Optional[str] = None
    competitor_price_cents: Optional[int] = None
    active: bool = True

    @field_validator("credits", "price_cents")
    def must_not_be_negative(cls, v, info):
        if v < 0:
            raise ValueError(f"{info.field_name} cannot be negative")
        return v


class PlanUpdateRequest(BaseModel):
    name: Optional[str] = None
    credits: Optional[int] = None
    price_cents: Optional[int] = None
    plan_type: Optional[PlanType] = None
    stripe_price_id: Optional[str] = None
    competitor_price_cents: Optional[int] = None
    active: Optional[bool] = None


class PlanSyncRequest(BaseModel):
    action: str
    plan_id: Optional[str] = None
