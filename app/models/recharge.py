from pydantic import BaseModel, constr, field_validator
from app.utils.enums.recharge import RechargeStatus


class RechargeLinkRequest(BaseModel):
    recharge_link: constr(strip_whitespace=True, min_length=1)


class RechargeStatusUpdate(BaseModel):
    status: RechargeStatus

    @field_validator("status")
    def status_must_be_admin_settable(cls, v):
        if v == RechargeStatus.PENDING_LINK:
            raise ValueError("status cannot be set back to pending_link")
        return v
