from typing import Optional
from pydantic import BaseModel, EmailStr, constr, field_validator


class UserCreate(BaseModel):
    email: EmailStr
    password: constr(min_length=6)
    name: constr(strip_whitespace=True, min_length=1)
    phone: Optional[str] = ""

    @field_validator("phone")
    def phone_digits_only(cls, v):
        if not v:
            return ""
        digits = "".join(ch for ch in v if ch.isdigit())
        if len(digits) < 10:
            raise ValueError("phone must have at least 10 digits")
        return digits


class UserUpdate(BaseModel):
    name: Optional[constr(strip_whitespace=True, min_length=1)] = None
    phone: Optional[str] = None


class CreditGrant(BaseModel):
    credits: int
    reason: Optional[str] = "Admin-added credits"

    @field_validator("credits")
    def credits_must_be_positive(cls, v):
        if v <= 0:
            raise ValueError("credits must be positive")
        return v
