from pydantic import BaseModel, constr


class AccountCreate(BaseModel):
    plan_id: str
    account_data: constr(strip_whitespace=True, min_length=1)


class AccountUpdate(BaseModel):
    account_data: constr(strip_whitespace=True, min_length=1)
