from pydantic import BaseModel


class LoginRequest(BaseModel):
    email: str
    password: str


class AdminLoginRequest(LoginRequest):
    pass
