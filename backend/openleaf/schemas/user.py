from datetime import datetime
from pydantic import BaseModel


class RegisterIn(BaseModel):
    username: str | None = None
    email: str | None = None
    password: str | None = None


class LoginIn(BaseModel):
    email: str | None = None
    password: str | None = None


class UserOut(BaseModel):
    id: int
    username: str
    email: str
    created_at: datetime | None = None

    class Config:
        from_attributes = True


class AuthOut(BaseModel):
    success: bool = True
    user: UserOut
