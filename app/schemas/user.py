import re
from datetime import datetime

from pydantic import BaseModel, EmailStr, field_validator

USERNAME_RE = re.compile(r"^[A-Za-z0-9_]{3,20}$")


class UserCreate(BaseModel):
    email: EmailStr
    username: str
    password: str

    @field_validator("email")
    @classmethod
    def normalize_email(cls, v: str) -> str:
        return v.strip().lower()

    @field_validator("username")
    @classmethod
    def check_username(cls, v: str) -> str:
        v = v.strip()
        if not USERNAME_RE.match(v):
            raise ValueError("Username must be 3 to 20 letters, digits or underscores")
        return v

    @field_validator("password")
    @classmethod
    def check_password(cls, v: str) -> str:
        if len(v) < 8:
            raise ValueError("Password must be at least 8 characters long")
        return v


class UserResponse(BaseModel):
    id: int
    email: str
    username: str
    is_admin: bool
    created_at: datetime

    class Config:
        from_attributes = True


class UserSummary(BaseModel):
    id: int
    email: str
    username: str

    class Config:
        from_attributes = True
