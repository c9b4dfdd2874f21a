from pydantic import BaseModel, Field, field_validator
from datetime import datetime
from typing import Optional

from rental_api.models.enums import UserRole


class LoginRequest(BaseModel):
    email: str
    password: str

    @field_validator('email', mode='before')
    @classmethod
    def normalise_email(cls, v):
        if isinstance(v, str):
            return v.strip().lower()
        return v


class RegisterRequest(BaseModel):
    email: str = Field(..., min_length=3)
    password: str = Field(..., min_length=6)
    name: str = Field(..., min_length=1)
    role: Optional[UserRole] = None  # defaults to STAFF

    @field_validator('email', mode='before')
    @classmethod
    def normalise_email(cls, v):
        if isinstance(v, str):
            return v.strip().lower()
        return v


class UserOut(BaseModel):
    id: int
    email: str
    name: str
    role: UserRole
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


class TokenOut(BaseModel):
    user: UserOut
    token: str
