from pydantic import BaseModel, Field, field_validator
from datetime import datetime
from typing import Optional


class CustomerCreate(BaseModel):
    name: str = Field(..., min_length=1)
    email: str = Field(..., min_length=3)
    phone: str = Field(..., min_length=1)
    address: Optional[str] = None
    id_number: Optional[str] = None

    @field_validator('name', 'email', 'phone', mode='before')
    @classmethod
    def strip_strings(cls, v):
        if isinstance(v, str):
            return v.strip()
        return v

    @field_validator('email')
    @classmethod
    def email_has_at(cls, v):
        if "@" not in v:
            raise ValueError('email must contain "@"')
        return v.lower()


class CustomerUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1)
    email: Optional[str] = None
    phone: Optional[str] = Field(None, min_length=1)
    address: Optional[str] = None
    id_number: Optional[str] = None

    @field_validator('email')
    @classmethod
    def email_has_at(cls, v):
        if v is not None and "@" not in v:
            raise ValueError('email must contain "@"')
        return v.strip().lower() if v else v


class CustomerOut(BaseModel):
    id: int
    name: str
    email: str
    phone: str
    address: Optional[str]
    id_number: Optional[str]
    rentals_count: int = 0  # filled in by the list/detail endpoints
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True
