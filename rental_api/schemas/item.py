from pydantic import BaseModel, Field
from datetime import datetime
from typing import Optional
from decimal import Decimal

from rental_api.models.enums import ItemStatus
from rental_api.schemas.common import CategoryBrief


class ItemCreate(BaseModel):
    name: str = Field(..., min_length=1)
    description: Optional[str] = None
    serial_number: Optional[str] = None
    category_id: int
    daily_rate: Decimal = Field(..., ge=0, max_digits=10, decimal_places=2)
    quantity: int = Field(1, ge=0)
    image_url: Optional[str] = None
    # status always starts AVAILABLE


class ItemUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1)
    description: Optional[str] = None
    serial_number: Optional[str] = None
    category_id: Optional[int] = None
    status: Optional[ItemStatus] = None
    daily_rate: Optional[Decimal] = Field(None, ge=0, max_digits=10, decimal_places=2)
    quantity: Optional[int] = Field(None, ge=0)
    image_url: Optional[str] = None


class ItemOut(BaseModel):
    id: int
    name: str
    description: Optional[str]
    serial_number: Optional[str]
    category_id: int
    category: Optional[CategoryBrief] = None
    status: ItemStatus
    daily_rate: float  # list price, visible to staff
    quantity: int
    image_url: Optional[str]
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True
