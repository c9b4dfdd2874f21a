from pydantic import BaseModel, Field, field_validator
from datetime import datetime
from typing import List, Optional
from decimal import Decimal

from rental_api.models.enums import PaymentMethod, PaymentStatus, RentalStatus
from rental_api.schemas.common import CustomerBrief, ItemBrief, UserBrief


class RentalCreate(BaseModel):
    customer_id: int
    item_id: int
    start_date: datetime  # UTC; accepts ISO 8601 e.g. "2026-02-14T00:00:00Z"
    end_date: datetime
    deposit: Decimal = Field(Decimal("0"), ge=0, max_digits=10, decimal_places=2)
    discount: Decimal = Field(Decimal("0"), ge=0, max_digits=10, decimal_places=2)
    notes: Optional[str] = None
    # daily_rate, totals and status are computed, not set by the caller


class RentalUpdate(BaseModel):
    start_date: Optional[datetime] = None
    end_date: Optional[datetime] = None
    status: Optional[RentalStatus] = None
    notes: Optional[str] = None

    @field_validator('status', mode='before')
    @classmethod
    def upper_status(cls, v):
        if isinstance(v, str):
            return v.strip().upper()
        return v


class PaymentBrief(BaseModel):
    id: int
    amount: float
    payment_method: PaymentMethod
    payment_date: datetime
    reference: Optional[str]

    class Config:
        from_attributes = True


class RentalOut(BaseModel):
    id: int
    customer_id: int
    item_id: int
    user_id: int
    customer: Optional[CustomerBrief] = None
    item: Optional[ItemBrief] = None
    user: Optional[UserBrief] = None

    start_date: datetime
    end_date: datetime
    return_date: Optional[datetime]
    status: RentalStatus
    notes: Optional[str]

    # Financial snapshot - admin only, see rental_api.core.views
    daily_rate: float
    number_of_days: int
    subtotal: float
    deposit: float
    discount: float
    total_amount: float
    amount_paid: float
    amount_due: float
    payment_status: PaymentStatus

    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


class RentalDetailOut(RentalOut):
    payments: List[PaymentBrief] = []
