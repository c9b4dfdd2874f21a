from pydantic import BaseModel, Field
from datetime import datetime
from typing import Optional
from decimal import Decimal

from rental_api.models.enums import ExpenseCategory, PaymentMethod
from rental_api.schemas.rental import RentalOut


class PaymentCreate(BaseModel):
    rental_id: int
    amount: Decimal = Field(..., max_digits=10, decimal_places=2)  # > 0 and <= amount_due, checked by the ledger
    payment_method: PaymentMethod
    reference: Optional[str] = None
    notes: Optional[str] = None
    payment_date: Optional[datetime] = None  # defaults to now (UTC)


class PaymentOut(BaseModel):
    id: int
    rental_id: int
    rental: Optional[RentalOut] = None
    amount: float
    payment_method: PaymentMethod
    reference: Optional[str]
    notes: Optional[str]
    payment_date: datetime
    created_at: datetime

    class Config:
        from_attributes = True


class ExpenseCreate(BaseModel):
    description: str = Field(..., min_length=1)
    amount: Decimal = Field(..., gt=0, max_digits=10, decimal_places=2)
    category: ExpenseCategory
    expense_date: Optional[datetime] = None  # defaults to now (UTC)
    receipt: Optional[str] = None
    notes: Optional[str] = None


class ExpenseUpdate(BaseModel):
    description: Optional[str] = Field(None, min_length=1)
    amount: Optional[Decimal] = Field(None, gt=0, max_digits=10, decimal_places=2)
    category: Optional[ExpenseCategory] = None
    expense_date: Optional[datetime] = None
    receipt: Optional[str] = None
    notes: Optional[str] = None


class ExpenseOut(BaseModel):
    id: int
    description: str
    amount: float
    category: ExpenseCategory
    expense_date: datetime
    receipt: Optional[str]
    notes: Optional[str]
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


class FinancialSummaryOut(BaseModel):
    total_revenue: float = 0.0
    total_expenses: float = 0.0
    net_profit: float = 0.0
    outstanding_payments: float = 0.0  # global, never date filtered
    profit_margin: float = 0.0  # percent of revenue, 2 decimals


class RevenueExpensePoint(BaseModel):
    """Single point in the monthly revenue/expense trend."""
    month: str
    revenue: float = 0.0
    expenses: float = 0.0
    profit: float = 0.0
