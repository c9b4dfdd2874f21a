"""
Finance endpoints: payments, expenses and reports.
Every route here is ADMIN only.
"""
import logging
from datetime import datetime
from typing import List, Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from rental_api.api.deps import get_db
from rental_api.core.auth import require_admin
from rental_api.core.dates import range_clauses, to_utc, utcnow
from rental_api.core.errors import InvalidInput, NotFound
from rental_api.models.enums import ExpenseCategory, PaymentMethod
from rental_api.models.expense import Expense
from rental_api.models.user import User
from rental_api.schemas.common import page_offset, paginated
from rental_api.schemas.finance import (
    ExpenseCreate,
    ExpenseOut,
    ExpenseUpdate,
    FinancialSummaryOut,
    PaymentCreate,
    PaymentOut,
    RevenueExpensePoint,
)
from rental_api.services import finance, payments

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/finances", tags=["finances"], dependencies=[Depends(require_admin)])


def _check_range(start: Optional[datetime], end: Optional[datetime]) -> None:
    if start is not None and end is not None and to_utc(end) < to_utc(start):
        raise InvalidInput("end_date must not be before start_date")


# ---------- payments ----------

@router.get("/payments")
def list_payments(
    db: Session = Depends(get_db),
    start_date: Optional[datetime] = Query(None),
    end_date: Optional[datetime] = Query(None),
    method: Optional[PaymentMethod] = Query(None),
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
):
    _check_range(start_date, end_date)
    rows, total = payments.list_payments(
        db, start=start_date, end=end_date, method=method, offset=page_offset(page, limit), limit=limit,
    )
    return paginated([PaymentOut.model_validate(p) for p in rows], total, page, limit)


@router.get("/payments/{payment_id}", response_model=PaymentOut)
def get_payment(payment_id: int, db: Session = Depends(get_db)):
    return payments.get_payment(db, payment_id)


@router.post("/payments", response_model=PaymentOut, status_code=201)
def create_payment(payload: PaymentCreate, db: Session = Depends(get_db)):
    """
    Record a payment against a rental.
    The amount must be positive and no larger than the rental's amount_due.
    """
    payment = payments.record_payment(
        db,
        payload.rental_id,
        payload.amount,
        payload.payment_method,
        reference=payload.reference,
        notes=payload.notes,
        payment_date=payload.payment_date,
    )
    return payments.get_payment(db, payment.id)


@router.delete("/payments/{payment_id}")
def delete_payment(payment_id: int, db: Session = Depends(get_db)):
    payments.delete_payment(db, payment_id)
    return {"message": "Payment deleted successfully"}


# ---------- expenses ----------

def _get_expense(db: Session, expense_id: int) -> Expense:
    expense = db.query(Expense).filter(Expense.id == expense_id).first()
    if not expense:
        raise NotFound("Expense not found")
    return expense


@router.get("/expenses")
def list_expenses(
    db: Session = Depends(get_db),
    start_date: Optional[datetime] = Query(None),
    end_date: Optional[datetime] = Query(None),
    category: Optional[ExpenseCategory] = Query(None),
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
):
    _check_range(start_date, end_date)
    q = db.query(Expense).filter(*range_clauses(Expense.expense_date, start_date, end_date))
    if category:
        q = q.filter(Expense.category == category)

    total = q.count()
    rows = (
        q.order_by(Expense.expense_date.desc(), Expense.id.desc())
        .offset(page_offset(page, limit))
        .limit(limit)
        .all()
    )
    return paginated([ExpenseOut.model_validate(e) for e in rows], total, page, limit)


@router.get("/expenses/{expense_id}", response_model=ExpenseOut)
def get_expense(expense_id: int, db: Session = Depends(get_db)):
    return _get_expense(db, expense_id)


@router.post("/expenses", response_model=ExpenseOut, status_code=201)
def create_expense(payload: ExpenseCreate, db: Session = Depends(get_db), current_user: User = Depends(require_admin)):
    data = payload.model_dump()
    data["expense_date"] = to_utc(data["expense_date"]) if data.get("expense_date") else utcnow()

    expense = Expense(**data)
    db.add(expense)
    db.commit()
    db.refresh(expense)
    logger.info("Expense %s of %s (%s) booked by user %s", expense.id, expense.amount, expense.category.value, current_user.id)
    return expense


@router.put("/expenses/{expense_id}", response_model=ExpenseOut)
def update_expense(expense_id: int, payload: ExpenseUpdate, db: Session = Depends(get_db)):
    expense = _get_expense(db, expense_id)
    data = payload.model_dump(exclude_unset=True)
    for field in ("description", "amount", "category", "expense_date"):
        if field in data and data[field] is None:
            data.pop(field)
    if "expense_date" in data:
        data["expense_date"] = to_utc(data["expense_date"])

    for k, v in data.items():
        setattr(expense, k, v)
    db.commit()
    db.refresh(expense)
    return expense


@router.delete("/expenses/{expense_id}")
def delete_expense(expense_id: int, db: Session = Depends(get_db)):
    expense = _get_expense(db, expense_id)
    db.delete(expense)
    db.commit()
    return {"message": "Expense deleted successfully"}


# ---------- reports ----------

@router.get("/summary", response_model=FinancialSummaryOut)
def financial_summary(
    db: Session = Depends(get_db),
    start_date: Optional[datetime] = Query(None),
    end_date: Optional[datetime] = Query(None),
):
    """
    Revenue and expenses for the period (both bounds inclusive, both optional).
    outstanding_payments is the current total owed across all rentals, whatever the period.
    """
    _check_range(start_date, end_date)
    return finance.summary(db, start_date, end_date)


@router.get("/revenue/period", response_model=List[RevenueExpensePoint])
def revenue_by_period(
    db: Session = Depends(get_db),
    start_date: Optional[datetime] = Query(None, description="defaults to 5 months before end_date"),
    end_date: Optional[datetime] = Query(None, description="defaults to now"),
):
    """Monthly revenue / expense / profit trend."""
    _check_range(start_date, end_date)
    return finance.revenue_by_month(db, start_date, end_date)
