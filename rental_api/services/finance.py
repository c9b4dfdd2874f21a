"""
Financial aggregator.

Read-side figures built from the payment ledger, the expense table and the
rental balances. Revenue is what was actually paid (payment_date), expenses
are booked on expense_date, and outstanding_payments is always a global
snapshot: it is never narrowed by the requested period.
"""
from datetime import datetime
from decimal import Decimal
from typing import Dict, List, Optional

from sqlalchemy import func
from sqlalchemy.orm import Session

from rental_api.core.dates import month_start, next_month, previous_month, range_clauses, to_utc, utcnow
from rental_api.models.enums import ItemStatus, PaymentStatus, RentalStatus
from rental_api.models.expense import Expense
from rental_api.models.item import Item
from rental_api.models.payment import Payment
from rental_api.models.rental import Rental
from rental_api.services.rentals import CENTS

DEFAULT_TREND_MONTHS = 6


def _total(value) -> Decimal:
    # Sums can exceed a single Numeric(10, 2) value, so no range check here
    return Decimal(str(value or 0)).quantize(CENTS)


def _revenue(db: Session, where: List) -> Decimal:
    return _total(db.query(func.coalesce(func.sum(Payment.amount), 0)).filter(*where).scalar())


def _expenses(db: Session, where: List) -> Decimal:
    return _total(db.query(func.coalesce(func.sum(Expense.amount), 0)).filter(*where).scalar())


def outstanding_payments(db: Session) -> Decimal:
    """Sum of amount_due over every rental that is not settled."""
    return _total(
        db.query(func.coalesce(func.sum(Rental.amount_due), 0))
        .filter(Rental.payment_status.in_((PaymentStatus.UNPAID, PaymentStatus.PARTIAL)))
        .scalar()
    )


def profit_margin(net_profit: Decimal, revenue: Decimal) -> float:
    if revenue == 0:
        return 0.0
    return round(float(net_profit / revenue * 100), 2)


def summary(db: Session, start: Optional[datetime] = None, end: Optional[datetime] = None) -> Dict[str, float]:
    """
    Totals for an inclusive [start, end] period; either bound may be open.

    Example: payments of 100 and 30 against expenses of 30 give revenue 130,
    net_profit 100 and profit_margin 76.92.
    """
    revenue = _revenue(db, range_clauses(Payment.payment_date, start, end))
    expenses = _expenses(db, range_clauses(Expense.expense_date, start, end))
    net = revenue - expenses
    return {
        "total_revenue": float(revenue),
        "total_expenses": float(expenses),
        "net_profit": float(net),
        "outstanding_payments": float(outstanding_payments(db)),
        "profit_margin": profit_margin(net, revenue),
    }


def month_to_date(db: Session, now: Optional[datetime] = None) -> Dict[str, float]:
    """Revenue, expenses and profit over the calendar month containing now (UTC)."""
    now = to_utc(now) if now is not None else utcnow()
    start, end = month_start(now), next_month(now)
    revenue = _revenue(db, [Payment.payment_date >= start, Payment.payment_date < end])
    expenses = _expenses(db, [Expense.expense_date >= start, Expense.expense_date < end])
    return {
        "monthly_revenue": float(revenue),
        "monthly_expenses": float(expenses),
        "net_profit": float(revenue - expenses),
    }


def revenue_by_month(
    db: Session,
    start: Optional[datetime] = None,
    end: Optional[datetime] = None,
) -> List[Dict[str, object]]:
    """
    One point per calendar month between start and end, oldest first.
    Defaults to the current month and the five before it.
    """
    end = to_utc(end) if end is not None else utcnow()
    if start is None:
        start = month_start(end)
        for _ in range(DEFAULT_TREND_MONTHS - 1):
            start = previous_month(start)
    start = to_utc(start)

    points = []
    current = month_start(start)
    while current <= end:
        upper = next_month(current)
        revenue = _revenue(db, [Payment.payment_date >= current, Payment.payment_date < upper])
        expenses = _expenses(db, [Expense.expense_date >= current, Expense.expense_date < upper])
        points.append({
            "month": current.strftime("%b %Y"),
            "revenue": float(revenue),
            "expenses": float(expenses),
            "profit": float(revenue - expenses),
        })
        current = upper
    return points


def inventory_counts(db: Session) -> Dict[str, int]:
    """Counts for the staff dashboard cards."""
    def count(column, *criteria):
        return db.query(func.count(column)).filter(*criteria).scalar() or 0

    return {
        "total_items": count(Item.id),
        "available_items": count(Item.id, Item.status == ItemStatus.AVAILABLE),
        "active_rentals": count(Rental.id, Rental.status == RentalStatus.ACTIVE),
        "maintenance_items": count(Item.id, Item.status == ItemStatus.MAINTENANCE),
    }
