"""
Payment ledger.

amount_paid on a rental is always the sum of its payment rows. Adding or
removing a payment re-reads the rental under a row lock, recomputes
amount_paid / amount_due / payment_status and commits them together with the
payment row, so two concurrent payments can never both build on a stale
balance.
"""
import logging
from datetime import datetime
from decimal import Decimal
from typing import List, Optional, Tuple

from sqlalchemy import func
from sqlalchemy.orm import Session, selectinload

from rental_api.core.database import transaction
from rental_api.core.dates import range_clauses, to_utc, utcnow
from rental_api.core.errors import Conflict, InvalidInput, NotFound
from rental_api.models.enums import PaymentMethod, PaymentStatus
from rental_api.models.payment import Payment
from rental_api.models.rental import Rental
from rental_api.services.rentals import lock_rental, money

logger = logging.getLogger(__name__)


def classify_payment_status(amount_paid: Decimal, total_amount: Decimal) -> PaymentStatus:
    if amount_paid >= total_amount:
        return PaymentStatus.PAID
    if amount_paid > 0:
        return PaymentStatus.PARTIAL
    return PaymentStatus.UNPAID


def _paid_total(db: Session, rental_id: int) -> Decimal:
    total = db.query(func.coalesce(func.sum(Payment.amount), 0)).filter(Payment.rental_id == rental_id).scalar()
    return money(total)


def _rebalance(db: Session, rental: Rental) -> Rental:
    """Re-derive paid / due / status from the payment rows currently in the transaction."""
    db.flush()
    rental.amount_paid = _paid_total(db, rental.id)
    rental.amount_due = money(rental.total_amount) - rental.amount_paid
    rental.payment_status = classify_payment_status(rental.amount_paid, money(rental.total_amount))
    db.flush()
    return rental


def record_payment(
    db: Session,
    rental_id: int,
    amount,
    payment_method: PaymentMethod,
    reference: Optional[str] = None,
    notes: Optional[str] = None,
    payment_date: Optional[datetime] = None,
) -> Payment:
    amount = money(amount)
    if amount <= 0:
        raise InvalidInput("Payment amount must be greater than zero")

    with transaction(db):
        rental = lock_rental(db, rental_id)
        if amount > money(rental.amount_due):
            raise Conflict(f"Payment amount cannot exceed amount due ({money(rental.amount_due)})")

        payment = Payment(
            rental_id=rental.id,
            amount=amount,
            payment_method=PaymentMethod(payment_method),
            reference=reference,
            notes=notes,
            payment_date=to_utc(payment_date) if payment_date is not None else utcnow(),
        )
        db.add(payment)
        _rebalance(db, rental)

    db.refresh(payment)
    logger.info(
        "Payment %s of %s recorded on rental %s (paid %s, due %s, %s)",
        payment.id, amount, rental.id, rental.amount_paid, rental.amount_due, rental.payment_status.value,
    )
    return payment


def delete_payment(db: Session, payment_id: int) -> Payment:
    """Remove a payment and reverse its effect on the parent rental."""
    with transaction(db):
        payment = db.get(Payment, payment_id)
        if payment is None:
            raise NotFound("Payment not found")
        rental = lock_rental(db, payment.rental_id)
        db.delete(payment)
        _rebalance(db, rental)

    logger.info(
        "Payment %s of %s deleted from rental %s (paid %s, due %s, %s)",
        payment_id, payment.amount, rental.id, rental.amount_paid, rental.amount_due, rental.payment_status.value,
    )
    return payment


def get_payment(db: Session, payment_id: int) -> Payment:
    payment = (
        db.query(Payment)
        .options(selectinload(Payment.rental).selectinload(Rental.customer), selectinload(Payment.rental).selectinload(Rental.item))
        .filter(Payment.id == payment_id)
        .first()
    )
    if payment is None:
        raise NotFound("Payment not found")
    return payment


def list_payments(
    db: Session,
    start: Optional[datetime] = None,
    end: Optional[datetime] = None,
    method: Optional[PaymentMethod] = None,
    offset: int = 0,
    limit: int = 10,
) -> Tuple[List[Payment], int]:
    where = range_clauses(Payment.payment_date, start, end)
    if method is not None:
        where.append(Payment.payment_method == method)

    q = db.query(Payment).filter(*where)
    total = q.count()
    rows = (
        q.options(selectinload(Payment.rental).selectinload(Rental.customer), selectinload(Payment.rental).selectinload(Rental.item))
        .order_by(Payment.payment_date.desc(), Payment.id.desc())
        .offset(offset)
        .limit(limit)
        .all()
    )
    return rows, total
