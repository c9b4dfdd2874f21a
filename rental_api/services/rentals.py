"""
Rental engine: charges, lifecycle and the overdue sweep.

Lifecycle:

    PENDING  -> ACTIVE | CANCELLED
    ACTIVE   -> OVERDUE (sweep) | COMPLETED (return) | CANCELLED
    OVERDUE  -> COMPLETED (return) | CANCELLED
    COMPLETED, CANCELLED are terminal

Every mutation that touches the rental and its item runs in one
``transaction`` so a failure leaves neither half committed.
"""
import logging
import math
from datetime import datetime
from decimal import Decimal, InvalidOperation, ROUND_HALF_UP
from typing import Dict, List, Optional

from sqlalchemy.orm import Session

from rental_api.core.database import transaction
from rental_api.core.dates import to_utc, utcnow
from rental_api.core.errors import Conflict, InvalidInput, NotFound
from rental_api.models.customer import Customer
from rental_api.models.enums import PaymentStatus, RentalStatus
from rental_api.models.item import Item
from rental_api.models.rental import Rental
from rental_api.models.user import User
from rental_api.services import inventory

logger = logging.getLogger(__name__)

CENTS = Decimal("0.01")
# Largest value a Numeric(10, 2) column holds
MAX_MONEY = Decimal("99999999.99")
SECONDS_PER_DAY = 24 * 60 * 60

TERMINAL_STATES = {RentalStatus.COMPLETED, RentalStatus.CANCELLED}

# Transitions a caller may request through update_rental.
# OVERDUE is only set by sweep_overdue and COMPLETED only by return_item.
MANUAL_TRANSITIONS = {
    RentalStatus.PENDING: {RentalStatus.ACTIVE, RentalStatus.CANCELLED},
    RentalStatus.ACTIVE: {RentalStatus.CANCELLED},
    RentalStatus.OVERDUE: {RentalStatus.CANCELLED},
}

_UNSET = object()


def money(value) -> Decimal:
    try:
        amount = Decimal(str(value if value is not None else 0)).quantize(CENTS, rounding=ROUND_HALF_UP)
    except InvalidOperation:
        raise InvalidInput(f"Invalid amount: {value}")
    if not amount.is_finite() or abs(amount) > MAX_MONEY:
        raise InvalidInput(f"Amount out of range: {value}")
    return amount


def rental_days(start: datetime, end: datetime) -> int:
    """Whole days between start and end, any part of a day counts as a day."""
    start, end = to_utc(start), to_utc(end)
    if end <= start:
        raise InvalidInput("End date must be after start date")
    return math.ceil((end - start).total_seconds() / SECONDS_PER_DAY)


def compute_charges(
    daily_rate,
    start: datetime,
    end: datetime,
    deposit=0,
    discount=0,
    amount_paid=0,
) -> Dict[str, object]:
    """
    Financial snapshot for a rental period.

    Example: rate 15, 2026-02-14 -> 2026-02-20, deposit 50, discount 10
    gives 6 days, subtotal 90, total 130, due 130.
    """
    days = rental_days(start, end)
    subtotal = money(daily_rate) * days
    total_amount = subtotal + money(deposit) - money(discount)
    if total_amount < 0:
        raise InvalidInput("Discount cannot exceed subtotal plus deposit")
    return {
        "number_of_days": days,
        "subtotal": money(subtotal),
        "total_amount": money(total_amount),
        "amount_due": money(total_amount - money(amount_paid)),
    }


def get_rental(db: Session, rental_id: int) -> Rental:
    rental = db.get(Rental, rental_id)
    if rental is None:
        raise NotFound("Rental not found")
    return rental


def lock_rental(db: Session, rental_id: int) -> Rental:
    """Re-read a rental under a row lock inside the current transaction."""
    rental = (
        db.query(Rental)
        .filter(Rental.id == rental_id)
        .with_for_update()
        .populate_existing()
        .first()
    )
    if rental is None:
        raise NotFound("Rental not found")
    return rental


def create_rental(
    db: Session,
    user: User,
    customer_id: int,
    item_id: int,
    start_date: datetime,
    end_date: datetime,
    deposit=0,
    discount=0,
    notes: Optional[str] = None,
) -> Rental:
    start, end = to_utc(start_date), to_utc(end_date)
    if end <= start:
        raise InvalidInput("End date must be after start date")
    if money(deposit) < 0 or money(discount) < 0:
        raise InvalidInput("Deposit and discount cannot be negative")

    item = db.get(Item, item_id)
    if item is None:
        raise NotFound("Item not found")
    if not inventory.is_rentable(item):
        raise Conflict("Item is not available for rental")

    customer = db.get(Customer, customer_id)
    if customer is None:
        raise NotFound("Customer not found")

    with transaction(db):
        # Re-checks availability under the row lock
        item = inventory.reserve_unit(db, item_id)
        charges = compute_charges(item.daily_rate, start, end, deposit, discount)
        rental = Rental(
            customer_id=customer.id,
            item_id=item.id,
            user_id=user.id,
            start_date=start,
            end_date=end,
            status=RentalStatus.PENDING,
            notes=notes,
            daily_rate=money(item.daily_rate),
            deposit=money(deposit),
            discount=money(discount),
            amount_paid=money(0),
            payment_status=PaymentStatus.UNPAID,
            **charges,
        )
        db.add(rental)
        db.flush()

    db.refresh(rental)
    logger.info(
        "Rental %s created for customer %s, item %s, total %s",
        rental.id, customer.id, item.id, rental.total_amount,
    )
    return rental


def _apply_status(db: Session, rental: Rental, new_status: RentalStatus) -> None:
    current = rental.status
    if new_status == current:
        return
    if current in TERMINAL_STATES:
        raise Conflict(f"Rental is already {current.value.lower()}")
    if new_status == RentalStatus.COMPLETED:
        raise Conflict("Use the return endpoint to complete a rental")
    if new_status not in MANUAL_TRANSITIONS.get(current, set()):
        raise Conflict(f"Cannot change rental status from {current.value} to {new_status.value}")

    rental.status = new_status
    if new_status == RentalStatus.CANCELLED:
        # A cancelled rental no longer holds its unit
        inventory.release_unit(db, inventory.lock_item(db, rental.item_id))
    logger.info("Rental %s status %s -> %s", rental.id, current.value, new_status.value)


def update_rental(
    db: Session,
    rental_id: int,
    start_date: Optional[datetime] = None,
    end_date: Optional[datetime] = None,
    status: Optional[RentalStatus] = None,
    notes=_UNSET,
) -> Rental:
    """
    Edit dates, status and notes.

    A date change recomputes days, subtotal, total and amount due from the
    stored daily_rate, deposit, discount and amount_paid.
    """
    with transaction(db):
        rental = lock_rental(db, rental_id)

        if start_date is not None or end_date is not None:
            start = to_utc(start_date) if start_date is not None else to_utc(rental.start_date)
            end = to_utc(end_date) if end_date is not None else to_utc(rental.end_date)
            charges = compute_charges(
                rental.daily_rate, start, end, rental.deposit, rental.discount, rental.amount_paid,
            )
            rental.start_date = start
            rental.end_date = end
            for field, value in charges.items():
                setattr(rental, field, value)

        if status is not None:
            _apply_status(db, rental, RentalStatus(status))

        if notes is not _UNSET:
            rental.notes = notes
        db.flush()

    db.refresh(rental)
    return rental


def return_item(db: Session, rental_id: int, now: Optional[datetime] = None) -> Rental:
    """Close a rental and put its unit back on the shelf."""
    with transaction(db):
        rental = lock_rental(db, rental_id)
        if rental.status == RentalStatus.COMPLETED:
            raise Conflict("Rental already completed")
        if rental.status == RentalStatus.CANCELLED:
            raise Conflict("Rental was cancelled")

        rental.return_date = to_utc(now) if now is not None else utcnow()
        rental.status = RentalStatus.COMPLETED
        inventory.release_unit(db, inventory.lock_item(db, rental.item_id))
        db.flush()

    db.refresh(rental)
    logger.info("Rental %s returned", rental.id)
    return rental


def sweep_overdue(db: Session, now: Optional[datetime] = None) -> List[int]:
    """
    Mark every ACTIVE rental whose end date has passed as OVERDUE.

    Returns the ids changed by this call; an immediate second call returns []
    and writes nothing.
    """
    now = to_utc(now) if now is not None else utcnow()
    with transaction(db):
        ids = [
            row.id
            for row in db.query(Rental.id)
            .filter(Rental.status == RentalStatus.ACTIVE, Rental.end_date < now)
            .with_for_update()
            .all()
        ]
        if ids:
            db.query(Rental).filter(
                Rental.id.in_(ids), Rental.status == RentalStatus.ACTIVE
            ).update({Rental.status: RentalStatus.OVERDUE}, synchronize_session="fetch")
    if ids:
        logger.info("Overdue sweep marked %d rental(s): %s", len(ids), ids)
    return ids


def list_by_status(db: Session, status: RentalStatus) -> List[Rental]:
    return (
        db.query(Rental)
        .filter(Rental.status == status)
        .order_by(Rental.end_date.asc(), Rental.id.asc())
        .all()
    )


def list_active(db: Session) -> List[Rental]:
    return list_by_status(db, RentalStatus.ACTIVE)


def list_overdue(db: Session, now: Optional[datetime] = None) -> List[Rental]:
    """Run the sweep, then return every OVERDUE rental."""
    sweep_overdue(db, now)
    return list_by_status(db, RentalStatus.OVERDUE)
