"""
Inventory ledger: item availability and unit counts.

Quantity and status are two separate fields with separate rules:
- a rental reserves a unit (quantity - 1, status RENTED) and its return
  releases it (quantity + 1, status AVAILABLE), whatever quantity is left;
- maintenance only flips status (MAINTENANCE, then back to AVAILABLE).

None of these functions commit. Callers run them inside
``rental_api.core.database.transaction`` together with the rental/maintenance
row they belong to.
"""
import logging
from typing import List

from sqlalchemy import func
from sqlalchemy.orm import Session

from rental_api.core.errors import Conflict, NotFound
from rental_api.models.enums import ItemStatus, RentalStatus
from rental_api.models.item import Item
from rental_api.models.rental import Rental

logger = logging.getLogger(__name__)

# Rentals in these states still hold the customer and the item
OPEN_RENTAL_STATES = (RentalStatus.PENDING, RentalStatus.ACTIVE)


def lock_item(db: Session, item_id: int) -> Item:
    """Load an item with a row lock (SELECT ... FOR UPDATE where the store supports it)."""
    item = (
        db.query(Item)
        .filter(Item.id == item_id)
        .with_for_update()
        .populate_existing()
        .first()
    )
    if item is None:
        raise NotFound("Item not found")
    return item


def is_rentable(item: Item) -> bool:
    return item.status == ItemStatus.AVAILABLE and (item.quantity or 0) >= 1


def reserve_unit(db: Session, item_id: int) -> Item:
    """
    Take one unit of an item out for a rental.

    Raises Conflict unless the item is AVAILABLE with at least one unit.
    Status becomes RENTED even when units remain.
    """
    item = lock_item(db, item_id)
    if not is_rentable(item):
        raise Conflict("Item is not available for rental")
    item.status = ItemStatus.RENTED
    item.quantity = item.quantity - 1
    db.flush()
    logger.info("Item %s reserved, %s unit(s) left", item.id, item.quantity)
    return item


def release_unit(db: Session, item: Item) -> Item:
    """Put one unit back: status AVAILABLE, quantity + 1, unconditionally."""
    item.status = ItemStatus.AVAILABLE
    item.quantity = (item.quantity or 0) + 1
    db.flush()
    logger.info("Item %s released, %s unit(s) available", item.id, item.quantity)
    return item


def enter_maintenance(db: Session, item: Item) -> Item:
    item.status = ItemStatus.MAINTENANCE
    db.flush()
    logger.info("Item %s moved to maintenance", item.id)
    return item


def exit_maintenance(db: Session, item: Item) -> Item:
    item.status = ItemStatus.AVAILABLE
    db.flush()
    logger.info("Item %s back from maintenance", item.id)
    return item


def count_open_rentals(db: Session, **filters) -> int:
    q = db.query(func.count(Rental.id)).filter(Rental.status.in_(OPEN_RENTAL_STATES))
    for column, value in filters.items():
        q = q.filter(getattr(Rental, column) == value)
    return q.scalar() or 0


def ensure_item_deletable(db: Session, item_id: int) -> None:
    if count_open_rentals(db, item_id=item_id) > 0:
        raise Conflict("Cannot delete item with active rentals")


def ensure_customer_deletable(db: Session, customer_id: int) -> None:
    if count_open_rentals(db, customer_id=customer_id) > 0:
        raise Conflict("Cannot delete customer with active rentals")


def ensure_category_deletable(db: Session, category_id: int) -> None:
    item_count = db.query(func.count(Item.id)).filter(Item.category_id == category_id).scalar() or 0
    if item_count > 0:
        raise Conflict(f"Cannot delete category with {item_count} item(s)")


def low_stock_items(db: Session, threshold: int) -> List[Item]:
    """Items at or below the threshold that are still in service, lowest first."""
    return (
        db.query(Item)
        .filter(Item.quantity <= threshold, Item.status != ItemStatus.RETIRED)
        .order_by(Item.quantity.asc(), Item.id.asc())
        .all()
    )
