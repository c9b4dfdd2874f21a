"""
Maintenance records.

Opening a record takes the item out of service (status MAINTENANCE) and
completing it puts the item back (status AVAILABLE). Neither touches the
item's quantity. Cost is an admin-only figure: non-admin callers get 0 on
create and their cost is ignored on update.
"""
import logging
from decimal import Decimal
from typing import List, Optional, Tuple

from sqlalchemy.orm import Session

from rental_api.core.database import transaction
from rental_api.core.dates import utcnow
from rental_api.core.errors import Conflict, NotFound
from rental_api.core.views import can_view_financials
from rental_api.models.enums import MaintenanceStatus
from rental_api.models.maintenance import Maintenance
from rental_api.models.user import User
from rental_api.services import inventory
from rental_api.services.rentals import money

logger = logging.getLogger(__name__)


def get_maintenance(db: Session, maintenance_id: int) -> Maintenance:
    record = db.get(Maintenance, maintenance_id)
    if record is None:
        raise NotFound("Maintenance record not found")
    return record


def create_maintenance(
    db: Session,
    user: User,
    item_id: int,
    description: str,
    cost: Optional[Decimal] = None,
) -> Maintenance:
    with transaction(db):
        item = inventory.lock_item(db, item_id)
        record = Maintenance(
            item_id=item.id,
            description=description,
            status=MaintenanceStatus.PENDING,
            start_date=utcnow(),
            cost=money(cost) if can_view_financials(user.role) else money(0),
        )
        db.add(record)
        inventory.enter_maintenance(db, item)

    db.refresh(record)
    logger.info("Maintenance %s opened on item %s by user %s", record.id, item.id, user.id)
    return record


def update_maintenance(
    db: Session,
    user: User,
    maintenance_id: int,
    description: Optional[str] = None,
    status: Optional[MaintenanceStatus] = None,
    cost: Optional[Decimal] = None,
) -> Maintenance:
    """
    Edit description, status and (admins only) cost.

    Moving an open record to COMPLETED has the same effect as
    complete_maintenance. A completed record cannot be reopened.
    """
    with transaction(db):
        record = get_maintenance(db, maintenance_id)
        if description is not None:
            record.description = description
        if status is not None and status != record.status:
            if record.status == MaintenanceStatus.COMPLETED:
                raise Conflict("Maintenance already completed")
            if status == MaintenanceStatus.COMPLETED:
                _close(db, record)
            else:
                record.status = MaintenanceStatus(status)
        if cost is not None and can_view_financials(user.role):
            record.cost = money(cost)
        db.flush()

    db.refresh(record)
    return record


def _close(db: Session, record: Maintenance) -> None:
    record.status = MaintenanceStatus.COMPLETED
    record.end_date = utcnow()
    inventory.exit_maintenance(db, inventory.lock_item(db, record.item_id))
    logger.info("Maintenance %s completed, item %s available", record.id, record.item_id)


def complete_maintenance(db: Session, maintenance_id: int) -> Maintenance:
    with transaction(db):
        record = get_maintenance(db, maintenance_id)
        if record.status == MaintenanceStatus.COMPLETED:
            raise Conflict("Maintenance already completed")
        _close(db, record)

    db.refresh(record)
    return record


def delete_maintenance(db: Session, maintenance_id: int) -> None:
    with transaction(db):
        record = get_maintenance(db, maintenance_id)
        db.delete(record)
    logger.info("Maintenance %s deleted", maintenance_id)


def list_maintenance(
    db: Session,
    status: Optional[MaintenanceStatus] = None,
    item_id: Optional[int] = None,
    offset: int = 0,
    limit: int = 10,
) -> Tuple[List[Maintenance], int]:
    where = []
    if status is not None:
        where.append(Maintenance.status == status)
    if item_id is not None:
        where.append(Maintenance.item_id == item_id)

    q = db.query(Maintenance).filter(*where)
    total = q.count()
    rows = (
        q.order_by(Maintenance.start_date.desc(), Maintenance.id.desc())
        .offset(offset)
        .limit(limit)
        .all()
    )
    return rows, total
