from fastapi import APIRouter, Depends, Query
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, selectinload
from typing import Optional

from rental_api.api.deps import get_db
from rental_api.core.auth import require_staff
from rental_api.core.errors import Conflict, NotFound
from rental_api.core.views import RoleView, get_role_view
from rental_api.models.category import Category
from rental_api.models.enums import ItemStatus
from rental_api.models.item import Item
from rental_api.models.maintenance import Maintenance
from rental_api.models.rental import Rental
from rental_api.models.user import User
from rental_api.schemas.common import page_offset, paginated
from rental_api.schemas.item import ItemCreate, ItemOut, ItemUpdate
from rental_api.services import inventory

router = APIRouter(prefix="/items", tags=["items"])

DUPLICATE_SERIAL = "Item with this serial number already exists"
RECENT_LIMIT = 10


def apply_item_filters(q, search: Optional[str], status: Optional[ItemStatus], category_id: Optional[int]):
    if search:
        q = q.filter(Item.name.ilike(f"%{search.strip()}%"))
    if status:
        q = q.filter(Item.status == status)
    if category_id is not None:
        q = q.filter(Item.category_id == category_id)
    return q


def _get_item(db: Session, item_id: int) -> Item:
    item = db.query(Item).filter(Item.id == item_id).first()
    if not item:
        raise NotFound("Item not found")
    return item


def _ensure_category(db: Session, category_id: int) -> None:
    if not db.query(Category.id).filter(Category.id == category_id).first():
        raise NotFound("Category not found")


def _ensure_serial_free(db: Session, serial_number: Optional[str], item_id: Optional[int] = None) -> None:
    if not serial_number:
        return
    q = db.query(Item.id).filter(Item.serial_number == serial_number)
    if item_id is not None:
        q = q.filter(Item.id != item_id)
    if q.first():
        raise Conflict(DUPLICATE_SERIAL)


def _commit(db: Session) -> None:
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        raise Conflict(DUPLICATE_SERIAL)


@router.get("")
def list_items(
    db: Session = Depends(get_db),
    current_user: User = Depends(require_staff),
    search: Optional[str] = Query(None, description="search by name"),
    status: Optional[ItemStatus] = Query(None),
    category_id: Optional[int] = Query(None),
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
):
    q = apply_item_filters(db.query(Item), search, status, category_id)
    total = q.count()
    items = (
        q.options(selectinload(Item.category))
        .order_by(Item.created_at.desc(), Item.id.desc())
        .offset(page_offset(page, limit))
        .limit(limit)
        .all()
    )
    return paginated([ItemOut.model_validate(i) for i in items], total, page, limit)


@router.get("/{item_id}")
def get_item(item_id: int, db: Session = Depends(get_db), view: RoleView = Depends(get_role_view)):
    """
    Item with its category, its 10 most recent rentals and its 10 most recent
    maintenance records. Nested records go through the caller's view.
    """
    item = _get_item(db, item_id)
    rentals = (
        db.query(Rental)
        .filter(Rental.item_id == item.id)
        .order_by(Rental.created_at.desc(), Rental.id.desc())
        .limit(RECENT_LIMIT)
        .all()
    )
    maintenances = (
        db.query(Maintenance)
        .filter(Maintenance.item_id == item.id)
        .order_by(Maintenance.created_at.desc(), Maintenance.id.desc())
        .limit(RECENT_LIMIT)
        .all()
    )
    return view.item_detail(item, rentals, maintenances)


@router.post("", response_model=ItemOut, status_code=201)
def create_item(payload: ItemCreate, db: Session = Depends(get_db), current_user: User = Depends(require_staff)):
    _ensure_category(db, payload.category_id)
    _ensure_serial_free(db, payload.serial_number)

    item = Item(**payload.model_dump(), status=ItemStatus.AVAILABLE)
    db.add(item)
    _commit(db)
    db.refresh(item)
    return item


@router.put("/{item_id}", response_model=ItemOut)
def update_item(
    item_id: int,
    payload: ItemUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_staff),
):
    item = _get_item(db, item_id)
    data = payload.model_dump(exclude_unset=True)
    # Required columns cannot be cleared
    for field in ("name", "category_id", "status", "daily_rate", "quantity"):
        if field in data and data[field] is None:
            data.pop(field)

    if "category_id" in data:
        _ensure_category(db, data["category_id"])
    if "serial_number" in data:
        _ensure_serial_free(db, data["serial_number"], item.id)

    for k, v in data.items():
        setattr(item, k, v)
    _commit(db)
    db.refresh(item)
    return item


@router.delete("/{item_id}")
def delete_item(item_id: int, db: Session = Depends(get_db), current_user: User = Depends(require_staff)):
    item = _get_item(db, item_id)
    inventory.ensure_item_deletable(db, item.id)

    db.delete(item)
    try:
        db.commit()
    except IntegrityError:
        # Completed rentals / maintenance history still reference the item
        db.rollback()
        raise Conflict("Cannot delete item with rental or maintenance history")
    return {"message": "Item deleted successfully"}
