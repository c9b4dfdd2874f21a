from fastapi import APIRouter, Depends
from sqlalchemy import func
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, selectinload
from typing import List

from rental_api.api.deps import get_db
from rental_api.core.auth import require_staff
from rental_api.core.errors import Conflict, NotFound
from rental_api.models.category import Category
from rental_api.models.item import Item
from rental_api.models.user import User
from rental_api.schemas.category import CategoryCreate, CategoryDetailOut, CategoryOut, CategoryUpdate
from rental_api.services import inventory

router = APIRouter(prefix="/categories", tags=["categories"])

DUPLICATE_NAME = "Category with this name already exists"


def _get_category(db: Session, category_id: int) -> Category:
    category = db.query(Category).filter(Category.id == category_id).first()
    if not category:
        raise NotFound("Category not found")
    return category


def _items_count(db: Session, category_id: int) -> int:
    return db.query(func.count(Item.id)).filter(Item.category_id == category_id).scalar() or 0


@router.get("", response_model=List[CategoryOut])
def list_categories(db: Session = Depends(get_db), current_user: User = Depends(require_staff)):
    """All categories, alphabetical, each with its item count."""
    counts = dict(
        db.query(Item.category_id, func.count(Item.id)).group_by(Item.category_id).all()
    )
    categories = db.query(Category).order_by(Category.name.asc()).all()

    out = []
    for c in categories:
        item = CategoryOut.model_validate(c)
        item.items_count = int(counts.get(c.id, 0))
        out.append(item)
    return out


@router.get("/{category_id}", response_model=CategoryDetailOut)
def get_category(category_id: int, db: Session = Depends(get_db), current_user: User = Depends(require_staff)):
    category = (
        db.query(Category)
        .options(selectinload(Category.items))
        .filter(Category.id == category_id)
        .first()
    )
    if not category:
        raise NotFound("Category not found")

    out = CategoryDetailOut.model_validate(category)
    out.items_count = len(out.items)
    return out


@router.post("", response_model=CategoryOut, status_code=201)
def create_category(
    payload: CategoryCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_staff),
):
    if db.query(Category).filter(Category.name == payload.name).first():
        raise Conflict(DUPLICATE_NAME)

    category = Category(**payload.model_dump())
    db.add(category)
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        raise Conflict(DUPLICATE_NAME)
    db.refresh(category)
    return category


@router.put("/{category_id}", response_model=CategoryOut)
def update_category(
    category_id: int,
    payload: CategoryUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_staff),
):
    category = _get_category(db, category_id)
    data = payload.model_dump(exclude_unset=True)
    if data.get("name") is None:
        data.pop("name", None)

    if "name" in data and data["name"] != category.name:
        if db.query(Category).filter(Category.name == data["name"]).first():
            raise Conflict(DUPLICATE_NAME)

    for k, v in data.items():
        setattr(category, k, v)
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        raise Conflict(DUPLICATE_NAME)
    db.refresh(category)

    out = CategoryOut.model_validate(category)
    out.items_count = _items_count(db, category.id)
    return out


@router.delete("/{category_id}")
def delete_category(category_id: int, db: Session = Depends(get_db), current_user: User = Depends(require_staff)):
    category = _get_category(db, category_id)
    inventory.ensure_category_deletable(db, category.id)

    db.delete(category)
    db.commit()
    return {"message": "Category deleted successfully"}
