from fastapi import APIRouter, Depends, Query
from sqlalchemy import func
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session
from typing import Optional

from rental_api.api.deps import get_db
from rental_api.core.auth import require_staff
from rental_api.core.errors import Conflict, NotFound
from rental_api.core.views import RoleView, get_role_view
from rental_api.models.customer import Customer
from rental_api.models.rental import Rental
from rental_api.models.user import User
from rental_api.schemas.common import page_offset, paginated
from rental_api.schemas.customer import CustomerCreate, CustomerOut, CustomerUpdate
from rental_api.services import inventory

router = APIRouter(prefix="/customers", tags=["customers"])

DUPLICATE_EMAIL = "Customer with this email already exists"
DUPLICATE_ID_NUMBER = "Customer with this ID number already exists"


def _get_customer(db: Session, customer_id: int) -> Customer:
    customer = db.query(Customer).filter(Customer.id == customer_id).first()
    if not customer:
        raise NotFound("Customer not found")
    return customer


def _ensure_unique(db: Session, email: Optional[str], id_number: Optional[str], customer_id: Optional[int] = None):
    def taken(column, value):
        q = db.query(Customer.id).filter(column == value)
        if customer_id is not None:
            q = q.filter(Customer.id != customer_id)
        return q.first() is not None

    if email and taken(Customer.email, email):
        raise Conflict(DUPLICATE_EMAIL)
    if id_number and taken(Customer.id_number, id_number):
        raise Conflict(DUPLICATE_ID_NUMBER)


def _commit(db: Session, email: Optional[str], id_number: Optional[str], customer_id: Optional[int] = None) -> None:
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        # Lost a race: the competing row is committed now, so the check names the field
        _ensure_unique(db, email, id_number, customer_id)
        raise Conflict("Customer with this email or ID number already exists")


def _customer_rentals(db: Session, customer_id: int):
    return (
        db.query(Rental)
        .filter(Rental.customer_id == customer_id)
        .order_by(Rental.created_at.desc(), Rental.id.desc())
        .all()
    )


def _with_count(db: Session, customer: Customer) -> CustomerOut:
    out = CustomerOut.model_validate(customer)
    out.rentals_count = db.query(func.count(Rental.id)).filter(Rental.customer_id == customer.id).scalar() or 0
    return out


@router.get("")
def list_customers(
    db: Session = Depends(get_db),
    current_user: User = Depends(require_staff),
    search: Optional[str] = Query(None, description="search by name or email"),
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
):
    q = db.query(Customer)
    if search:
        like = f"%{search.strip()}%"
        q = q.filter(Customer.name.ilike(like) | Customer.email.ilike(like))

    total = q.count()
    customers = (
        q.order_by(Customer.created_at.desc(), Customer.id.desc())
        .offset(page_offset(page, limit))
        .limit(limit)
        .all()
    )

    counts = {}
    if customers:
        counts = dict(
            db.query(Rental.customer_id, func.count(Rental.id))
            .filter(Rental.customer_id.in_([c.id for c in customers]))
            .group_by(Rental.customer_id)
            .all()
        )

    items = []
    for c in customers:
        out = CustomerOut.model_validate(c)
        out.rentals_count = int(counts.get(c.id, 0))
        items.append(out)
    return paginated(items, total, page, limit)


@router.get("/{customer_id}")
def get_customer(customer_id: int, db: Session = Depends(get_db), view: RoleView = Depends(get_role_view)):
    """Customer with every rental they have made, newest first."""
    customer = _get_customer(db, customer_id)
    return view.customer_detail(customer, _customer_rentals(db, customer.id))


@router.get("/{customer_id}/rentals")
def get_customer_rentals(customer_id: int, db: Session = Depends(get_db), view: RoleView = Depends(get_role_view)):
    customer = _get_customer(db, customer_id)
    return view.rentals(_customer_rentals(db, customer.id))


@router.post("", response_model=CustomerOut, status_code=201)
def create_customer(payload: CustomerCreate, db: Session = Depends(get_db), current_user: User = Depends(require_staff)):
    _ensure_unique(db, payload.email, payload.id_number)

    customer = Customer(**payload.model_dump())
    db.add(customer)
    _commit(db, payload.email, payload.id_number)
    db.refresh(customer)
    return customer


@router.put("/{customer_id}", response_model=CustomerOut)
def update_customer(
    customer_id: int,
    payload: CustomerUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_staff),
):
    customer = _get_customer(db, customer_id)
    data = payload.model_dump(exclude_unset=True)
    for field in ("name", "email", "phone"):
        if field in data and data[field] is None:
            data.pop(field)

    _ensure_unique(db, data.get("email"), data.get("id_number"), customer.id)

    for k, v in data.items():
        setattr(customer, k, v)
    _commit(db, data.get("email"), data.get("id_number"), customer.id)
    db.refresh(customer)
    return _with_count(db, customer)


@router.delete("/{customer_id}")
def delete_customer(customer_id: int, db: Session = Depends(get_db), current_user: User = Depends(require_staff)):
    customer = _get_customer(db, customer_id)
    inventory.ensure_customer_deletable(db, customer.id)

    db.delete(customer)
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        raise Conflict("Cannot delete customer with rental history")
    return {"message": "Customer deleted successfully"}
