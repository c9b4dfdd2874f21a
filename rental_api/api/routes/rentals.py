from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session
from typing import Optional

from rental_api.api.deps import get_db
from rental_api.core.auth import require_staff
from rental_api.core.errors import InvalidInput
from rental_api.core.views import RoleView, get_role_view
from rental_api.models.customer import Customer
from rental_api.models.enums import RentalStatus
from rental_api.models.item import Item
from rental_api.models.rental import Rental
from rental_api.models.user import User
from rental_api.schemas.common import page_offset, paginated
from rental_api.schemas.rental import RentalCreate, RentalUpdate
from rental_api.services import rentals as rental_service

router = APIRouter(prefix="/rentals", tags=["rentals"])


def _status_filter(status: Optional[str]) -> Optional[RentalStatus]:
    """`ALL` (or nothing) means no filter."""
    if not status or status.strip().upper() == "ALL":
        return None
    try:
        return RentalStatus(status.strip().upper())
    except ValueError:
        raise InvalidInput(f"Unknown rental status: {status}")


@router.get("")
def list_rentals(
    db: Session = Depends(get_db),
    view: RoleView = Depends(get_role_view),
    status: Optional[str] = Query(None, description="PENDING|ACTIVE|COMPLETED|CANCELLED|OVERDUE|ALL"),
    search: Optional[str] = Query(None, description="search by customer or item name"),
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
):
    q = db.query(Rental)

    wanted = _status_filter(status)
    if wanted is not None:
        q = q.filter(Rental.status == wanted)

    if search:
        like = f"%{search.strip()}%"
        q = q.join(Customer, Rental.customer_id == Customer.id).join(Item, Rental.item_id == Item.id)
        q = q.filter(Customer.name.ilike(like) | Item.name.ilike(like))

    total = q.count()
    rows = (
        q.order_by(Rental.created_at.desc(), Rental.id.desc())
        .offset(page_offset(page, limit))
        .limit(limit)
        .all()
    )
    return paginated(view.rentals(rows), total, page, limit)


# Registered before /{rental_id} so the literal paths win
@router.get("/status/active")
def active_rentals(db: Session = Depends(get_db), view: RoleView = Depends(get_role_view)):
    return view.rentals(rental_service.list_active(db))


@router.get("/status/overdue")
def overdue_rentals(db: Session = Depends(get_db), view: RoleView = Depends(get_role_view)):
    """Marks newly overdue rentals first, then lists every OVERDUE rental."""
    return view.rentals(rental_service.list_overdue(db))


@router.get("/{rental_id}")
def get_rental(rental_id: int, db: Session = Depends(get_db), view: RoleView = Depends(get_role_view)):
    return view.rental_detail(rental_service.get_rental(db, rental_id))


@router.post("", status_code=201)
def create_rental(
    payload: RentalCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_staff),
    view: RoleView = Depends(get_role_view),
):
    rental = rental_service.create_rental(
        db,
        current_user,
        customer_id=payload.customer_id,
        item_id=payload.item_id,
        start_date=payload.start_date,
        end_date=payload.end_date,
        deposit=payload.deposit,
        discount=payload.discount,
        notes=payload.notes,
    )
    return view.rental(rental)


@router.put("/{rental_id}")
def update_rental(
    rental_id: int,
    payload: RentalUpdate,
    db: Session = Depends(get_db),
    view: RoleView = Depends(get_role_view),
):
    data = payload.model_dump(exclude_unset=True)
    kwargs = {k: data[k] for k in ("start_date", "end_date", "status") if data.get(k) is not None}
    if "notes" in data:
        kwargs["notes"] = data["notes"]

    rental = rental_service.update_rental(db, rental_id, **kwargs)
    return view.rental(rental)


@router.put("/{rental_id}/return")
def return_rental(rental_id: int, db: Session = Depends(get_db), view: RoleView = Depends(get_role_view)):
    return view.rental(rental_service.return_item(db, rental_id))
