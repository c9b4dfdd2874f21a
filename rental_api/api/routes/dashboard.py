from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session
from typing import List, Optional

from rental_api.api.deps import get_db
from rental_api.core.auth import require_admin, require_staff
from rental_api.core.config import settings
from rental_api.core.views import RoleView, get_role_view
from rental_api.models.rental import Rental
from rental_api.models.user import User
from rental_api.schemas.dashboard import AdminDashboardOut, StaffDashboardOut
from rental_api.schemas.item import ItemOut
from rental_api.services import finance, inventory

router = APIRouter(prefix="/dashboard", tags=["dashboard"])

ACTIVITY_LIMIT = 10


@router.get("/staff", response_model=StaffDashboardOut)
def staff_dashboard(db: Session = Depends(get_db), current_user: User = Depends(require_staff)):
    """Counts only; safe for every role."""
    return finance.inventory_counts(db)


@router.get("/admin", response_model=AdminDashboardOut)
def admin_dashboard(db: Session = Depends(get_db), current_user: User = Depends(require_admin)):
    """Staff counts plus this calendar month's money and the global outstanding balance."""
    stats = finance.inventory_counts(db)
    stats.update(finance.month_to_date(db))
    stats["outstanding_payments"] = float(finance.outstanding_payments(db))
    return stats


@router.get("/activity")
def recent_activity(db: Session = Depends(get_db), view: RoleView = Depends(get_role_view)):
    rentals = (
        db.query(Rental)
        .order_by(Rental.created_at.desc(), Rental.id.desc())
        .limit(ACTIVITY_LIMIT)
        .all()
    )
    return view.rentals(rentals)


@router.get("/low-stock", response_model=List[ItemOut])
def low_stock(
    db: Session = Depends(get_db),
    current_user: User = Depends(require_staff),
    threshold: Optional[int] = Query(None, ge=0, description="defaults to LOW_STOCK_THRESHOLD"),
):
    return inventory.low_stock_items(db, threshold if threshold is not None else settings.LOW_STOCK_THRESHOLD)
