from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session
from typing import Optional

from rental_api.api.deps import get_db
from rental_api.core.auth import require_staff
from rental_api.core.views import RoleView, get_role_view
from rental_api.models.enums import MaintenanceStatus
from rental_api.models.user import User
from rental_api.schemas.common import page_offset, paginated
from rental_api.schemas.maintenance import MaintenanceCreate, MaintenanceUpdate
from rental_api.services import maintenance as maintenance_service

router = APIRouter(prefix="/maintenance", tags=["maintenance"])


@router.get("")
def list_maintenance(
    db: Session = Depends(get_db),
    view: RoleView = Depends(get_role_view),
    status: Optional[MaintenanceStatus] = Query(None),
    item_id: Optional[int] = Query(None),
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
):
    rows, total = maintenance_service.list_maintenance(
        db, status=status, item_id=item_id, offset=page_offset(page, limit), limit=limit,
    )
    return paginated(view.maintenances(rows), total, page, limit)


@router.get("/{maintenance_id}")
def get_maintenance(maintenance_id: int, db: Session = Depends(get_db), view: RoleView = Depends(get_role_view)):
    return view.maintenance(maintenance_service.get_maintenance(db, maintenance_id))


@router.post("", status_code=201)
def create_maintenance(
    payload: MaintenanceCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_staff),
    view: RoleView = Depends(get_role_view),
):
    """Open a maintenance record; the item is taken out of service."""
    record = maintenance_service.create_maintenance(
        db, current_user, item_id=payload.item_id, description=payload.description, cost=payload.cost,
    )
    return view.maintenance(record)


@router.put("/{maintenance_id}/complete")
def complete_maintenance(maintenance_id: int, db: Session = Depends(get_db), view: RoleView = Depends(get_role_view)):
    return view.maintenance(maintenance_service.complete_maintenance(db, maintenance_id))


@router.put("/{maintenance_id}")
def update_maintenance(
    maintenance_id: int,
    payload: MaintenanceUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_staff),
    view: RoleView = Depends(get_role_view),
):
    data = payload.model_dump(exclude_unset=True)
    record = maintenance_service.update_maintenance(
        db,
        current_user,
        maintenance_id,
        description=data.get("description"),
        status=data.get("status"),
        cost=data.get("cost"),
    )
    return view.maintenance(record)


@router.delete("/{maintenance_id}")
def delete_maintenance(maintenance_id: int, db: Session = Depends(get_db), current_user: User = Depends(require_staff)):
    maintenance_service.delete_maintenance(db, maintenance_id)
    return {"message": "Maintenance record deleted successfully"}
