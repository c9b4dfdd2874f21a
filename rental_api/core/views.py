"""
Role-based serialization views.

Staff can do everything admins do operationally but must never receive money
fields. Instead of each route deleting fields by hand, every route that can
return a rental or maintenance record asks for a ``RoleView`` (via the
``get_role_view`` dependency) and renders through it. The view is chosen once,
from the caller's role, and applies the same redaction to single records,
lists, and records nested under customers, items, or dashboard activity.
"""
from typing import Any, Dict, Iterable, List

from fastapi import Depends

from rental_api.core.auth import require_staff
from rental_api.models.enums import UserRole
from rental_api.models.user import User
from rental_api.schemas.customer import CustomerOut
from rental_api.schemas.item import ItemOut
from rental_api.schemas.maintenance import MaintenanceOut
from rental_api.schemas.rental import RentalDetailOut, RentalOut

RENTAL_FINANCIAL_FIELDS = frozenset({
    "daily_rate",
    "number_of_days",
    "subtotal",
    "deposit",
    "discount",
    "total_amount",
    "amount_paid",
    "amount_due",
    "payment_status",
    "payments",
})

MAINTENANCE_FINANCIAL_FIELDS = frozenset({"cost"})


def can_view_financials(role: Any) -> bool:
    """CanViewFinancials capability. Accepts a UserRole or its string value."""
    return role == UserRole.ADMIN or role == UserRole.ADMIN.value


def redact_rental(record: Dict[str, Any], role: Any) -> Dict[str, Any]:
    """Copy of a rendered rental, without money fields unless role can view financials."""
    if can_view_financials(role):
        return dict(record)
    return {k: v for k, v in record.items() if k not in RENTAL_FINANCIAL_FIELDS}


def redact_maintenance(record: Dict[str, Any], role: Any) -> Dict[str, Any]:
    """Copy of a rendered maintenance record, without cost unless role can view financials."""
    if can_view_financials(role):
        return dict(record)
    return {k: v for k, v in record.items() if k not in MAINTENANCE_FINANCIAL_FIELDS}


class RoleView:
    """Renders ORM rows to JSON-ready dicts for one caller role."""

    def __init__(self, role: UserRole):
        self.role = role

    @classmethod
    def for_user(cls, user: User) -> "RoleView":
        return cls(user.role)

    # --- rentals ---
    def rental(self, rental) -> Dict[str, Any]:
        return redact_rental(RentalOut.model_validate(rental).model_dump(mode="json"), self.role)

    def rental_detail(self, rental) -> Dict[str, Any]:
        return redact_rental(RentalDetailOut.model_validate(rental).model_dump(mode="json"), self.role)

    def rentals(self, rentals: Iterable) -> List[Dict[str, Any]]:
        return [self.rental(r) for r in rentals]

    # --- maintenance ---
    def maintenance(self, record) -> Dict[str, Any]:
        return redact_maintenance(MaintenanceOut.model_validate(record).model_dump(mode="json"), self.role)

    def maintenances(self, records: Iterable) -> List[Dict[str, Any]]:
        return [self.maintenance(m) for m in records]

    # --- containers with nested rentals / maintenance ---
    def customer_detail(self, customer, rentals: Iterable) -> Dict[str, Any]:
        out = CustomerOut.model_validate(customer).model_dump(mode="json")
        out["rentals"] = self.rentals(rentals)
        out["rentals_count"] = len(out["rentals"])
        return out

    def item_detail(self, item, rentals: Iterable, maintenances: Iterable) -> Dict[str, Any]:
        out = ItemOut.model_validate(item).model_dump(mode="json")
        out["rentals"] = self.rentals(rentals)
        out["maintenances"] = self.maintenances(maintenances)
        return out


def get_role_view(current_user: User = Depends(require_staff)) -> RoleView:
    """FastAPI dependency: the view for the authenticated caller."""
    return RoleView.for_user(current_user)
