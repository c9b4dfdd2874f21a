import math
from typing import Any, Dict, List, Optional

from pydantic import BaseModel

from rental_api.models.enums import ItemStatus


class UserBrief(BaseModel):
    id: int
    name: str
    email: str

    class Config:
        from_attributes = True


class CategoryBrief(BaseModel):
    id: int
    name: str

    class Config:
        from_attributes = True


class CustomerBrief(BaseModel):
    id: int
    name: str
    email: str
    phone: str

    class Config:
        from_attributes = True


class ItemBrief(BaseModel):
    id: int
    name: str
    serial_number: Optional[str] = None
    status: ItemStatus
    daily_rate: float  # list price, visible to staff
    quantity: int

    class Config:
        from_attributes = True


def page_offset(page: int, limit: int) -> int:
    """Offset for a 1-based page."""
    return (page - 1) * limit


def paginated(items: List[Any], total: int, page: int, limit: int) -> Dict[str, Any]:
    """List envelope shared by every list endpoint."""
    return {
        "items": items,
        "total": total,
        "page": page,
        "total_pages": math.ceil(total / limit) if limit else 0,
    }
