from pydantic import BaseModel, Field
from datetime import datetime
from typing import Optional
from decimal import Decimal

from rental_api.models.enums import MaintenanceStatus
from rental_api.schemas.common import ItemBrief


class MaintenanceCreate(BaseModel):
    item_id: int
    description: str = Field(..., min_length=1)
    cost: Decimal = Field(Decimal("0"), ge=0, max_digits=10, decimal_places=2)  # ignored (stored as 0) unless the caller is admin


class MaintenanceUpdate(BaseModel):
    description: Optional[str] = Field(None, min_length=1)
    status: Optional[MaintenanceStatus] = None
    cost: Optional[Decimal] = Field(None, ge=0, max_digits=10, decimal_places=2)  # admin only


class MaintenanceOut(BaseModel):
    id: int
    item_id: int
    item: Optional[ItemBrief] = None
    description: str
    status: MaintenanceStatus
    start_date: datetime
    end_date: Optional[datetime]
    cost: float  # admin only, see rental_api.core.views
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True
