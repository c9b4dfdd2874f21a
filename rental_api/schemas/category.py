from pydantic import BaseModel, field_validator
from datetime import datetime
from typing import List, Optional

from rental_api.schemas.common import ItemBrief


class CategoryCreate(BaseModel):
    name: str
    description: Optional[str] = None

    @field_validator('name', mode='before')
    @classmethod
    def strip_name(cls, v):
        if isinstance(v, str):
            v = v.strip()
            if not v:
                raise ValueError('Category name is required')
        return v


class CategoryUpdate(BaseModel):
    name: Optional[str] = None
    description: Optional[str] = None

    @field_validator('name', mode='before')
    @classmethod
    def strip_name(cls, v):
        if isinstance(v, str):
            v = v.strip()
            if not v:
                raise ValueError('Category name cannot be empty')
        return v


class CategoryOut(BaseModel):
    id: int
    name: str
    description: Optional[str]
    items_count: int = 0  # filled in by the list endpoint
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


class CategoryDetailOut(CategoryOut):
    items: List[ItemBrief] = []
