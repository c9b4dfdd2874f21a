from sqlalchemy import Column, String, Integer, DateTime, ForeignKey, Numeric, Enum
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from rental_api.core.database import Base
from rental_api.models.enums import ItemStatus


class Item(Base):
    __tablename__ = "items"

    id = Column(Integer, primary_key=True, index=True)

    category_id = Column(Integer, ForeignKey("categories.id", ondelete="RESTRICT"), nullable=False, index=True)
    category = relationship("Category", back_populates="items")

    name = Column(String, nullable=False, index=True)
    description = Column(String, nullable=True)
    serial_number = Column(String, nullable=True, unique=True)
    image_url = Column(String, nullable=True)

    # Status and quantity move independently: rentals touch both,
    # maintenance touches only status.
    status = Column(Enum(ItemStatus, native_enum=False, length=16), nullable=False, default=ItemStatus.AVAILABLE, index=True)
    daily_rate = Column(Numeric(10, 2), nullable=False)
    quantity = Column(Integer, nullable=False, default=1)  # units not currently out on a rental

    rentals = relationship("Rental", back_populates="item")
    maintenances = relationship("Maintenance", back_populates="item")

    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)
