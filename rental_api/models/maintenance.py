from sqlalchemy import Column, String, Integer, DateTime, ForeignKey, Numeric, Enum
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from rental_api.core.database import Base
from rental_api.models.enums import MaintenanceStatus


class Maintenance(Base):
    __tablename__ = "maintenances"

    id = Column(Integer, primary_key=True, index=True)

    item_id = Column(Integer, ForeignKey("items.id", ondelete="RESTRICT"), nullable=False, index=True)
    item = relationship("Item", back_populates="maintenances")

    description = Column(String, nullable=False)
    status = Column(Enum(MaintenanceStatus, native_enum=False, length=16), nullable=False, default=MaintenanceStatus.PENDING, index=True)

    start_date = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    end_date = Column(DateTime(timezone=True), nullable=True)  # set on completion

    # Admin-only figure; staff submissions are stored as 0
    cost = Column(Numeric(10, 2), nullable=False, default=0)

    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)
