from sqlalchemy import Column, String, Integer, DateTime, ForeignKey, Numeric, Enum, func
from sqlalchemy.orm import relationship

from rental_api.core.database import Base
from rental_api.models.enums import PaymentMethod


class Payment(Base):
    __tablename__ = "payments"

    id = Column(Integer, primary_key=True, index=True)

    rental_id = Column(Integer, ForeignKey("rentals.id", ondelete="RESTRICT"), nullable=False, index=True)
    rental = relationship("Rental", back_populates="payments")

    amount = Column(Numeric(10, 2), nullable=False)  # always > 0
    payment_method = Column(Enum(PaymentMethod, native_enum=False, length=16), nullable=False)
    reference = Column(String, nullable=True)  # receipt / transaction number
    notes = Column(String, nullable=True)

    payment_date = Column(DateTime(timezone=True), server_default=func.now(), nullable=False, index=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
