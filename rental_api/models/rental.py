from sqlalchemy import Column, String, Integer, DateTime, ForeignKey, Numeric, Enum
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from rental_api.core.database import Base
from rental_api.models.enums import PaymentStatus, RentalStatus


class Rental(Base):
    __tablename__ = "rentals"

    id = Column(Integer, primary_key=True, index=True)

    customer_id = Column(Integer, ForeignKey("customers.id", ondelete="RESTRICT"), nullable=False, index=True)
    item_id = Column(Integer, ForeignKey("items.id", ondelete="RESTRICT"), nullable=False, index=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="RESTRICT"), nullable=False, index=True)  # staff member who booked it

    customer = relationship("Customer", back_populates="rentals")
    item = relationship("Item", back_populates="rentals")
    user = relationship("User")
    payments = relationship("Payment", back_populates="rental", order_by="Payment.payment_date.desc()")

    # Dates - ALWAYS UTC
    start_date = Column(DateTime(timezone=True), nullable=False)
    end_date = Column(DateTime(timezone=True), nullable=False, index=True)
    return_date = Column(DateTime(timezone=True), nullable=True)  # set once, on return

    status = Column(Enum(RentalStatus, native_enum=False, length=16), nullable=False, default=RentalStatus.PENDING, index=True)
    notes = Column(String, nullable=True)

    # Financial snapshot. daily_rate is copied from the item at booking time.
    daily_rate = Column(Numeric(10, 2), nullable=False)
    number_of_days = Column(Integer, nullable=False)
    subtotal = Column(Numeric(10, 2), nullable=False)
    deposit = Column(Numeric(10, 2), nullable=False, default=0)
    discount = Column(Numeric(10, 2), nullable=False, default=0)
    total_amount = Column(Numeric(10, 2), nullable=False)
    amount_paid = Column(Numeric(10, 2), nullable=False, default=0)  # sum of payments
    amount_due = Column(Numeric(10, 2), nullable=False)  # total_amount - amount_paid
    payment_status = Column(Enum(PaymentStatus, native_enum=False, length=16), nullable=False, default=PaymentStatus.UNPAID, index=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)
