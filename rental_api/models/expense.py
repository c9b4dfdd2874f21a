from sqlalchemy import Column, String, Integer, DateTime, Numeric, Enum
from sqlalchemy.sql import func
from rental_api.core.database import Base
from rental_api.models.enums import ExpenseCategory


class Expense(Base):
    __tablename__ = "expenses"

    id = Column(Integer, primary_key=True, index=True)

    description = Column(String, nullable=False)
    amount = Column(Numeric(10, 2), nullable=False)
    category = Column(Enum(ExpenseCategory, native_enum=False, length=16), nullable=False, index=True)
    expense_date = Column(DateTime(timezone=True), server_default=func.now(), nullable=False, index=True)
    receipt = Column(String, nullable=True)  # receipt url / number
    notes = Column(String, nullable=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)
