from sqlalchemy import Column, String, Integer, DateTime, Enum
from sqlalchemy.sql import func
from rental_api.core.database import Base
from rental_api.models.enums import UserRole


class User(Base):
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    email = Column(String, nullable=False, unique=True, index=True)
    name = Column(String, nullable=False)

    # pbkdf2-sha256 hex digest + per-user salt (see rental_api.core.auth)
    password_hash = Column(String, nullable=False)
    password_salt = Column(String, nullable=False)

    role = Column(Enum(UserRole, native_enum=False, length=16), nullable=False, default=UserRole.STAFF)

    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)
