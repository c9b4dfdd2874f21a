"""Shared fixtures: in-memory database, app client and row factories."""
import os
from datetime import datetime, timezone
from decimal import Decimal

os.environ.setdefault("DATABASE_URL", "sqlite+pysqlite:///:memory:")
os.environ.setdefault("JWT_SECRET", "test-secret-" + "x" * 32)
os.environ.setdefault("LOG_LEVEL", "WARNING")

from fastapi.testclient import TestClient  # noqa: E402

from rental_api.core.auth import create_access_token  # noqa: E402
from rental_api.core.database import Database  # noqa: E402
from rental_api.core.passwords import hash_password  # noqa: E402
from rental_api.main import create_app  # noqa: E402
from rental_api.models.category import Category  # noqa: E402
from rental_api.models.customer import Customer  # noqa: E402
from rental_api.models.enums import ItemStatus, UserRole  # noqa: E402
from rental_api.models.item import Item  # noqa: E402
from rental_api.models.user import User  # noqa: E402


def utc(*args) -> datetime:
    return datetime(*args, tzinfo=timezone.utc)


def make_database() -> Database:
    database = Database("sqlite+pysqlite:///:memory:")
    database.create_all()
    return database


def make_user(db, email="admin@rental.test", role=UserRole.ADMIN, password="secret123", name=None) -> User:
    password_hash, salt = hash_password(password)
    user = User(
        email=email,
        name=name or email.split("@")[0].title(),
        password_hash=password_hash,
        password_salt=salt,
        role=role,
    )
    db.add(user)
    db.commit()
    return user


def make_category(db, name="Tools") -> Category:
    category = Category(name=name, description=f"{name} for hire")
    db.add(category)
    db.commit()
    return category


def make_item(db, category, name="Power Drill", daily_rate="15.00", quantity=5,
              status=ItemStatus.AVAILABLE, serial_number=None) -> Item:
    item = Item(
        name=name,
        category_id=category.id,
        daily_rate=Decimal(daily_rate),
        quantity=quantity,
        status=status,
        serial_number=serial_number,
    )
    db.add(item)
    db.commit()
    return item


def make_customer(db, name="John Smith", email="john.smith@email.com") -> Customer:
    customer = Customer(name=name, email=email, phone="(555) 123-4567")
    db.add(customer)
    db.commit()
    return customer


def auth_headers(user: User) -> dict:
    return {"Authorization": f"Bearer {create_access_token(user)}"}


class AppHarness:
    """A fresh app bound to its own in-memory database, with an admin and a staff login."""

    def __init__(self):
        self.database = make_database()
        self.app = create_app(self.database)
        self.client = TestClient(self.app)
        self.db = self.database.session()

        self.admin = make_user(self.db, "admin@rental.test", UserRole.ADMIN)
        self.staff = make_user(self.db, "staff@rental.test", UserRole.STAFF)
        self.admin_headers = auth_headers(self.admin)
        self.staff_headers = auth_headers(self.staff)

    def close(self):
        self.db.close()
        self.database.dispose()
