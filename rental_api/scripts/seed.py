#!/usr/bin/env python3
"""
Seed a fresh database with the default logins, categories and (optionally)
sample items and customers. Existing rows with the same unique key are kept.

    python -m rental_api.scripts.seed --create-tables --sample-data
"""
import argparse
import logging
import os
from decimal import Decimal

from sqlalchemy.orm import Session

from rental_api.core.database import Database, transaction
from rental_api.core.passwords import hash_password
from rental_api.models.category import Category
from rental_api.models.customer import Customer
from rental_api.models.enums import ItemStatus, UserRole
from rental_api.models.item import Item
from rental_api.models.user import User

logger = logging.getLogger("rental_api.seed")

CATEGORIES = [
    ("Tools", "Power tools and hand tools"),
    ("Garden", "Lawn and garden equipment"),
    ("Construction", "Heavy construction equipment"),
    ("Cleaning", "Cleaning equipment and supplies"),
    ("Electronics", "Electronic equipment"),
]

SAMPLE_ITEMS = [
    # name, description, category, daily rate, quantity
    ("Power Drill XL2000", "Professional cordless power drill with battery", "Tools", "15.00", 5),
    ("Lawn Mower Pro", "Self-propelled gas lawn mower", "Garden", "40.00", 3),
    ("Concrete Mixer", "Portable electric concrete mixer", "Construction", "50.00", 2),
    ("Pressure Washer", "3000 PSI electric pressure washer", "Cleaning", "28.00", 4),
    ("Ladder 20ft", "Extension ladder, aluminum", "Tools", "12.00", 8),
    ("Chainsaw Pro", "Gas-powered chainsaw with safety gear", "Tools", "35.00", 6),
]

SAMPLE_CUSTOMERS = [
    ("John Smith", "john.smith@email.com", "(555) 123-4567", "123 Main St, Anytown, ST 12345"),
    ("Sarah Johnson", "sarah.j@email.com", "(555) 234-5678", "456 Oak Ave, Somewhere, ST 23456"),
    ("Mike Wilson", "mike.wilson@email.com", "(555) 345-6789", "789 Pine Rd, Elsewhere, ST 34567"),
]


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Seed the rental database with default users and categories.")
    parser.add_argument(
        "--db-url",
        default=os.environ.get("DATABASE_URL", "").strip(),
        help="SQLAlchemy DB URL; defaults to DATABASE_URL env var.",
    )
    parser.add_argument("--admin-email", default="admin@rental.com")
    parser.add_argument("--admin-password", default="admin123")
    parser.add_argument("--staff-email", default="staff@rental.com")
    parser.add_argument("--staff-password", default="staff123")
    parser.add_argument("--create-tables", action="store_true", help="Create tables directly instead of via alembic.")
    parser.add_argument("--sample-data", action="store_true", help="Also add sample items and customers.")
    return parser


def ensure_user(db: Session, email: str, password: str, name: str, role: UserRole) -> User:
    user = db.query(User).filter(User.email == email).first()
    if user:
        return user
    password_hash, salt = hash_password(password)
    user = User(email=email, name=name, password_hash=password_hash, password_salt=salt, role=role)
    db.add(user)
    db.flush()
    logger.info("Created %s user %s", role.value, email)
    return user


def ensure_categories(db: Session) -> dict:
    by_name = {}
    for name, description in CATEGORIES:
        category = db.query(Category).filter(Category.name == name).first()
        if not category:
            category = Category(name=name, description=description)
            db.add(category)
            db.flush()
        by_name[name] = category
    return by_name


def add_sample_data(db: Session, categories: dict) -> None:
    for name, description, category, rate, quantity in SAMPLE_ITEMS:
        if db.query(Item.id).filter(Item.name == name).first():
            continue
        db.add(Item(
            name=name,
            description=description,
            category_id=categories[category].id,
            daily_rate=Decimal(rate),
            quantity=quantity,
            status=ItemStatus.AVAILABLE,
        ))
    for name, email, phone, address in SAMPLE_CUSTOMERS:
        if db.query(Customer.id).filter(Customer.email == email).first():
            continue
        db.add(Customer(name=name, email=email, phone=phone, address=address))
    db.flush()


def seed(database: Database, args: argparse.Namespace) -> None:
    db = database.session()
    try:
        with transaction(db):
            ensure_user(db, args.admin_email.lower(), args.admin_password, "Admin User", UserRole.ADMIN)
            ensure_user(db, args.staff_email.lower(), args.staff_password, "Staff User", UserRole.STAFF)
            categories = ensure_categories(db)
            if args.sample_data:
                add_sample_data(db, categories)
    finally:
        db.close()


def main() -> int:
    logging.basicConfig(level=logging.INFO, format="%(levelname)s %(message)s")
    parser = _build_parser()
    args = parser.parse_args()

    if not args.db_url:
        parser.error("Missing DB URL. Set DATABASE_URL or pass --db-url.")
    for flag in ("admin_password", "staff_password"):
        if len(getattr(args, flag).strip()) < 6:
            parser.error(f"--{flag.replace('_', '-')} must be at least 6 characters.")

    database = Database(args.db_url)
    try:
        if args.create_tables:
            database.create_all()
        seed(database, args)
    finally:
        database.dispose()

    print(f"OK admin={args.admin_email} staff={args.staff_email}")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
