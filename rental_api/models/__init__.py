from rental_api.models.user import User
from rental_api.models.category import Category
from rental_api.models.item import Item
from rental_api.models.customer import Customer
from rental_api.models.rental import Rental
from rental_api.models.payment import Payment
from rental_api.models.expense import Expense
from rental_api.models.maintenance import Maintenance

__all__ = [
    "User",
    "Category",
    "Item",
    "Customer",
    "Rental",
    "Payment",
    "Expense",
    "Maintenance",
]
