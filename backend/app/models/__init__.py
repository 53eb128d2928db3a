"""
Storefront Backend — ORM Models
=================================

Importing this package registers every table with `Base.metadata`
(used by Alembic autogenerate and the test suite's `create_all`).
"""

from app.models.category import Category
from app.models.product import Product
from app.models.user import User

__all__ = ["Category", "Product", "User"]
