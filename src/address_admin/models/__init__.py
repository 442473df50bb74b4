"""ORM model registry — import all models so Alembic autogenerate discovers them."""

from address_admin.models.address import Address
from address_admin.models.user import User

__all__ = [
    "Address",
    "User",
]
