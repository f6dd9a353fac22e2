"""
Domain enums shared by the ORM models and services.
"""

from enum import Enum


class OrderStatus(str, Enum):
    PENDING = "Pending"
    CONFIRMED = "Confirmed"
    SHIPPING = "Shipping"
    DELIVERED = "Delivered"
    CANCELLED = "Cancelled"


class StockMovement(str, Enum):
    """What a status change does to the sizes referenced by an order."""
    RESERVE = "reserve"  # decrement stock (guarded)
    RELEASE = "release"  # increment stock
    NONE = "none"


class StockPolicy(str, Enum):
    """How a reservation that cannot be covered by stock is treated."""
    PERMISSIVE = "permissive"  # skip the row, keep going
    STRICT = "strict"  # abort the whole transition


class UserRole(str, Enum):
    CUSTOMER = "customer"
    ADMIN = "admin"
