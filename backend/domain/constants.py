"""
Domain constants used across services.
"""
from decimal import Decimal

from domain.enums import OrderStatus

# Statuses in which an order holds no stock. Leaving this group reserves
# stock for every sized line; entering it releases that stock again.
STOCK_UNCOMMITTED_STATUSES = frozenset({OrderStatus.PENDING, OrderStatus.CANCELLED})

# The single status whose orders count toward a customer's cumulative spend.
REVENUE_STATUS = OrderStatus.DELIVERED

INITIAL_ORDER_STATUS = OrderStatus.PENDING

# Seeded by scripts/init_db.py when the memberships table is empty.
DEFAULT_MEMBERSHIP_TIERS = [
    {"name": "Member", "min_spending": Decimal("0"), "discount_percent": Decimal("0")},
    {"name": "Silver", "min_spending": Decimal("1000000"), "discount_percent": Decimal("3")},
    {"name": "Gold", "min_spending": Decimal("5000000"), "discount_percent": Decimal("5")},
    {"name": "Diamond", "min_spending": Decimal("15000000"), "discount_percent": Decimal("10")},
]

PRODUCT_GENDERS = ("male", "female", "unisex")
