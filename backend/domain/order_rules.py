"""
Order status rules.

Pure functions over OrderStatus — no database access, no side effects.
Every status may move to every other status; these helpers only decide
what a move does to stock and to the owner's cumulative spend.
"""
from decimal import Decimal

from domain.constants import REVENUE_STATUS, STOCK_UNCOMMITTED_STATUSES
from domain.enums import OrderStatus, StockMovement
from domain.errors import ValidationError


def coerce_status(value: OrderStatus | str) -> OrderStatus:
    """Turn a raw status string into an OrderStatus, rejecting unknown values."""
    if isinstance(value, OrderStatus):
        return value
    try:
        return OrderStatus((value or "").strip())
    except ValueError:
        allowed = ", ".join(s.value for s in OrderStatus)
        raise ValidationError(f"Unknown order status '{value}' (expected one of: {allowed})", field="status") from None


def is_stock_committed(status: OrderStatus) -> bool:
    """True once an order holds stock, i.e. it is neither Pending nor Cancelled."""
    return status not in STOCK_UNCOMMITTED_STATUSES


def is_revenue_recognized(status: OrderStatus) -> bool:
    return status == REVENUE_STATUS


def stock_movement(old: OrderStatus, new: OrderStatus) -> StockMovement:
    old_committed = is_stock_committed(old)
    new_committed = is_stock_committed(new)
    if not old_committed and new_committed:
        return StockMovement.RESERVE
    if old_committed and not new_committed:
        return StockMovement.RELEASE
    return StockMovement.NONE


def spend_delta(old: OrderStatus, new: OrderStatus, total_price: Decimal) -> Decimal:
    """
    Change to apply to the owner's total_spent.

    +total_price when the order enters Delivered, -total_price when it
    leaves Delivered, zero otherwise (including Delivered -> Delivered).
    """
    was_recognized = is_revenue_recognized(old)
    now_recognized = is_revenue_recognized(new)
    if now_recognized and not was_recognized:
        return Decimal(total_price)
    if was_recognized and not now_recognized:
        return -Decimal(total_price)
    return Decimal("0")
