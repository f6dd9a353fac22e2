"""
Change an order's status from the command line (back-office fallback).

Stock, customer spend and membership tier follow the change exactly as
they would from the admin console.

Run from the backend/ directory:
    python scripts/set_order_status.py <order_id> <status>

Example:
    python scripts/set_order_status.py 42 Shipping
"""
import asyncio
import logging
import os
import sys

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))
from config import settings

logging.basicConfig(
    level=settings.log_level,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)


async def main(order_id: int, new_status: str) -> int:
    from pydantic import ValidationError

    from database import async_session, engine
    from domain.errors import NotFoundError, DomainError
    from models import OrderStatusUpdate
    from services.order_status_service import OrderStatusEngine

    try:
        request = OrderStatusUpdate(order_id=order_id, new_status=new_status)
    except ValidationError:
        await engine.dispose()
        print(f"❌ Unknown status: {new_status}")
        return 2

    try:
        result = await OrderStatusEngine(async_session).transition(request.order_id, request.new_status)
    except NotFoundError:
        print(f"❌ Order not found: {order_id}")
        return 1
    except DomainError as e:
        print(f"❌ Could not update order {order_id}: {e.message}")
        return 1
    finally:
        await engine.dispose()

    print(f"✅ Order {order_id}: {result.old_status.value} -> {result.new_status.value}")
    for shortfall in result.shortfalls:
        print(
            f"⚠️  Size {shortfall.size_id}: requested {shortfall.requested}, "
            f"only {shortfall.available} in stock (not reserved)"
        )
    if result.money_change:
        print(f"   Customer spend {result.money_change:+} -> {result.total_spent}")
    return 0


if __name__ == "__main__":
    if len(sys.argv) != 3 or not sys.argv[1].isdigit():
        print(__doc__)
        sys.exit(2)
    sys.exit(asyncio.run(main(int(sys.argv[1]), sys.argv[2])))
