"""
Direct-database helpers shared by the order tests.

Each helper opens and closes its own session so it never overlaps with the
session a service under test is using.
"""
from decimal import Decimal


async def make_order(
    session_factory,
    *,
    user_id,
    total_price,
    lines,
    status="Pending",
    order_id=None,
) -> int:
    """
    Insert an order directly. `lines` is a list of (product_id, size_id, quantity).
    """
    from db_models import Order, OrderItem

    async with session_factory() as session, session.begin():
        order = Order(
            id=order_id,
            user_id=user_id,
            name="Lan Nguyen",
            phone="0901234567",
            address="12 Hang Bac, Hanoi",
            total_price=Decimal(total_price),
            status=status,
        )
        session.add(order)
        await session.flush()
        for product_id, size_id, quantity in lines:
            session.add(
                OrderItem(
                    order_id=order.id,
                    product_id=product_id,
                    size_id=size_id,
                    quantity=quantity,
                    price=Decimal("0"),
                )
            )
        return order.id


async def read_stock(session_factory, size_id) -> int:
    from db_models import ProductSize

    async with session_factory() as session:
        return (await session.get(ProductSize, size_id)).stock


async def read_user(session_factory, user_id):
    from db_models import User

    async with session_factory() as session:
        return await session.get(User, user_id)


async def read_status(session_factory, order_id) -> str:
    from db_models import Order

    async with session_factory() as session:
        return (await session.get(Order, order_id)).status
