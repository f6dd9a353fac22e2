"""
Order service — checkout quotes, order creation and order listings.

Orders start as Pending and hold no stock; stock is reserved when an
order's status leaves {Pending, Cancelled} (see order_status_service).
Line prices are copied from the product at checkout and never change
afterwards, even if the product is repriced.
"""
import logging
from decimal import ROUND_HALF_UP, Decimal
from typing import Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from db_models import Order, OrderItem, Product, ProductSize, User
from domain.constants import INITIAL_ORDER_STATUS
from domain.errors import NotFoundError, ValidationError
from domain.order_rules import coerce_status
from domain.enums import OrderStatus
from models import OrderCreate
from services import membership_service

logger = logging.getLogger(__name__)

CENT = Decimal("0.01")


def _money(value: Decimal) -> Decimal:
    return Decimal(value).quantize(CENT, rounding=ROUND_HALF_UP)


async def build_quote(db: AsyncSession, data: OrderCreate) -> dict:
    """
    Price a cart against current product prices and the buyer's tier.

    Returns:
        dict: {subtotal, discount_percent, discount, total, items}
              items carry the unit price that will be snapshotted.
    """
    if data.user_id is not None and await db.get(User, data.user_id) is None:
        raise NotFoundError("User", str(data.user_id))

    product_ids = {i.product_id for i in data.items}
    res = await db.execute(select(Product).where(Product.id.in_(product_ids)))
    products = {p.id: p for p in res.scalars().all()}

    size_ids = {i.size_id for i in data.items if i.size_id is not None}
    sizes = {}
    if size_ids:
        size_res = await db.execute(select(ProductSize).where(ProductSize.id.in_(size_ids)))
        sizes = {s.id: s for s in size_res.scalars().all()}

    subtotal = Decimal("0")
    normalized_items: list[dict] = []
    for i in data.items:
        p = products.get(i.product_id)
        if not p:
            raise NotFoundError("Product", str(i.product_id))
        if i.size_id is not None:
            size = sizes.get(i.size_id)
            if not size:
                raise NotFoundError("Size", str(i.size_id))
            if i.color_id is not None and size.color_id != i.color_id:
                raise ValidationError(
                    f"Size {i.size_id} does not belong to color {i.color_id}", field="items"
                )

        unit_price = _money(p.price)
        subtotal += unit_price * i.quantity
        normalized_items.append(
            {
                "product_id": p.id,
                "color_id": i.color_id,
                "size_id": i.size_id,
                "quantity": i.quantity,
                "price": unit_price,
            }
        )

    discount_percent = await membership_service.get_user_discount_percent(db, data.user_id)
    discount = _money(subtotal * discount_percent / Decimal("100"))
    total = max(Decimal("0"), subtotal - discount)

    return {
        "subtotal": _money(subtotal),
        "discount_percent": discount_percent,
        "discount": discount,
        "total": _money(total),
        "items": normalized_items,
    }


async def create_order(db: AsyncSession, data: OrderCreate) -> Order:
    """
    Place an order in status Pending with snapshotted line prices.

    Stock is not touched here. The caller owns the transaction (commit).
    """
    if not data.address.strip():
        raise ValidationError("Address is required", field="address")

    quote = await build_quote(db, data)

    order = Order(
        user_id=data.user_id,
        name=data.name,
        phone=data.phone,
        address=data.address.strip(),
        total_price=quote["total"],
        status=INITIAL_ORDER_STATUS.value,
    )
    db.add(order)
    await db.flush()

    for i in quote["items"]:
        db.add(OrderItem(order_id=order.id, **i))
    await db.flush()

    logger.info(
        f"Order {order.id} created for {'user ' + str(data.user_id) if data.user_id else 'guest'} "
        f"({len(quote['items'])} lines, total {quote['total']})"
    )
    return order


async def get_order(db: AsyncSession, order_id: int) -> Order:
    res = await db.execute(
        select(Order)
        .where(Order.id == order_id)
        .options(selectinload(Order.items))
    )
    order = res.scalar_one_or_none()
    if not order:
        raise NotFoundError("Order", str(order_id))
    return order


async def list_user_orders(db: AsyncSession, user_id: int) -> list[Order]:
    """A customer's orders, newest first, with lines loaded."""
    res = await db.execute(
        select(Order)
        .where(Order.user_id == user_id)
        .options(selectinload(Order.items).selectinload(OrderItem.product))
        .order_by(Order.created_at.desc(), Order.id.desc())
    )
    return res.scalars().all()


async def list_all_orders(
    db: AsyncSession,
    *,
    status: Optional[OrderStatus | str] = None,
    limit: int = 50,
    offset: int = 0,
) -> list[Order]:
    """Back-office order list, optionally filtered by status."""
    query = select(Order).options(selectinload(Order.items), selectinload(Order.user))
    if status is not None:
        query = query.where(Order.status == coerce_status(status).value)
    res = await db.execute(
        query.order_by(Order.created_at.desc(), Order.id.desc()).limit(limit).offset(offset)
    )
    return res.scalars().all()
