"""
Unit tests for order service.

Tests quoting, order creation (price snapshot, guest rules, membership
discount) and order listings.
"""
from decimal import Decimal

import pytest
from pydantic import ValidationError as SchemaValidationError

from db_models import Product
from domain.errors import NotFoundError, ValidationError
from models import OrderCreate, OrderItemIn
from services import order_service
from services.order_status_service import OrderStatusEngine


def _cart(catalog, *, user_id=None, quantity=2, **extra):
    return OrderCreate(
        user_id=user_id,
        name=extra.get("name", "Minh Tran"),
        phone=extra.get("phone", "0912345678"),
        address=extra.get("address", "45 Le Loi, District 1"),
        items=[
            OrderItemIn(
                product_id=catalog["product_id"],
                color_id=catalog["color_id"],
                size_id=catalog["size_m"],
                quantity=quantity,
            )
        ],
    )


@pytest.mark.asyncio
async def test_create_guest_order(db_session, catalog):
    order = await order_service.create_order(db_session, _cart(catalog))
    await db_session.commit()

    loaded = await order_service.get_order(db_session, order.id)
    assert loaded.status == "Pending"
    assert loaded.user_id is None
    assert loaded.total_price == Decimal("500000")
    assert [(i.size_id, i.quantity, i.price) for i in loaded.items] == [(catalog["size_m"], 2, Decimal("250000"))]


@pytest.mark.asyncio
async def test_create_order_does_not_touch_stock(db_session, catalog):
    from services import inventory_service

    await order_service.create_order(db_session, _cart(catalog, quantity=3))
    assert await inventory_service.get_stock(db_session, size_id=catalog["size_m"]) == 10


@pytest.mark.asyncio
async def test_line_price_is_a_snapshot(db_session, catalog):
    order = await order_service.create_order(db_session, _cart(catalog, quantity=1))
    order_id = order.id
    await db_session.commit()

    product = await db_session.get(Product, catalog["product_id"])
    product.price = Decimal("999000")
    await db_session.commit()

    db_session.expire_all()
    loaded = await order_service.get_order(db_session, order_id)
    assert loaded.items[0].price == Decimal("250000")
    assert loaded.total_price == Decimal("250000")


@pytest.mark.asyncio
async def test_member_discount_applies(db_session, catalog, tiers, customer):
    from services import membership_service

    await membership_service.apply_spend_change(db_session, customer, Decimal("1000000"))  # Silver, 3%
    quote = await order_service.build_quote(db_session, _cart(catalog, user_id=customer, quantity=2))

    assert quote["subtotal"] == Decimal("500000.00")
    assert quote["discount_percent"] == Decimal("3")
    assert quote["discount"] == Decimal("15000.00")
    assert quote["total"] == Decimal("485000.00")


@pytest.mark.asyncio
async def test_unknown_product(db_session, catalog):
    cart = OrderCreate(
        name="Minh", phone="0912345678", address="HCMC", items=[OrderItemIn(product_id=404, quantity=1)]
    )
    with pytest.raises(NotFoundError):
        await order_service.create_order(db_session, cart)


@pytest.mark.asyncio
async def test_unknown_user(db_session, catalog):
    with pytest.raises(NotFoundError):
        await order_service.create_order(db_session, _cart(catalog, user_id=4040))


@pytest.mark.asyncio
async def test_size_from_another_color(db_session, catalog):
    cart = OrderCreate(
        name="Minh",
        phone="0912345678",
        address="HCMC",
        items=[OrderItemIn(product_id=catalog["product_id"], color_id=9999, size_id=catalog["size_m"])],
    )
    with pytest.raises(ValidationError):
        await order_service.create_order(db_session, cart)


@pytest.mark.asyncio
async def test_blank_address(db_session, catalog):
    with pytest.raises(ValidationError):
        await order_service.create_order(db_session, _cart(catalog, address="   "))


class TestListings:

    @pytest.mark.integration
    @pytest.mark.asyncio
    async def test_user_orders_newest_first(self, db_session, catalog, customer):
        first = await order_service.create_order(db_session, _cart(catalog, user_id=customer, quantity=1))
        second = await order_service.create_order(db_session, _cart(catalog, user_id=customer, quantity=2))
        await order_service.create_order(db_session, _cart(catalog))  # guest
        await db_session.commit()

        orders = await order_service.list_user_orders(db_session, customer)
        assert [o.id for o in orders] == [second.id, first.id]
        assert orders[0].items[0].product.name == "Linen Shirt"

    @pytest.mark.integration
    @pytest.mark.asyncio
    async def test_admin_listing_filters_by_status(self, session_factory, catalog):
        async with session_factory() as session, session.begin():
            kept = await order_service.create_order(session, _cart(catalog))
            moved = await order_service.create_order(session, _cart(catalog))
            kept_id, moved_id = kept.id, moved.id

        await OrderStatusEngine(session_factory).transition(moved_id, "Confirmed")

        async with session_factory() as session:
            pending = await order_service.list_all_orders(session, status="Pending")
            everything = await order_service.list_all_orders(session)

        assert [o.id for o in pending] == [kept_id]
        assert {o.id for o in everything} == {kept_id, moved_id}

    @pytest.mark.integration
    @pytest.mark.asyncio
    async def test_missing_order(self, db_session):
        with pytest.raises(NotFoundError):
            await order_service.get_order(db_session, 31337)


class TestCheckoutSchema:

    @pytest.mark.unit
    def test_guest_needs_name_and_phone(self):
        with pytest.raises(SchemaValidationError):
            OrderCreate(address="HCMC", items=[OrderItemIn(product_id=1)])

    @pytest.mark.unit
    def test_member_may_omit_contact(self):
        cart = OrderCreate(userId=3, address="HCMC", items=[{"productId": 1, "sizeId": 2, "quantity": 2}])
        assert cart.user_id == 3
        assert cart.items[0].size_id == 2

    @pytest.mark.unit
    def test_empty_cart_rejected(self):
        with pytest.raises(SchemaValidationError):
            OrderCreate(user_id=1, address="HCMC", items=[])

    @pytest.mark.unit
    def test_quantity_must_be_positive(self):
        with pytest.raises(SchemaValidationError):
            OrderItemIn(product_id=1, quantity=0)
