"""
Pytest configuration and shared fixtures for the storefront tests.

Provides an in-memory SQLite database (one per test), a session factory for
the order status engine, and small catalog / membership / order fixtures.

Tests that go through OrderStatusEngine must only touch the database through
`session_factory` sessions opened and closed one at a time: StaticPool shares
a single connection between every session of the test.
"""
from decimal import Decimal
from typing import AsyncGenerator

import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from database import create_tables

TIER_THRESHOLDS = [Decimal("0"), Decimal("1000000"), Decimal("5000000")]


# ── Database Fixtures ────────────────────────────────────────────────


@pytest_asyncio.fixture(scope="function")
async def db_engine():
    """
    Create an in-memory SQLite engine for each test.

    Uses StaticPool to allow in-memory SQLite with async SQLAlchemy.
    """
    engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )

    await create_tables(engine)

    yield engine

    await engine.dispose()


@pytest.fixture(scope="function")
def session_factory(db_engine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(db_engine, class_=AsyncSession, expire_on_commit=False)


@pytest_asyncio.fixture(scope="function")
async def db_session(session_factory) -> AsyncGenerator[AsyncSession, None]:
    async with session_factory() as session:
        yield session


# ── Test Data Fixtures ────────────────────────────────────────────────


@pytest_asyncio.fixture
async def tiers(session_factory) -> dict:
    """Three tiers at 0 / 1,000,000 / 5,000,000. Returns {min_spending: tier_id}."""
    from db_models import Membership

    async with session_factory() as session, session.begin():
        rows = [
            Membership(name="Member", min_spending=TIER_THRESHOLDS[0], discount_percent=Decimal("0")),
            Membership(name="Silver", min_spending=TIER_THRESHOLDS[1], discount_percent=Decimal("3")),
            Membership(name="Gold", min_spending=TIER_THRESHOLDS[2], discount_percent=Decimal("5")),
        ]
        session.add_all(rows)
        await session.flush()
        return {t.min_spending: t.id for t in rows}


@pytest_asyncio.fixture
async def customer(session_factory) -> int:
    """A customer with no spend and no tier. Returns the user id."""
    from db_models import User

    async with session_factory() as session, session.begin():
        user = User(name="Lan Nguyen", email="lan@example.com", phone="0901234567")
        session.add(user)
        await session.flush()
        return user.id


@pytest_asyncio.fixture
async def catalog(session_factory) -> dict:
    """
    One product (price 250000) in one color with sizes M (stock 10) and
    L (stock 1). Returns the ids.
    """
    from db_models import Product, ProductColor, ProductSize

    async with session_factory() as session, session.begin():
        product = Product(name="Linen Shirt", price=Decimal("250000"), gender="unisex")
        color = ProductColor(product=product, color_name="Sand", color_code="#D8C3A5")
        size_m = ProductSize(color=color, size="M", stock=10)
        size_l = ProductSize(color=color, size="L", stock=1)
        session.add_all([product, color, size_m, size_l])
        await session.flush()
        return {
            "product_id": product.id,
            "color_id": color.id,
            "size_m": size_m.id,
            "size_l": size_l.id,
        }
