"""
SQLAlchemy ORM models for the Storefront back-office.

Tables:
    categories      — product groupings shown in the storefront menu
    products        — catalog entries (base price lives here)
    product_colors  — color variants of a product
    product_sizes   — size variants of a color; holds the stock counter
    memberships     — spend-based membership tiers with a discount
    users           — customers and staff, with cumulative spend
    orders          — customer or guest orders
    order_items     — order lines with a unit price snapshot
    banners         — home page slides
"""
from datetime import datetime
from decimal import Decimal

from sqlalchemy import (
    Column, Integer, String, Numeric, DateTime, Text, ForeignKey,
    UniqueConstraint, CheckConstraint, Index,
)
from sqlalchemy.orm import relationship

from database import Base
from domain.enums import OrderStatus

MONEY = Numeric(12, 2, asdecimal=True)


# ════════════════════════════════════════════════════════════════════
# Catalog
# ════════════════════════════════════════════════════════════════════

class Category(Base):
    """Product grouping. The same name may exist once per gender."""
    __tablename__ = "categories"

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String(100), nullable=False)
    gender = Column(String(10), nullable=True)  # "male" | "female" | "unisex" | NULL
    image_url = Column(Text, nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow)

    products = relationship("Product", back_populates="category", lazy="select")

    __table_args__ = (
        UniqueConstraint("name", "gender", name="uq_category_name_gender"),
    )


class Product(Base):
    __tablename__ = "products"

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String(200), nullable=False)
    description = Column(Text, nullable=True)
    price = Column(MONEY, nullable=False, default=Decimal("0"))
    image_url = Column(Text, nullable=True)
    gender = Column(String(10), nullable=False, default="unisex")  # "male" | "female" | "unisex"
    category_id = Column(Integer, ForeignKey("categories.id"), nullable=True, index=True)
    created_at = Column(DateTime, default=datetime.utcnow, index=True)

    category = relationship("Category", back_populates="products")
    colors = relationship(
        "ProductColor",
        back_populates="product",
        cascade="all, delete-orphan",
        lazy="select",
    )


class ProductColor(Base):
    """A color variant of a product. Stock is tracked per size below it."""
    __tablename__ = "product_colors"

    id = Column(Integer, primary_key=True, autoincrement=True)
    product_id = Column(Integer, ForeignKey("products.id"), nullable=False, index=True)
    color_name = Column(String(50), nullable=False)
    color_code = Column(String(20), nullable=True)  # e.g. "#1A1A1A"
    image_url = Column(Text, nullable=True)

    product = relationship("Product", back_populates="colors")
    sizes = relationship(
        "ProductSize",
        back_populates="color",
        cascade="all, delete-orphan",
        lazy="select",
    )


class ProductSize(Base):
    """
    Inventory unit — one row per (color, size label).

    stock is only ever changed by guarded decrements (never below zero)
    or plain increments; see services/inventory_service.py.
    """
    __tablename__ = "product_sizes"

    id = Column(Integer, primary_key=True, autoincrement=True)
    color_id = Column(Integer, ForeignKey("product_colors.id"), nullable=False, index=True)
    size = Column(String(10), nullable=False)  # "S" | "M" | "L" | "XL" | "38" ...
    stock = Column(Integer, nullable=False, default=0)

    color = relationship("ProductColor", back_populates="sizes")

    __table_args__ = (
        UniqueConstraint("color_id", "size", name="uq_product_size_color_size"),
        CheckConstraint("stock >= 0", name="ck_product_size_stock_non_negative"),
    )


# ════════════════════════════════════════════════════════════════════
# Users & Membership
# ════════════════════════════════════════════════════════════════════

class Membership(Base):
    """
    Spend-based membership tier.

    A user's tier is the one with the greatest min_spending that does not
    exceed their total_spent.
    """
    __tablename__ = "memberships"

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String(50), nullable=False)
    min_spending = Column(MONEY, nullable=False, default=Decimal("0"), unique=True)
    discount_percent = Column(Numeric(5, 2, asdecimal=True), nullable=False, default=Decimal("0"))

    users = relationship("User", back_populates="membership", lazy="select")


class User(Base):
    """Customers and staff accounts."""
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String(100), nullable=False)
    email = Column(String(255), unique=True, nullable=False, index=True)
    phone = Column(String(20), nullable=True)
    role = Column(String(20), nullable=False, default="customer")  # "customer" | "admin"
    total_spent = Column(MONEY, nullable=False, default=Decimal("0"))
    membership_id = Column(Integer, ForeignKey("memberships.id"), nullable=True, index=True)
    created_at = Column(DateTime, default=datetime.utcnow)

    membership = relationship("Membership", back_populates="users")
    orders = relationship("Order", back_populates="user", lazy="select")


# ════════════════════════════════════════════════════════════════════
# Orders
# ════════════════════════════════════════════════════════════════════

class Order(Base):
    __tablename__ = "orders"

    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=True, index=True)  # null => guest
    name = Column(String(100), nullable=True)  # recipient name (required for guests)
    phone = Column(String(20), nullable=True)
    address = Column(Text, nullable=False)
    total_price = Column(MONEY, nullable=False, default=Decimal("0"))
    status = Column(
        String(20), nullable=False, default=OrderStatus.PENDING.value, index=True
    )  # Pending | Confirmed | Shipping | Delivered | Cancelled
    created_at = Column(DateTime, default=datetime.utcnow, index=True)

    user = relationship("User", back_populates="orders")
    items = relationship(
        "OrderItem",
        back_populates="order",
        cascade="all, delete-orphan",
        lazy="select",
    )

    __table_args__ = (
        # For customer order history: filter by user_id, order by created_at DESC
        Index("ix_orders_user_created", "user_id", "created_at"),
    )


class OrderItem(Base):
    """Order line. price is the product price captured when the order was placed."""
    __tablename__ = "order_items"

    id = Column(Integer, primary_key=True, autoincrement=True)
    order_id = Column(Integer, ForeignKey("orders.id"), nullable=False, index=True)
    product_id = Column(Integer, ForeignKey("products.id"), nullable=False, index=True)
    color_id = Column(Integer, ForeignKey("product_colors.id"), nullable=True)
    size_id = Column(Integer, ForeignKey("product_sizes.id"), nullable=True, index=True)
    quantity = Column(Integer, nullable=False, default=1)
    price = Column(MONEY, nullable=False, default=Decimal("0"))

    order = relationship("Order", back_populates="items")
    product = relationship("Product", lazy="select")

    __table_args__ = (
        CheckConstraint("quantity > 0", name="ck_order_item_quantity_positive"),
    )


# ════════════════════════════════════════════════════════════════════
# Storefront content
# ════════════════════════════════════════════════════════════════════

class Banner(Base):
    """Home page slide managed from the back-office."""
    __tablename__ = "banners"

    id = Column(Integer, primary_key=True, autoincrement=True)
    image_url = Column(Text, nullable=False)
    title = Column(String(200), nullable=True)
    subtitle = Column(String(300), nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow)
