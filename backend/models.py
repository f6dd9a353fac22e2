"""
Pydantic models for service input validation and results.
"""
from decimal import Decimal
from typing import List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator

from domain.enums import OrderStatus, StockMovement


class StoreBase(BaseModel):
    """Shared base — allows construction by Python name or alias, and from ORM rows."""
    model_config = ConfigDict(populate_by_name=True, from_attributes=True)


# ── Catalog Models ──────────────────────────────────────────────────

Gender = Literal["male", "female", "unisex"]


class CategoryIn(StoreBase):
    name: str = Field(..., min_length=1, max_length=100)
    gender: Optional[Gender] = None
    image_url: Optional[str] = Field(default=None, alias="imageUrl")


class ProductIn(StoreBase):
    name: str = Field(..., min_length=1, max_length=200)
    description: Optional[str] = Field(default=None, max_length=5000)
    price: Decimal = Field(..., ge=0, max_digits=12, decimal_places=2)
    image_url: Optional[str] = Field(default=None, alias="imageUrl")
    gender: Gender = "unisex"
    category_id: Optional[int] = Field(default=None, alias="categoryId", gt=0)


class ColorIn(StoreBase):
    color_name: str = Field(..., alias="colorName", min_length=1, max_length=50)
    color_code: Optional[str] = Field(default=None, alias="colorCode", max_length=20)
    image_url: Optional[str] = Field(default=None, alias="imageUrl")


class SizeStockIn(StoreBase):
    """
    Add a size to a color, or top up an existing one.

    With increment=False an existing size is a conflict; with increment=True
    stock is added to the existing counter.
    """
    size: str = Field(..., min_length=1, max_length=10)
    stock: int = Field(0, ge=0)
    increment: bool = False


# ── Banner Models ───────────────────────────────────────────────────

class BannerIn(StoreBase):
    image_url: str = Field(..., alias="imageUrl", min_length=1)
    title: Optional[str] = Field(default=None, max_length=200)
    subtitle: Optional[str] = Field(default=None, max_length=300)


class BannerUpdate(StoreBase):
    image_url: Optional[str] = Field(default=None, alias="imageUrl", min_length=1)
    title: Optional[str] = Field(default=None, max_length=200)
    subtitle: Optional[str] = Field(default=None, max_length=300)


# ── Membership Models ───────────────────────────────────────────────

class MembershipTierIn(StoreBase):
    name: str = Field(..., min_length=1, max_length=50)
    min_spending: Decimal = Field(..., alias="minSpending", ge=0, max_digits=12, decimal_places=2)
    discount_percent: Decimal = Field(
        Decimal("0"), alias="discountPercent", ge=0, le=100, max_digits=5, decimal_places=2
    )


class MembershipTierUpdate(StoreBase):
    name: Optional[str] = Field(default=None, min_length=1, max_length=50)
    min_spending: Optional[Decimal] = Field(default=None, alias="minSpending", ge=0, max_digits=12, decimal_places=2)
    discount_percent: Optional[Decimal] = Field(
        default=None, alias="discountPercent", ge=0, le=100, max_digits=5, decimal_places=2
    )


# ── Order Models ────────────────────────────────────────────────────

class OrderItemIn(StoreBase):
    product_id: int = Field(..., alias="productId", gt=0)
    color_id: Optional[int] = Field(default=None, alias="colorId", gt=0)
    size_id: Optional[int] = Field(default=None, alias="sizeId", gt=0)
    quantity: int = Field(1, ge=1, le=100)


class OrderCreate(StoreBase):
    """
    Checkout payload.

    Guests (no user_id) must leave a name and phone so the shop can
    reach them; signed-in customers may omit both.
    """
    user_id: Optional[int] = Field(default=None, alias="userId", gt=0)
    name: Optional[str] = Field(default=None, max_length=100)
    phone: Optional[str] = Field(default=None, max_length=20)
    address: str = Field(..., min_length=1)
    items: List[OrderItemIn] = Field(..., min_length=1)

    @model_validator(mode="after")
    def _guest_contact_required(self):
        if self.user_id is None and (not (self.name or "").strip() or not (self.phone or "").strip()):
            raise ValueError("Guest orders must provide name and phone")
        return self


class OrderStatusUpdate(StoreBase):
    order_id: int = Field(..., alias="orderId", gt=0)
    new_status: OrderStatus = Field(..., alias="newStatus")


# ── Transition Result ───────────────────────────────────────────────

class StockShortfall(StoreBase):
    """A reservation that could not be applied because stock was too low."""
    size_id: int
    requested: int
    available: Optional[int] = None


class TransitionResult(StoreBase):
    order_id: int
    old_status: OrderStatus
    new_status: OrderStatus
    stock_movement: StockMovement
    money_change: Decimal = Decimal("0")
    total_spent: Optional[Decimal] = None
    membership_id: Optional[int] = None
    shortfalls: List[StockShortfall] = Field(default_factory=list)
