"""
Inventory service — categories, products, storefront browsing, color/size
variants and stock counters.

Stock lives on product_sizes. Two statements change it outside of admin
edits, and both are single UPDATEs so the database applies them atomically:

    reserve_stock  — stock = stock - q  WHERE stock >= q   (guarded)
    release_stock  — stock = stock + q
"""
import logging
from decimal import Decimal
from typing import Optional

from sqlalchemy import delete, func, or_, select, update
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from db_models import Category, Product, ProductColor, ProductSize
from domain.errors import ConflictError, NotFoundError, ValidationError
from models import CategoryIn, ColorIn, ProductIn, SizeStockIn

logger = logging.getLogger(__name__)


# ── Categories ──────────────────────────────────────────────────────

async def _ensure_category_name_free(
    db: AsyncSession, name: str, gender: Optional[str], exclude_id: Optional[int] = None
) -> None:
    query = select(Category.id).where(Category.name == name, Category.gender == gender)
    if exclude_id is not None:
        query = query.where(Category.id != exclude_id)
    if (await db.execute(query)).first():
        raise ConflictError(
            f"Category already exists: {name}",
            details={"name": name, "gender": gender},
        )


async def create_category(db: AsyncSession, data: CategoryIn) -> Category:
    await _ensure_category_name_free(db, data.name, data.gender)
    category = Category(name=data.name, gender=data.gender, image_url=data.image_url)
    db.add(category)
    await db.flush()
    return category


async def list_categories(db: AsyncSession) -> list[Category]:
    res = await db.execute(select(Category).order_by(Category.id))
    return res.scalars().all()


async def get_category(db: AsyncSession, *, category_id: int) -> Category:
    category = await db.get(Category, category_id)
    if not category:
        raise NotFoundError("Category", str(category_id))
    return category


async def update_category(db: AsyncSession, *, category_id: int, data: CategoryIn) -> Category:
    category = await get_category(db, category_id=category_id)
    await _ensure_category_name_free(db, data.name, data.gender, exclude_id=category_id)
    category.name = data.name
    category.gender = data.gender
    category.image_url = data.image_url
    await db.flush()
    return category


async def delete_category(db: AsyncSession, *, category_id: int) -> None:
    """Delete an empty category. Categories that still hold products are a conflict."""
    category = await get_category(db, category_id=category_id)
    in_use = (
        await db.execute(select(func.count(Product.id)).where(Product.category_id == category_id))
    ).scalar()
    if in_use:
        raise ConflictError(
            f"Category {category_id} still has {in_use} product(s)",
            details={"category_id": category_id, "products": in_use},
        )
    await db.delete(category)
    await db.flush()
    logger.info(f"Category {category_id} ({category.name}) deleted")


# ── Products ────────────────────────────────────────────────────────

async def _check_category(db: AsyncSession, category_id: Optional[int]) -> None:
    if category_id is not None and await db.get(Category, category_id) is None:
        raise NotFoundError("Category", str(category_id))


async def create_product(db: AsyncSession, data: ProductIn) -> Product:
    await _check_category(db, data.category_id)
    product = Product(
        name=data.name,
        description=data.description,
        price=data.price,
        image_url=data.image_url,
        gender=data.gender,
        category_id=data.category_id,
    )
    db.add(product)
    await db.flush()
    return product


async def update_product(db: AsyncSession, *, product_id: int, data: ProductIn) -> Product:
    """Replace a product's editable fields. Past order lines keep their own price."""
    product = await db.get(Product, product_id)
    if not product:
        raise NotFoundError("Product", str(product_id))
    await _check_category(db, data.category_id)

    product.name = data.name
    product.description = data.description
    product.price = data.price
    product.image_url = data.image_url
    product.gender = data.gender
    product.category_id = data.category_id
    await db.flush()
    return product


async def get_product_detail(db: AsyncSession, *, product_id: int) -> Product:
    """Product with its colors and each color's sizes loaded."""
    res = await db.execute(
        select(Product)
        .where(Product.id == product_id)
        .options(selectinload(Product.colors).selectinload(ProductColor.sizes))
    )
    product = res.scalar_one_or_none()
    if not product:
        raise NotFoundError("Product", str(product_id))
    return product


async def list_products_with_stock(db: AsyncSession) -> list[dict]:
    """
    Admin product table: every product with its category name and the
    stock summed over all of its sizes.
    """
    total_stock = func.coalesce(func.sum(ProductSize.stock), 0).label("total_stock")
    res = await db.execute(
        select(Product, Category.name.label("category_name"), total_stock)
        .outerjoin(Category, Category.id == Product.category_id)
        .outerjoin(ProductColor, ProductColor.product_id == Product.id)
        .outerjoin(ProductSize, ProductSize.color_id == ProductColor.id)
        .group_by(Product.id, Category.name)
        .order_by(Product.id.desc())
    )
    return [
        {
            "id": product.id,
            "name": product.name,
            "price": Decimal(product.price),
            "gender": product.gender,
            "category_name": category_name,
            "total_stock": int(stock or 0),
        }
        for product, category_name, stock in res.all()
    ]


async def delete_product(db: AsyncSession, *, product_id: int) -> None:
    """Delete a product together with its colors and sizes."""
    product = await get_product_detail(db, product_id=product_id)
    await db.delete(product)
    await db.flush()
    logger.info(f"Product {product_id} deleted with {len(product.colors)} color(s)")


# ── Storefront browsing ─────────────────────────────────────────────

def _catalog_filters(category_id: Optional[int], gender: Optional[str], keyword: Optional[str] = None) -> list:
    """WHERE clauses shared by the listing, search and count queries. Gender matches exactly."""
    clauses = []
    if category_id is not None:
        clauses.append(Product.category_id == category_id)
    if gender:
        clauses.append(Product.gender == gender)
    if keyword is not None:
        clauses.append(
            or_(
                Product.name.icontains(keyword, autoescape=True),
                Product.description.icontains(keyword, autoescape=True),
            )
        )
    return clauses


def _search_term(keyword: str) -> str:
    term = (keyword or "").strip()
    if not term:
        raise ValidationError("Search keyword must not be empty", field="keyword")
    return term


async def _page(db: AsyncSession, clauses: list, limit: int, offset: int) -> list[Product]:
    res = await db.execute(
        select(Product)
        .where(*clauses)
        .options(selectinload(Product.category))
        .order_by(Product.created_at.desc(), Product.id.desc())
        .limit(limit)
        .offset(offset)
    )
    return res.scalars().all()


async def _count(db: AsyncSession, clauses: list) -> int:
    res = await db.execute(select(func.count(Product.id)).where(*clauses))
    return res.scalar() or 0


async def list_products(
    db: AsyncSession,
    *,
    category_id: Optional[int] = None,
    gender: Optional[str] = None,
    limit: int = 20,
    offset: int = 0,
) -> list[Product]:
    """Newest products first, optionally narrowed to a category and a gender."""
    return await _page(db, _catalog_filters(category_id, gender), limit, offset)


async def count_products(
    db: AsyncSession, *, category_id: Optional[int] = None, gender: Optional[str] = None
) -> int:
    return await _count(db, _catalog_filters(category_id, gender))


async def search_products(
    db: AsyncSession,
    keyword: str,
    *,
    category_id: Optional[int] = None,
    gender: Optional[str] = None,
    limit: int = 20,
    offset: int = 0,
) -> list[Product]:
    """Case-insensitive substring match on name or description."""
    clauses = _catalog_filters(category_id, gender, _search_term(keyword))
    return await _page(db, clauses, limit, offset)


async def count_search_results(
    db: AsyncSession,
    keyword: str,
    *,
    category_id: Optional[int] = None,
    gender: Optional[str] = None,
) -> int:
    return await _count(db, _catalog_filters(category_id, gender, _search_term(keyword)))


# ── Colors ──────────────────────────────────────────────────────────

async def create_color(db: AsyncSession, *, product_id: int, data: ColorIn) -> ProductColor:
    if await db.get(Product, product_id) is None:
        raise NotFoundError("Product", str(product_id))
    color = ProductColor(
        product_id=product_id,
        color_name=data.color_name,
        color_code=data.color_code,
        image_url=data.image_url,
    )
    db.add(color)
    await db.flush()
    return color


async def delete_color(db: AsyncSession, *, color_id: int) -> None:
    color = await db.get(ProductColor, color_id)
    if not color:
        raise NotFoundError("Color", str(color_id))
    await db.delete(color)
    await db.flush()


# ── Sizes ───────────────────────────────────────────────────────────

async def add_or_update_size(db: AsyncSession, *, color_id: int, data: SizeStockIn) -> ProductSize:
    """
    Create a size under a color, or top up an existing one when
    data.increment is set.
    """
    if await db.get(ProductColor, color_id) is None:
        raise NotFoundError("Color", str(color_id))

    res = await db.execute(
        select(ProductSize).where(
            ProductSize.color_id == color_id,
            ProductSize.size == data.size,
        )
    )
    existing = res.scalar_one_or_none()

    if existing:
        if not data.increment:
            raise ConflictError(f"Size {data.size} already exists for color {color_id}")
        await release_stock(db, size_id=existing.id, quantity=data.stock)
        await db.refresh(existing)
        logger.info(f"Size {existing.id} topped up by {data.stock} (now {existing.stock})")
        return existing

    size = ProductSize(color_id=color_id, size=data.size, stock=data.stock)
    db.add(size)
    await db.flush()
    return size


async def delete_size(db: AsyncSession, *, size_id: int) -> None:
    res = await db.execute(delete(ProductSize).where(ProductSize.id == size_id))
    if res.rowcount == 0:
        raise NotFoundError("Size", str(size_id))


# ── Stock counters ──────────────────────────────────────────────────

async def get_stock(db: AsyncSession, *, size_id: int) -> int | None:
    res = await db.execute(select(ProductSize.stock).where(ProductSize.id == size_id))
    return res.scalar_one_or_none()


async def reserve_stock(db: AsyncSession, *, size_id: int, quantity: int) -> bool:
    """
    Guarded decrement. Returns False (and changes nothing) when the size
    does not exist or holds less than `quantity`.
    """
    res = await db.execute(
        update(ProductSize)
        .where(ProductSize.id == size_id, ProductSize.stock >= quantity)
        .values(stock=ProductSize.stock - quantity)
        .execution_options(synchronize_session=False)
    )
    return res.rowcount == 1


async def release_stock(db: AsyncSession, *, size_id: int, quantity: int) -> bool:
    """Unconditional increment. Returns False only when the size does not exist."""
    res = await db.execute(
        update(ProductSize)
        .where(ProductSize.id == size_id)
        .values(stock=ProductSize.stock + quantity)
        .execution_options(synchronize_session=False)
    )
    return res.rowcount == 1
