"""
Membership Service — spend-based membership tiers.

Each tier has:
  - a minimum cumulative spend (unique across tiers)
  - a discount percentage

A user's tier is the tier with the greatest min_spending that does not
exceed their total_spent. When spend falls below every threshold the
previously assigned tier is kept; nothing assigns a tier of "none".
"""
import logging
from contextlib import asynccontextmanager
from decimal import Decimal
from typing import Optional

from sqlalchemy import func, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from db_models import Membership, User
from domain.constants import DEFAULT_MEMBERSHIP_TIERS
from domain.errors import ConflictError, NotFoundError
from models import MembershipTierIn, MembershipTierUpdate

logger = logging.getLogger(__name__)


async def list_tiers(db: AsyncSession) -> list[Membership]:
    """All tiers, cheapest first."""
    res = await db.execute(select(Membership).order_by(Membership.min_spending.asc()))
    return res.scalars().all()


async def get_tier(db: AsyncSession, tier_id: int) -> Membership:
    tier = await db.get(Membership, tier_id)
    if not tier:
        raise NotFoundError("Membership tier", str(tier_id))
    return tier


@asynccontextmanager
async def _unique_threshold(db: AsyncSession, min_spending):
    """
    Run tier writes inside a SAVEPOINT. A duplicate threshold rolls back
    only the savepoint; the caller's transaction stays usable.
    """
    try:
        async with db.begin_nested():
            yield
    except IntegrityError as exc:
        raise ConflictError(
            f"A membership tier with min_spending {min_spending} already exists",
            details={"min_spending": str(min_spending)},
        ) from exc


async def create_tier(db: AsyncSession, data: MembershipTierIn) -> Membership:
    tier = Membership(
        name=data.name,
        min_spending=data.min_spending,
        discount_percent=data.discount_percent,
    )
    async with _unique_threshold(db, data.min_spending):
        db.add(tier)
    logger.info(f"Membership tier created: {tier.name} (>= {tier.min_spending})")
    return tier


async def update_tier(db: AsyncSession, tier_id: int, data: MembershipTierUpdate) -> Membership:
    """Update a tier's fields. Only provided fields are updated."""
    tier = await get_tier(db, tier_id)

    async with _unique_threshold(db, data.min_spending):
        if data.name is not None:
            tier.name = data.name
        if data.min_spending is not None:
            tier.min_spending = data.min_spending
        if data.discount_percent is not None:
            tier.discount_percent = data.discount_percent
    return tier


async def find_tier_by_spending(db: AsyncSession, total_spent: Decimal) -> Optional[Membership]:
    """Tier with the greatest min_spending <= total_spent, or None."""
    res = await db.execute(
        select(Membership)
        .where(Membership.min_spending <= total_spent)
        .order_by(Membership.min_spending.desc())
        .limit(1)
    )
    return res.scalars().first()


async def apply_spend_change(db: AsyncSession, user_id: int, delta: Decimal) -> dict:
    """
    Add `delta` (may be negative) to a user's total_spent and re-evaluate
    their tier. Runs inside the caller's transaction.

    Returns:
        dict: {total_spent, membership_id, tier_changed}
              total_spent is None when the user row does not exist.
    """
    await db.execute(
        update(User)
        .where(User.id == user_id)
        .values(total_spent=User.total_spent + delta)
        .execution_options(synchronize_session=False)
    )

    res = await db.execute(
        select(User.total_spent, User.membership_id).where(User.id == user_id)
    )
    row = res.one_or_none()
    if row is None:
        logger.warning(f"Spend change of {delta} skipped: user {user_id} not found")
        return {"total_spent": None, "membership_id": None, "tier_changed": False}

    total_spent = Decimal(row.total_spent)
    membership_id = row.membership_id

    tier = await find_tier_by_spending(db, total_spent)
    tier_changed = False
    if tier is not None and tier.id != membership_id:
        await db.execute(
            update(User)
            .where(User.id == user_id)
            .values(membership_id=tier.id)
            .execution_options(synchronize_session=False)
        )
        logger.info(f"User {user_id} moved to tier {tier.name} (spent {total_spent})")
        membership_id = tier.id
        tier_changed = True

    return {"total_spent": total_spent, "membership_id": membership_id, "tier_changed": tier_changed}


async def get_user_discount_percent(db: AsyncSession, user_id: Optional[int]) -> Decimal:
    """Discount of the user's current tier; zero for guests and untiered users."""
    if user_id is None:
        return Decimal("0")
    res = await db.execute(
        select(Membership.discount_percent)
        .join(User, User.membership_id == Membership.id)
        .where(User.id == user_id)
    )
    discount = res.scalar_one_or_none()
    return Decimal(discount) if discount is not None else Decimal("0")


async def seed_default_tiers(db: AsyncSession) -> int:
    """Insert DEFAULT_MEMBERSHIP_TIERS when no tier exists yet. Returns rows added."""
    count = (await db.execute(select(func.count(Membership.id)))).scalar()
    if count:
        return 0
    for tier in DEFAULT_MEMBERSHIP_TIERS:
        db.add(Membership(**tier))
    await db.flush()
    logger.info(f"Seeded {len(DEFAULT_MEMBERSHIP_TIERS)} default membership tiers")
    return len(DEFAULT_MEMBERSHIP_TIERS)
