"""
Banner service — home page slides managed from the back-office.
"""
import logging

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from db_models import Banner
from domain.errors import NotFoundError
from models import BannerIn, BannerUpdate

logger = logging.getLogger(__name__)


async def list_banners(db: AsyncSession) -> list[Banner]:
    """Newest banner first."""
    res = await db.execute(select(Banner).order_by(Banner.id.desc()))
    return res.scalars().all()


async def get_banner(db: AsyncSession, banner_id: int) -> Banner:
    banner = await db.get(Banner, banner_id)
    if not banner:
        raise NotFoundError("Banner", str(banner_id))
    return banner


async def create_banner(db: AsyncSession, data: BannerIn) -> Banner:
    banner = Banner(image_url=data.image_url, title=data.title, subtitle=data.subtitle)
    db.add(banner)
    await db.flush()
    logger.info(f"Banner {banner.id} created")
    return banner


async def update_banner(db: AsyncSession, banner_id: int, data: BannerUpdate) -> Banner:
    """Only provided fields are updated."""
    banner = await get_banner(db, banner_id)
    if data.image_url is not None:
        banner.image_url = data.image_url
    if data.title is not None:
        banner.title = data.title
    if data.subtitle is not None:
        banner.subtitle = data.subtitle
    await db.flush()
    return banner


async def delete_banner(db: AsyncSession, banner_id: int) -> None:
    banner = await get_banner(db, banner_id)
    await db.delete(banner)
    await db.flush()
    logger.info(f"Banner {banner_id} deleted")
