"""
Database engine and session management for the Storefront back-office.

One async engine (aiosqlite for SQLite URLs) and one session factory per
process. Services never commit; whoever opens the session owns the
transaction. Tables are created by create_tables() (see scripts/init_db.py
and the test fixtures).
"""
import logging

from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, create_async_engine, async_sessionmaker
from sqlalchemy.orm import DeclarativeBase

from config import settings

logger = logging.getLogger(__name__)


class Base(DeclarativeBase):
    pass


def to_async_url(url: str) -> str:
    """sqlite:///path -> sqlite+aiosqlite:///path; other URLs pass through."""
    if url.startswith("sqlite:///"):
        return "sqlite+aiosqlite:///" + url[len("sqlite:///"):]
    return url


engine = create_async_engine(to_async_url(settings.database_url), echo=settings.sql_echo)

async_session = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


async def create_tables(bind: AsyncEngine | None = None) -> None:
    """Create every table registered on Base.metadata that does not exist yet."""
    import db_models  # noqa: F401  registers the mapped tables

    bind = bind or engine
    async with bind.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    logger.info(f"Tables ready on {bind.url.render_as_string(hide_password=True)}")
