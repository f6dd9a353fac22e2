"""
Create all tables and seed the default membership tiers.

Run from the backend/ directory:
    python scripts/init_db.py
"""
import asyncio
import logging
import os
import sys

# Add backend/ to path so we can import config
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))
from config import settings

logging.basicConfig(
    level=settings.log_level,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)


async def main() -> None:
    settings.validate_production_settings()

    if settings.is_sqlite:
        # sqlite:///./data/storefront.db -> ./data
        db_dir = os.path.dirname(settings.database_url.replace("sqlite:///", "", 1))
        if db_dir:
            os.makedirs(db_dir, exist_ok=True)

    from database import async_session, create_tables, engine
    from services import membership_service

    await create_tables()
    async with async_session() as session, session.begin():
        added = await membership_service.seed_default_tiers(session)

    if added:
        print(f"✅ Seeded {added} membership tiers")
    else:
        print("Membership tiers already present, nothing seeded")
    await engine.dispose()


if __name__ == "__main__":
    asyncio.run(main())
