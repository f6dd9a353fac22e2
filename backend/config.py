"""
Configuration management for the Storefront back-office.

Loads settings from .env via pydantic-settings.

Notes:
    - STOCK_SHORTFALL_POLICY chooses what happens when an order moves into a
      stock-committed status and a size cannot cover the requested quantity
      ("permissive" keeps the order moving, "strict" aborts the transition).
    - validate_production_settings() is called by entry scripts before the
      database is touched.
"""
import logging
from functools import lru_cache
from typing import Literal

from pydantic_settings import BaseSettings, SettingsConfigDict

logger = logging.getLogger(__name__)


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # ── Database ────────────────────────────────────────────────────
    database_url: str = "sqlite:///./data/storefront.db"
    sql_echo: bool = False

    # ── Orders ──────────────────────────────────────────────────────
    stock_shortfall_policy: Literal["permissive", "strict"] = "permissive"

    # ── Application ─────────────────────────────────────────────────
    environment: str = "development"
    log_level: str = "INFO"

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",  # allow unknown .env keys without crashing
    )

    @property
    def is_sqlite(self) -> bool:
        return self.database_url.startswith("sqlite")

    def validate_production_settings(self):
        """
        Validate settings for production safety.

        SQL echo leaks customer data into logs, so it is refused outright.
        SQLite is allowed but flagged: the guarded stock updates rely on
        row-level atomicity that a file database only offers per-database.
        """
        if self.environment == "production":
            if self.sql_echo:
                raise ValueError(
                    "SQL_ECHO must be false in production. "
                    "Echoed statements include customer names, phones and addresses."
                )
            if self.is_sqlite:
                logger.warning("⚠️  DATABASE_URL points at SQLite in production")
            logger.info("✅ Production settings validated")
        else:
            if self.stock_shortfall_policy == "permissive":
                logger.debug("Stock shortfalls on order confirmation will not abort transitions")


@lru_cache()
def get_settings() -> Settings:
    """Return cached Settings instance."""
    return Settings()


# Global settings instance
settings = get_settings()
