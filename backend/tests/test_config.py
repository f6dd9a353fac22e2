"""
Tests for settings loading and production validation.
"""
import pytest
from pydantic import ValidationError

from config import Settings


class TestSettings:

    @pytest.mark.unit
    def test_defaults(self):
        s = Settings(_env_file=None)
        assert s.stock_shortfall_policy == "permissive"
        assert s.database_url.startswith("sqlite:///")
        assert s.is_sqlite is True

    @pytest.mark.unit
    def test_policy_from_environment(self, monkeypatch):
        monkeypatch.setenv("STOCK_SHORTFALL_POLICY", "strict")
        assert Settings(_env_file=None).stock_shortfall_policy == "strict"

    @pytest.mark.unit
    def test_unknown_policy_rejected(self):
        with pytest.raises(ValidationError):
            Settings(_env_file=None, stock_shortfall_policy="lenient")

    @pytest.mark.unit
    def test_production_refuses_sql_echo(self):
        s = Settings(_env_file=None, environment="production", sql_echo=True)
        with pytest.raises(ValueError, match="SQL_ECHO"):
            s.validate_production_settings()

    @pytest.mark.unit
    def test_production_allows_sqlite_with_warning(self, caplog):
        s = Settings(_env_file=None, environment="production")
        s.validate_production_settings()
        assert "SQLite" in caplog.text


class TestAsyncUrl:

    @pytest.mark.unit
    def test_sqlite_url_uses_aiosqlite(self):
        from database import to_async_url

        assert to_async_url("sqlite:///./data/storefront.db") == "sqlite+aiosqlite:///./data/storefront.db"

    @pytest.mark.unit
    def test_other_urls_unchanged(self):
        from database import to_async_url

        url = "postgresql+asyncpg://shop@db/storefront"
        assert to_async_url(url) == url
