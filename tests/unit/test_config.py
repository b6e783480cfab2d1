"""
Unit tests for Settings
"""
import pytest

from skillbridge.core.config import Settings


class TestAsyncDatabaseUrl:

    @pytest.mark.parametrize(
        "url,expected",
        [
            ("postgresql://u:p@db:5432/skillbridge", "postgresql+asyncpg://u:p@db:5432/skillbridge"),
            ("postgres://u:p@db/skillbridge", "postgresql+asyncpg://u:p@db/skillbridge"),
            ("postgresql+asyncpg://u:p@db/skillbridge", "postgresql+asyncpg://u:p@db/skillbridge"),
            ("sqlite+aiosqlite:///./skillbridge.db", "sqlite+aiosqlite:///./skillbridge.db"),
        ],
    )
    def test_rewrites_bare_postgres_urls(self, url, expected):
        assert Settings(DATABASE_URL=url).async_database_url == expected

    def test_email_verification_required_by_default(self, monkeypatch):
        monkeypatch.delenv("REQUIRE_EMAIL_VERIFICATION", raising=False)
        assert Settings().REQUIRE_EMAIL_VERIFICATION is True
