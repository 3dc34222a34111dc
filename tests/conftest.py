"""Shared test fixtures.

Environment defaults are set before any `src` import: importing src.main
builds the module-level app from Settings, which requires JWT_SECRET.
"""

import os

os.environ.setdefault("JWT_SECRET", "test-secret-key")
os.environ.setdefault("RATE_LIMIT_ENABLED", "false")

import pytest  # noqa: E402

from config.settings import Settings  # noqa: E402


@pytest.fixture
def test_settings() -> Settings:
    """Settings for an app backed by an in-memory SQLite database."""
    return Settings(
        DATABASE_URL="sqlite+aiosqlite:///:memory:",
        JWT_SECRET="test-secret-key",
        JWT_EXPIRE_MINUTES=60,
        RATE_LIMIT_ENABLED=False,
        DEBUG=False,
    )
