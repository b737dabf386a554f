"""
Pytest configuration for the domain ingestion pipeline.

Provides fixtures for:
- Settings override for tests
- Feed CSV files and deterministic collaborators for pipeline tests
- Database connection management for integration tests
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import Generator

import psycopg
import pytest

from domain_ingest.config import Settings, get_settings
from domain_ingest.lookup.mock import MockLookupService
from domain_ingest.store.memory import InMemoryRecordStore

FEED_HEADER = "domain,price,drop_time,crawl_time,extension,tld,length,status"

# 3 accepted (.com) rows and 2 rejected (.net/.org) rows
FIVE_ROW_FEED = "\n".join(
    [
        FEED_HEADER,
        "homebuilder.com,79,08/23/2025 01:00,08/22/2025 22:00,.com,.com,15,Available Soon",
        "cloudlab.net,\"1,250\",08/23/2025 02:00,08/22/2025 22:00,.net,.net,12,Available",
        "smartdata.com,\"10,6\",08/23/2025 03:00,08/22/2025 23:00,.com,.com,13,Available",
        "growthhub.org,,08/23/2025 04:00,08/22/2025 23:00,.org,.org,13,Pending Delete",
        "zest.com,\"$1,200\",08/23/2025 05:00,08/23/2025 00:00,.com,.com,8,Premium",
    ]
) + "\n"


@pytest.fixture
def fresh_settings() -> Generator[None, None, None]:
    """Drop the cached Settings so environment changes made by the test apply."""
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture(scope="session")
def test_settings() -> Settings:
    """
    Settings fixture with test-specific overrides.

    Can be overridden via environment variables in CI or local testing.
    """
    return Settings(
        db_host=os.getenv("DB_HOST", "localhost"),
        db_port=int(os.getenv("DB_PORT", "5432")),
        db_user=os.getenv("DB_USER", "postgres"),
        db_password=os.getenv("DB_PASSWORD", "postgres"),
        db_name=os.getenv("DB_NAME", "domain_ingest"),
        log_level="DEBUG",
    )


@pytest.fixture
def feed_path(tmp_path: Path) -> Path:
    """The five-row feed written to a temporary file."""
    path = tmp_path / "feed.csv"
    path.write_text(FIVE_ROW_FEED, encoding="utf-8")
    return path


@pytest.fixture
def memory_store() -> InMemoryRecordStore:
    return InMemoryRecordStore()


@pytest.fixture
def mock_lookup() -> MockLookupService:
    return MockLookupService()


@pytest.fixture
def no_sleep():
    """Awaitable sleep stand-in that records requested delays."""
    calls: list[float] = []

    async def _sleep(seconds: float) -> None:
        calls.append(seconds)

    _sleep.calls = calls  # type: ignore[attr-defined]
    return _sleep


@pytest.fixture(scope="session")
def test_dsn(test_settings: Settings) -> str:
    """
    Database connection string for tests.
    """
    return (
        f"postgresql://{test_settings.db_user}:{test_settings.db_password}"
        f"@{test_settings.db_host}:{test_settings.db_port}/{test_settings.db_name}"
    )


@pytest.fixture(scope="session")
def db_connection_available(test_dsn: str) -> bool:
    """
    Check if database is reachable.

    Used to conditionally skip integration tests when DB is not available.
    """
    try:
        with psycopg.connect(test_dsn, connect_timeout=5) as conn:
            with conn.cursor() as cur:
                cur.execute("SELECT 1;")
                cur.fetchone()
        return True
    except psycopg.Error:
        return False


@pytest.fixture(scope="session")
def db_connection(
    test_dsn: str, db_connection_available: bool
) -> Generator[psycopg.Connection, None, None]:
    """
    Provide a session-scoped database connection for integration tests.

    Skips tests if database is not available.
    """
    if not db_connection_available:
        pytest.skip("Database not available for integration tests")

    conn = psycopg.connect(test_dsn)
    try:
        yield conn
    finally:
        conn.close()


@pytest.fixture(scope="session")
def db_schema_initialized(db_connection: psycopg.Connection) -> bool:
    """
    Ensure the suggested_domains table exists, creating it from db/init.sql.
    """
    init_sql_path = Path(__file__).parent.parent / "db" / "init.sql"
    with db_connection.cursor() as cur:
        cur.execute(init_sql_path.read_text(encoding="utf-8"))
    db_connection.commit()
    return True


@pytest.fixture(scope="function")
def clean_domains_table(db_connection: psycopg.Connection, db_schema_initialized: bool):
    """
    Empty the suggested_domains table before and after each test function.
    """
    with db_connection.cursor() as cur:
        cur.execute("TRUNCATE TABLE public.suggested_domains RESTART IDENTITY CASCADE;")
    db_connection.commit()
    yield
    with db_connection.cursor() as cur:
        cur.execute("TRUNCATE TABLE public.suggested_domains RESTART IDENTITY CASCADE;")
    db_connection.commit()
