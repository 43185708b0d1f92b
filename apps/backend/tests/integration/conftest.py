"""
Name: Integration Test DB Setup

Responsibilities:
  - Ensure the events schema exists before integration tests run
  - Run Alembic migrations once per test session
  - Initialize / close the process connection pool

Notes:
  - Only runs when RUN_INTEGRATION=1
  - Uses DATABASE_URL from environment (see alembic/env.py)
"""

from __future__ import annotations

import os
from pathlib import Path

import pytest
from alembic import command
from alembic.config import Config
from psycopg import connect

DB_USER = os.getenv("POSTGRES_USER", "postgres")
DB_PASSWORD = os.getenv("POSTGRES_PASSWORD", "postgres")
DB_HOST = os.getenv("POSTGRES_HOST", "localhost")
DB_PORT = os.getenv("POSTGRES_HOST_PORT", "5432")
DB_NAME = os.getenv("POSTGRES_DB", "outbox")
DEFAULT_DATABASE_URL = (
    f"postgresql://{DB_USER}:{DB_PASSWORD}@{DB_HOST}:{DB_PORT}/{DB_NAME}"
)


def _database_available(url: str) -> bool:
    try:
        with connect(url, autocommit=True, connect_timeout=2) as conn:
            conn.execute("SELECT 1")
        return True
    except Exception:
        return False


if os.getenv("RUN_INTEGRATION") == "1":
    os.environ["APP_ENV"] = "integration"
    explicit_url = os.getenv("DATABASE_URL")
    if not explicit_url or explicit_url.startswith("postgresql://test:test@"):
        os.environ["DATABASE_URL"] = DEFAULT_DATABASE_URL


@pytest.fixture(scope="session", autouse=True)
def apply_migrations() -> None:
    """Run Alembic migrations for integration tests."""
    if os.getenv("RUN_INTEGRATION") != "1":
        return

    database_url = os.environ["DATABASE_URL"]
    if not _database_available(database_url):
        raise RuntimeError(
            "PostgreSQL is required for integration tests. "
            "Set DATABASE_URL to a reachable server."
        )

    backend_dir = Path(__file__).resolve().parents[2]
    config = Config(str(backend_dir / "alembic.ini"))
    config.set_main_option("script_location", str(backend_dir / "alembic"))

    command.upgrade(config, "head")


@pytest.fixture(scope="session", autouse=True)
def init_db_pool(apply_migrations):
    if os.getenv("RUN_INTEGRATION") != "1":
        yield
        return

    from outbox.crosscutting.config import get_settings
    from outbox.infrastructure.db.pool import close_pool, init_pool

    get_settings.cache_clear()
    settings = get_settings()
    init_pool(
        database_url=settings.database_url,
        min_size=1,
        max_size=settings.db_pool_max_size,
    )
    yield
    close_pool()
