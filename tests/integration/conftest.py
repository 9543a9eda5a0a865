"""
Shared fixtures for integration tests.

Requires PostgreSQL reachable at DATABASE_URL (see Settings.database_url).
Migrations run once per session; the accounts table is emptied before
each test.
"""

from collections.abc import Generator

import pytest
from psycopg_pool import ConnectionPool

from subis_auth.adapters.repository.postgres import PostgresAccountRepository, run_migrations
from subis_auth.config.settings import get_settings


@pytest.fixture(scope="session")
def pool() -> Generator[ConnectionPool, None, None]:
    """Create connection pool for integration tests."""
    settings = get_settings()
    pool = ConnectionPool(
        conninfo=settings.database_url,
        min_size=1,
        max_size=10,
        open=True,
    )
    run_migrations(pool)
    yield pool
    pool.close()


@pytest.fixture
def pg_repository(pool: ConnectionPool) -> PostgresAccountRepository:
    """Create repository instance for each test."""
    return PostgresAccountRepository(pool)


@pytest.fixture(autouse=True)
def clean_database(pool: ConnectionPool) -> Generator[None, None, None]:
    """Clean accounts table before each test."""
    with pool.connection() as conn:
        conn.execute("DELETE FROM accounts")
        conn.commit()
    yield
