"""
Pytest Configuration and Fixtures for the Squad Leader Whitelist Tests
======================================================================

Purpose
-------
Centralized test fixtures and configuration for the whitelist test suite.
Provides reusable fixtures for the database, settings and host fakes.

Responsibilities
----------------
- Testing environment (NullPool, no log files) set before any src import
- Throwaway SQLite store per test for unit tests
- Testcontainers PostgreSQL for integration tests
- Settings factory and host fakes (roster source, notification sink)

Architecture Notes
------------------
- DatabaseService is a process-wide singleton; every database fixture
  initializes it and shuts it down again on teardown
- Integration tests are skipped when Docker is not reachable
"""

from __future__ import annotations

import os

# Must be set before src.core.config is imported
os.environ["ENVIRONMENT"] = "testing"
os.environ["LOG_TO_FILE"] = "false"
os.environ.setdefault("LOG_LEVEL", "DEBUG")

from dataclasses import replace
from typing import AsyncGenerator, Callable, Generator

import pytest
import pytest_asyncio
from sqlalchemy import delete
from testcontainers.postgres import PostgresContainer

from src.core.database.bootstrap import ensure_schema
from src.core.database.service import DatabaseService
from src.core.logging.logger import get_logger
from src.database.models import WhitelistProgress
from src.modules.whitelist.settings import WhitelistSettings
from tests.factories import FakeRosterSource, RecordingSink

logger = get_logger(__name__)


# ============================================================================
# DATABASE FIXTURES
# ============================================================================


@pytest.fixture
def database_url(tmp_path) -> str:
    return f"sqlite+aiosqlite:///{tmp_path / 'data' / 'slwhitelist.db'}"


@pytest_asyncio.fixture
async def database(database_url: str) -> AsyncGenerator[type[DatabaseService], None]:
    """
    Initialized DatabaseService over a fresh SQLite file with the schema
    created.

    Scope: function (clean store per test)
    """
    await DatabaseService.shutdown()
    await DatabaseService.initialize(database_url)
    await ensure_schema()

    yield DatabaseService

    await DatabaseService.shutdown()


@pytest.fixture(scope="session")
def postgres_container() -> Generator[PostgresContainer, None, None]:
    """
    Start PostgreSQL testcontainer for integration tests.

    Scope: session (container persists across all tests)
    """
    logger.info("Starting PostgreSQL testcontainer...")
    container = PostgresContainer(image="postgres:17-alpine", driver="asyncpg")
    try:
        container.start()
    except Exception as exc:
        pytest.skip(f"Docker unavailable for PostgreSQL testcontainer: {exc}")

    logger.info("PostgreSQL testcontainer started: %s", container.get_connection_url())

    yield container

    logger.info("Stopping PostgreSQL testcontainer...")
    container.stop()


@pytest_asyncio.fixture
async def postgres_database(
    postgres_container: PostgresContainer,
) -> AsyncGenerator[type[DatabaseService], None]:
    """
    DatabaseService bound to the PostgreSQL container with an empty
    progress table.

    Scope: function
    """
    connection_url = postgres_container.get_connection_url().replace("psycopg2", "asyncpg")

    await DatabaseService.shutdown()
    await DatabaseService.initialize(connection_url)
    await ensure_schema()

    async with DatabaseService.get_transaction() as session:
        await session.execute(delete(WhitelistProgress))

    yield DatabaseService

    await DatabaseService.shutdown()


# ============================================================================
# SETTINGS & HOST FAKES
# ============================================================================


@pytest.fixture
def output_path(tmp_path) -> str:
    return str(tmp_path / "SquadGame" / "ServerConfig" / "slwhitelist.cfg")


@pytest.fixture
def make_settings(output_path: str) -> Callable[..., WhitelistSettings]:
    """
    Factory for validated settings writing into the test's tmp directory.

    Usage:
        settings = make_settings(min_players_for_decay=0)
    """

    def _make(**overrides) -> WhitelistSettings:
        settings = WhitelistSettings(output_path=output_path)
        return replace(settings, **overrides).validate()

    return _make


@pytest.fixture
def settings(make_settings) -> WhitelistSettings:
    return make_settings()


@pytest.fixture
def roster_source() -> FakeRosterSource:
    return FakeRosterSource([])


@pytest.fixture
def sink() -> RecordingSink:
    return RecordingSink()
