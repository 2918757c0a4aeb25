"""
Tests for DatabaseService lifecycle and transaction handling on SQLite.
"""

from datetime import datetime, timezone
from pathlib import Path

import pytest
import pytest_asyncio
from sqlalchemy import text

from src.core.database.bootstrap import ensure_schema, initialize_database_subsystem
from src.core.database.service import (
    DatabaseInitializationError,
    DatabaseNotInitializedError,
    DatabaseService,
)
from src.core.exceptions import SchemaInitializationError
from src.modules.whitelist.repository import ProgressRepository


@pytest_asyncio.fixture
async def clean_service():
    await DatabaseService.shutdown()
    yield DatabaseService
    await DatabaseService.shutdown()


@pytest.mark.unit
class TestLifecycle:
    async def test_initialize_creates_sqlite_parent_directory(self, clean_service, tmp_path):
        db_file = tmp_path / "nested" / "dir" / "progress.db"

        await initialize_database_subsystem(url=f"sqlite+aiosqlite:///{db_file}")

        assert Path(db_file).parent.is_dir()
        assert clean_service.dialect_name() == "sqlite"
        assert await clean_service.health_check() is True

    async def test_invalid_url_raises_initialization_error(self, clean_service):
        with pytest.raises(DatabaseInitializationError):
            await clean_service.initialize("not a url")

        with pytest.raises(DatabaseNotInitializedError):
            clean_service.get_engine()

    async def test_sessions_require_initialization(self, clean_service):
        with pytest.raises(DatabaseNotInitializedError):
            async with clean_service.get_session():
                pass

        assert await clean_service.health_check() is False

    async def test_schema_without_store_is_schema_error(self, clean_service):
        with pytest.raises(SchemaInitializationError):
            await ensure_schema()

    async def test_shutdown_twice_is_safe(self, clean_service, database_url):
        await clean_service.initialize(database_url)
        await clean_service.shutdown()
        await clean_service.shutdown()


@pytest.mark.unit
@pytest.mark.database
class TestTransactions:
    async def test_error_rolls_back_whole_transaction(self, database):
        now = datetime(2026, 5, 1, tzinfo=timezone.utc)
        with pytest.raises(RuntimeError):
            async with database.get_transaction() as session:
                await ProgressRepository().add_progress(session, "A", 5.0, now)
                raise RuntimeError("host went away")

        async with database.get_session() as session:
            count = (await session.execute(text("SELECT COUNT(*) FROM whitelist_progress"))).scalar_one()
        assert count == 0
