"""
Async engine and session management for the progress store.

`DatabaseService` is a class-level singleton: the host (or the test suite)
initializes it once, every engine borrows sessions from it, and shutdown
disposes the engine.

Sessions
--------
- `get_session()`: reads (query service, materializer); never commits
- `get_transaction()`: one unit of work; commit on success, rollback and
  re-raise on any exception

Mutations are single statements (upsert / relative UPDATE), so no row locks
are taken and nothing is read-modified-written in Python.

Pools
-----
- testing: NullPool, every session gets a fresh connection
- SQLite: the dialect's default pool
- PostgreSQL: AsyncAdaptedQueuePool sized from Config, with pre-ping

Backends: `sqlite+aiosqlite` (default, a local file) and
`postgresql+asyncpg`. PostgreSQL sessions run with
`SET LOCAL statement_timeout`.

>>> async with DatabaseService.get_transaction() as session:
...     await repository.add_progress(session, player_id, delta, now)
"""

from __future__ import annotations

import asyncio
import time
from contextlib import asynccontextmanager
from pathlib import Path
from typing import Any, AsyncGenerator, Dict, Optional

from sqlalchemy import text
from sqlalchemy.engine import URL, make_url
from sqlalchemy.exc import ArgumentError, DBAPIError
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.pool import AsyncAdaptedQueuePool, NullPool

from src.core.config.config import Config
from src.core.logging.logger import get_logger

logger = get_logger(__name__)


class DatabaseInitializationError(RuntimeError):
    """The engine could not be created from the configured URL."""


class DatabaseNotInitializedError(RuntimeError):
    """A session was requested before initialize() or after shutdown()."""


def _engine_options(url: URL) -> Dict[str, Any]:
    options: Dict[str, Any] = {"echo": Config.DATABASE_ECHO}

    if Config.is_testing():
        options["poolclass"] = NullPool
    elif url.get_backend_name() != "sqlite":
        options.update(
            poolclass=AsyncAdaptedQueuePool,
            pool_size=Config.DATABASE_POOL_SIZE,
            max_overflow=Config.DATABASE_MAX_OVERFLOW,
            pool_recycle=Config.DATABASE_POOL_RECYCLE,
            pool_timeout=Config.DATABASE_POOL_TIMEOUT,
            pool_pre_ping=True,
        )
    return options


def _prepare_sqlite_file(url: URL) -> None:
    if url.get_backend_name() != "sqlite":
        return
    if url.database and url.database != ":memory:":
        Path(url.database).expanduser().parent.mkdir(parents=True, exist_ok=True)


class DatabaseService:
    _engine: Optional[AsyncEngine] = None
    _session_factory: Optional[async_sessionmaker[AsyncSession]] = None
    _statement_timeout_ms: Optional[int] = None
    _init_lock: asyncio.Lock = asyncio.Lock()

    @classmethod
    async def initialize(cls, url: Optional[str] = None) -> None:
        """
        Create the engine and session factory. A second call is a no-op.

        Args:
            url: Overrides Config.DATABASE_URL (tests, embedding hosts).

        Raises:
            DatabaseInitializationError: Missing or invalid URL, or the engine
                could not be created.
        """
        async with cls._init_lock:
            if cls._engine is not None:
                return

            raw_url = url or Config.DATABASE_URL
            if not raw_url:
                raise DatabaseInitializationError("DATABASE_URL is not configured")

            try:
                parsed = make_url(raw_url)
                _prepare_sqlite_file(parsed)
                options = _engine_options(parsed)
                engine = create_async_engine(parsed, **options)
            except (ArgumentError, OSError, ImportError) as exc:
                logger.error(
                    "Database engine could not be created",
                    extra={"error": str(exc), "error_type": type(exc).__name__},
                )
                raise DatabaseInitializationError(
                    f"Database initialization failed: {exc}"
                ) from exc

            cls._engine = engine
            cls._session_factory = async_sessionmaker(engine, expire_on_commit=False)
            cls._statement_timeout_ms = (
                Config.DATABASE_STATEMENT_TIMEOUT_MS
                if engine.dialect.name == "postgresql"
                else None
            )

            logger.info(
                "DatabaseService initialized",
                extra={
                    "dialect": engine.dialect.name,
                    "pool": type(engine.pool).__name__,
                },
            )

    @classmethod
    async def shutdown(cls) -> None:
        """Dispose the engine. Safe to call when not initialized."""
        async with cls._init_lock:
            engine, cls._engine = cls._engine, None
            cls._session_factory = None
            cls._statement_timeout_ms = None
            if engine is None:
                return
            await engine.dispose()
            logger.info("DatabaseService shut down")

    @classmethod
    def get_engine(cls) -> AsyncEngine:
        if cls._engine is None:
            raise DatabaseNotInitializedError(
                "DatabaseService must be initialized before use."
            )
        return cls._engine

    @classmethod
    def dialect_name(cls) -> str:
        return cls.get_engine().dialect.name

    @classmethod
    async def health_check(cls) -> bool:
        """`SELECT 1` on a fresh connection; False when the store is unreachable."""
        if cls._engine is None:
            logger.warning("Health check called on uninitialized DatabaseService")
            return False

        start = time.perf_counter()
        try:
            async with cls._engine.connect() as conn:
                await conn.execute(text("SELECT 1"))
        except (DBAPIError, OSError) as exc:
            logger.warning(
                "Database health check failed",
                extra={"error": str(exc), "error_type": type(exc).__name__},
            )
            return False

        logger.debug(
            "Database health check passed",
            extra={"duration_ms": (time.perf_counter() - start) * 1000.0},
        )
        return True

    @classmethod
    def _new_session(cls) -> AsyncSession:
        if cls._session_factory is None:
            raise DatabaseNotInitializedError(
                "DatabaseService must be initialized before use."
            )
        return cls._session_factory()

    @classmethod
    async def _apply_statement_timeout(cls, session: AsyncSession) -> None:
        if cls._statement_timeout_ms is not None:
            await session.execute(
                text(f"SET LOCAL statement_timeout = {int(cls._statement_timeout_ms)}")
            )

    @classmethod
    @asynccontextmanager
    async def get_session(cls) -> AsyncGenerator[AsyncSession, None]:
        """
        Raises:
            DatabaseNotInitializedError: If the service is not initialized.
        """
        async with cls._new_session() as session:
            await cls._apply_statement_timeout(session)
            yield session

    @classmethod
    @asynccontextmanager
    async def get_transaction(cls) -> AsyncGenerator[AsyncSession, None]:
        """
        Raises:
            DatabaseNotInitializedError: If the service is not initialized.
            Exception: Whatever the body raised, after rollback.
        """
        start = time.perf_counter()
        async with cls._new_session() as session:
            try:
                await cls._apply_statement_timeout(session)
                yield session
                await session.commit()
            except Exception as exc:
                await session.rollback()
                logger.debug(
                    "Transaction rolled back",
                    extra={
                        "error_type": type(exc).__name__,
                        "duration_ms": (time.perf_counter() - start) * 1000.0,
                    },
                )
                raise
