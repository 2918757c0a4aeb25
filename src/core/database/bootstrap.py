"""
Database bring-up and teardown for hosts and for `python -m src.main`.

1. `initialize_database_subsystem()` creates the engine and, by default,
   proves the store answers within DATABASE_BOOTSTRAP_HEALTH_TIMEOUT_SECONDS
2. `ensure_schema()` creates the progress table if missing; the whitelist
   plugin calls it on mount and disables itself when it fails
3. `shutdown_database_subsystem()` disposes the engine and never raises

There are no migrations: the table is created once and keeps its shape.
"""

from __future__ import annotations

import asyncio
from typing import Optional

from src.core.config.config import Config
from src.core.database.base import Base
from src.core.database.service import DatabaseInitializationError, DatabaseService
from src.core.exceptions import SchemaInitializationError
from src.core.logging.logger import get_logger

logger = get_logger(__name__)


async def initialize_database_subsystem(
    *, url: Optional[str] = None, verify_health: bool = True
) -> None:
    """
    Raises:
        DatabaseInitializationError: The engine could not be created, or the
            health check failed or timed out.
    """
    await DatabaseService.initialize(url)
    if not verify_health:
        return

    timeout = Config.DATABASE_BOOTSTRAP_HEALTH_TIMEOUT_SECONDS
    try:
        healthy = await asyncio.wait_for(DatabaseService.health_check(), timeout=timeout)
    except asyncio.TimeoutError as exc:
        raise DatabaseInitializationError(
            f"Database health check timed out after {timeout}s"
        ) from exc

    if not healthy:
        raise DatabaseInitializationError("Database is unreachable after initialization")

    logger.info("Database subsystem ready", extra={"dialect": DatabaseService.dialect_name()})


async def ensure_schema() -> None:
    """
    Create every mapped table that does not exist yet.

    Raises:
        SchemaInitializationError: The store is not initialized or DDL failed.
    """
    # Registers the mapped tables on Base.metadata
    import src.database.models  # noqa: F401

    try:
        async with DatabaseService.get_engine().begin() as conn:
            await conn.run_sync(Base.metadata.create_all)
    except Exception as exc:
        logger.error(
            "Schema initialization failed",
            extra={"error": str(exc), "error_type": type(exc).__name__},
            exc_info=True,
        )
        raise SchemaInitializationError(exc) from exc

    logger.info("Schema ready", extra={"tables": sorted(Base.metadata.tables)})


async def shutdown_database_subsystem() -> None:
    try:
        await DatabaseService.shutdown()
    except Exception as exc:
        logger.error(
            "Database shutdown completed with errors",
            extra={"error": str(exc), "error_type": type(exc).__name__},
            exc_info=True,
        )
