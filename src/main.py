"""
Entry points.

- `run(host)`: embed the plugin in a host process. The host object supplies
  both `fetch_players()` and `warn()`; the coroutine runs until cancelled,
  then unmounts and shuts the store down.
- `python -m src.main`: one-shot run that initializes the store and rewrites
  the whitelist file from it, e.g. before the game server starts.
"""

import asyncio
import sys
from typing import Optional, Protocol

from src.core.config.config import Config
from src.core.database.bootstrap import (
    ensure_schema,
    initialize_database_subsystem,
    shutdown_database_subsystem,
)
from src.core.logging.logger import get_logger, shutdown_logging
from src.modules.whitelist.interfaces import NotificationSink, RosterSource
from src.modules.whitelist.materializer import WhitelistMaterializer
from src.modules.whitelist.plugin import SquadLeaderWhitelist
from src.modules.whitelist.settings import WhitelistSettings

logger = get_logger(__name__)


class WhitelistHost(RosterSource, NotificationSink, Protocol):
    """Host object implementing both capabilities (e.g. an RCON adapter)."""


async def _startup() -> WhitelistSettings:
    """
    Raises:
        ConfigurationError: Whitelist settings are out of range.
        DatabaseInitializationError: The store is unreachable.
    """
    Config.validate()
    settings = WhitelistSettings.from_config().validate()
    logger.info("Configuration loaded", extra=Config.get_config_summary())

    await initialize_database_subsystem(verify_health=True)
    return settings


async def _shutdown(plugin: Optional[SquadLeaderWhitelist]) -> None:
    if plugin is not None:
        await plugin.unmount()
    await shutdown_database_subsystem()
    logger.info("Squad leader whitelist stopped")


async def run(host: WhitelistHost, *, base_path: Optional[str] = None) -> None:
    """
    Mount the plugin against `host` and keep it running until cancelled.

    A failed mount leaves the plugin disabled without raising; the coroutine
    then returns after cleanup.
    """
    plugin: Optional[SquadLeaderWhitelist] = None
    try:
        plugin = SquadLeaderWhitelist(host, host, await _startup(), base_path=base_path)
        if not await plugin.mount():
            logger.error("Squad leader whitelist did not mount; staying disabled")
            return
        await asyncio.Event().wait()
    finally:
        await _shutdown(plugin)


async def regenerate_whitelist() -> int:
    """Rebuild the whitelist file from the store once. Returns the exit code."""
    try:
        settings = await _startup()
        await ensure_schema()

        materializer = WhitelistMaterializer(settings)
        if not materializer.ensure_file_exists():
            return 1
        written = await materializer.materialize()
        if written is None:
            return 1

        logger.info(
            "Whitelist regenerated",
            extra={"path": str(materializer.output_path), "admins": written},
        )
        return 0

    except Exception as exc:
        logger.critical(f"Whitelist regeneration failed: {exc}", exc_info=True)
        return 1

    finally:
        await _shutdown(None)


if __name__ == "__main__":
    exit_code = 1
    try:
        exit_code = asyncio.run(regenerate_whitelist())
    except KeyboardInterrupt:
        logger.info("Stopped via keyboard interrupt")
    finally:
        shutdown_logging()
    sys.exit(exit_code)
