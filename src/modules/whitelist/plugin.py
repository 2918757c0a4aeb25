"""
Squad Leader Whitelist plugin.

Purpose
-------
Host-facing facade that wires the engines together and owns their lifecycle:

- progress task: every `tick_seconds`, pull the roster, filter eligible
  leaders, credit them
- decay task: every `decay_interval_seconds`, decay idle players when the
  server is populated enough
- whitelist task: every `whitelist_update_minutes`, regenerate the file

plus two host events: a new game starting (regenerate the file) and the
`!slwl` chat command (progress query).

Error Handling
--------------
Nothing raised here reaches the host. A schema failure at mount disables the
plugin (mount returns False and no task starts); every other failure is
logged and the affected tick or query is skipped.

Usage
-----
>>> plugin = SquadLeaderWhitelist(roster_source=host, sink=host)
>>> if await plugin.mount():
...     ...
>>> await plugin.unmount()
"""

from __future__ import annotations

import asyncio
from datetime import datetime
from typing import Callable, List, Optional, Type

from src.core.database.base import utc_now
from src.core.database.bootstrap import ensure_schema
from src.core.database.service import DatabaseService
from src.core.exceptions import SchemaInitializationError
from src.core.logging.logger import LogContext, get_logger
from src.core.tasks.periodic import PeriodicTask
from src.modules.shared.exceptions import WhitelistDomainException
from src.modules.whitelist.accrual import AccrualEngine, AccrualTickResult
from src.modules.whitelist.constants import (
    CHAT_COMMAND,
    TASK_DECAY,
    TASK_PROGRESS,
    TASK_WHITELIST,
)
from src.modules.whitelist.decay import DecayEngine, DecayTickResult
from src.modules.whitelist.eligibility import select_eligible_leaders
from src.modules.whitelist.interfaces import NotificationSink, RosterSource
from src.modules.whitelist.materializer import WhitelistMaterializer
from src.modules.whitelist.messages import format_query_reply
from src.modules.whitelist.query import ProgressQueryResult, ProgressQueryService
from src.modules.whitelist.repository import ProgressRepository
from src.modules.whitelist.roster import RosterSnapshot
from src.modules.whitelist.settings import WhitelistSettings

logger = get_logger(__name__)


class SquadLeaderWhitelist:
    CHAT_COMMAND = CHAT_COMMAND

    def __init__(
        self,
        roster_source: RosterSource,
        sink: NotificationSink,
        settings: Optional[WhitelistSettings] = None,
        *,
        database: Type[DatabaseService] = DatabaseService,
        base_path: Optional[str] = None,
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        self.settings = (settings or WhitelistSettings.from_config()).validate()
        self.roster_source = roster_source
        self.sink = sink

        repository = ProgressRepository()
        self.accrual = AccrualEngine(self.settings, sink, database, repository, clock)
        self.decay = DecayEngine(self.settings, database, repository, clock)
        self.materializer = WhitelistMaterializer(
            self.settings, database, repository, base_path
        )
        self.queries = ProgressQueryService(self.settings, database, repository)

        self._tasks: List[PeriodicTask] = []
        self._mounted = False

    @property
    def is_mounted(self) -> bool:
        return self._mounted

    @property
    def tasks(self) -> List[PeriodicTask]:
        return list(self._tasks)

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    async def mount(self) -> bool:
        """
        Prepare the store and output file, then start the periodic tasks.

        Returns:
            False when the schema could not be initialized; the plugin then
            stays inert and the host keeps running.
        """
        if self._mounted:
            return True

        async with LogContext(component="slwhitelist", operation="mount"):
            try:
                await ensure_schema()
            except SchemaInitializationError as exc:
                logger.critical(
                    "Squad leader whitelist disabled: schema initialization failed",
                    extra={"error_code": exc.error_code, "details": exc.details},
                )
                return False

            self.materializer.ensure_file_exists()
            await self.materializer.materialize()

            self._tasks = [
                PeriodicTask(TASK_PROGRESS, self.run_progress_tick, self.settings.tick_seconds),
                PeriodicTask(TASK_DECAY, self.run_decay_tick, self.settings.decay_interval_seconds),
                PeriodicTask(
                    TASK_WHITELIST,
                    self.run_whitelist_tick,
                    self.settings.whitelist_update_seconds,
                ),
            ]
            for task in self._tasks:
                task.start()

            self._mounted = True
            logger.info(
                "Squad leader whitelist mounted",
                extra={
                    "output_path": str(self.materializer.output_path),
                    "group": self.settings.group_name,
                    "threshold": self.settings.threshold,
                    "progress_delta": self.settings.progress_delta,
                    "decay_amount": self.settings.decay_amount,
                },
            )
            return True

    async def unmount(self) -> None:
        """Stop every task; in-flight ticks finish before this returns."""
        tasks, self._tasks = self._tasks, []
        if tasks:
            await asyncio.gather(*(task.stop() for task in tasks))

        if self._mounted:
            logger.info("Squad leader whitelist unmounted")
        self._mounted = False

    # ------------------------------------------------------------------
    # Ticks
    # ------------------------------------------------------------------

    async def _fetch_snapshot(self) -> Optional[RosterSnapshot]:
        try:
            raw_players = await self.roster_source.fetch_players()
        except Exception as exc:
            logger.warning(
                "Roster fetch failed; skipping tick",
                extra={"error": str(exc), "error_type": type(exc).__name__},
            )
            return None

        if raw_players is None:
            logger.debug("Host has no roster yet; skipping tick")
            return None

        return RosterSnapshot.from_raw(raw_players)

    async def run_progress_tick(self) -> AccrualTickResult:
        snapshot = await self._fetch_snapshot()
        if snapshot is None or not snapshot.players:
            return AccrualTickResult()

        leaders = select_eligible_leaders(
            snapshot,
            min_squad_members=self.settings.min_squad_members,
            only_open_squads=self.settings.only_open_squads,
        )
        logger.debug(
            "Eligible leaders selected",
            extra={"players": len(snapshot), "eligible": len(leaders)},
        )
        return await self.accrual.accrue(leaders)

    async def run_decay_tick(self) -> DecayTickResult:
        snapshot = await self._fetch_snapshot()
        if snapshot is None:
            return DecayTickResult(applied=False, skipped_reason="no_roster")
        return await self.decay.decay(snapshot.live_player_count)

    async def run_whitelist_tick(self) -> Optional[int]:
        return await self.materializer.materialize()

    # ------------------------------------------------------------------
    # Host events
    # ------------------------------------------------------------------

    async def on_new_game(self) -> None:
        async with LogContext(task=TASK_WHITELIST, operation="new_game"):
            try:
                await self.run_whitelist_tick()
            except Exception as exc:
                logger.error(
                    "Whitelist regeneration on new game failed",
                    extra={"error": str(exc), "error_type": type(exc).__name__},
                    exc_info=True,
                )

    async def on_chat_command(
        self, player_id: str, player_name: Optional[str] = None
    ) -> Optional[ProgressQueryResult]:
        """
        Answer `!slwl` with a private message. On any internal failure the
        player receives nothing.
        """
        async with LogContext(player_id=player_id, operation="chat_query"):
            try:
                result = await self.queries.get_progress(player_id)
            except WhitelistDomainException as exc:
                logger.info(
                    "Progress query rejected",
                    extra={"error_code": exc.error_code, "details": exc.details},
                )
                return None
            except Exception as exc:
                logger.error(
                    "Progress query failed",
                    extra={
                        "player_name": player_name,
                        "error": str(exc),
                        "error_type": type(exc).__name__,
                    },
                    exc_info=True,
                )
                return None

            try:
                await self.sink.warn(result.player_id, format_query_reply(result))
            except Exception as exc:
                logger.warning(
                    "Progress reply could not be delivered",
                    extra={"error": str(exc), "error_type": type(exc).__name__},
                )

            logger.debug(
                "Progress query answered",
                extra={"player_name": player_name, "status": result.status.value},
            )
            return result
