"""
Decay engine: shrink the score of players who stopped leading.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import TYPE_CHECKING, Callable, Optional, Type

from src.core.database.base import utc_now
from src.core.database.service import DatabaseService
from src.core.exceptions import DatabaseError
from src.core.logging.logger import get_logger
from src.modules.shared.base_service import BaseService
from src.modules.whitelist.repository import STORE_ERRORS, ProgressRepository

if TYPE_CHECKING:
    from src.modules.whitelist.settings import WhitelistSettings


@dataclass(frozen=True)
class DecayTickResult:
    applied: bool
    rows_changed: int = 0
    skipped_reason: Optional[str] = None


class DecayEngine(BaseService):
    """
    One tick: if enough players are online, remove `decay_amount` (clamped at
    zero) from every record idle for strictly longer than `decay_after`.
    Runs as a single relative UPDATE; `last_progressed_at` is left alone.
    """

    def __init__(
        self,
        settings: WhitelistSettings,
        database: Type[DatabaseService] = DatabaseService,
        repository: Optional[ProgressRepository] = None,
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        super().__init__(settings, get_logger(__name__))
        self.database = database
        self.repository = repository or ProgressRepository()
        self.clock = clock

    async def decay(
        self,
        live_player_count: int,
        now: Optional[datetime] = None,
    ) -> DecayTickResult:
        if live_player_count < self.settings.min_players_for_decay:
            self.log.debug(
                "Decay skipped: population below gate",
                extra={
                    "live_players": live_player_count,
                    "min_players_for_decay": self.settings.min_players_for_decay,
                },
            )
            return DecayTickResult(applied=False, skipped_reason="population")

        amount = self.settings.decay_amount
        if amount <= 0:
            return DecayTickResult(applied=False, skipped_reason="disabled")

        now = now or self.clock()
        idle_before = now - self.settings.decay_after

        try:
            async with self.database.get_transaction() as session:
                changed = await self.repository.decay_idle(
                    session, amount=amount, idle_before=idle_before
                )
        except STORE_ERRORS as exc:
            self.log_error("decay_progress", DatabaseError("decay_progress", exc))
            return DecayTickResult(applied=False, skipped_reason="store_error")

        self.log.info(
            "Decay tick applied",
            extra={
                "rows_changed": changed,
                "decay_amount": amount,
                "live_players": live_player_count,
            },
        )
        return DecayTickResult(applied=True, rows_changed=changed)
