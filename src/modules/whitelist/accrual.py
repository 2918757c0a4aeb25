"""
Accrual engine: credit eligible squad leaders once per sampling tick.

Per leader and tick:
1. atomically add `progress_delta` to the stored score (creating the record
   on first credit) and bump `last_progressed_at`
2. if the score crossed a 10-point band and the player was below the
   threshold before this tick, send a milestone message

Credit is per tick, never per elapsed wall-clock time: a missed tick is lost.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from datetime import datetime
from typing import TYPE_CHECKING, Callable, Optional, Sequence, Type

from src.core.database.base import utc_now
from src.core.database.service import DatabaseService
from src.core.exceptions import DatabaseError
from src.core.logging.logger import get_logger
from src.modules.shared.base_service import BaseService
from src.modules.whitelist.constants import MILESTONE_BAND
from src.modules.whitelist.messages import (
    progress_percentage,
    progress_update_message,
    whitelisted_now_message,
)
from src.modules.whitelist.repository import STORE_ERRORS, ProgressRepository

if TYPE_CHECKING:
    from src.modules.whitelist.interfaces import NotificationSink
    from src.modules.whitelist.roster import PlayerDescriptor
    from src.modules.whitelist.settings import WhitelistSettings


def crossed_milestone(old_score: float, new_score: float, threshold: float) -> bool:
    """
    True when the score moved into a new 10-point band and the player had not
    reached the threshold before. Bands are in score points, not percent of
    threshold.
    """
    if old_score >= threshold:
        return False
    return math.floor(old_score / MILESTONE_BAND) != math.floor(new_score / MILESTONE_BAND)


def milestone_message(old_score: float, new_score: float, threshold: float) -> Optional[str]:
    if not crossed_milestone(old_score, new_score, threshold):
        return None
    if new_score >= threshold:
        return whitelisted_now_message()
    return progress_update_message(progress_percentage(new_score, threshold))


@dataclass(frozen=True)
class AccrualTickResult:
    credited: int = 0
    failed: int = 0
    notified: int = 0


class AccrualEngine(BaseService):
    def __init__(
        self,
        settings: WhitelistSettings,
        sink: NotificationSink,
        database: Type[DatabaseService] = DatabaseService,
        repository: Optional[ProgressRepository] = None,
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        super().__init__(settings, get_logger(__name__))
        self.sink = sink
        self.database = database
        self.repository = repository or ProgressRepository()
        self.clock = clock

    async def accrue(
        self,
        leaders: Sequence[PlayerDescriptor],
        now: Optional[datetime] = None,
    ) -> AccrualTickResult:
        """
        Credit every leader independently. A store failure for one leader
        drops only that leader's credit; a failed notification never undoes
        persisted credit.
        """
        if not leaders:
            return AccrualTickResult()

        now = now or self.clock()
        delta = self.settings.progress_delta
        if delta <= 0:
            self.log.debug("Accrual disabled: progress per hour is zero")
            return AccrualTickResult()

        credited = failed = notified = 0

        for leader in leaders:
            try:
                async with self.database.get_transaction() as session:
                    increment = await self.repository.add_progress(
                        session, leader.player_id, delta, now
                    )
            except STORE_ERRORS as exc:
                failed += 1
                self.log_error(
                    "accrue_progress",
                    DatabaseError("accrue_progress", exc),
                    player_id=leader.player_id,
                )
                continue

            credited += 1

            message = milestone_message(
                increment.previous_score, increment.score, self.settings.threshold
            )
            if message is None:
                continue

            try:
                await self.sink.warn(leader.player_id, message)
                notified += 1
            except Exception as exc:
                self.log_error(
                    "notify_milestone",
                    exc,
                    player_id=leader.player_id,
                    new_score=increment.score,
                )

        result = AccrualTickResult(credited=credited, failed=failed, notified=notified)
        self.log.debug(
            "Accrual tick complete",
            extra={
                "leaders": len(leaders),
                "credited": credited,
                "failed": failed,
                "notified": notified,
                "delta": delta,
            },
        )
        return result
