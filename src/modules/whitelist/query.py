"""
Read-only progress lookups for the in-game chat command.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING, Optional, Type

from src.core.database.service import DatabaseService
from src.core.logging.logger import get_logger
from src.modules.shared.base_service import BaseService
from src.modules.shared.exceptions import ValidationError
from src.modules.whitelist.messages import progress_percentage
from src.modules.whitelist.repository import ProgressRepository

if TYPE_CHECKING:
    from src.modules.whitelist.settings import WhitelistSettings


class ProgressStatus(str, Enum):
    NO_PROGRESS = "no_progress"
    IN_PROGRESS = "in_progress"
    WHITELISTED = "whitelisted"


@dataclass(frozen=True)
class ProgressQueryResult:
    """
    Outcome of one progress query.

    `rank` and `total` are only set for WHITELISTED results.
    """

    status: ProgressStatus
    player_id: str
    score: Optional[float] = None
    percentage: Optional[int] = None
    rank: Optional[int] = None
    total: Optional[int] = None


class ProgressQueryService(BaseService):
    """
    Answers "how far along am I?" without touching scores or timestamps.
    """

    def __init__(
        self,
        settings: WhitelistSettings,
        database: Type[DatabaseService] = DatabaseService,
        repository: Optional[ProgressRepository] = None,
    ) -> None:
        super().__init__(settings, get_logger(__name__))
        self.database = database
        self.repository = repository or ProgressRepository()

    async def get_progress(self, player_id: str) -> ProgressQueryResult:
        """
        Raises:
            ValidationError: If player_id is blank.
            SQLAlchemyError: On store failure; callers decide what the player sees.
        """
        if not player_id or not str(player_id).strip():
            raise ValidationError("player_id", "must not be empty")
        player_id = str(player_id).strip()
        threshold = self.settings.threshold

        async with self.database.get_session() as session:
            record = await self.repository.get_progress(session, player_id)
            if record is None:
                return ProgressQueryResult(ProgressStatus.NO_PROGRESS, player_id)

            score = float(record.score)
            percentage = progress_percentage(score, threshold)

            if score < threshold:
                return ProgressQueryResult(
                    ProgressStatus.IN_PROGRESS,
                    player_id,
                    score=score,
                    percentage=percentage,
                )

            qualifying = await self.repository.list_at_or_above(session, threshold)

        if all(row.player_id != player_id for row in qualifying):
            # Decayed below threshold between the two reads
            qualifying.append(record)

        # sorted() is stable: equal scores keep the store's return order
        ranked = sorted(qualifying, key=lambda row: row.score, reverse=True)
        rank = next(
            idx for idx, row in enumerate(ranked, start=1) if row.player_id == player_id
        )

        return ProgressQueryResult(
            ProgressStatus.WHITELISTED,
            player_id,
            score=score,
            percentage=percentage,
            rank=rank,
            total=len(ranked),
        )
