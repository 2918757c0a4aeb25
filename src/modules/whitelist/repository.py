"""
Progress record store.

Every mutation is one SQL statement, so concurrent ticks touching the same
player can never lose an update:

- accrual is an INSERT ... ON CONFLICT DO UPDATE that adds to the stored
  score and returns the stored values before and after the increment
- decay is a single relative UPDATE clamped at zero

Reads return rows in the store's natural order (no ORDER BY).
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Callable, List, NamedTuple, Optional

from sqlalchemy import case, select, update
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from src.core.database.service import DatabaseNotInitializedError
from src.core.logging.logger import get_logger
from src.database.models import WhitelistProgress
from src.modules.shared.base_repository import BaseRepository

_UPSERT_BUILDERS: dict[str, Callable[..., Any]] = {
    "postgresql": postgresql.insert,
    "sqlite": sqlite.insert,
}


class UnsupportedDialectError(RuntimeError):
    """Raised when the store's dialect has no atomic upsert construct wired up."""


# Failures that mean "the store could not be reached or used" for one operation
STORE_ERRORS = (SQLAlchemyError, DatabaseNotInitializedError, UnsupportedDialectError)


class ProgressIncrement(NamedTuple):
    previous_score: float
    score: float


class ProgressRepository(BaseRepository[WhitelistProgress]):
    def __init__(self) -> None:
        super().__init__(WhitelistProgress, get_logger(__name__))

    @staticmethod
    def _insert_for(session: AsyncSession) -> Callable[..., Any]:
        dialect = session.get_bind().dialect.name
        try:
            return _UPSERT_BUILDERS[dialect]
        except KeyError:
            raise UnsupportedDialectError(
                f"No atomic upsert available for dialect {dialect!r}"
            ) from None

    async def get_progress(
        self, session: AsyncSession, player_id: str
    ) -> Optional[WhitelistProgress]:
        return await self.get(session, player_id)

    async def add_progress(
        self,
        session: AsyncSession,
        player_id: str,
        delta: float,
        now: datetime,
    ) -> ProgressIncrement:
        """
        Create the record with `score=delta` or add `delta` to it, and move
        `last_progressed_at` forward to `now` (never backwards).

        The pre-increment score is copied into `previous_score` by the same
        statement, so both sides of the increment come back exactly as stored.

        Returns:
            ProgressIncrement(previous_score, score); previous_score is 0.0
            for a newly created record.
        """
        now = now.astimezone(timezone.utc)
        insert = self._insert_for(session)

        stmt = insert(WhitelistProgress).values(
            player_id=player_id,
            score=delta,
            previous_score=0.0,
            last_progressed_at=now,
            created_at=now,
            updated_at=now,
        )
        stmt = stmt.on_conflict_do_update(
            index_elements=[WhitelistProgress.__table__.c.player_id],
            set_={
                "previous_score": WhitelistProgress.score,
                "score": WhitelistProgress.score + stmt.excluded.score,
                "last_progressed_at": case(
                    (
                        stmt.excluded.last_progressed_at
                        > WhitelistProgress.last_progressed_at,
                        stmt.excluded.last_progressed_at,
                    ),
                    else_=WhitelistProgress.last_progressed_at,
                ),
                "updated_at": stmt.excluded.updated_at,
            },
        ).returning(WhitelistProgress.previous_score, WhitelistProgress.score)

        row = (await session.execute(stmt)).one()
        increment = ProgressIncrement(float(row.previous_score), float(row.score))

        self.log.debug(
            "Progress upserted",
            extra={
                "player_id": player_id,
                "delta": delta,
                "previous_score": increment.previous_score,
                "new_score": increment.score,
            },
        )
        return increment

    async def decay_idle(
        self,
        session: AsyncSession,
        *,
        amount: float,
        idle_before: datetime,
    ) -> int:
        """
        Subtract `amount` (clamped at zero) from every positive record whose
        last accrual is strictly before `idle_before`.

        Rows already at zero are not written. `last_progressed_at` is never
        touched.

        Returns:
            Number of rows changed.
        """
        if amount <= 0:
            return 0

        idle_before = idle_before.astimezone(timezone.utc)
        decayed = WhitelistProgress.score - amount

        stmt = (
            update(WhitelistProgress)
            .where(
                WhitelistProgress.last_progressed_at < idle_before,
                WhitelistProgress.score > 0,
            )
            .values(score=case((decayed > 0, decayed), else_=0.0))
            .execution_options(synchronize_session=False)
        )

        result = await session.execute(stmt)
        changed = int(result.rowcount or 0)

        self.log.debug(
            "Idle progress decayed",
            extra={"amount": amount, "idle_before": idle_before.isoformat(), "rows": changed},
        )
        return changed

    async def list_at_or_above(
        self, session: AsyncSession, threshold: float
    ) -> List[WhitelistProgress]:
        return await self.find_many_where(session, WhitelistProgress.score >= threshold)

    async def list_ids_at_or_above(
        self, session: AsyncSession, threshold: float
    ) -> List[str]:
        stmt = select(WhitelistProgress.player_id).where(
            WhitelistProgress.score >= threshold
        )
        result = await session.execute(stmt)
        return [str(player_id) for player_id in result.scalars().all()]
