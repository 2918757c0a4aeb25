"""
WhitelistProgress: per-player squad leader whitelist progress.
Pure schema only.
"""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import CheckConstraint, DateTime, Float, String
from sqlalchemy.orm import Mapped, mapped_column

from src.core.database.base import Base, TimestampMixin


class WhitelistProgress(Base, TimestampMixin):
    """
    Progress row, one per player.

    Schema-only:
    - player_id (opaque stable id from the game server, primary key)
    - score (non-negative, fractional; compared against the threshold)
    - previous_score (score just before the latest accrual; written only by
      the accrual upsert)
    - last_progressed_at (UTC time of the most recent accrual; gates decay)
    - created_at / updated_at (from TimestampMixin)

    Rows are created lazily by the first accrual and never deleted.
    """

    __tablename__ = "whitelist_progress"
    __table_args__ = (
        CheckConstraint("score >= 0", name="score_non_negative"),
    )

    player_id: Mapped[str] = mapped_column(String(64), primary_key=True)

    score: Mapped[float] = mapped_column(Float, nullable=False, default=0.0)

    previous_score: Mapped[float] = mapped_column(Float, nullable=False, default=0.0)

    last_progressed_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
    )

    def __repr__(self) -> str:
        return (
            f"<WhitelistProgress(player_id={self.player_id!r}, "
            f"score={self.score:.3f}, last_progressed_at={self.last_progressed_at})>"
        )
