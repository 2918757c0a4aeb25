"""
Player-facing text sent through the remote console.

Wording is presentation only; the three query reply cases are what matters.
"""

from __future__ import annotations

import math
from typing import TYPE_CHECKING

from src.modules.whitelist.constants import MESSAGE_FOOTER, MESSAGE_HEADER

if TYPE_CHECKING:
    from src.modules.whitelist.query import ProgressQueryResult


def round_half_up(value: float) -> int:
    """Round to the nearest integer, halves away from negative infinity."""
    return int(math.floor(value + 0.5))


def progress_percentage(score: float, threshold: float) -> int:
    return round_half_up(100.0 * score / threshold)


def frame(*lines: str) -> str:
    return "\n".join((MESSAGE_HEADER, *lines, MESSAGE_FOOTER))


def whitelisted_now_message() -> str:
    return frame("You are now on the whitelist!")


def progress_update_message(percentage: int) -> str:
    return frame(f"Progress Update: {percentage}%")


def no_progress_reply() -> str:
    return frame(
        "No whitelist progress found for your account.",
        "Start leading a squad to earn progress!",
    )


def in_progress_reply(percentage: int) -> str:
    return frame(
        "No whitelist yet. Keep leading squads to earn more progress!",
        f"Progress: {percentage}%",
    )


def whitelisted_reply(percentage: int, rank: int, total: int) -> str:
    return frame(
        "You are on the whitelist!",
        f"Progress: {percentage}%",
        f"Rank: {rank} of {total}",
    )


def format_query_reply(result: ProgressQueryResult) -> str:
    # query.py imports this module
    from src.modules.whitelist.query import ProgressStatus

    if result.status is ProgressStatus.NO_PROGRESS:
        return no_progress_reply()
    if result.status is ProgressStatus.IN_PROGRESS:
        return in_progress_reply(result.percentage or 0)
    return whitelisted_reply(result.percentage or 0, result.rank or 0, result.total or 0)
