"""
Squad Leader Whitelist module.

Awards whitelist progress to squad leaders, decays it for inactive players,
and keeps an admin-group file in sync with everyone at or above the threshold.
"""

from __future__ import annotations

from .accrual import AccrualEngine, AccrualTickResult, crossed_milestone, milestone_message
from .decay import DecayEngine, DecayTickResult
from .eligibility import select_eligible_leaders
from .interfaces import NotificationSink, RosterSource
from .materializer import WhitelistMaterializer, atomic_write_text, render_whitelist
from .plugin import SquadLeaderWhitelist
from .query import ProgressQueryResult, ProgressQueryService, ProgressStatus
from .repository import ProgressRepository
from .roster import PlayerDescriptor, RosterSnapshot, SquadRef
from .settings import WhitelistSettings

__all__ = [
    "SquadLeaderWhitelist",
    "WhitelistSettings",
    "RosterSource",
    "NotificationSink",
    "RosterSnapshot",
    "PlayerDescriptor",
    "SquadRef",
    "select_eligible_leaders",
    "ProgressRepository",
    "AccrualEngine",
    "AccrualTickResult",
    "crossed_milestone",
    "milestone_message",
    "DecayEngine",
    "DecayTickResult",
    "WhitelistMaterializer",
    "render_whitelist",
    "atomic_write_text",
    "ProgressQueryService",
    "ProgressQueryResult",
    "ProgressStatus",
]
