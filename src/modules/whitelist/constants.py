"""
Fixed values of the squad leader whitelist engine.

Anything an operator may tune lives in Config / WhitelistSettings instead.
"""

from __future__ import annotations

# Roster sampling cadence; accrual per tick is derived from it
PROGRESS_TICK_SECONDS: int = 30

# Milestone notifications fire when the score crosses a multiple of this
MILESTONE_BAND: float = 10.0

# In-game chat command that triggers a progress query ("!slwl")
CHAT_COMMAND: str = "slwl"

# Reply framing sent through the remote console
MESSAGE_HEADER: str = "═════ SL WHITELIST ═════"
MESSAGE_FOOTER: str = "══════════════════════"

# Admin group permission granted to whitelisted players
GROUP_PERMISSIONS: str = "reserve"

# Task names, also used as the logging "task" context field
TASK_PROGRESS: str = "progress"
TASK_DECAY: str = "decay"
TASK_WHITELIST: str = "whitelist"
