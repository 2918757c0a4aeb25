"""
Eligibility filter: which players earn credit this tick.

Pure function over a snapshot; no I/O, no state.
"""

from __future__ import annotations

from typing import List

from src.core.logging.logger import get_logger
from src.modules.whitelist.roster import PlayerDescriptor, RosterSnapshot

logger = get_logger(__name__)


def select_eligible_leaders(
    snapshot: RosterSnapshot,
    *,
    min_squad_members: int,
    only_open_squads: bool,
) -> List[PlayerDescriptor]:
    """
    Leaders whose squad is big enough and, when required, unlocked.

    Squad size is the number of players in the same snapshot sharing the
    leader's squad id. Players without a squad are never eligible. Result
    keeps snapshot order.
    """
    sizes = snapshot.squad_sizes()
    eligible: List[PlayerDescriptor] = []

    for player in snapshot.players:
        if not player.is_leader or player.squad is None:
            continue

        members = sizes.get(player.squad.squad_id, 0)
        if members < min_squad_members:
            logger.debug(
                "Leader skipped: squad below minimum size",
                extra={
                    "player_id": player.player_id,
                    "squad_id": player.squad.squad_id,
                    "members": members,
                    "min_squad_members": min_squad_members,
                },
            )
            continue

        if only_open_squads and player.squad.locked:
            logger.debug(
                "Leader skipped: squad is locked",
                extra={"player_id": player.player_id, "squad_id": player.squad.squad_id},
            )
            continue

        eligible.append(player)

    return eligible
