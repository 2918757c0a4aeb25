"""
Typed roster snapshot.

The host delivers SquadJS-shaped dictionaries whose fields are loosely typed:
lock flags arrive as booleans or strings, leader flags likewise, ids as ints
or strings. Everything is normalized exactly once here, in
`RosterSnapshot.from_raw`; the rest of the engine only sees frozen dataclasses.

Accepted descriptor shape::

    {
        "steamID": "76561198000000001",   # or "id"
        "name": "Player",
        "isLeader": True,                  # bool or "true"/"false"
        "squadID": 3,                      # optional, fallback for squad.squadID
        "squad": {"squadID": 3, "locked": "False", "squadName": "ALPHA"},
    }
"""

from __future__ import annotations

from collections import Counter
from dataclasses import dataclass
from typing import Any, Dict, Iterable, Mapping, Optional, Tuple

from src.core.logging.logger import get_logger
from src.modules.shared.exceptions import MalformedRosterEntryError

logger = get_logger(__name__)

_ID_KEYS = ("steamID", "id")


def normalize_flag(value: Any) -> bool:
    """True only for a real True or a case-insensitive "true" string."""
    if isinstance(value, bool):
        return value
    return str(value).strip().lower() == "true"


def is_unlocked(value: Any) -> bool:
    """
    A lock flag means "unlocked" only when it spells false in any case or
    type. Missing/None/garbage counts as locked.
    """
    return str(value).strip().lower() == "false"


def _clean_id(value: Any) -> Optional[str]:
    if value is None or isinstance(value, bool):
        return None
    text = str(value).strip()
    return text or None


@dataclass(frozen=True)
class SquadRef:
    squad_id: str
    locked: bool
    name: Optional[str] = None


@dataclass(frozen=True)
class PlayerDescriptor:
    player_id: str
    name: str
    squad: Optional[SquadRef]
    is_leader: bool

    @classmethod
    def from_raw(cls, raw: Any) -> PlayerDescriptor:
        """
        Raises:
            MalformedRosterEntryError: When the descriptor is not a mapping or
                carries no usable player id.
        """
        if not isinstance(raw, Mapping):
            raise MalformedRosterEntryError("descriptor is not a mapping", raw)

        player_id = None
        for key in _ID_KEYS:
            player_id = _clean_id(raw.get(key))
            if player_id:
                break
        if not player_id:
            raise MalformedRosterEntryError("missing player id", raw)

        name = raw.get("name")
        return cls(
            player_id=player_id,
            name=str(name) if name is not None else player_id,
            squad=_parse_squad(raw),
            is_leader=normalize_flag(raw.get("isLeader", False)),
        )


def _parse_squad(raw: Mapping[str, Any]) -> Optional[SquadRef]:
    squad = raw.get("squad")
    if squad is not None and not isinstance(squad, Mapping):
        logger.debug(
            "Ignoring non-mapping squad field",
            extra={"squad_type": type(squad).__name__},
        )
        return None

    squad_id = _clean_id(squad.get("squadID")) if squad else None
    if squad_id is None:
        squad_id = _clean_id(raw.get("squadID"))
    if squad_id is None:
        return None

    squad_name = squad.get("squadName") if squad else None
    return SquadRef(
        squad_id=squad_id,
        locked=not is_unlocked(squad.get("locked") if squad else None),
        name=str(squad_name) if squad_name is not None else None,
    )


@dataclass(frozen=True)
class RosterSnapshot:
    """
    One sampled roster, in host order.

    `live_player_count` is the number of entries the host reported, including
    malformed ones that were dropped from `players`; it feeds the decay
    population gate.
    """

    players: Tuple[PlayerDescriptor, ...] = ()
    live_player_count: int = 0

    @classmethod
    def empty(cls) -> RosterSnapshot:
        return cls()

    @classmethod
    def from_raw(cls, raw_players: Optional[Iterable[Any]]) -> RosterSnapshot:
        if raw_players is None:
            return cls.empty()

        players = []
        seen = 0
        dropped = 0
        for entry in raw_players:
            seen += 1
            try:
                players.append(PlayerDescriptor.from_raw(entry))
            except MalformedRosterEntryError as exc:
                dropped += 1
                logger.debug(
                    "Dropping malformed roster entry",
                    extra={"reason": exc.reason, "details": exc.details},
                )

        if dropped:
            logger.debug(
                "Roster parsed with dropped entries",
                extra={"received": seen, "dropped": dropped},
            )

        return cls(players=tuple(players), live_player_count=seen)

    def __len__(self) -> int:
        return len(self.players)

    def squad_sizes(self) -> Dict[str, int]:
        """Member count per squad id, counted within this snapshot."""
        return dict(
            Counter(p.squad.squad_id for p in self.players if p.squad is not None)
        )
