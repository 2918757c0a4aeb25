"""
Capabilities the host hands to the whitelist engine.

The engine never reaches into host globals: it pulls roster snapshots from a
RosterSource and talks to players through a NotificationSink.
"""

from __future__ import annotations

from typing import Any, Mapping, Optional, Protocol, Sequence, runtime_checkable


@runtime_checkable
class RosterSource(Protocol):
    async def fetch_players(self) -> Optional[Sequence[Mapping[str, Any]]]:
        """
        Current live roster as SquadJS-shaped player descriptors, or None when
        the host has no roster yet (server starting, RCON not connected).
        """
        ...


@runtime_checkable
class NotificationSink(Protocol):
    async def warn(self, player_id: str, message: str) -> None:
        """Send a private multi-line message to one player."""
        ...
