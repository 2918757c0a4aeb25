"""
Whitelist engine settings.

A frozen snapshot of the whitelist tunables taken from Config when the
plugin is built, plus the derived per-tick quantities the engines consume.
"""

from __future__ import annotations

import os
from dataclasses import dataclass, replace
from datetime import timedelta
from pathlib import Path
from typing import Any, Optional

from src.core.config.config import Config
from src.core.exceptions import ConfigurationError
from src.modules.whitelist.constants import PROGRESS_TICK_SECONDS


@dataclass(frozen=True)
class WhitelistSettings:
    """
    Attributes
    ----------
    output_path : str
        Whitelist artifact path; relative paths are joined to the host base path.
    group_name : str
        Admin group written into the artifact.
    threshold : float
        Score at or above which a player is whitelisted.
    progress_per_hour : float
        Credit an eligible leader earns per hour of leading.
    decay_per_hour : float
        Score removed per hour from idle players.
    decay_interval_seconds : int
        Decay cadence.
    decay_after_hours : float
        Idle time after which decay applies (strictly greater than).
    min_players_for_decay : int
        Live player count below which decay is skipped.
    min_squad_members : int
        Squad size a leader needs to earn credit.
    only_open_squads : bool
        Only leaders of unlocked squads earn credit.
    whitelist_update_minutes : float
        Artifact regeneration cadence.
    tick_seconds : int
        Roster sampling cadence; fixed in production.
    base_path : str
        Host server directory used to resolve a relative output path.
    """

    output_path: str = "SquadGame/ServerConfig/slwhitelist.cfg"
    group_name: str = "sl_whitelist"
    threshold: float = 100.0
    progress_per_hour: float = 50.0
    decay_per_hour: float = 12.0
    decay_interval_seconds: int = 300
    decay_after_hours: float = 24.0
    min_players_for_decay: int = 50
    min_squad_members: int = 4
    only_open_squads: bool = True
    whitelist_update_minutes: float = 5.0
    tick_seconds: int = PROGRESS_TICK_SECONDS
    base_path: str = ""

    @classmethod
    def from_config(cls, **overrides: Any) -> WhitelistSettings:
        settings = cls(
            output_path=Config.WHITELIST_PATH,
            group_name=Config.WHITELIST_GROUP,
            threshold=float(Config.WHITELIST_THRESHOLD),
            progress_per_hour=float(Config.WHITELIST_PROGRESS_PER_HOUR),
            decay_per_hour=float(Config.WHITELIST_DECAY_PER_HOUR),
            decay_interval_seconds=int(Config.WHITELIST_DECAY_INTERVAL_SECONDS),
            decay_after_hours=float(Config.WHITELIST_DECAY_AFTER_HOURS),
            min_players_for_decay=int(Config.WHITELIST_MIN_PLAYERS_FOR_DECAY),
            min_squad_members=int(Config.WHITELIST_MIN_SQUAD_MEMBERS),
            only_open_squads=bool(Config.WHITELIST_ONLY_OPEN_SQUADS),
            whitelist_update_minutes=float(Config.WHITELIST_UPDATE_MINUTES),
            base_path=Config.SERVER_BASE_PATH,
        )
        if overrides:
            settings = replace(settings, **overrides)
        return settings

    def validate(self) -> WhitelistSettings:
        """
        Raises:
            ConfigurationError: On the first invalid value.
        """
        if not self.output_path or not self.output_path.strip():
            raise ConfigurationError("WHITELIST_PATH", "must not be empty")
        if not self.group_name or not self.group_name.strip():
            raise ConfigurationError("WHITELIST_GROUP", "must not be empty")
        if any(ch in self.group_name for ch in ":=\n"):
            raise ConfigurationError(
                "WHITELIST_GROUP", f"must not contain ':', '=' or newlines, got {self.group_name!r}"
            )
        if self.threshold <= 0:
            raise ConfigurationError("WHITELIST_THRESHOLD", f"must be positive, got {self.threshold}")
        if self.progress_per_hour < 0:
            raise ConfigurationError(
                "WHITELIST_PROGRESS_PER_HOUR", f"must not be negative, got {self.progress_per_hour}"
            )
        if self.decay_per_hour < 0:
            raise ConfigurationError(
                "WHITELIST_DECAY_PER_HOUR", f"must not be negative, got {self.decay_per_hour}"
            )
        if self.decay_interval_seconds <= 0:
            raise ConfigurationError(
                "WHITELIST_DECAY_INTERVAL_SECONDS",
                f"must be positive, got {self.decay_interval_seconds}",
            )
        if self.decay_after_hours < 0:
            raise ConfigurationError(
                "WHITELIST_DECAY_AFTER_HOURS", f"must not be negative, got {self.decay_after_hours}"
            )
        if self.min_players_for_decay < 0:
            raise ConfigurationError(
                "WHITELIST_MIN_PLAYERS_FOR_DECAY",
                f"must not be negative, got {self.min_players_for_decay}",
            )
        if self.min_squad_members < 1:
            raise ConfigurationError(
                "WHITELIST_MIN_SQUAD_MEMBERS", f"must be at least 1, got {self.min_squad_members}"
            )
        if self.whitelist_update_minutes <= 0:
            raise ConfigurationError(
                "WHITELIST_UPDATE_MINUTES", f"must be positive, got {self.whitelist_update_minutes}"
            )
        if self.tick_seconds <= 0:
            raise ConfigurationError("tick_seconds", f"must be positive, got {self.tick_seconds}")
        return self

    # ------------------------------------------------------------------
    # Derived quantities
    # ------------------------------------------------------------------

    @property
    def progress_delta(self) -> float:
        """Credit per sampling tick; never scaled by real elapsed time."""
        return self.progress_per_hour * self.tick_seconds / 3600.0

    @property
    def decay_amount(self) -> float:
        """Score removed from each idle record per decay tick."""
        return self.decay_per_hour * self.decay_interval_seconds / 3600.0

    @property
    def decay_after(self) -> timedelta:
        return timedelta(hours=self.decay_after_hours)

    @property
    def whitelist_update_seconds(self) -> float:
        return self.whitelist_update_minutes * 60.0

    def resolve_output_path(self, base_path: Optional[str] = None) -> Path:
        """
        Absolute output paths are used as-is; relative ones are joined to the
        host base path (argument, then settings) or the working directory.
        """
        target = Path(os.path.expanduser(self.output_path))
        if target.is_absolute():
            return target

        base = base_path if base_path is not None else self.base_path
        return Path(base or os.getcwd()) / target
