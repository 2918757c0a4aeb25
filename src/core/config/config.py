"""
Static configuration for the squad leader whitelist.

Purpose
-------
Class-level configuration read from environment variables (a `.env` file is
honoured) with defaults. Values are fixed for the lifetime of the process;
whitelist rules are additionally captured in `WhitelistSettings` when the
plugin mounts.

Parsing Rules
-------------
- A value that does not parse, or falls outside its bounds, is replaced by
  its default and a warning is logged. Startup never fails on a bad number.
- `validate()` only raises in production; elsewhere problems are logged.

Environment Variables
---------------------
- DATABASE_*: store URL, pool and timeout settings
- ENVIRONMENT, LOG_LEVEL, LOG_JSON, LOG_TO_FILE: runtime mode and logging
- SERVER_BASE_PATH: base for a relative WHITELIST_PATH
- WHITELIST_*: whitelist behaviour (see Config.load)
"""

import logging
import os
from pathlib import Path
from typing import Any, Dict, Optional

from dotenv import load_dotenv

load_dotenv()

_TRUE_VALUES = {"true", "yes", "1", "on"}
_FALSE_VALUES = {"false", "no", "0", "off"}


def _fallback(key: str, problem: str, default: Any) -> Any:
    # Structured logging is configured from this class, so use the root logger
    logging.warning(f"{key} {problem}, using default {default!r}")
    return default


class Config:
    """
    Centralized static configuration.

    Usage
    -----
    >>> Config.validate()
    >>> Config.WHITELIST_THRESHOLD
    100
    """

    _validated: bool = False

    PROJECT_ROOT = Path(__file__).resolve().parents[3]
    LOGS_DIR = PROJECT_ROOT / "logs"
    DATA_DIR = PROJECT_ROOT / "data"

    # Database
    DATABASE_URL: str = f"sqlite+aiosqlite:///{DATA_DIR / 'slwhitelist.db'}"
    DATABASE_POOL_SIZE: int = 5
    DATABASE_MAX_OVERFLOW: int = 10
    DATABASE_POOL_TIMEOUT: int = 30
    DATABASE_POOL_RECYCLE: int = 1800
    DATABASE_ECHO: bool = False
    DATABASE_STATEMENT_TIMEOUT_MS: int = 30_000
    DATABASE_BOOTSTRAP_HEALTH_TIMEOUT_SECONDS: float = 5.0

    # Runtime
    ENVIRONMENT: str = "development"
    LOG_LEVEL: str = "INFO"
    LOG_JSON: Optional[bool] = None
    LOG_TO_FILE: bool = True

    # Host
    SERVER_BASE_PATH: str = ""

    # Whitelist
    WHITELIST_PATH: str = "SquadGame/ServerConfig/slwhitelist.cfg"
    WHITELIST_GROUP: str = "sl_whitelist"
    WHITELIST_THRESHOLD: int = 100
    WHITELIST_PROGRESS_PER_HOUR: float = 50.0
    WHITELIST_DECAY_PER_HOUR: float = 12.0
    WHITELIST_DECAY_INTERVAL_SECONDS: int = 300
    WHITELIST_DECAY_AFTER_HOURS: float = 24.0
    WHITELIST_MIN_PLAYERS_FOR_DECAY: int = 50
    WHITELIST_MIN_SQUAD_MEMBERS: int = 4
    WHITELIST_ONLY_OPEN_SQUADS: bool = True
    WHITELIST_UPDATE_MINUTES: int = 5

    # =========================================================================
    # Parsers
    # =========================================================================

    @classmethod
    def _safe_int(
        cls,
        key: str,
        default: int,
        min_val: Optional[int] = None,
        max_val: Optional[int] = None,
    ) -> int:
        """
        >>> Config._safe_int("WHITELIST_MIN_SQUAD_MEMBERS", 4, min_val=1)
        4
        """
        raw_value = os.getenv(key)
        if raw_value is None:
            return default

        try:
            value = int(raw_value)
        except ValueError:
            return _fallback(key, f"={raw_value!r} is not an integer", default)

        if min_val is not None and value < min_val:
            return _fallback(key, f"={value} is below minimum {min_val}", default)
        if max_val is not None and value > max_val:
            return _fallback(key, f"={value} exceeds maximum {max_val}", default)
        return value

    @classmethod
    def _safe_float(cls, key: str, default: float, min_val: Optional[float] = None) -> float:
        raw_value = os.getenv(key)
        if raw_value is None:
            return default

        try:
            value = float(raw_value)
        except ValueError:
            return _fallback(key, f"={raw_value!r} is not a number", default)

        if min_val is not None and value < min_val:
            return _fallback(key, f"={value} is below minimum {min_val}", default)
        return value

    @classmethod
    def _safe_bool(cls, key: str, default: bool) -> bool:
        """Accepts true/false, yes/no, 1/0, on/off (case-insensitive)."""
        raw_value = os.getenv(key)
        if raw_value is None:
            return default

        normalized = raw_value.lower().strip()
        if normalized in _TRUE_VALUES:
            return True
        if normalized in _FALSE_VALUES:
            return False
        return _fallback(key, f"={raw_value!r} is not a boolean", default)

    @classmethod
    def _safe_optional_bool(cls, key: str) -> Optional[bool]:
        """Unset means 'decide elsewhere'."""
        if os.getenv(key) is None:
            return None
        return cls._safe_bool(key, False)

    @classmethod
    def _safe_str(cls, key: str, default: str) -> str:
        return os.getenv(key, default)

    # =========================================================================
    # Loading
    # =========================================================================

    @classmethod
    def load(cls) -> None:
        """
        Read every value from the environment.

        Safe to call again; tests do so after monkeypatching the environment.
        """
        cls.DATABASE_URL = cls._safe_str(
            "DATABASE_URL", f"sqlite+aiosqlite:///{cls.DATA_DIR / 'slwhitelist.db'}"
        )
        cls.DATABASE_POOL_SIZE = cls._safe_int("DATABASE_POOL_SIZE", 5, min_val=1, max_val=200)
        cls.DATABASE_MAX_OVERFLOW = cls._safe_int(
            "DATABASE_MAX_OVERFLOW", 10, min_val=0, max_val=200
        )
        cls.DATABASE_POOL_TIMEOUT = cls._safe_int("DATABASE_POOL_TIMEOUT", 30, min_val=1)
        cls.DATABASE_POOL_RECYCLE = cls._safe_int("DATABASE_POOL_RECYCLE", 1800, min_val=60)
        cls.DATABASE_ECHO = cls._safe_bool("DATABASE_ECHO", False)
        cls.DATABASE_STATEMENT_TIMEOUT_MS = cls._safe_int(
            "DATABASE_STATEMENT_TIMEOUT_MS", 30_000, min_val=100
        )
        cls.DATABASE_BOOTSTRAP_HEALTH_TIMEOUT_SECONDS = cls._safe_float(
            "DATABASE_BOOTSTRAP_HEALTH_TIMEOUT_SECONDS", 5.0, min_val=0.1
        )

        cls.ENVIRONMENT = cls._safe_str("ENVIRONMENT", "development")
        cls.LOG_LEVEL = cls._safe_str("LOG_LEVEL", "INFO")
        cls.LOG_JSON = cls._safe_optional_bool("LOG_JSON")
        cls.LOG_TO_FILE = cls._safe_bool("LOG_TO_FILE", True)

        cls.SERVER_BASE_PATH = cls._safe_str("SERVER_BASE_PATH", "")

        cls.WHITELIST_PATH = cls._safe_str(
            "WHITELIST_PATH", "SquadGame/ServerConfig/slwhitelist.cfg"
        )
        cls.WHITELIST_GROUP = cls._safe_str("WHITELIST_GROUP", "sl_whitelist")
        cls.WHITELIST_THRESHOLD = cls._safe_int("WHITELIST_THRESHOLD", 100, min_val=1)
        cls.WHITELIST_PROGRESS_PER_HOUR = cls._safe_float(
            "WHITELIST_PROGRESS_PER_HOUR", 50.0, min_val=0.0
        )
        cls.WHITELIST_DECAY_PER_HOUR = cls._safe_float(
            "WHITELIST_DECAY_PER_HOUR", 12.0, min_val=0.0
        )
        cls.WHITELIST_DECAY_INTERVAL_SECONDS = cls._safe_int(
            "WHITELIST_DECAY_INTERVAL_SECONDS", 300, min_val=1
        )
        cls.WHITELIST_DECAY_AFTER_HOURS = cls._safe_float(
            "WHITELIST_DECAY_AFTER_HOURS", 24.0, min_val=0.0
        )
        cls.WHITELIST_MIN_PLAYERS_FOR_DECAY = cls._safe_int(
            "WHITELIST_MIN_PLAYERS_FOR_DECAY", 50, min_val=0
        )
        cls.WHITELIST_MIN_SQUAD_MEMBERS = cls._safe_int(
            "WHITELIST_MIN_SQUAD_MEMBERS", 4, min_val=1
        )
        cls.WHITELIST_ONLY_OPEN_SQUADS = cls._safe_bool("WHITELIST_ONLY_OPEN_SQUADS", True)
        cls.WHITELIST_UPDATE_MINUTES = cls._safe_int("WHITELIST_UPDATE_MINUTES", 5, min_val=1)

    @classmethod
    def validate(cls) -> None:
        """
        Reload and sanity-check configuration, creating the logs and data
        directories.

        Raises:
            ValueError: Only in production, when DATABASE_URL is empty.
        """
        if cls._validated:
            return

        logger = logging.getLogger(__name__)

        try:
            cls.load()

            if not cls.DATABASE_URL:
                raise ValueError("DATABASE_URL environment variable is required")

            if cls.LOG_LEVEL.upper() not in {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}:
                logger.warning(f"Invalid LOG_LEVEL '{cls.LOG_LEVEL}', using INFO")
                cls.LOG_LEVEL = "INFO"

            if not cls.WHITELIST_GROUP.strip():
                logger.warning("WHITELIST_GROUP is empty, using 'sl_whitelist'")
                cls.WHITELIST_GROUP = "sl_whitelist"

            cls.LOGS_DIR.mkdir(exist_ok=True)
            cls.DATA_DIR.mkdir(exist_ok=True)

            if cls.is_production() and cls.DATABASE_URL.startswith("sqlite"):
                logger.warning(
                    "Production environment using a SQLite database; "
                    "concurrent writers will serialize on the file lock"
                )

            cls._validated = True

        except Exception as e:
            logger.warning(f"Config validation warning (safe for tests): {e}")
            if cls.is_production():
                logger.error("Configuration validation failed in production!")
                raise

    @classmethod
    def is_production(cls) -> bool:
        return cls.ENVIRONMENT.lower() == "production"

    @classmethod
    def is_testing(cls) -> bool:
        return cls.ENVIRONMENT.lower() in ("testing", "test")

    @classmethod
    def get_config_summary(cls) -> Dict[str, Any]:
        """Non-sensitive configuration summary for the startup log."""
        return {
            "environment": cls.ENVIRONMENT,
            "log_level": cls.LOG_LEVEL,
            "database_backend": cls.DATABASE_URL.split(":", 1)[0],
            "whitelist_path": cls.WHITELIST_PATH,
            "whitelist_group": cls.WHITELIST_GROUP,
            "whitelist_threshold": cls.WHITELIST_THRESHOLD,
            "progress_per_hour": cls.WHITELIST_PROGRESS_PER_HOUR,
            "decay_per_hour": cls.WHITELIST_DECAY_PER_HOUR,
            "only_open_squads": cls.WHITELIST_ONLY_OPEN_SQUADS,
        }


# Module-level consumers see environment values from import onwards
Config.load()
