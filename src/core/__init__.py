"""
Core infrastructure layer.

Purpose
-------
Provide a single import surface for the infrastructure subsystems:

- Configuration (Config)
- Database subsystem (DatabaseService, bootstrap helpers)
- Logging (structured logging, logger factory)
- Background tasks (PeriodicTask)
- Infrastructure exceptions

Design Decisions
----------------
- This module is thin: no logic, no configuration, no I/O.
- Domain modules import from their own packages, not from src.core directly.
"""

from __future__ import annotations

from src.core.config import Config
from src.core.database import DatabaseService, initialize_database_subsystem
from src.core.exceptions import (
    ConfigurationError,
    DatabaseError,
    ErrorSeverity,
    SchemaInitializationError,
    WhitelistInfrastructureException,
    WhitelistWriteError,
)
from src.core.logging import get_logger, setup_logging
from src.core.tasks import PeriodicTask

__all__ = [
    # Configuration
    "Config",
    # Database
    "DatabaseService",
    "initialize_database_subsystem",
    # Logging
    "setup_logging",
    "get_logger",
    # Tasks
    "PeriodicTask",
    # Infrastructure Exceptions
    "WhitelistInfrastructureException",
    "ConfigurationError",
    "DatabaseError",
    "SchemaInitializationError",
    "WhitelistWriteError",
    "ErrorSeverity",
]
