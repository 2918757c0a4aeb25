"""
Database subsystem.

Provides the async SQLAlchemy engine, session management, schema bootstrap
and the ORM base classes for model definitions.
"""

from src.core.database.base import (
    Base,
    TimestampMixin,
    as_utc,
    utc_now,
)
from src.core.database.bootstrap import (
    ensure_schema,
    initialize_database_subsystem,
    shutdown_database_subsystem,
)
from src.core.database.service import (
    DatabaseInitializationError,
    DatabaseNotInitializedError,
    DatabaseService,
)

__all__ = [
    # ORM Base & Mixins
    "Base",
    "TimestampMixin",
    "utc_now",
    "as_utc",
    # Main service
    "DatabaseService",
    # Bootstrap
    "initialize_database_subsystem",
    "ensure_schema",
    "shutdown_database_subsystem",
    # Exceptions
    "DatabaseInitializationError",
    "DatabaseNotInitializedError",
]
