"""
Database Models Package
========================

SQLAlchemy ORM models for the squad leader whitelist store.

All models:
- Schema-only, no business logic
- Use Mapped[] syntax with mapped_column()
- Inherit TimestampMixin for created_at / updated_at bookkeeping
"""

from src.core.database.base import Base

from .whitelist_progress import WhitelistProgress

__all__ = [
    "Base",
    "WhitelistProgress",
]
