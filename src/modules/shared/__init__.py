"""
Shared Module

Purpose
-------
Provides domain-level foundations for the whitelist module:
- Domain exceptions
- Base service and repository patterns

Architecture
------------
- BaseService: Foundation for engine classes (settings, structured logging)
- BaseRepository: Type-safe database access patterns
- Domain exceptions: invalid host input

Usage
-----
    from src.modules.shared import (
        BaseService,
        BaseRepository,
        MalformedRosterEntryError,
    )
"""

from __future__ import annotations

from .base_repository import BaseRepository
from .base_service import BaseService
from .exceptions import (
    MalformedRosterEntryError,
    ValidationError,
    WhitelistDomainException,
)

__all__ = [
    "BaseService",
    "BaseRepository",
    "WhitelistDomainException",
    "ValidationError",
    "MalformedRosterEntryError",
]
