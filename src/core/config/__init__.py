"""
Configuration subsystem.

Static configuration is loaded from environment variables (.env supported)
into the class-level `Config` at import time.
"""

from src.core.config.config import Config

__all__ = ["Config"]
