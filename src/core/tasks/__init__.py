"""
Background task primitives.
"""

from src.core.tasks.periodic import PeriodicTask, PeriodicTaskStats

__all__ = [
    "PeriodicTask",
    "PeriodicTaskStats",
]
