"""Service module exports."""

from . import achievements, admin_tasks, backup, challenges, goals, streaks, toggle

__all__ = [
    "achievements",
    "admin_tasks",
    "backup",
    "challenges",
    "goals",
    "streaks",
    "toggle",
]
