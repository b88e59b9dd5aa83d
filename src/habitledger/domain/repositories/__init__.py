"""Repository protocol definitions for domain layer."""

from .achievement import AchievementRepository
from .challenge import ChallengeRepository
from .goal import GoalRepository
from .habit import HabitRepository

__all__ = [
    "AchievementRepository",
    "ChallengeRepository",
    "GoalRepository",
    "HabitRepository",
]
