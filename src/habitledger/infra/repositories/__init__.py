"""Concrete repository implementations using SQLModel."""

from .achievement import SQLModelAchievementRepository
from .challenge import SQLModelChallengeRepository
from .goal import SQLModelGoalRepository
from .habit import SQLModelHabitRepository

__all__ = [
    "SQLModelAchievementRepository",
    "SQLModelChallengeRepository",
    "SQLModelGoalRepository",
    "SQLModelHabitRepository",
]
