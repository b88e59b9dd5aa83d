"""SQLModel table exports."""

from .achievement import Achievement
from .challenge import Challenge, ChallengeCredit, ChallengeHabitLink
from .goal import Goal
from .habit import Habit, HabitEntry
from .settings import AppSetting

__all__ = [
    "Achievement",
    "AppSetting",
    "Challenge",
    "ChallengeCredit",
    "ChallengeHabitLink",
    "Goal",
    "Habit",
    "HabitEntry",
]
