"""Achievement rules: default seed and the fire-once evaluator."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Iterable

from ..clock import Clock, SystemClock
from ..domain.repositories import AchievementRepository
from ..models.achievement import Achievement

logger = logging.getLogger("habitledger.achievements")

DEFAULT_ACHIEVEMENTS: tuple[dict, ...] = (
    {
        "name": "First Step",
        "description": "Complete your first habit",
        "icon": "🌱",
        "type": "streak",
        "requirement": 1,
    },
    {
        "name": "Week Warrior",
        "description": "Maintain a 7-day streak",
        "icon": "🔥",
        "type": "streak",
        "requirement": 7,
    },
    {
        "name": "Month Master",
        "description": "Maintain a 30-day streak",
        "icon": "💎",
        "type": "streak",
        "requirement": 30,
    },
    {
        "name": "Perfectionist",
        "description": "Achieve 100% completion rate",
        "icon": "⭐",
        "type": "completion",
        "requirement": 100,
    },
    {
        "name": "Consistent Creator",
        "description": "Achieve 80% completion rate",
        "icon": "🎯",
        "type": "completion",
        "requirement": 80,
    },
)


@dataclass(frozen=True)
class AchievementSummary:
    total: int
    unlocked: int


def seed_default_achievements(repo: AchievementRepository) -> list[Achievement]:
    """Insert the default global rules on first run; no-op once any rule exists."""

    if repo.count() > 0:
        return []
    created = repo.bulk_create(Achievement(**payload) for payload in DEFAULT_ACHIEVEMENTS)
    logger.info("Seeded %s default achievements", len(created))
    return created


def rule_matches(achievement: Achievement, streak: int, rate: int) -> bool:
    """Whether a rule's threshold is met. Only streak and completion rules are evaluated."""

    if achievement.type == "streak":
        return streak >= achievement.requirement
    if achievement.type == "completion":
        return rate >= achievement.requirement
    return False


def summarize(achievements: Iterable[Achievement]) -> AchievementSummary:
    rows = list(achievements)
    return AchievementSummary(
        total=len(rows),
        unlocked=sum(1 for a in rows if a.unlocked_at is not None),
    )


class AchievementEvaluator:
    """Unlocks matching rules exactly once.

    An unlock is a historical fact: a later drop in streak or rate never
    re-locks it, and a rule that is already unlocked is not evaluated again.
    """

    def __init__(self, repo: AchievementRepository, clock: Clock | None = None):
        self.repo = repo
        self.clock = clock or SystemClock()

    def evaluate(self, habit_id: int, current_streak: int, completion_rate: int) -> list[Achievement]:
        """Return the rules newly unlocked by this call."""
        unlocked: list[Achievement] = []
        for achievement in self.repo.list_applicable(habit_id):
            if achievement.unlocked_at is not None or achievement.id is None:
                continue
            if not rule_matches(achievement, current_streak, completion_rate):
                continue
            when = self.clock.now()
            if self.repo.mark_unlocked(achievement.id, when):
                achievement.unlocked_at = when
                unlocked.append(achievement)
                logger.info(
                    "Achievement unlocked: %s",
                    achievement.name,
                    extra={"achievement_id": achievement.id, "habit_id": habit_id},
                )
        return unlocked


__all__ = [
    "AchievementEvaluator",
    "AchievementSummary",
    "DEFAULT_ACHIEVEMENTS",
    "rule_matches",
    "seed_default_achievements",
    "summarize",
]
