"""Toggle coordinator: the single write path for habit completions.

Each toggle commits the ledger entry first, then re-derives goals,
challenges, stats and achievements in that order. A failing derived step is
logged and skipped; the entry stays committed because every derived value
can be recomputed from the ledger later.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from typing import Optional, Union

from ..clock import Clock, SystemClock
from ..domain.repositories import HabitRepository
from ..logging_config import get_logger
from ..models.achievement import Achievement
from ..models.challenge import Challenge
from ..models.habit import HabitEntry
from .achievements import AchievementEvaluator
from .challenges import ChallengeTracker
from .goals import GoalProgress, GoalTracker
from .streaks import DEFAULT_LOOKBACK_DAYS, HabitStats, calculate_points, compute_stats

logger = get_logger("toggle")


@dataclass
class ToggleResult:
    """Everything one toggle changed or derived."""

    entry: HabitEntry
    stats: Optional[HabitStats] = None
    goals: list[GoalProgress] = field(default_factory=list)
    challenges: list[Challenge] = field(default_factory=list)
    unlocked: list[Achievement] = field(default_factory=list)
    failed_steps: list[str] = field(default_factory=list)

    @property
    def completed(self) -> bool:
        return self.entry.completed


def parse_day(value: Union[date, str, None], *, default: date) -> date:
    """Accept a ``date``, an ISO ``YYYY-MM-DD`` string, or None for ``default``."""

    if value is None:
        return default
    if isinstance(value, date):
        return value
    try:
        return date.fromisoformat(value.strip())
    except (AttributeError, ValueError) as exc:
        raise ValueError(f"Invalid date {value!r}; expected YYYY-MM-DD") from exc


class ToggleCoordinator:
    """Flip one (habit, day) entry and propagate the change to derived state."""

    def __init__(
        self,
        habit_repo: HabitRepository,
        goal_tracker: GoalTracker,
        challenge_tracker: ChallengeTracker,
        evaluator: AchievementEvaluator,
        clock: Clock | None = None,
        lookback_days: int = DEFAULT_LOOKBACK_DAYS,
    ):
        self.habit_repo = habit_repo
        self.goal_tracker = goal_tracker
        self.challenge_tracker = challenge_tracker
        self.evaluator = evaluator
        self.clock = clock or SystemClock()
        self.lookback_days = lookback_days

    def _stats(self, habit_id: int) -> HabitStats:
        return compute_stats(
            self.habit_repo.list_entries(habit_id),
            today=self.clock.today(),
            lookback_days=self.lookback_days,
        )

    def toggle(
        self,
        habit_id: int,
        mood: Optional[str] = None,
        date_override: Union[date, str, None] = None,
    ) -> ToggleResult:
        day = parse_day(date_override, default=self.clock.today())
        habit = self.habit_repo.get_by_id(habit_id)
        if habit is None:
            raise ValueError("Habit not found")

        # 1. ledger write (NoEntry -> Completed, otherwise flip)
        existing = self.habit_repo.get_entry(habit_id, day)
        completed = True if existing is None else not existing.completed
        context = {"habit_id": habit_id, "date": day.isoformat(), "completed": completed}
        failed: list[str] = []

        # points use the streak before this toggle
        points = None
        if completed:
            try:
                points = calculate_points(habit.difficulty, self._stats(habit_id).current_streak)
            except Exception:
                logger.exception("Points calculation failed", extra={**context, "step": "points"})
                failed.append("points")

        entry = self.habit_repo.upsert_entry(
            habit_id, day, completed, mood, points=points, now=self.clock.now()
        )
        result = ToggleResult(entry=entry, failed_steps=failed)
        logger.info("Toggled entry", extra=context)

        # 2. goals
        try:
            result.goals = self.goal_tracker.refresh_for_habit(habit_id, day)
        except Exception:
            logger.exception("Goal refresh failed", extra={**context, "step": "goals"})
            result.failed_steps.append("goals")

        # 3. challenges
        try:
            result.challenges = self.challenge_tracker.apply_toggle(habit_id, completed, day)
        except Exception:
            logger.exception("Challenge update failed", extra={**context, "step": "challenges"})
            result.failed_steps.append("challenges")

        # 4. stats; 5. achievements need step 4's post-toggle numbers
        try:
            result.stats = self._stats(habit_id)
        except Exception:
            logger.exception("Stats recompute failed", extra={**context, "step": "stats"})
            result.failed_steps.append("stats")
            return result

        try:
            result.unlocked = self.evaluator.evaluate(
                habit_id, result.stats.current_streak, result.stats.completion_rate
            )
        except Exception:
            logger.exception("Achievement evaluation failed", extra={**context, "step": "achievements"})
            result.failed_steps.append("achievements")

        return result


__all__ = ["ToggleCoordinator", "ToggleResult", "parse_day"]
