"""Goal period windows and progress derived from ledger entries.

A goal never stores a running counter. ``completed_days`` is recomputed from
entries every time it is asked for; only ``Goal.achieved`` is cached, and it
is re-derived whenever a toggle touches the goal's habit.
"""

from __future__ import annotations

import calendar
import logging
from dataclasses import dataclass
from datetime import date, timedelta
from typing import Iterable, Optional

from ..clock import Clock, SystemClock
from ..domain.repositories import GoalRepository, HabitRepository
from ..models.goal import GOAL_TYPES, Goal
from .streaks import EntryLike, completed_days

logger = logging.getLogger("habitledger.goals")


@dataclass(frozen=True)
class GoalProgress:
    """Read-time progress for one goal."""

    goal_id: Optional[int]
    completed_days: int
    target: int
    progress_percent: int
    achieved: bool
    period_start: date
    period_end: date


def week_start(day: date) -> date:
    """Monday of the week containing ``day``."""

    return day - timedelta(days=day.weekday())


def month_window(year: int, month: int) -> tuple[date, date]:
    last = calendar.monthrange(year, month)[1]
    return date(year, month, 1), date(year, month, last)


def default_period(goal_type: str, today: date) -> str:
    """Period identifier for the period containing ``today``."""

    if goal_type == "weekly":
        return week_start(today).isoformat()
    return f"{today.year:04d}-{today.month:02d}"


def _parse_month(period: str) -> tuple[int, int]:
    parts = period.strip().split("-")
    if len(parts) < 2:
        raise ValueError(f"Not a YYYY-MM period: {period!r}")
    year, month = int(parts[0]), int(parts[1])
    if not 1 <= month <= 12:
        raise ValueError(f"Month out of range in period {period!r}")
    return year, month


def resolve_period_window(goal_type: str, period: str, *, today: date) -> tuple[date, date]:
    """Resolve a period identifier into an inclusive ``(start, end)`` window.

    Weekly periods run Monday to Sunday for the week holding the period date.
    Monthly periods cover the whole calendar month. Unparsable identifiers
    fall back to the period containing ``today``.
    """

    if goal_type not in GOAL_TYPES:
        raise ValueError(f"Unknown goal type: {goal_type}")

    if goal_type == "weekly":
        try:
            start = week_start(date.fromisoformat(period.strip()))
            return start, start + timedelta(days=6)
        except (AttributeError, ValueError, OverflowError):
            logger.warning("Malformed weekly period %r, using current week", period)
            start = week_start(today)
            return start, start + timedelta(days=6)

    try:
        year, month = _parse_month(period)
        return month_window(year, month)
    except (AttributeError, ValueError):
        logger.warning("Malformed monthly period %r, using current month", period)
        return month_window(today.year, today.month)


def count_completed_days(entries: Iterable[EntryLike], start: date, end: date) -> int:
    """Distinct completed days inside ``[start, end]``."""

    return sum(1 for day in completed_days(entries) if start <= day <= end)


def goal_progress(goal: Goal, entries: Iterable[EntryLike], *, today: date) -> GoalProgress:
    """Pure progress computation for a goal against a habit's entries."""

    start, end = resolve_period_window(goal.type, goal.period, today=today)
    done = count_completed_days(entries, start, end)
    percent = 0 if goal.target == 0 else int(done * 100 / goal.target + 0.5)
    return GoalProgress(
        goal_id=goal.id,
        completed_days=done,
        target=goal.target,
        progress_percent=percent,
        achieved=done >= goal.target,
        period_start=start,
        period_end=end,
    )


class GoalTracker:
    """Re-derives goal progress and the cached ``achieved`` flag."""

    def __init__(
        self,
        habit_repo: HabitRepository,
        goal_repo: GoalRepository,
        clock: Clock | None = None,
    ):
        self.habit_repo = habit_repo
        self.goal_repo = goal_repo
        self.clock = clock or SystemClock()

    def progress(self, goal: Goal) -> GoalProgress:
        """Recompute progress from entries without writing anything."""
        start, end = resolve_period_window(goal.type, goal.period, today=self.clock.today())
        entries = self.habit_repo.get_entries_for_habit(goal.habit_id, start, end)
        return goal_progress(goal, entries, today=self.clock.today())

    def refresh_goal(self, goal: Goal) -> GoalProgress:
        """Recompute progress and persist only the ``achieved`` flag."""
        result = self.progress(goal)
        if goal.id is not None and goal.achieved != result.achieved:
            self.goal_repo.set_achieved(goal.id, result.achieved)
            goal.achieved = result.achieved
        return result

    def refresh_for_habit(self, habit_id: int, day: date) -> list[GoalProgress]:
        """Refresh every goal on ``habit_id`` after a toggle on ``day``."""
        results = [self.refresh_goal(goal) for goal in self.goal_repo.list_for_habit(habit_id)]
        logger.debug(
            "Refreshed goals",
            extra={"habit_id": habit_id, "date": day.isoformat(), "goals": len(results)},
        )
        return results


__all__ = [
    "GoalProgress",
    "GoalTracker",
    "count_completed_days",
    "default_period",
    "goal_progress",
    "month_window",
    "resolve_period_window",
    "week_start",
]
