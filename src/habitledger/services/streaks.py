"""Streak, completion-rate and points calculations over ledger entries."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, timedelta
from typing import Iterable, Optional, Protocol, Union

DEFAULT_LOOKBACK_DAYS = 365
_BASE_POINTS = {"easy": 1, "medium": 2, "hard": 3}


class EntryLike(Protocol):
    occurred_on: Union[date, str]
    completed: bool


@dataclass(frozen=True)
class HabitStats:
    """Derived statistics for one habit."""

    current_streak: int = 0
    longest_streak: int = 0
    completion_rate: int = 0
    total_entries: int = 0
    completed_entries: int = 0


def entry_day(entry: EntryLike) -> Optional[date]:
    """Return the entry's calendar day, or None when it cannot be parsed."""

    value = entry.occurred_on
    if isinstance(value, date):
        return value
    try:
        return date.fromisoformat(str(value))
    except ValueError:
        return None


def completed_days(entries: Iterable[EntryLike]) -> set[date]:
    """Distinct days with a completed entry; unparsable days are dropped."""

    days = set()
    for entry in entries:
        if not entry.completed:
            continue
        day = entry_day(entry)
        if day is not None:
            days.add(day)
    return days


def current_streak(
    done: set[date], *, today: date, lookback_days: int = DEFAULT_LOOKBACK_DAYS
) -> int:
    """Count consecutive completed days ending at ``today``.

    Today is still open, so a missing completion today is skipped rather
    than ending the streak. Any earlier missing day ends it.
    """

    streak = 0
    cursor = today
    for _ in range(lookback_days):
        if cursor in done:
            streak += 1
        elif cursor != today:
            break
        cursor -= timedelta(days=1)
    return streak


def longest_streak(done: set[date]) -> int:
    """Longest run of consecutive completed days anywhere in history."""

    longest = 0
    run = 0
    last_day: Optional[date] = None
    for day in sorted(done):
        if last_day is not None and day == last_day + timedelta(days=1):
            run += 1
        else:
            run = 1
        longest = max(longest, run)
        last_day = day
    return longest


def completion_rate(completed: int, total: int) -> int:
    """Integer percentage, half rounded up; 0 for an empty history."""

    if total <= 0:
        return 0
    return int(completed * 100 / total + 0.5)


def compute_stats(
    entries: Iterable[EntryLike],
    *,
    today: date,
    lookback_days: int = DEFAULT_LOOKBACK_DAYS,
) -> HabitStats:
    """Compute streaks and completion rate from a habit's full entry history."""

    usable = [e for e in entries if entry_day(e) is not None]
    done = completed_days(usable)
    completed = sum(1 for e in usable if e.completed)
    return HabitStats(
        current_streak=current_streak(done, today=today, lookback_days=lookback_days),
        longest_streak=longest_streak(done),
        completion_rate=completion_rate(completed, len(usable)),
        total_entries=len(usable),
        completed_entries=completed,
    )


def calculate_points(difficulty: Optional[str], streak: int) -> int:
    """Points for one completion: difficulty base scaled by streak, capped at 3x."""

    base = _BASE_POINTS.get(difficulty or "easy", _BASE_POINTS["easy"])
    multiplier = min(1 + streak * 0.1, 3)
    return int(base * multiplier + 0.5)


__all__ = [
    "DEFAULT_LOOKBACK_DAYS",
    "HabitStats",
    "calculate_points",
    "completed_days",
    "completion_rate",
    "compute_stats",
    "current_streak",
    "entry_day",
    "longest_streak",
]
