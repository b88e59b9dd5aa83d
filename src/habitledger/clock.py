"""Injectable sources of "today" and "now"."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime, timedelta, timezone
from typing import Protocol


class Clock(Protocol):
    """Anything that can report the current local day and UTC instant."""

    def today(self) -> date:
        ...

    def now(self) -> datetime:
        ...


class SystemClock:
    """Wall-clock time."""

    def today(self) -> date:
        return date.today()

    def now(self) -> datetime:
        return datetime.now(timezone.utc)


@dataclass
class FixedClock:
    """Clock pinned to a given instant, advanced explicitly (tests, replays)."""

    current: datetime

    @classmethod
    def on(cls, day: date, hour: int = 12) -> "FixedClock":
        return cls(datetime(day.year, day.month, day.day, hour, tzinfo=timezone.utc))

    def today(self) -> date:
        return self.current.date()

    def now(self) -> datetime:
        return self.current

    def advance(self, days: int = 0, **kwargs: float) -> None:
        self.current = self.current + timedelta(days=days, **kwargs)
