"""Habit repository protocol (the ledger store)."""

from __future__ import annotations

from datetime import date, datetime
from typing import Optional, Protocol

from ...models.habit import Habit, HabitEntry


class HabitRepository(Protocol):
    """Sole writer of habits and their per-day entries."""

    def get_by_id(self, habit_id: int) -> Optional[Habit]:
        """Retrieve a habit by ID."""
        ...

    def list_habits(self, active_only: bool = True) -> list[Habit]:
        """List habits, active ones only unless asked otherwise."""
        ...

    def create(self, habit: Habit) -> Habit:
        """Create a new habit."""
        ...

    def deactivate(self, habit_id: int) -> Habit:
        """Soft-delete a habit."""
        ...

    def delete(self, habit_id: int) -> None:
        """Hard-delete a habit and everything that hangs off it."""
        ...

    def get_entry(self, habit_id: int, occurred_on: date) -> Optional[HabitEntry]:
        """Get the entry for one (habit, day) key."""
        ...

    def list_entries(self, habit_id: int) -> list[HabitEntry]:
        """All entries for a habit, oldest first."""
        ...

    def get_entries_for_habit(
        self, habit_id: int, start_date: date, end_date: date
    ) -> list[HabitEntry]:
        """Get entries for a habit within an inclusive date range."""
        ...

    def upsert_entry(
        self,
        habit_id: int,
        occurred_on: date,
        completed: bool,
        mood: Optional[str] = None,
        *,
        points: Optional[int] = None,
        now: Optional[datetime] = None,
    ) -> HabitEntry:
        """Insert or update the entry keyed by (habit_id, occurred_on)."""
        ...
