"""SQLModel implementation of the habit ledger store."""

from __future__ import annotations

from datetime import date, datetime, timezone
from typing import Optional

from sqlmodel import select

from ...models.achievement import Achievement
from ...models.challenge import ChallengeHabitLink
from ...models.goal import Goal
from ...models.habit import Habit, HabitEntry
from ..database import SessionFactory


class SQLModelHabitRepository:
    """SQLModel-based habit repository; the only writer of raw entries."""

    def __init__(self, session_factory: SessionFactory):
        """Initialize with a session factory."""
        self.session_factory = session_factory

    def get_by_id(self, habit_id: int) -> Optional[Habit]:
        """Retrieve a habit by ID."""
        with self.session_factory() as session:
            obj = session.get(Habit, habit_id)
            if obj:
                session.expunge(obj)
            return obj

    def list_habits(self, active_only: bool = True) -> list[Habit]:
        """List habits in creation order, optionally including inactive ones."""
        with self.session_factory() as session:
            statement = select(Habit).order_by(Habit.created_at, Habit.id)  # type: ignore
            if active_only:
                statement = statement.where(Habit.is_active == True)  # noqa: E712
            rows = list(session.exec(statement).all())
            session.expunge_all()
            return rows

    def create(self, habit: Habit) -> Habit:
        """Create a new habit."""
        with self.session_factory() as session:
            session.add(habit)
            session.commit()
            session.refresh(habit)
            session.expunge(habit)
            return habit

    def update(self, habit_id: int, **changes: object) -> Habit:
        """Apply field changes to an existing habit. The id itself is immutable."""
        if "id" in changes:
            raise ValueError("Habit id cannot be changed")
        with self.session_factory() as session:
            habit = session.get(Habit, habit_id)
            if habit is None:
                raise ValueError("Habit not found")
            for field, value in changes.items():
                if field not in Habit.model_fields:
                    raise ValueError(f"Unknown habit field: {field}")
                setattr(habit, field, value)
            session.add(habit)
            session.commit()
            session.refresh(habit)
            session.expunge(habit)
            return habit

    def deactivate(self, habit_id: int) -> Habit:
        """Soft-delete: the habit and its history stay, it just stops being listed."""
        with self.session_factory() as session:
            habit = session.get(Habit, habit_id)
            if habit is None:
                raise ValueError("Habit not found")
            habit.is_active = False
            session.add(habit)
            session.commit()
            session.refresh(habit)
            session.expunge(habit)
            return habit

    def delete(self, habit_id: int) -> None:
        """Hard-delete a habit with its entries, goals, scoped rules and challenge links."""
        with self.session_factory() as session:
            habit = session.get(Habit, habit_id)
            if habit is None:
                return
            for model, column in (
                (Goal, Goal.habit_id),
                (Achievement, Achievement.habit_id),
                (ChallengeHabitLink, ChallengeHabitLink.habit_id),
            ):
                for row in session.exec(select(model).where(column == habit_id)).all():
                    session.delete(row)
            # entries go through the relationship cascade
            session.delete(habit)
            session.commit()

    # Ledger entry operations
    def get_entry(self, habit_id: int, occurred_on: date) -> Optional[HabitEntry]:
        """Get the entry stored under one (habit, day) key."""
        with self.session_factory() as session:
            obj = session.get(HabitEntry, (habit_id, occurred_on))
            if obj:
                session.expunge(obj)
            return obj

    def list_entries(self, habit_id: int) -> list[HabitEntry]:
        """All entries of a habit ordered by day (never by insertion)."""
        with self.session_factory() as session:
            statement = (
                select(HabitEntry)
                .where(HabitEntry.habit_id == habit_id)
                .order_by(HabitEntry.occurred_on)  # type: ignore
            )
            rows = list(session.exec(statement).all())
            session.expunge_all()
            return rows

    def get_entries_for_habit(
        self, habit_id: int, start_date: date, end_date: date
    ) -> list[HabitEntry]:
        """Get entries for a habit within an inclusive date range."""
        with self.session_factory() as session:
            statement = (
                select(HabitEntry)
                .where(HabitEntry.habit_id == habit_id)
                .where(HabitEntry.occurred_on >= start_date)
                .where(HabitEntry.occurred_on <= end_date)
                .order_by(HabitEntry.occurred_on)  # type: ignore
            )
            rows = list(session.exec(statement).all())
            session.expunge_all()
            return rows

    def upsert_entry(
        self,
        habit_id: int,
        occurred_on: date,
        completed: bool,
        mood: Optional[str] = None,
        *,
        note: Optional[str] = None,
        points: Optional[int] = None,
        now: Optional[datetime] = None,
    ) -> HabitEntry:
        """Insert or update the entry keyed by (habit_id, occurred_on).

        Re-sending the stored ``completed`` value changes nothing but the
        optional mood/note. Flipping it sets (or clears) ``completed_at`` and
        ``points``.
        """
        now = now or datetime.now(timezone.utc)
        with self.session_factory() as session:
            entry = session.get(HabitEntry, (habit_id, occurred_on))
            if entry is None:
                entry = HabitEntry(
                    habit_id=habit_id,
                    occurred_on=occurred_on,
                    completed=completed,
                    mood=mood,
                    note=note,
                    completed_at=now if completed else None,
                    points=points if completed else None,
                )
            else:
                if entry.completed != completed:
                    entry.completed = completed
                    entry.completed_at = now if completed else None
                    entry.points = points if completed else None
                if mood is not None:
                    entry.mood = mood
                if note is not None:
                    entry.note = note
            session.add(entry)
            session.commit()
            session.refresh(entry)
            session.expunge(entry)
            return entry

    def set_mood(self, habit_id: int, occurred_on: date, mood: str) -> Optional[HabitEntry]:
        """Re-tag an existing entry; returns None when the day has no entry."""
        with self.session_factory() as session:
            entry = session.get(HabitEntry, (habit_id, occurred_on))
            if entry is None:
                return None
            entry.mood = mood
            session.add(entry)
            session.commit()
            session.refresh(entry)
            session.expunge(entry)
            return entry
