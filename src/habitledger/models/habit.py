"""Habit and ledger entry tables."""

from __future__ import annotations

from datetime import date, datetime, timezone
from typing import ClassVar, Optional

from sqlalchemy import JSON, Column
from sqlalchemy.orm import relationship
from sqlmodel import Field, Relationship, SQLModel

DIFFICULTIES = ("easy", "medium", "hard")


class Habit(SQLModel, table=True):
    """A user-defined habit tracked once per calendar day."""

    __tablename__: ClassVar[str] = "habit"

    id: Optional[int] = Field(default=None, primary_key=True)
    name: str = Field(nullable=False, max_length=80, index=True)
    description: str = Field(default="", max_length=255)
    emoji: str = Field(default="✅", max_length=16)
    color: str = Field(default="#8884d8", max_length=16)
    created_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
        nullable=False,
    )
    is_active: bool = Field(default=True, nullable=False, index=True)

    # Fields added after the first schema; older rows carry NULL until edited.
    category: Optional[str] = Field(default=None, max_length=64, index=True)
    difficulty: Optional[str] = Field(default=None, max_length=8)
    target_frequency: Optional[int] = Field(default=None, description="Times per week")
    notes: Optional[str] = Field(default=None, max_length=500)
    reminder_enabled: Optional[bool] = Field(default=None)
    reminder_time: Optional[str] = Field(default=None, max_length=5, description="HH:MM")
    reminder_days: Optional[list[int]] = Field(
        default=None, sa_column=Column(JSON, nullable=True), description="0-6, Sunday first"
    )

    entries: list["HabitEntry"] = Relationship(
        back_populates="habit",
        sa_relationship=relationship("HabitEntry", back_populates="habit", cascade="all"),
    )


class HabitEntry(SQLModel, table=True):
    """Completion record for a habit on one calendar day.

    ``(habit_id, occurred_on)`` is the natural key, so a day can only ever hold
    a single row per habit; toggles mutate that row in place.
    """

    __tablename__: ClassVar[str] = "habit_entry"

    habit_id: int = Field(foreign_key="habit.id", primary_key=True)
    occurred_on: date = Field(primary_key=True, index=True)
    completed: bool = Field(default=True, nullable=False)
    mood: Optional[str] = Field(default=None, max_length=16)
    note: Optional[str] = Field(default=None, max_length=255)
    completed_at: Optional[datetime] = Field(default=None)
    points: Optional[int] = Field(default=None)

    habit: "Habit" = Relationship(
        back_populates="entries",
        sa_relationship=relationship("Habit", back_populates="entries"),
    )
