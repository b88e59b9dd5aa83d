"""Achievement rules and their unlock timestamps."""

from __future__ import annotations

from datetime import datetime
from typing import ClassVar, Optional

from sqlmodel import Field, SQLModel

ACHIEVEMENT_TYPES = ("streak", "completion", "consistency", "milestone")


class Achievement(SQLModel, table=True):
    """An unlock rule. ``habit_id`` of None marks a global rule."""

    __tablename__: ClassVar[str] = "achievement"

    id: Optional[int] = Field(default=None, primary_key=True)
    name: str = Field(nullable=False, max_length=80, index=True)
    description: str = Field(default="", max_length=255)
    icon: str = Field(default="🏅", max_length=16)
    type: str = Field(nullable=False, max_length=16, index=True)
    requirement: int = Field(nullable=False)
    habit_id: Optional[int] = Field(default=None, foreign_key="habit.id", index=True)
    unlocked_at: Optional[datetime] = Field(default=None, index=True)
