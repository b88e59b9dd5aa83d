"""Multi-day challenges and their credited dates."""

from __future__ import annotations

from datetime import date
from typing import ClassVar, Optional

from sqlmodel import Field, SQLModel


class Challenge(SQLModel, table=True):
    """A commitment to complete habits on a number of distinct days.

    Definition and participation state live in the same row; the app is
    single-user so ``is_joined`` belongs to the local user.
    """

    __tablename__: ClassVar[str] = "challenge"

    id: Optional[int] = Field(default=None, primary_key=True)
    name: str = Field(nullable=False, max_length=80)
    description: str = Field(default="", max_length=255)
    emoji: str = Field(default="🏆", max_length=16)
    start_date: date = Field(nullable=False, index=True)
    end_date: date = Field(nullable=False, index=True)
    target_days: int = Field(nullable=False)
    is_active: bool = Field(default=True, nullable=False, index=True)
    participants: int = Field(default=0, nullable=False)
    is_joined: bool = Field(default=False, nullable=False)


class ChallengeHabitLink(SQLModel, table=True):
    """Habits a challenge is scoped to; no rows means every habit counts."""

    __tablename__: ClassVar[str] = "challenge_habit_link"

    challenge_id: int = Field(foreign_key="challenge.id", primary_key=True)
    habit_id: int = Field(foreign_key="habit.id", primary_key=True)


class ChallengeCredit(SQLModel, table=True):
    """A distinct date credited toward a challenge."""

    __tablename__: ClassVar[str] = "challenge_credit"

    challenge_id: int = Field(foreign_key="challenge.id", primary_key=True)
    credited_on: date = Field(primary_key=True)
