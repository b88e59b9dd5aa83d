"""Weekly and monthly per-habit goals."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import ClassVar, Optional

from sqlmodel import Field, SQLModel

GOAL_TYPES = ("weekly", "monthly")


class Goal(SQLModel, table=True):
    """Target number of completed days for one habit within one period.

    ``period`` is the Monday week start (``YYYY-MM-DD``) for weekly goals and
    ``YYYY-MM`` for monthly goals. Progress is always recomputed from entries;
    only the ``achieved`` flag is cached here.
    """

    __tablename__: ClassVar[str] = "goal"

    id: Optional[int] = Field(default=None, primary_key=True)
    habit_id: int = Field(foreign_key="habit.id", nullable=False, index=True)
    type: str = Field(default="weekly", max_length=8, index=True)
    target: int = Field(default=1, nullable=False)
    period: str = Field(nullable=False, max_length=10, index=True)
    achieved: bool = Field(default=False, nullable=False)
    created_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
        nullable=False,
    )
