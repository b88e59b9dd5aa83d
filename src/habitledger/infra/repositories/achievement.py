"""SQLModel implementation of Achievement repository."""

from __future__ import annotations

from datetime import datetime
from typing import Iterable

from sqlalchemy import func
from sqlmodel import or_, select

from ...models.achievement import Achievement
from ..database import SessionFactory


class SQLModelAchievementRepository:
    """SQLModel-based achievement repository implementation."""

    def __init__(self, session_factory: SessionFactory):
        self.session_factory = session_factory

    def list_all(self) -> list[Achievement]:
        with self.session_factory() as session:
            rows = list(session.exec(select(Achievement).order_by(Achievement.id)).all())  # type: ignore
            session.expunge_all()
            return rows

    def list_applicable(self, habit_id: int) -> list[Achievement]:
        """Rules scoped to ``habit_id`` followed by global rules."""
        with self.session_factory() as session:
            statement = (
                select(Achievement)
                .where(or_(Achievement.habit_id == habit_id, Achievement.habit_id == None))  # noqa: E711
                .order_by(Achievement.habit_id.is_(None), Achievement.id)  # type: ignore
            )
            rows = list(session.exec(statement).all())
            session.expunge_all()
            return rows

    def count(self) -> int:
        with self.session_factory() as session:
            return session.exec(select(func.count()).select_from(Achievement)).one()

    def bulk_create(self, achievements: Iterable[Achievement]) -> list[Achievement]:
        with self.session_factory() as session:
            rows = list(achievements)
            session.add_all(rows)
            session.commit()
            for row in rows:
                session.refresh(row)
            session.expunge_all()
            return rows

    def mark_unlocked(self, achievement_id: int, when: datetime) -> bool:
        """Stamp ``unlocked_at`` once. An existing stamp is never overwritten."""
        with self.session_factory() as session:
            achievement = session.get(Achievement, achievement_id)
            if achievement is None:
                raise ValueError("Achievement not found")
            if achievement.unlocked_at is not None:
                return False
            achievement.unlocked_at = when
            session.add(achievement)
            session.commit()
            return True
