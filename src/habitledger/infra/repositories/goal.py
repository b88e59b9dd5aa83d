"""SQLModel implementation of Goal repository."""

from __future__ import annotations

from typing import Optional

from sqlmodel import select

from ...models.goal import Goal
from ..database import SessionFactory


class SQLModelGoalRepository:
    """SQLModel-based goal repository implementation."""

    def __init__(self, session_factory: SessionFactory):
        self.session_factory = session_factory

    def get_by_id(self, goal_id: int) -> Optional[Goal]:
        with self.session_factory() as session:
            obj = session.get(Goal, goal_id)
            if obj:
                session.expunge(obj)
            return obj

    def list_all(self) -> list[Goal]:
        with self.session_factory() as session:
            rows = list(session.exec(select(Goal).order_by(Goal.id)).all())  # type: ignore
            session.expunge_all()
            return rows

    def list_for_habit(self, habit_id: int) -> list[Goal]:
        with self.session_factory() as session:
            statement = select(Goal).where(Goal.habit_id == habit_id).order_by(Goal.id)  # type: ignore
            rows = list(session.exec(statement).all())
            session.expunge_all()
            return rows

    def create(self, goal: Goal) -> Goal:
        with self.session_factory() as session:
            session.add(goal)
            session.commit()
            session.refresh(goal)
            session.expunge(goal)
            return goal

    def set_achieved(self, goal_id: int, achieved: bool) -> None:
        """Write the cached ``achieved`` flag; the only derived goal field."""
        with self.session_factory() as session:
            goal = session.get(Goal, goal_id)
            if goal is None:
                raise ValueError("Goal not found")
            if goal.achieved != achieved:
                goal.achieved = achieved
                session.add(goal)
                session.commit()

    def delete(self, goal_id: int) -> None:
        with self.session_factory() as session:
            goal = session.get(Goal, goal_id)
            if goal:
                session.delete(goal)
                session.commit()
