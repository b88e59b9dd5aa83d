"""SQLModel implementation of Challenge repository."""

from __future__ import annotations

from datetime import date
from typing import Iterable, Optional

from sqlmodel import select

from ...models.challenge import Challenge, ChallengeCredit, ChallengeHabitLink
from ..database import SessionFactory


class SQLModelChallengeRepository:
    """SQLModel-based challenge repository implementation."""

    def __init__(self, session_factory: SessionFactory):
        self.session_factory = session_factory

    def get_by_id(self, challenge_id: int) -> Optional[Challenge]:
        with self.session_factory() as session:
            obj = session.get(Challenge, challenge_id)
            if obj:
                session.expunge(obj)
            return obj

    def list_all(self) -> list[Challenge]:
        with self.session_factory() as session:
            statement = select(Challenge).order_by(Challenge.start_date, Challenge.id)  # type: ignore
            rows = list(session.exec(statement).all())
            session.expunge_all()
            return rows

    def list_open(self, today: date) -> list[Challenge]:
        """Joined, active challenges whose [start_date, end_date] contains ``today``."""
        with self.session_factory() as session:
            statement = (
                select(Challenge)
                .where(Challenge.is_joined == True)  # noqa: E712
                .where(Challenge.is_active == True)  # noqa: E712
                .where(Challenge.start_date <= today)
                .where(Challenge.end_date >= today)
                .order_by(Challenge.id)  # type: ignore
            )
            rows = list(session.exec(statement).all())
            session.expunge_all()
            return rows

    def create(self, challenge: Challenge, habit_ids: Iterable[int] = ()) -> Challenge:
        with self.session_factory() as session:
            session.add(challenge)
            session.flush()
            for habit_id in sorted(set(habit_ids)):
                session.add(ChallengeHabitLink(challenge_id=challenge.id, habit_id=habit_id))
            session.commit()
            session.refresh(challenge)
            session.expunge(challenge)
            return challenge

    def set_joined(self, challenge_id: int, joined: bool) -> Challenge:
        """Join or leave. Joining for the first time bumps ``participants``."""
        with self.session_factory() as session:
            challenge = session.get(Challenge, challenge_id)
            if challenge is None:
                raise ValueError("Challenge not found")
            if joined and not challenge.is_joined:
                challenge.participants += 1
            challenge.is_joined = joined
            session.add(challenge)
            session.commit()
            session.refresh(challenge)
            session.expunge(challenge)
            return challenge

    def delete(self, challenge_id: int) -> None:
        with self.session_factory() as session:
            challenge = session.get(Challenge, challenge_id)
            if challenge is None:
                return
            for model in (ChallengeHabitLink, ChallengeCredit):
                rows = session.exec(select(model).where(model.challenge_id == challenge_id)).all()
                for row in rows:
                    session.delete(row)
            session.delete(challenge)
            session.commit()

    def habit_scope(self, challenge_id: int) -> list[int]:
        """Habit ids the challenge is limited to; empty means all habits."""
        with self.session_factory() as session:
            statement = (
                select(ChallengeHabitLink.habit_id)
                .where(ChallengeHabitLink.challenge_id == challenge_id)
                .order_by(ChallengeHabitLink.habit_id)  # type: ignore
            )
            return list(session.exec(statement).all())

    def credited_dates(self, challenge_id: int) -> list[date]:
        with self.session_factory() as session:
            statement = (
                select(ChallengeCredit.credited_on)
                .where(ChallengeCredit.challenge_id == challenge_id)
                .order_by(ChallengeCredit.credited_on)  # type: ignore
            )
            return list(session.exec(statement).all())

    def credit(self, challenge_id: int, day: date) -> bool:
        with self.session_factory() as session:
            if session.get(ChallengeCredit, (challenge_id, day)) is not None:
                return False
            session.add(ChallengeCredit(challenge_id=challenge_id, credited_on=day))
            session.commit()
            return True

    def uncredit(self, challenge_id: int, day: date) -> bool:
        with self.session_factory() as session:
            credit = session.get(ChallengeCredit, (challenge_id, day))
            if credit is None:
                return False
            session.delete(credit)
            session.commit()
            return True
