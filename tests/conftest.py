"""Pytest configuration and shared fixtures for HabitLedger tests.

This module provides database fixtures, a pinned clock, and habit/entry
factories for testing the ledger, derived-state services and the facade
without touching a real user database.
"""

from __future__ import annotations

import tempfile
from datetime import date, timedelta
from pathlib import Path

import pytest
from sqlmodel import create_engine

from habitledger.clock import FixedClock
from habitledger.config import BaseConfig
from habitledger.context import create_app_context
from habitledger.infra.database import create_session_factory, init_database
from habitledger.infra.repositories import (
    SQLModelAchievementRepository,
    SQLModelChallengeRepository,
    SQLModelGoalRepository,
    SQLModelHabitRepository,
)
from habitledger.ledger import HabitLedger
from habitledger.models import Habit

# A Wednesday: the week runs Mon 2024-05-13 .. Sun 2024-05-19.
TODAY = date(2024, 5, 15)


def days_ago(n: int, today: date = TODAY) -> date:
    return today - timedelta(days=n)


# =============================================================================
# Database Fixtures
# =============================================================================


@pytest.fixture(scope="function")
def db_engine():
    """Create an isolated SQLite database file for each test.

    Yields:
        Engine: SQLModel engine with the current schema applied
    """
    with tempfile.NamedTemporaryFile(suffix=".db", delete=False) as f:
        db_path = Path(f.name)

    engine = create_engine(f"sqlite:///{db_path}", echo=False)
    init_database(engine)

    yield engine

    engine.dispose()
    db_path.unlink(missing_ok=True)


@pytest.fixture(scope="function")
def session_factory(db_engine):
    """Session factory matching what the repositories receive in the app."""
    return create_session_factory(db_engine)


@pytest.fixture
def habit_repo(session_factory) -> SQLModelHabitRepository:
    return SQLModelHabitRepository(session_factory)


@pytest.fixture
def goal_repo(session_factory) -> SQLModelGoalRepository:
    return SQLModelGoalRepository(session_factory)


@pytest.fixture
def challenge_repo(session_factory) -> SQLModelChallengeRepository:
    return SQLModelChallengeRepository(session_factory)


@pytest.fixture
def achievement_repo(session_factory) -> SQLModelAchievementRepository:
    return SQLModelAchievementRepository(session_factory)


@pytest.fixture
def clock() -> FixedClock:
    """Clock pinned to noon UTC on TODAY."""
    return FixedClock.on(TODAY)


@pytest.fixture
def config(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> BaseConfig:
    """Configuration pointing at a throwaway data dir and database file."""
    data_dir = tmp_path / "instance"
    monkeypatch.setenv("HABITLEDGER_DATA_DIR", str(data_dir))
    monkeypatch.setenv("HABITLEDGER_DATABASE_URL", f"sqlite:///{tmp_path / 'ledger.db'}")
    monkeypatch.delenv("HABITLEDGER_STREAK_LOOKBACK_DAYS", raising=False)
    return BaseConfig()


@pytest.fixture
def ledger(config, clock):
    """Fully wired HabitLedger over a fresh database, closed after the test."""
    instance = HabitLedger(create_app_context(config, clock=clock))
    yield instance
    instance.close()


# =============================================================================
# Test Data Factories
# =============================================================================


@pytest.fixture
def habit_factory(ledger):
    """Factory for creating habits through the facade.

    Returns:
        Callable: Function that creates and persists Habit instances
    """

    def _create_habit(name: str = "Test Habit", **fields) -> Habit:
        fields.setdefault("emoji", "🧪")
        return ledger.add_habit(name, **fields)

    return _create_habit


@pytest.fixture
def complete_days(ledger):
    """Write completed entries straight into the ledger store (no recompute).

    Offsets are days before TODAY, so ``complete_days(h.id, 1, 2)`` marks
    yesterday and the day before.
    """

    def _complete(habit_id: int, *offsets: int, completed: bool = True) -> None:
        for offset in offsets:
            ledger.habits.upsert_entry(habit_id, days_ago(offset), completed)

    return _complete
