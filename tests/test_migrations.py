"""Tests for startup schema creation and the linear migration steps."""

from __future__ import annotations

import pytest
from sqlalchemy import inspect, text
from sqlmodel import create_engine

from habitledger.config import TestConfig
from habitledger.infra.database import bootstrap_database, create_session_factory, init_database
from habitledger.infra.migrations import SCHEMA_VERSION, VERSION_KEY, migrate
from habitledger.infra.repositories import SQLModelHabitRepository

LEGACY_TABLES = (
    """
    CREATE TABLE habit (
        id INTEGER PRIMARY KEY,
        name VARCHAR(80) NOT NULL,
        description VARCHAR(255) NOT NULL,
        emoji VARCHAR(16) NOT NULL,
        color VARCHAR(16) NOT NULL,
        created_at DATETIME NOT NULL,
        is_active BOOLEAN NOT NULL
    )
    """,
    """
    CREATE TABLE achievement (
        id INTEGER PRIMARY KEY,
        name VARCHAR(80) NOT NULL,
        description VARCHAR(255) NOT NULL,
        icon VARCHAR(16) NOT NULL,
        type VARCHAR(16) NOT NULL,
        requirement INTEGER NOT NULL,
        habit_id INTEGER,
        unlocked_at DATETIME
    )
    """,
    "INSERT INTO habit VALUES (1, 'Old Habit', '', '✅', '#000', '2023-01-01 00:00:00', 1)",
    "INSERT INTO achievement VALUES (1, 'First Step', '', '🌱', 'streak', 1, 0, NULL)",
)


@pytest.fixture
def file_engine(tmp_path):
    engine = create_engine(f"sqlite:///{tmp_path / 'legacy.db'}")
    yield engine
    engine.dispose()


def _stored_version(engine) -> str:
    with engine.connect() as conn:
        return conn.execute(
            text("SELECT value FROM app_setting WHERE key = :key"), {"key": VERSION_KEY}
        ).scalar_one()


class TestFreshDatabase:
    def test_new_database_is_stamped_current(self, file_engine):
        assert init_database(file_engine) == SCHEMA_VERSION
        assert _stored_version(file_engine) == str(SCHEMA_VERSION)

    def test_init_is_repeatable(self, file_engine):
        init_database(file_engine)
        assert init_database(file_engine) == SCHEMA_VERSION

    def test_bootstrap_in_memory(self, tmp_path, monkeypatch):
        monkeypatch.setenv("HABITLEDGER_DATA_DIR", str(tmp_path))
        engine, session_factory = bootstrap_database(TestConfig())
        try:
            assert SQLModelHabitRepository(session_factory).list_habits() == []
        finally:
            engine.dispose()


class TestLegacyUpgrade:
    """Files written before the optional habit columns existed."""

    @pytest.fixture
    def legacy_engine(self, file_engine):
        with file_engine.begin() as conn:
            for statement in LEGACY_TABLES:
                conn.execute(text(statement))
        return file_engine

    def test_optional_columns_added(self, legacy_engine):
        init_database(legacy_engine)

        columns = {c["name"] for c in inspect(legacy_engine).get_columns("habit")}
        assert {"category", "difficulty", "reminder_time", "reminder_days"} <= columns

    def test_existing_rows_survive(self, legacy_engine):
        init_database(legacy_engine)
        habit = SQLModelHabitRepository(create_session_factory(legacy_engine)).get_by_id(1)

        assert habit.name == "Old Habit"
        assert habit.difficulty is None
        assert habit.reminder_days is None

    def test_zero_habit_id_becomes_global(self, legacy_engine):
        init_database(legacy_engine)
        with legacy_engine.connect() as conn:
            habit_id = conn.execute(text("SELECT habit_id FROM achievement WHERE id = 1")).scalar_one()
        assert habit_id is None

    def test_unreadable_version_reruns_steps(self, legacy_engine):
        init_database(legacy_engine)
        with legacy_engine.begin() as conn:
            conn.execute(
                text("UPDATE app_setting SET value = 'garbage' WHERE key = :key"), {"key": VERSION_KEY}
            )
        assert migrate(legacy_engine) == SCHEMA_VERSION
        assert _stored_version(legacy_engine) == str(SCHEMA_VERSION)


class TestNewerDatabase:
    def test_newer_schema_refused(self, file_engine):
        init_database(file_engine)
        with file_engine.begin() as conn:
            conn.execute(
                text("UPDATE app_setting SET value = '99' WHERE key = :key"), {"key": VERSION_KEY}
            )
        with pytest.raises(RuntimeError, match="newer than this build"):
            migrate(file_engine)
