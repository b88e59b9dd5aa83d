"""One-way, linear schema migrations applied once at startup.

The current version is stored in ``app_setting`` under ``schema_version``.
Each step must be safe to run against a database that was just created by
``SQLModel.metadata.create_all`` (in that case it has nothing to do).
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Callable

from sqlalchemy import inspect, text, update
from sqlalchemy.engine import Connection, Engine
from sqlmodel import SQLModel

from ..models.achievement import Achievement
from ..models.settings import AppSetting

logger = logging.getLogger("habitledger.migrations")

SCHEMA_VERSION = 3
VERSION_KEY = "schema_version"


def _add_missing_optional_columns(connection: Connection) -> None:
    """Add nullable columns introduced after a table was first created."""

    inspector = inspect(connection)
    existing_tables = set(inspector.get_table_names())
    for table in SQLModel.metadata.sorted_tables:
        if table.name not in existing_tables:
            continue
        present = {col["name"] for col in inspector.get_columns(table.name)}
        for column in table.columns:
            if column.name in present:
                continue
            if not column.nullable or column.primary_key:
                raise RuntimeError(
                    f"Cannot add required column {table.name}.{column.name} to an existing table"
                )
            column_type = column.type.compile(dialect=connection.dialect)
            connection.execute(
                text(f'ALTER TABLE "{table.name}" ADD COLUMN "{column.name}" {column_type}')
            )
            logger.info("Added column %s.%s", table.name, column.name)


def _normalize_global_achievements(connection: Connection) -> None:
    """Older files marked global rules with habit_id 0 instead of NULL."""

    result = connection.execute(
        update(Achievement).where(Achievement.habit_id == 0).values(habit_id=None)
    )
    if result.rowcount:
        logger.info("Normalized %s global achievements", result.rowcount)


# Index i holds the step that upgrades version i+1 to version i+2.
_STEPS: list[Callable[[Connection], None]] = [
    _add_missing_optional_columns,
    _normalize_global_achievements,
]


def current_version(connection: Connection) -> int:
    row = connection.execute(
        text("SELECT value FROM app_setting WHERE key = :key"), {"key": VERSION_KEY}
    ).first()
    if row is None:
        return 1
    try:
        return int(row[0])
    except (TypeError, ValueError):
        logger.warning("Unreadable schema version %r, re-running migrations", row[0])
        return 1


def migrate(engine: Engine) -> int:
    """Run every pending step in one transaction and record the new version."""

    with engine.begin() as connection:
        version = current_version(connection)
        if version > SCHEMA_VERSION:
            raise RuntimeError(
                f"Database schema v{version} is newer than this build (v{SCHEMA_VERSION})"
            )
        if version == SCHEMA_VERSION:
            return version

        for step_index in range(version - 1, SCHEMA_VERSION - 1):
            step = _STEPS[step_index]
            logger.info(
                "Applying schema step %s -> %s (%s)",
                step_index + 1,
                step_index + 2,
                step.__name__,
            )
            step(connection)

        table = AppSetting.__table__
        connection.execute(table.delete().where(table.c.key == VERSION_KEY))
        connection.execute(
            table.insert().values(
                key=VERSION_KEY,
                value=str(SCHEMA_VERSION),
                description="Applied schema migration version",
                updated_at=datetime.now(timezone.utc),
            )
        )
    return SCHEMA_VERSION
