"""JSON backup export and all-or-nothing import of the five ledger collections."""

from __future__ import annotations

import json
import logging
from datetime import date, datetime, timezone
from pathlib import Path
from typing import Any, Optional, Type, TypeVar

from sqlmodel import SQLModel, select

from ..infra.database import SessionFactory
from ..models import Achievement, Challenge, ChallengeCredit, ChallengeHabitLink, Goal, Habit, HabitEntry
from .admin_tasks import clear_all_data

logger = logging.getLogger("habitledger.backup")

EXPORT_VERSION = "1.0"
ModelT = TypeVar("ModelT", bound=SQLModel)


class ImportFormatError(ValueError):
    """Raised when a backup payload cannot be imported; nothing was written."""


def export_snapshot(session_factory: SessionFactory, *, now: Optional[datetime] = None) -> dict[str, Any]:
    """Serialize habits, entries, goals, challenges and achievements to plain JSON types."""

    with session_factory() as session:
        habits = session.exec(select(Habit).order_by(Habit.id)).all()  # type: ignore
        entries = session.exec(
            select(HabitEntry).order_by(HabitEntry.habit_id, HabitEntry.occurred_on)  # type: ignore
        ).all()
        goals = session.exec(select(Goal).order_by(Goal.id)).all()  # type: ignore
        challenges = session.exec(select(Challenge).order_by(Challenge.id)).all()  # type: ignore
        links = session.exec(select(ChallengeHabitLink)).all()
        credits = session.exec(select(ChallengeCredit)).all()
        achievements = session.exec(select(Achievement).order_by(Achievement.id)).all()  # type: ignore

        challenge_rows = []
        for challenge in challenges:
            row = challenge.model_dump(mode="json")
            row["habit_ids"] = sorted(l.habit_id for l in links if l.challenge_id == challenge.id)
            row["completed_dates"] = sorted(
                c.credited_on.isoformat() for c in credits if c.challenge_id == challenge.id
            )
            challenge_rows.append(row)

        data = {
            "habits": [h.model_dump(mode="json") for h in habits],
            "entries": [e.model_dump(mode="json") for e in entries],
            "goals": [g.model_dump(mode="json") for g in goals],
            "challenges": challenge_rows,
            "achievements": [a.model_dump(mode="json") for a in achievements],
        }

    exported_at = now or datetime.now(timezone.utc)
    return {"version": EXPORT_VERSION, "exported_at": exported_at.isoformat(), "data": data}


def _validate(model: Type[ModelT], row: Any, collection: str, index: int) -> ModelT:
    if not isinstance(row, dict):
        raise ImportFormatError(f"{collection}[{index}] is not an object")
    try:
        return model.model_validate(row)
    except (TypeError, ValueError) as exc:
        raise ImportFormatError(f"{collection}[{index}] is invalid: {exc}") from exc


def _collection(data: dict, name: str, *, required: bool = False) -> list:
    rows = data.get(name)
    if rows is None and not required:
        return []
    if not isinstance(rows, list):
        raise ImportFormatError(f"'{name}' must be a list")
    return rows


def _parse_payload(payload: Any) -> list[SQLModel]:
    """Validate the whole payload up front and return the rows to insert."""

    if not isinstance(payload, dict) or not isinstance(payload.get("data"), dict):
        raise ImportFormatError("Invalid backup format: missing 'data' object")
    data = payload["data"]

    habits = [
        _validate(Habit, r, "habits", i)
        for i, r in enumerate(_collection(data, "habits", required=True))
    ]
    habit_ids = {h.id for h in habits}
    if None in habit_ids or len(habit_ids) != len(habits):
        raise ImportFormatError("Every habit needs a unique id")

    entries = [
        _validate(HabitEntry, r, "entries", i)
        for i, r in enumerate(_collection(data, "entries"))
    ]
    keys = set()
    for entry in entries:
        if entry.habit_id not in habit_ids:
            raise ImportFormatError(f"Entry references unknown habit {entry.habit_id}")
        key = (entry.habit_id, entry.occurred_on)
        if key in keys:
            raise ImportFormatError(f"Duplicate entry for habit {entry.habit_id} on {entry.occurred_on}")
        keys.add(key)

    goals = [_validate(Goal, r, "goals", i) for i, r in enumerate(_collection(data, "goals"))]
    for goal in goals:
        if goal.habit_id not in habit_ids:
            raise ImportFormatError(f"Goal references unknown habit {goal.habit_id}")

    rows: list[SQLModel] = [*habits, *entries, *goals]
    for i, raw in enumerate(_collection(data, "challenges")):
        if not isinstance(raw, dict):
            raise ImportFormatError(f"challenges[{i}] is not an object")
        raw = dict(raw)
        scope = raw.pop("habit_ids", None) or []
        credited = raw.pop("completed_dates", None) or []
        challenge = _validate(Challenge, raw, "challenges", i)
        if challenge.id is None:
            raise ImportFormatError(f"challenges[{i}] needs an id")
        rows.append(challenge)
        try:
            scope_ids = {int(h) for h in scope}
            credited_days = {date.fromisoformat(str(d)) for d in credited}
        except (TypeError, ValueError) as exc:
            raise ImportFormatError(f"challenges[{i}] has invalid scope or dates: {exc}") from exc
        if not scope_ids <= habit_ids:
            raise ImportFormatError(f"challenges[{i}] is scoped to unknown habits")
        rows.extend(
            ChallengeHabitLink(challenge_id=challenge.id, habit_id=h) for h in sorted(scope_ids)
        )
        rows.extend(
            ChallengeCredit(challenge_id=challenge.id, credited_on=d) for d in sorted(credited_days)
        )

    for i, raw in enumerate(_collection(data, "achievements")):
        if isinstance(raw, dict) and raw.get("habit_id") == 0:
            # older exports marked global rules with 0
            raw = {**raw, "habit_id": None}
        achievement = _validate(Achievement, raw, "achievements", i)
        if achievement.habit_id is not None and achievement.habit_id not in habit_ids:
            raise ImportFormatError(f"Achievement references unknown habit {achievement.habit_id}")
        rows.append(achievement)
    return rows


def import_snapshot(session_factory: SessionFactory, payload: Any) -> dict[str, int]:
    """Replace all ledger data with the payload's contents.

    Validation finishes before anything is written, and the replace runs in a
    single transaction, so a rejected payload leaves the ledger untouched.
    """

    rows = _parse_payload(payload)
    with session_factory() as session:
        clear_all_data(session)
        session.add_all(rows)
        session.flush()

    counts: dict[str, int] = {}
    for row in rows:
        name = type(row).__tablename__
        counts[name] = counts.get(name, 0) + 1
    logger.info("Imported backup", extra={"counts": counts})
    return counts


def write_snapshot(payload: dict[str, Any], path: Path) -> Path:
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    with path.open("w", encoding="utf-8") as fh:
        json.dump(payload, fh, ensure_ascii=False, indent=2)
    return path


def read_snapshot(path: Path) -> Any:
    """Load a backup file; unreadable JSON is reported as an ImportFormatError."""

    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Backup file not found: {path}")
    try:
        with path.open("r", encoding="utf-8") as fh:
            return json.load(fh)
    except (json.JSONDecodeError, UnicodeDecodeError) as exc:
        raise ImportFormatError(f"Backup file is not valid JSON: {exc}") from exc


__all__ = [
    "EXPORT_VERSION",
    "ImportFormatError",
    "export_snapshot",
    "import_snapshot",
    "read_snapshot",
    "write_snapshot",
]
