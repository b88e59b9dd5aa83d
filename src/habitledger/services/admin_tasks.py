"""Admin utilities: starter-habit seeding and destructive resets."""

from __future__ import annotations

import logging

from sqlalchemy import delete
from sqlmodel import Session

from ..domain.repositories import HabitRepository
from ..infra.database import SessionFactory
from ..models import Achievement, Challenge, ChallengeCredit, ChallengeHabitLink, Goal, Habit, HabitEntry

logger = logging.getLogger("habitledger.admin")

# Children before parents so foreign keys never dangle mid-transaction.
LEDGER_TABLES = (
    ChallengeCredit,
    ChallengeHabitLink,
    Challenge,
    Goal,
    Achievement,
    HabitEntry,
    Habit,
)

STARTER_HABITS: tuple[dict, ...] = (
    {
        "name": "Morning Meditation",
        "description": "Start your day with 10 minutes of mindfulness",
        "emoji": "🧘",
        "color": "#8B5CF6",
        "category": "Mindfulness",
        "difficulty": "easy",
    },
    {
        "name": "Daily Exercise",
        "description": "Get your body moving for at least 30 minutes",
        "emoji": "🏃",
        "color": "#EF4444",
        "category": "Fitness",
        "difficulty": "medium",
    },
    {
        "name": "Read for 20 Minutes",
        "description": "Expand your knowledge with daily reading",
        "emoji": "📚",
        "color": "#3B82F6",
        "category": "Learning",
        "difficulty": "easy",
    },
    {
        "name": "Drink 8 Glasses of Water",
        "description": "Stay hydrated throughout the day",
        "emoji": "💧",
        "color": "#06B6D4",
        "category": "Health",
        "difficulty": "easy",
    },
    {
        "name": "Write in Journal",
        "description": "Reflect on your day and thoughts",
        "emoji": "✍️",
        "color": "#F59E0B",
        "category": "Mindfulness",
        "difficulty": "easy",
    },
)


def seed_starter_habits(repo: HabitRepository) -> list[Habit]:
    """Create the curated starter habits, skipping names that already exist."""

    existing = {habit.name for habit in repo.list_habits(active_only=False)}
    created = [
        repo.create(Habit(**payload))
        for payload in STARTER_HABITS
        if payload["name"] not in existing
    ]
    logger.info("Seeded %s starter habits", len(created))
    return created


def clear_all_data(session: Session) -> None:
    """Delete every ledger row inside the caller's transaction."""

    connection = session.connection()
    for model in LEDGER_TABLES:
        connection.execute(delete(model))


def reset_all_data(session_factory: SessionFactory) -> None:
    """Wipe habits, entries, goals, challenges and achievements in one transaction."""

    with session_factory() as session:
        clear_all_data(session)
    logger.warning("All ledger data deleted")


__all__ = [
    "LEDGER_TABLES",
    "STARTER_HABITS",
    "clear_all_data",
    "reset_all_data",
    "seed_starter_habits",
]
