"""Application context for dependency injection."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from sqlalchemy.engine import Engine

from .clock import Clock, SystemClock
from .config import BaseConfig
from .infra.database import SessionFactory, create_db_engine, create_session_factory, init_database
from .infra.repositories import (
    SQLModelAchievementRepository,
    SQLModelChallengeRepository,
    SQLModelGoalRepository,
    SQLModelHabitRepository,
)
from .logging_config import get_logger
from .services.achievements import seed_default_achievements

logger = get_logger("context")


@dataclass
class AppContext:
    """The one store instance, built at startup and handed to every component."""

    config: BaseConfig
    clock: Clock
    engine: Engine
    session_factory: SessionFactory

    habit_repo: SQLModelHabitRepository
    goal_repo: SQLModelGoalRepository
    challenge_repo: SQLModelChallengeRepository
    achievement_repo: SQLModelAchievementRepository

    schema_version: int = 0
    closed: bool = False

    def close(self) -> None:
        """Release pooled connections. The context is unusable afterwards."""

        if self.closed:
            return
        self.engine.dispose()
        self.closed = True
        logger.info("Context closed")


def create_app_context(
    config: Optional[BaseConfig] = None, clock: Optional[Clock] = None
) -> AppContext:
    """Create the engine, migrate the schema, seed default rules and wire repositories."""

    if config is None:
        config = BaseConfig()

    engine = create_db_engine(config)
    schema_version = init_database(engine)
    session_factory = create_session_factory(engine)

    achievement_repo = SQLModelAchievementRepository(session_factory)
    seed_default_achievements(achievement_repo)

    logger.info(
        "Context ready",
        extra={"database_url": config.DATABASE_URL, "schema_version": schema_version},
    )
    return AppContext(
        config=config,
        clock=clock or SystemClock(),
        engine=engine,
        session_factory=session_factory,
        habit_repo=SQLModelHabitRepository(session_factory),
        goal_repo=SQLModelGoalRepository(session_factory),
        challenge_repo=SQLModelChallengeRepository(session_factory),
        achievement_repo=achievement_repo,
        schema_version=schema_version,
    )
