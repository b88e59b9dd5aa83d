"""HabitLedger: the query and mutation API exposed to UI and other collaborators."""

from __future__ import annotations

import re
from dataclasses import dataclass
from datetime import date
from pathlib import Path
from typing import Any, Iterable, Optional, Union

from .context import AppContext
from .logging_config import get_logger
from .models import Achievement, Challenge, Goal, Habit, HabitEntry
from .models.goal import GOAL_TYPES
from .models.habit import DIFFICULTIES
from .services import admin_tasks, backup
from .services.achievements import (
    AchievementEvaluator,
    AchievementSummary,
    seed_default_achievements,
    summarize,
)
from .services.challenges import ChallengeProgress, ChallengeTracker, build_challenge, is_open
from .services.goals import GoalProgress, GoalTracker, default_period
from .services.streaks import HabitStats, compute_stats
from .services.toggle import ToggleCoordinator, ToggleResult, parse_day

logger = get_logger("ledger")

_REMINDER_TIME = re.compile(r"^([01]\d|2[0-3]):[0-5]\d$")


@dataclass(frozen=True)
class HabitWithStats:
    habit: Habit
    stats: HabitStats

    @property
    def current_streak(self) -> int:
        return self.stats.current_streak

    @property
    def completion_rate(self) -> int:
        return self.stats.completion_rate

    def as_dict(self) -> dict[str, Any]:
        """Habit fields merged with its derived stats."""
        payload = self.habit.model_dump()
        payload.update(
            current_streak=self.stats.current_streak,
            longest_streak=self.stats.longest_streak,
            completion_rate=self.stats.completion_rate,
            total_entries=self.stats.total_entries,
            completed_entries=self.stats.completed_entries,
        )
        return payload


@dataclass(frozen=True)
class ChallengeView:
    challenge: Challenge
    habit_ids: list[int]
    progress: ChallengeProgress
    open: bool


def _validate_habit_fields(fields: dict[str, Any]) -> None:
    if "name" in fields and not str(fields["name"] or "").strip():
        raise ValueError("Habit name is required")
    difficulty = fields.get("difficulty")
    if difficulty is not None and difficulty not in DIFFICULTIES:
        raise ValueError(f"Difficulty must be one of {', '.join(DIFFICULTIES)}")
    reminder_time = fields.get("reminder_time")
    if reminder_time is not None and not _REMINDER_TIME.match(reminder_time):
        raise ValueError("Reminder time must be HH:MM")
    days = fields.get("reminder_days")
    if days is not None and any(d not in range(7) for d in days):
        raise ValueError("Reminder days must be between 0 (Sunday) and 6 (Saturday)")


class HabitLedger:
    """Facade over the store and the derived-state trackers.

    ``toggle_completion`` is the only path that writes ledger entries; every
    read of stats and goal progress is recomputed from those entries.
    """

    def __init__(self, ctx: AppContext):
        self.ctx = ctx
        self.clock = ctx.clock
        self.habits = ctx.habit_repo
        self.goal_tracker = GoalTracker(ctx.habit_repo, ctx.goal_repo, ctx.clock)
        self.challenge_tracker = ChallengeTracker(ctx.challenge_repo, ctx.clock)
        self.evaluator = AchievementEvaluator(ctx.achievement_repo, ctx.clock)
        self.coordinator = ToggleCoordinator(
            ctx.habit_repo,
            self.goal_tracker,
            self.challenge_tracker,
            self.evaluator,
            clock=ctx.clock,
            lookback_days=ctx.config.STREAK_LOOKBACK_DAYS,
        )

    def __enter__(self) -> "HabitLedger":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    def close(self) -> None:
        self.ctx.close()

    def _require_habit(self, habit_id: int) -> Habit:
        habit = self.habits.get_by_id(habit_id)
        if habit is None:
            raise ValueError("Habit not found")
        return habit

    def _require_challenge(self, challenge_id: int) -> Challenge:
        challenge = self.ctx.challenge_repo.get_by_id(challenge_id)
        if challenge is None:
            raise ValueError("Challenge not found")
        return challenge

    # Habits
    def add_habit(self, name: str, **fields: Any) -> Habit:
        fields["name"] = name.strip() if isinstance(name, str) else name
        _validate_habit_fields(fields)
        habit = self.habits.create(Habit(**fields))
        logger.info("Habit created", extra={"habit_id": habit.id})
        return habit

    def update_habit(self, habit_id: int, **changes: Any) -> Habit:
        _validate_habit_fields(changes)
        return self.habits.update(habit_id, **changes)

    def archive_habit(self, habit_id: int) -> Habit:
        return self.habits.deactivate(habit_id)

    def duplicate_habit(self, habit_id: int) -> Habit:
        """Copy a habit's settings (not its history) into a new active habit."""
        source = self._require_habit(habit_id)
        fields = source.model_dump(exclude={"id", "created_at", "is_active"})
        fields["name"] = f"{source.name} (copy)"
        return self.habits.create(Habit(**fields))

    def delete_habit(self, habit_id: int) -> None:
        """Destructive: removes the habit with its entries, goals and scoped rules."""
        self.habits.delete(habit_id)
        logger.warning("Habit hard-deleted", extra={"habit_id": habit_id})

    def seed_starter_habits(self) -> list[Habit]:
        return admin_tasks.seed_starter_habits(self.habits)

    # Ledger
    def toggle_completion(
        self,
        habit_id: int,
        mood: Optional[str] = None,
        date_override: Union[date, str, None] = None,
    ) -> ToggleResult:
        return self.coordinator.toggle(habit_id, mood=mood, date_override=date_override)

    def update_completion_mood(
        self, habit_id: int, day: Union[date, str], mood: str
    ) -> Optional[HabitEntry]:
        return self.habits.set_mood(habit_id, parse_day(day, default=self.clock.today()), mood)

    def get_habit_stats(self, habit_id: int) -> HabitStats:
        return compute_stats(
            self.habits.list_entries(habit_id),
            today=self.clock.today(),
            lookback_days=self.ctx.config.STREAK_LOOKBACK_DAYS,
        )

    def get_habits_with_derived_stats(self, active_only: bool = True) -> list[HabitWithStats]:
        return [
            HabitWithStats(habit=habit, stats=self.get_habit_stats(habit.id))
            for habit in self.habits.list_habits(active_only=active_only)
        ]

    # Goals
    def create_goal(
        self,
        habit_id: int,
        type: str,
        target: int,
        period_override: Optional[str] = None,
    ) -> Goal:
        self._require_habit(habit_id)
        if type not in GOAL_TYPES:
            raise ValueError(f"Goal type must be one of {', '.join(GOAL_TYPES)}")
        if target < 1:
            raise ValueError("Goal target must be at least 1 day")
        period = period_override or default_period(type, self.clock.today())
        goal = self.ctx.goal_repo.create(Goal(habit_id=habit_id, type=type, target=target, period=period))
        # entries may already satisfy the goal
        self.goal_tracker.refresh_goal(goal)
        return goal

    def delete_goal(self, goal_id: int) -> None:
        self.ctx.goal_repo.delete(goal_id)

    def get_goal_progress(self, goal: Union[Goal, int]) -> GoalProgress:
        if not isinstance(goal, Goal):
            found = self.ctx.goal_repo.get_by_id(goal)
            if found is None:
                raise ValueError("Goal not found")
            goal = found
        return self.goal_tracker.progress(goal)

    def list_goals(self, habit_id: Optional[int] = None) -> list[tuple[Goal, GoalProgress]]:
        repo = self.ctx.goal_repo
        goals = repo.list_all() if habit_id is None else repo.list_for_habit(habit_id)
        return [(goal, self.goal_tracker.progress(goal)) for goal in goals]

    # Challenges
    def insert_challenge(
        self,
        name: str,
        description: str,
        emoji: str,
        target_days: int,
        habit_ids: Optional[Iterable[int]] = None,
    ) -> Challenge:
        scope = list(habit_ids or [])
        for habit_id in scope:
            self._require_habit(habit_id)
        challenge = build_challenge(
            name=name,
            description=description,
            emoji=emoji,
            target_days=target_days,
            start=self.clock.today(),
        )
        return self.ctx.challenge_repo.create(challenge, scope)

    def enroll_challenge(self, challenge_id: int) -> Challenge:
        return self.ctx.challenge_repo.set_joined(challenge_id, True)

    def leave_challenge(self, challenge_id: int) -> Challenge:
        return self.ctx.challenge_repo.set_joined(challenge_id, False)

    def delete_challenge(self, challenge_id: int) -> None:
        """Remove the challenge with its habit scope and credited dates."""
        self._require_challenge(challenge_id)
        self.ctx.challenge_repo.delete(challenge_id)

    def get_challenge(self, challenge_id: int) -> ChallengeView:
        return self._view(self._require_challenge(challenge_id))

    def _view(self, challenge: Challenge) -> ChallengeView:
        return ChallengeView(
            challenge=challenge,
            habit_ids=self.ctx.challenge_repo.habit_scope(challenge.id),
            progress=self.challenge_tracker.progress(challenge),
            open=is_open(challenge, self.clock.today()),
        )

    def list_challenges(self) -> list[ChallengeView]:
        return [self._view(c) for c in self.ctx.challenge_repo.list_all()]

    # Achievements
    def check_achievements(self, habit_id: int, streak: int, rate: int) -> list[Achievement]:
        return self.evaluator.evaluate(habit_id, streak, rate)

    def list_achievements(self) -> list[Achievement]:
        return self.ctx.achievement_repo.list_all()

    def achievement_summary(self) -> AchievementSummary:
        return summarize(self.list_achievements())

    # Backup / maintenance
    def export_data(self) -> dict[str, Any]:
        return backup.export_snapshot(self.ctx.session_factory, now=self.clock.now())

    def export_to_file(self, path: Path) -> Path:
        return backup.write_snapshot(self.export_data(), path)

    def import_data(self, payload: Any) -> dict[str, int]:
        """Replace the ledger with a backup; raises ImportFormatError and writes nothing on bad input."""
        counts = backup.import_snapshot(self.ctx.session_factory, payload)
        seed_default_achievements(self.ctx.achievement_repo)
        return counts

    def import_from_file(self, path: Path) -> dict[str, int]:
        return self.import_data(backup.read_snapshot(path))

    def reset_all_data(self) -> None:
        admin_tasks.reset_all_data(self.ctx.session_factory)
        seed_default_achievements(self.ctx.achievement_repo)


__all__ = ["ChallengeView", "HabitLedger", "HabitWithStats"]
