"""End-to-end tests for the toggle write path and its derived updates."""

from __future__ import annotations

import logging

import pytest

from tests.conftest import TODAY, days_ago


class TestToggleLedger:
    """NoEntry -> Completed <-> NotCompleted for one (habit, day)."""

    def test_first_toggle_creates_completed_entry(self, ledger, habit_factory):
        habit = habit_factory()
        result = ledger.toggle_completion(habit.id, mood="good")

        assert result.completed is True
        assert result.entry.occurred_on == TODAY
        assert result.entry.mood == "good"
        assert result.failed_steps == []

    def test_toggles_alternate(self, ledger, habit_factory):
        habit = habit_factory()
        states = [ledger.toggle_completion(habit.id).completed for _ in range(4)]
        assert states == [True, False, True, False]
        assert len(ledger.habits.list_entries(habit.id)) == 1

    def test_date_override_accepts_iso_string(self, ledger, habit_factory):
        habit = habit_factory()
        result = ledger.toggle_completion(habit.id, date_override="2024-05-01")
        assert result.entry.occurred_on.isoformat() == "2024-05-01"

    def test_invalid_date_rejected_before_writing(self, ledger, habit_factory):
        habit = habit_factory()
        with pytest.raises(ValueError, match="Invalid date"):
            ledger.toggle_completion(habit.id, date_override="05/01/2024")
        assert ledger.habits.list_entries(habit.id) == []

    def test_unknown_habit_rejected(self, ledger):
        with pytest.raises(ValueError, match="Habit not found"):
            ledger.toggle_completion(12345)

    def test_points_use_streak_before_toggle(self, ledger, habit_factory, complete_days):
        habit = habit_factory(difficulty="hard")
        complete_days(habit.id, 1, 2, 3, 4, 5)

        result = ledger.toggle_completion(habit.id)
        assert result.entry.points == 5  # round(3 * 1.5)

        undone = ledger.toggle_completion(habit.id)
        assert undone.entry.points is None
        assert undone.entry.completed_at is None

    def test_update_mood_keeps_completion(self, ledger, habit_factory):
        habit = habit_factory()
        ledger.toggle_completion(habit.id)

        entry = ledger.update_completion_mood(habit.id, TODAY, "proud")

        assert entry.mood == "proud"
        assert entry.completed is True


class TestDerivedState:
    """Stats and achievements reflect the toggle that produced them."""

    def test_seventh_day_unlocks_week_warrior(self, ledger, habit_factory, complete_days):
        habit = habit_factory()
        complete_days(habit.id, 1, 2, 3, 4, 5, 6)
        [row] = ledger.get_habits_with_derived_stats()
        assert row.current_streak == 6

        result = ledger.toggle_completion(habit.id)

        assert result.stats.current_streak == 7
        [row] = ledger.get_habits_with_derived_stats()
        assert row.current_streak == 7
        assert "Week Warrior" in {a.name for a in result.unlocked}
        assert "Month Master" not in {a.name for a in result.unlocked}

    def test_open_today_does_not_break_streak(self, ledger, habit_factory, complete_days):
        habit = habit_factory()
        complete_days(habit.id, 1, 2, 3, 4, 5)
        assert ledger.get_habit_stats(habit.id).current_streak == 5

        result = ledger.toggle_completion(habit.id)
        assert result.stats.current_streak == 6

    def test_undo_lowers_stats_but_keeps_unlocks(self, ledger, habit_factory):
        habit = habit_factory()
        ledger.toggle_completion(habit.id)
        result = ledger.toggle_completion(habit.id)

        assert result.stats.current_streak == 0
        assert result.stats.completion_rate == 0
        assert result.unlocked == []
        unlocked = {a.name for a in ledger.list_achievements() if a.unlocked_at}
        assert unlocked == {"First Step", "Perfectionist", "Consistent Creator"}

    def test_double_toggle_restores_derived_state(self, ledger, habit_factory, complete_days):
        habit = habit_factory()
        complete_days(habit.id, 1, 2)
        goal = ledger.create_goal(habit.id, "weekly", 5)
        challenge = ledger.insert_challenge("Week", "", "", 7)
        ledger.toggle_completion(habit.id)

        def snapshot():
            return (
                ledger.habits.get_entry(habit.id, TODAY).completed,
                ledger.get_habit_stats(habit.id),
                ledger.get_goal_progress(goal.id),
                ledger.ctx.challenge_repo.credited_dates(challenge.id),
            )

        before = snapshot()
        ledger.toggle_completion(habit.id)
        ledger.toggle_completion(habit.id)

        assert snapshot() == before
        assert before[3] == [TODAY]


class TestFailureIsolation:
    """A broken derived step never rolls back the ledger write."""

    def test_points_failure_still_writes_entry(self, ledger, habit_factory, monkeypatch, caplog):
        habit = habit_factory(difficulty="hard")
        real_stats = ledger.coordinator._stats
        calls = []

        def fail_first(habit_id):
            calls.append(habit_id)
            if len(calls) == 1:
                raise RuntimeError("store read failed")
            return real_stats(habit_id)

        monkeypatch.setattr(ledger.coordinator, "_stats", fail_first)
        with caplog.at_level(logging.ERROR, logger="habitledger.toggle"):
            result = ledger.toggle_completion(habit.id)

        assert result.failed_steps == ["points"]
        assert result.entry.points is None
        stored = ledger.habits.get_entry(habit.id, TODAY)
        assert stored.completed is True
        assert stored.completed_at is not None
        assert result.stats.current_streak == 1
        assert "First Step" in {a.name for a in result.unlocked}
        assert "Points calculation failed" in caplog.text

    def test_goal_failure_is_logged_and_skipped(self, ledger, habit_factory, monkeypatch, caplog):
        habit = habit_factory()

        def boom(*args, **kwargs):
            raise RuntimeError("goal store offline")

        monkeypatch.setattr(ledger.goal_tracker, "refresh_for_habit", boom)
        with caplog.at_level(logging.ERROR, logger="habitledger.toggle"):
            result = ledger.toggle_completion(habit.id)

        assert result.failed_steps == ["goals"]
        assert ledger.habits.get_entry(habit.id, TODAY).completed is True
        assert result.stats.current_streak == 1
        assert {a.name for a in result.unlocked} >= {"First Step"}
        assert "Goal refresh failed" in caplog.text

    def test_challenge_failure_does_not_block_achievements(self, ledger, habit_factory, monkeypatch):
        habit = habit_factory()

        def boom(*args, **kwargs):
            raise RuntimeError("challenge store offline")

        monkeypatch.setattr(ledger.challenge_tracker, "apply_toggle", boom)
        result = ledger.toggle_completion(habit.id)

        assert result.failed_steps == ["challenges"]
        assert result.unlocked

    def test_stats_failure_skips_achievements(self, ledger, habit_factory, monkeypatch):
        habit = habit_factory()
        ledger.toggle_completion(habit.id, date_override=days_ago(1))

        def boom(*args, **kwargs):
            raise RuntimeError("stats broke")

        monkeypatch.setattr(ledger.coordinator, "_stats", boom)
        # undoing needs no points, so only the post-write recompute fails
        result = ledger.toggle_completion(habit.id, date_override=days_ago(1))
        assert result.completed is False
        assert result.failed_steps == ["stats"]
        assert result.stats is None
        assert result.unlocked == []

    def test_achievement_failure_is_reported(self, ledger, habit_factory, monkeypatch):
        habit = habit_factory()

        def boom(*args, **kwargs):
            raise RuntimeError("rules unavailable")

        monkeypatch.setattr(ledger.evaluator, "evaluate", boom)
        result = ledger.toggle_completion(habit.id)

        assert result.failed_steps == ["achievements"]
        assert result.stats.current_streak == 1
