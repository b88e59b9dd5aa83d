"""Tests for goal period windows and progress."""

from __future__ import annotations

import logging
from datetime import date

import pytest

from habitledger.services.goals import default_period, resolve_period_window

from tests.conftest import TODAY, days_ago


class TestPeriodWindows:
    """Period identifiers resolve to inclusive calendar windows."""

    def test_weekly_window_starts_monday(self):
        start, end = resolve_period_window("weekly", "2024-05-15", today=TODAY)
        assert start == date(2024, 5, 13)
        assert end == date(2024, 5, 19)

    def test_monthly_window_covers_leap_february(self):
        start, end = resolve_period_window("monthly", "2024-02", today=TODAY)
        assert (start, end) == (date(2024, 2, 1), date(2024, 2, 29))

    @pytest.mark.parametrize("period", ["garbage", "", "2024-13-45"])
    def test_malformed_weekly_falls_back_to_current_week(self, period, caplog):
        with caplog.at_level(logging.WARNING, logger="habitledger.goals"):
            window = resolve_period_window("weekly", period, today=TODAY)
        assert window == (date(2024, 5, 13), date(2024, 5, 19))
        assert "Malformed weekly period" in caplog.text

    @pytest.mark.parametrize("period", ["2024", "2024-13", "May"])
    def test_malformed_monthly_falls_back_to_current_month(self, period):
        window = resolve_period_window("monthly", period, today=TODAY)
        assert window == (date(2024, 5, 1), date(2024, 5, 31))

    def test_week_past_last_date_falls_back(self):
        window = resolve_period_window("weekly", "9999-12-31", today=TODAY)
        assert window == (date(2024, 5, 13), date(2024, 5, 19))

    def test_unknown_goal_type_raises(self):
        with pytest.raises(ValueError):
            resolve_period_window("daily", "2024-05-15", today=TODAY)

    def test_default_periods(self):
        assert default_period("weekly", TODAY) == "2024-05-13"
        assert default_period("monthly", TODAY) == "2024-05"


class TestGoalProgress:
    """Progress is recomputed from entries on every read."""

    def test_create_goal_uses_current_period(self, ledger, habit_factory):
        habit = habit_factory()
        weekly = ledger.create_goal(habit.id, "weekly", 3)
        monthly = ledger.create_goal(habit.id, "monthly", 20)
        assert weekly.period == "2024-05-13"
        assert monthly.period == "2024-05"

    def test_counts_only_days_inside_window(self, ledger, habit_factory, complete_days):
        habit = habit_factory()
        # Mon 13 and Tue 14 are in this week, Sun 12 is not
        complete_days(habit.id, 1, 2, 3)
        goal = ledger.create_goal(habit.id, "weekly", 4)

        progress = ledger.get_goal_progress(goal.id)

        assert progress.completed_days == 2
        assert progress.progress_percent == 50
        assert progress.achieved is False

    def test_goal_created_after_entries_is_already_achieved(self, ledger, habit_factory, complete_days):
        habit = habit_factory()
        complete_days(habit.id, 0, 1, 2)

        goal = ledger.create_goal(habit.id, "weekly", 3)

        assert goal.achieved is True
        assert ledger.ctx.goal_repo.get_by_id(goal.id).achieved is True

    def test_repeated_toggles_on_one_day_count_once(self, ledger, habit_factory):
        habit = habit_factory()
        goal = ledger.create_goal(habit.id, "weekly", 2)

        for _ in range(3):
            ledger.toggle_completion(habit.id)

        progress = ledger.get_goal_progress(goal)
        assert progress.completed_days == 1

    def test_achieved_flag_follows_toggles(self, ledger, habit_factory):
        habit = habit_factory()
        goal = ledger.create_goal(habit.id, "weekly", 2)

        ledger.toggle_completion(habit.id, date_override=days_ago(1))
        result = ledger.toggle_completion(habit.id)
        assert result.goals[0].achieved is True
        assert ledger.ctx.goal_repo.get_by_id(goal.id).achieved is True

        ledger.toggle_completion(habit.id)
        assert ledger.ctx.goal_repo.get_by_id(goal.id).achieved is False

    def test_progress_percent_can_exceed_hundred(self, ledger, habit_factory, complete_days):
        habit = habit_factory()
        complete_days(habit.id, 0, 1, 2)
        goal = ledger.create_goal(habit.id, "weekly", 2)
        assert ledger.get_goal_progress(goal).progress_percent == 150

    def test_past_period_override(self, ledger, habit_factory, complete_days):
        habit = habit_factory()
        complete_days(habit.id, 20, 21)  # Apr 25 and Apr 24
        goal = ledger.create_goal(habit.id, "monthly", 2, period_override="2024-04")
        assert ledger.get_goal_progress(goal).achieved is True

    def test_list_goals_by_habit(self, ledger, habit_factory):
        first = habit_factory("One")
        second = habit_factory("Two")
        ledger.create_goal(first.id, "weekly", 1)
        ledger.create_goal(second.id, "monthly", 1)

        assert len(ledger.list_goals()) == 2
        [(goal, progress)] = ledger.list_goals(habit_id=second.id)
        assert goal.type == "monthly"
        assert progress.completed_days == 0

    def test_out_of_range_week_override_uses_current_week(self, ledger, habit_factory, complete_days):
        habit = habit_factory()
        complete_days(habit.id, 0)

        goal = ledger.create_goal(habit.id, "weekly", 1, period_override="9999-12-31")

        progress = ledger.get_goal_progress(goal)
        assert progress.period_start == date(2024, 5, 13)
        assert progress.achieved is True

    def test_delete_goal(self, ledger, habit_factory):
        goal = ledger.create_goal(habit_factory().id, "weekly", 1)
        ledger.delete_goal(goal.id)
        with pytest.raises(ValueError, match="Goal not found"):
            ledger.get_goal_progress(goal.id)

    @pytest.mark.parametrize(("goal_type", "target"), [("daily", 1), ("weekly", 0)])
    def test_invalid_goal_rejected(self, ledger, habit_factory, goal_type, target):
        with pytest.raises(ValueError):
            ledger.create_goal(habit_factory().id, goal_type, target)

    def test_goal_for_missing_habit(self, ledger):
        with pytest.raises(ValueError, match="Habit not found"):
            ledger.create_goal(999, "weekly", 1)
