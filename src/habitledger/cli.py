"""Command-line interface for HabitLedger."""

from __future__ import annotations

import functools
from pathlib import Path

import click

from .config import BaseConfig
from .context import create_app_context
from .ledger import HabitLedger
from .logging_config import setup_logging
from .services.backup import ImportFormatError


def _ledger(ctx: click.Context) -> HabitLedger:
    return ctx.obj["ledger"]


def _fail_on_value_error(func):
    """Report domain ValueErrors as CLI errors instead of tracebacks."""

    @functools.wraps(func)
    def wrapper(*args, **kwargs):
        try:
            return func(*args, **kwargs)
        except ImportFormatError as exc:
            raise click.ClickException(f"Import rejected: {exc}") from exc
        except ValueError as exc:
            raise click.ClickException(str(exc)) from exc

    return wrapper


@click.group()
@click.option("--verbose", is_flag=True, default=False, help="Enable console + file logging")
@click.pass_context
def main(ctx: click.Context, verbose: bool) -> None:
    """Track habits, streaks, goals and challenges locally."""

    config = BaseConfig()
    if verbose:
        setup_logging(config)
    ledger = HabitLedger(create_app_context(config))
    ctx.obj = {"ledger": ledger}
    ctx.call_on_close(ledger.close)


@main.command("init")
@click.pass_context
def init_cmd(ctx: click.Context) -> None:
    """Create or migrate the database and seed default achievements."""

    ledger = _ledger(ctx)
    click.echo(
        f"Database ready at {ledger.ctx.config.DATABASE_URL} (schema v{ledger.ctx.schema_version})"
    )


@main.command("seed")
@click.pass_context
def seed_cmd(ctx: click.Context) -> None:
    """Add the curated starter habits."""

    created = _ledger(ctx).seed_starter_habits()
    click.echo(f"Added {len(created)} starter habits")


@main.group()
def habit() -> None:
    """Manage habits."""


@habit.command("add")
@click.argument("name")
@click.option("--emoji", default="✅")
@click.option("--category", default=None)
@click.option("--difficulty", type=click.Choice(["easy", "medium", "hard"]), default=None)
@click.pass_context
@_fail_on_value_error
def habit_add(ctx: click.Context, name: str, emoji: str, category: str | None, difficulty: str | None) -> None:
    """Create a habit."""

    created = _ledger(ctx).add_habit(name, emoji=emoji, category=category, difficulty=difficulty)
    click.echo(f"Created habit {created.id}: {created.emoji} {created.name}")


@habit.command("list")
@click.option("--all", "show_all", is_flag=True, default=False, help="Include archived habits")
@click.pass_context
def habit_list(ctx: click.Context, show_all: bool) -> None:
    """List habits with streak and completion rate."""

    rows = _ledger(ctx).get_habits_with_derived_stats(active_only=not show_all)
    if not rows:
        click.echo("No habits yet")
        return
    for row in rows:
        status = "" if row.habit.is_active else " (archived)"
        click.echo(
            f"{row.habit.id:>3}  {row.habit.emoji} {row.habit.name}{status}  "
            f"streak={row.current_streak}  rate={row.completion_rate}%"
        )


@habit.command("archive")
@click.argument("habit_id", type=int)
@click.pass_context
@_fail_on_value_error
def habit_archive(ctx: click.Context, habit_id: int) -> None:
    """Archive (soft-delete) a habit."""

    archived = _ledger(ctx).archive_habit(habit_id)
    click.echo(f"Archived {archived.name}")


@habit.command("delete")
@click.argument("habit_id", type=int)
@click.confirmation_option(prompt="Delete the habit and all of its history?")
@click.pass_context
def habit_delete(ctx: click.Context, habit_id: int) -> None:
    """Permanently delete a habit and its entries."""

    _ledger(ctx).delete_habit(habit_id)
    click.echo(f"Deleted habit {habit_id}")


@main.command("toggle")
@click.argument("habit_id", type=int)
@click.option("--date", "day", default=None, help="YYYY-MM-DD, defaults to today")
@click.option("--mood", default=None)
@click.pass_context
@_fail_on_value_error
def toggle_cmd(ctx: click.Context, habit_id: int, day: str | None, mood: str | None) -> None:
    """Mark a habit done (or undo it) for a day."""

    result = _ledger(ctx).toggle_completion(habit_id, mood=mood, date_override=day)
    state = "done" if result.completed else "not done"
    click.echo(f"{result.entry.occurred_on.isoformat()}: {state}")
    if result.stats is not None:
        click.echo(f"Streak {result.stats.current_streak}, rate {result.stats.completion_rate}%")
    for achievement in result.unlocked:
        click.echo(f"Unlocked: {achievement.icon} {achievement.name}")
    for step in result.failed_steps:
        click.echo(f"Warning: {step} could not be updated", err=True)


@main.group()
def goal() -> None:
    """Manage weekly and monthly goals."""


@goal.command("add")
@click.argument("habit_id", type=int)
@click.argument("goal_type", type=click.Choice(["weekly", "monthly"]))
@click.argument("target", type=int)
@click.option("--period", default=None, help="Week start YYYY-MM-DD or month YYYY-MM")
@click.pass_context
@_fail_on_value_error
def goal_add(ctx: click.Context, habit_id: int, goal_type: str, target: int, period: str | None) -> None:
    """Create a goal for a habit."""

    created = _ledger(ctx).create_goal(habit_id, goal_type, target, period_override=period)
    click.echo(f"Created {created.type} goal {created.id} for period {created.period}")


@goal.command("list")
@click.pass_context
def goal_list(ctx: click.Context) -> None:
    """Show goal progress."""

    for item, progress in _ledger(ctx).list_goals():
        mark = "✔" if progress.achieved else " "
        click.echo(
            f"{item.id:>3} [{mark}] habit {item.habit_id} {item.type} {item.period}: "
            f"{progress.completed_days}/{progress.target} ({progress.progress_percent}%)"
        )


@goal.command("delete")
@click.argument("goal_id", type=int)
@click.pass_context
def goal_delete(ctx: click.Context, goal_id: int) -> None:
    """Delete a goal."""

    _ledger(ctx).delete_goal(goal_id)
    click.echo(f"Deleted goal {goal_id}")


@main.group()
def challenge() -> None:
    """Manage challenges."""


@challenge.command("add")
@click.argument("name")
@click.argument("target_days", type=int)
@click.option("--description", default="")
@click.option("--emoji", default="🏆")
@click.option("--habit", "habit_ids", type=int, multiple=True, help="Limit to habit id (repeatable)")
@click.pass_context
@_fail_on_value_error
def challenge_add(
    ctx: click.Context,
    name: str,
    target_days: int,
    description: str,
    emoji: str,
    habit_ids: tuple[int, ...],
) -> None:
    """Create and join a challenge starting today."""

    created = _ledger(ctx).insert_challenge(name, description, emoji, target_days, habit_ids)
    click.echo(f"Created challenge {created.id}: {created.start_date} to {created.end_date}")


@challenge.command("list")
@click.pass_context
def challenge_list(ctx: click.Context) -> None:
    """Show challenges with progress."""

    for view in _ledger(ctx).list_challenges():
        item = view.challenge
        state = "open" if view.open else "closed"
        joined = "joined" if item.is_joined else "not joined"
        click.echo(
            f"{item.id:>3} {item.emoji} {item.name} ({state}, {joined}): "
            f"{view.progress.completed_days}/{item.target_days} ({view.progress.progress_percent}%)"
        )


@challenge.command("join")
@click.argument("challenge_id", type=int)
@click.pass_context
@_fail_on_value_error
def challenge_join(ctx: click.Context, challenge_id: int) -> None:
    """Join a challenge."""

    item = _ledger(ctx).enroll_challenge(challenge_id)
    click.echo(f"Joined {item.name}")


@challenge.command("leave")
@click.argument("challenge_id", type=int)
@click.pass_context
@_fail_on_value_error
def challenge_leave(ctx: click.Context, challenge_id: int) -> None:
    """Leave a challenge."""

    item = _ledger(ctx).leave_challenge(challenge_id)
    click.echo(f"Left {item.name}")


@challenge.command("delete")
@click.argument("challenge_id", type=int)
@click.confirmation_option(prompt="Delete the challenge and its progress?")
@click.pass_context
@_fail_on_value_error
def challenge_delete(ctx: click.Context, challenge_id: int) -> None:
    """Delete a challenge."""

    _ledger(ctx).delete_challenge(challenge_id)
    click.echo(f"Deleted challenge {challenge_id}")


@main.command("achievements")
@click.pass_context
def achievements_cmd(ctx: click.Context) -> None:
    """List achievements and when they were unlocked."""

    ledger = _ledger(ctx)
    for item in ledger.list_achievements():
        when = item.unlocked_at.strftime("%Y-%m-%d") if item.unlocked_at else "locked"
        click.echo(f"{item.icon} {item.name}: {when}")
    summary = ledger.achievement_summary()
    click.echo(f"{summary.unlocked}/{summary.total} unlocked")


@main.command("export")
@click.argument("path", type=click.Path(dir_okay=False, path_type=Path))
@click.pass_context
def export_cmd(ctx: click.Context, path: Path) -> None:
    """Write a JSON backup of all data."""

    written = _ledger(ctx).export_to_file(path)
    click.echo(f"Export written: {written}")


@main.command("import")
@click.argument("path", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.confirmation_option(prompt="Replace all current data with this backup?")
@click.pass_context
@_fail_on_value_error
def import_cmd(ctx: click.Context, path: Path) -> None:
    """Replace all data with a JSON backup."""

    counts = _ledger(ctx).import_from_file(path)
    click.echo(f"Imported {counts.get('habit', 0)} habits and {counts.get('habit_entry', 0)} entries")


if __name__ == "__main__":  # pragma: no cover
    main()
