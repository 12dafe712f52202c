"""Command line interface for HabitSage."""

from __future__ import annotations

import os
from datetime import date, datetime
from pathlib import Path

import click

from .config import BaseConfig
from .constants.catalog import (
    HABIT_ICONS,
    HABIT_TEMPLATES,
    category_color,
    category_label,
    find_template,
)
from .context import AppContext, create_app_context
from .logging_config import setup_logging
from .models.habit import HabitCategory, HabitDataError, Schedule, ScheduleKind
from .services import analytics, export_json, reports
from .services.cloud_sync import restore_into

_DAY_NAMES = ["sun", "mon", "tue", "wed", "thu", "fri", "sat"]


def _parse_days(value: str | None) -> list[int] | None:
    """Accept ``mon,wed,fri`` or ``1,3,5``."""

    if not value:
        return None
    days = []
    for token in value.split(","):
        token = token.strip().lower()
        if token.isdigit():
            days.append(int(token))
        elif token[:3] in _DAY_NAMES:
            days.append(_DAY_NAMES.index(token[:3]))
        else:
            raise click.BadParameter(f"Unknown weekday {token!r}")
    return days


def _as_day(value: datetime | None) -> date | None:
    return value.date() if value is not None else None


def _resolve_habit_id(ctx: AppContext, ref: str) -> str:
    """Match a habit by id, id prefix or case-insensitive name."""

    habits = ctx.manager.habits
    for habit in habits:
        if habit.id == ref or habit.name.lower() == ref.lower():
            return habit.id
    matches = [h for h in habits if h.id.startswith(ref)]
    if len(matches) == 1:
        return matches[0].id
    raise click.ClickException(f"No habit matches {ref!r}")


pass_ctx = click.make_pass_decorator(AppContext)
DATE_OPTION = click.DateTime(formats=["%Y-%m-%d"])


@click.group()
@click.option("--data-dir", type=click.Path(file_okay=False, path_type=Path), default=None,
              help="Override HABITSAGE_DATA_DIR.")
@click.pass_context
def main(click_ctx: click.Context, data_dir: Path | None) -> None:
    """Track habits, streaks and completion trends."""

    if data_dir is not None:
        os.environ["HABITSAGE_DATA_DIR"] = str(data_dir)
    config = BaseConfig()
    setup_logging(config)
    click_ctx.obj = create_app_context(config)


@main.command("templates")
def list_templates() -> None:
    """Show built-in habit templates."""

    for template in HABIT_TEMPLATES:
        click.echo(f"{template.name:<32} {category_label(template.category):<13} {template.schedule.kind.value}")


def _habit_options(func):
    """Options shared by ``add`` and ``edit``."""

    options = [
        click.option("--category", type=click.Choice([c.value for c in HabitCategory]), default=None),
        click.option("--schedule", "schedule_kind",
                     type=click.Choice([k.value for k in ScheduleKind]), default=None),
        click.option("--days", default=None, help="Custom weekdays, e.g. mon,wed,fri or 1,3,5."),
        click.option("--icon", type=click.Choice(HABIT_ICONS, case_sensitive=False), default=None),
        click.option("--description", default=None),
        click.option("--reminder", default=None, help="Reminder time HH:MM (stored only)."),
    ]
    for option in reversed(options):
        func = option(func)
    return func


def _habit_fields(category, schedule_kind, days, icon, description, reminder) -> dict:
    """Translate option values into ``Habit`` field changes."""

    fields: dict = {}
    if category:
        fields["category"] = HabitCategory(category)
        fields["color"] = category_color(fields["category"])
    if schedule_kind or days:
        kind = ScheduleKind(schedule_kind or ScheduleKind.CUSTOM.value)
        try:
            fields["schedule"] = (
                Schedule.custom(_parse_days(days)) if kind is ScheduleKind.CUSTOM else Schedule(kind)
            )
        except HabitDataError as exc:
            raise click.BadParameter(str(exc), param_hint="--days") from exc
    if icon:
        fields["icon"] = icon
    if description:
        fields["description"] = description
    if reminder:
        fields["reminder_enabled"] = True
        fields["reminder_time"] = reminder
    return fields


@main.command("add")
@click.argument("name", required=False)
@click.option("--template", "template_name", default=None, help="Start from a built-in template.")
@_habit_options
@pass_ctx
def add_habit(ctx: AppContext, name, template_name, category, schedule_kind, days, icon, description,
              reminder):
    """Create a habit."""

    fields: dict = {}
    if template_name:
        template = find_template(template_name)
        if template is None:
            raise click.ClickException(f"Unknown template {template_name!r}")
        fields.update(template.to_fields())
    if name:
        fields["name"] = name
    if "name" not in fields:
        raise click.UsageError("NAME or --template is required")
    fields.update(_habit_fields(category, schedule_kind, days, icon, description, reminder))

    habit = ctx.manager.add_habit(**fields)
    if habit is None:
        raise click.ClickException("Invalid habit. Check the name and schedule.")
    click.echo(f"Added {habit.name} ({habit.id[:8]})")


@main.command("edit")
@click.argument("habit")
@click.option("--name", default=None, help="New habit name.")
@_habit_options
@click.option("--no-reminder", is_flag=True, help="Turn the reminder off.")
@pass_ctx
def edit_habit(ctx: AppContext, habit, name, category, schedule_kind, days, icon, description,
               reminder, no_reminder):
    """Change an existing habit's details."""

    habit_id = _resolve_habit_id(ctx, habit)
    fields = _habit_fields(category, schedule_kind, days, icon, description, reminder)
    if name is not None:
        fields["name"] = name
    if no_reminder:
        fields["reminder_enabled"] = False
        fields["reminder_time"] = None
    if not fields:
        raise click.UsageError("Nothing to change")

    updated = ctx.manager.update_habit(habit_id, **fields)
    if updated is None:
        raise click.ClickException("Invalid habit. Check the name and schedule.")
    click.echo(f"Updated {updated.name} ({updated.id[:8]})")


@main.command("list")
@click.option("--all", "show_all", is_flag=True, help="Include archived habits.")
@click.option("--date", "on", type=DATE_OPTION, default=None)
@pass_ctx
def list_habits(ctx: AppContext, show_all: bool, on: datetime | None):
    """List active habits with today's status and streak."""

    day = _as_day(on) or date.today()
    habits = ctx.manager.active_habits + (ctx.manager.archived_habits if show_all else [])
    if not habits:
        click.echo("No habits yet. Add one with `habitsage add`.")
        return
    due_ids = {h.id for h in ctx.manager.today_habits(day)}
    for habit in habits:
        mark = "x" if ctx.manager.is_completed(habit.id, day) else " "
        due = "due" if habit.id in due_ids else "   "
        stats = ctx.manager.habit_stats(habit.id, today=day)
        flag = " [archived]" if habit.archived else ""
        click.echo(
            f"[{mark}] {habit.id[:8]} {habit.name:<30} {due} streak {stats.current_streak:>3}{flag}"
        )
    click.echo(f"Today: {ctx.manager.today_progress(day)}% complete")


@main.command("toggle")
@click.argument("habit")
@click.option("--date", "on", type=DATE_OPTION, default=None)
@pass_ctx
def toggle(ctx: AppContext, habit: str, on: datetime | None):
    """Mark a habit done (or undone) for a day."""

    habit_id = _resolve_habit_id(ctx, habit)
    done = ctx.manager.toggle_completion(habit_id, _as_day(on))
    click.echo("Completed" if done else "Unmarked")


@main.command("archive")
@click.argument("habit")
@pass_ctx
def archive(ctx: AppContext, habit: str):
    """Archive or unarchive a habit."""

    updated = ctx.manager.archive_habit(_resolve_habit_id(ctx, habit))
    click.echo(f"{updated.name} {'archived' if updated.archived else 'restored'}")


@main.command("delete")
@click.argument("habit")
@click.confirmation_option(prompt="Delete this habit and all of its history?")
@pass_ctx
def delete(ctx: AppContext, habit: str):
    """Delete a habit and its completions."""

    ctx.manager.delete_habit(_resolve_habit_id(ctx, habit))
    click.echo("Deleted")


@main.command("stats")
@click.argument("habit", required=False)
@pass_ctx
def stats(ctx: AppContext, habit: str | None):
    """Per-habit statistics, or an overview with rankings."""

    manager = ctx.manager
    if habit:
        s = manager.habit_stats(_resolve_habit_id(ctx, habit))
        click.echo(f"Current streak:   {s.current_streak}")
        click.echo(f"Longest streak:   {s.longest_streak}")
        click.echo(f"Total completions:{s.total_completions:>4}")
        click.echo(f"30-day rate:      {s.completion_rate}%")
        return

    overall = analytics.overall_stats(manager.active_habits, manager.ledger)
    click.echo(f"Average completion rate: {overall.average_completion_rate}%")
    click.echo(f"Total completions:       {overall.total_completions}")
    click.echo(f"Best streak:             {overall.best_streak}")
    click.echo(f"Best current streak:     {overall.best_current_streak}")
    for rank, (h, s) in enumerate(analytics.habit_rankings(manager.active_habits, manager.ledger), 1):
        click.echo(f"{rank:>2}. {h.name:<30} {s.completion_rate:>3}%  streak {s.current_streak}")


@main.command("week")
@click.option("--days", "num_days", default=7, show_default=True, type=click.IntRange(1, 366))
@pass_ctx
def week(ctx: AppContext, num_days: int):
    """Day-by-day completion for the recent past."""

    series = analytics.day_bucket_series(ctx.manager.active_habits, ctx.manager.ledger, num_days)
    for d in series:
        bar = "#" * (d.percentage // 10)
        click.echo(f"{d.date.isoformat()} {d.completed_count}/{d.total_count} {d.percentage:>3}% {bar}")


_HEAT_GLYPHS = " .:-=#"


@main.command("heatmap")
@pass_ctx
def heatmap(ctx: AppContext):
    """Five-week activity grid, one row per week, oldest first."""

    cells = analytics.heatmap(ctx.manager.active_habits, ctx.manager.ledger)
    for start in range(0, len(cells), 7):
        row = cells[start:start + 7]
        glyphs = " ".join(_HEAT_GLYPHS[c.level] for c in row)
        click.echo(f"{row[0].date.isoformat()}  {glyphs}")


@main.command("chart")
@click.argument("output", type=click.Path(dir_okay=False, path_type=Path))
@click.option("--kind", type=click.Choice(["week", "month"]), default="week", show_default=True)
@pass_ctx
def chart(ctx: AppContext, output: Path, kind: str):
    """Render the week or month chart to a PNG file."""

    series = ctx.manager.week_data() if kind == "week" else ctx.manager.month_data()
    path = reports.export_progress_png(series=series, output_path=output, kind=kind)
    click.echo(f"Chart written: {path}")


@main.command("export")
@click.option("--output", type=click.Path(dir_okay=False, path_type=Path), default=None)
@pass_ctx
def export(ctx: AppContext, output: Path | None):
    """Export habits and completions to JSON."""

    if output is None:
        path = export_json.export_snapshot_json(
            ctx.manager,
            output_dir=ctx.config.export_dir,
            retention=ctx.config.EXPORT_RETENTION,
        )
    else:
        path = export_json.export_snapshot_json(ctx.manager, output_path=output)
    click.echo(f"Export written: {path}")


@main.command("import")
@click.argument("source", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.confirmation_option(prompt="Replace all habits and completions with this file?")
@pass_ctx
def import_(ctx: AppContext, source: Path):
    """Replace all data with an exported JSON file."""

    if not export_json.import_snapshot_file(ctx.manager, source):
        raise click.ClickException("Import failed. Check file format.")
    click.echo("Data imported successfully!")


@main.command("clear")
@click.confirmation_option(prompt="Delete all habits and completions? This cannot be undone.")
@pass_ctx
def clear(ctx: AppContext):
    """Delete every habit and completion."""

    ctx.manager.clear_all()
    click.echo("All data cleared")


@main.group("sync")
def sync() -> None:
    """Cloud backup using a shareable sync code."""


@sync.command("enable")
@pass_ctx
def sync_enable(ctx: AppContext):
    code = ctx.sync_service.enable(ctx.manager.habits, ctx.manager.completions)
    if code is None:
        raise click.ClickException(ctx.sync_service.last_error or "Failed to enable sync")
    click.echo(f"Sync enabled. Your code: {code}")


@sync.command("backup")
@pass_ctx
def sync_backup(ctx: AppContext):
    if not ctx.sync_service.backup(ctx.manager.habits, ctx.manager.completions):
        raise click.ClickException(ctx.sync_service.last_error or "Backup failed")
    click.echo("Backup complete")


@sync.command("restore")
@click.argument("code")
@click.confirmation_option(prompt="Replace local data with the cloud backup?")
@pass_ctx
def sync_restore(ctx: AppContext, code: str):
    if not restore_into(ctx.manager, ctx.sync_service, code):
        raise click.ClickException(ctx.sync_service.last_error or "Restore failed")
    click.echo(
        f"Restored {len(ctx.manager.habits)} habits and {len(ctx.manager.completions)} completions"
    )


@sync.command("status")
@pass_ctx
def sync_status(ctx: AppContext):
    service = ctx.sync_service
    if not service.is_connected:
        click.echo("Sync not enabled")
        return
    click.echo(f"Sync code:   {service.sync_code}")
    last = service.last_synced_at
    click.echo(f"Last synced: {last.isoformat() if last else 'never'}")


@sync.command("disconnect")
@pass_ctx
def sync_disconnect(ctx: AppContext):
    ctx.sync_service.disconnect()
    click.echo("Disconnected. Cloud data was kept.")


if __name__ == "__main__":  # pragma: no cover
    main()
