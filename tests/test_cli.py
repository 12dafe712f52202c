"""End-to-end tests for the click command line."""

from __future__ import annotations

import json
import logging
import re

import pytest
from click.testing import CliRunner

from habitsage.cli import main


@pytest.fixture
def run(monkeypatch):
    monkeypatch.setenv("HABITSAGE_DEV_MODE", "false")
    runner = CliRunner()

    def _invoke(*args, input=None):
        return runner.invoke(main, list(args), input=input, catch_exceptions=False)

    yield _invoke
    root = logging.getLogger("habitsage")
    for handler in list(root.handlers):
        root.removeHandler(handler)
        handler.close()


def test_add_and_list(run):
    result = run("add", "Read", "--category", "learning")
    assert result.exit_code == 0
    assert "Added Read" in result.output

    listing = run("list")
    assert "Read" in listing.output
    assert "Today: 0% complete" in listing.output


def test_list_when_empty(run):
    assert "No habits yet" in run("list").output


def test_add_requires_name_or_template(run):
    result = run("add")
    assert result.exit_code == 2


def test_add_from_template(run):
    result = run("add", "--template", "Deep work session")
    assert result.exit_code == 0

    assert "Deep work session" in run("list", "--date", "2024-01-08").output


def test_add_unknown_template(run):
    result = run("add", "--template", "Juggle")
    assert result.exit_code == 1
    assert "Unknown template" in result.output


def test_add_custom_days(run):
    assert run("add", "Gym", "--days", "mon,wed,fri").exit_code == 0

    monday = run("list", "--date", "2024-01-08").output
    tuesday = run("list", "--date", "2024-01-09").output
    assert re.search(r"Gym\s+due", monday)
    assert not re.search(r"Gym\s+due", tuesday)


@pytest.mark.parametrize("days", ["funday", "8"])
def test_add_rejects_bad_days(run, days):
    result = run("add", "Gym", "--days", days)
    assert result.exit_code == 2


def test_toggle_and_stats(run):
    run("add", "Read")

    assert "Completed" in run("toggle", "read", "--date", "2024-01-08").output
    run("toggle", "Read", "--date", "2024-01-07")

    listing = run("list", "--date", "2024-01-08").output
    assert re.search(r"\[x\] \S+ Read\s+due streak\s+2", listing)

    stats = run("stats", "Read").output
    assert "Longest streak:   2" in stats
    assert "Total completions:   2" in stats

    assert "Unmarked" in run("toggle", "Read", "--date", "2024-01-08").output


def test_edit_habit(run, tmp_path):
    run("add", "Read", "--reminder", "07:30")

    result = run(
        "edit", "Read", "--name", "Read more", "--schedule", "weekdays", "--icon", "bookopen",
        "--no-reminder",
    )
    assert result.exit_code == 0
    assert "Updated Read more" in result.output

    assert re.search(r"Read more\s+due", run("list", "--date", "2024-01-08").output)
    assert not re.search(r"Read more\s+due", run("list", "--date", "2024-01-13").output)

    out = tmp_path / "edited.json"
    run("export", "--output", str(out))
    habit = json.loads(out.read_text())["habits"][0]
    assert habit["icon"] == "BookOpen"
    assert habit["schedule"] == "weekdays"
    assert habit["reminderEnabled"] is False
    assert "reminderTime" not in habit


def test_edit_rejects_empty_and_invalid_changes(run):
    run("add", "Read")

    assert run("edit", "Read").exit_code == 2

    blank = run("edit", "Read", "--name", "  ")
    assert blank.exit_code == 1
    assert "Invalid habit" in blank.output
    assert "Read" in run("list").output

    assert run("edit", "Nothing", "--name", "X").exit_code == 1


def test_toggle_unknown_habit(run):
    result = run("toggle", "Nothing")
    assert result.exit_code == 1
    assert "No habit matches" in result.output


def test_archive_hides_from_list(run):
    run("add", "Read")
    assert "archived" in run("archive", "Read").output

    assert "No habits yet" in run("list").output
    assert "[archived]" in run("list", "--all").output
    assert "restored" in run("archive", "Read").output


def test_delete_requires_confirmation(run):
    run("add", "Read")

    aborted = run("delete", "Read", input="n\n")
    assert aborted.exit_code == 1
    assert "Read" in run("list").output

    assert run("delete", "Read", "--yes").exit_code == 0
    assert "No habits yet" in run("list").output


def test_overview_stats_and_week(run):
    run("add", "Read")
    run("add", "Walk")

    overview = run("stats").output
    assert "Average completion rate: 0%" in overview
    assert " 1. " in overview

    week = run("week", "--days", "3").output.strip().splitlines()
    assert len([line for line in week if re.match(r"\d{4}-\d{2}-\d{2} ", line)]) == 3


def test_heatmap_prints_five_weeks(run):
    run("add", "Read")
    run("toggle", "Read")

    rows = [
        line for line in run("heatmap").output.splitlines()
        if re.match(r"\d{4}-\d{2}-\d{2}  ", line)
    ]

    assert len(rows) == 5
    assert rows[-1].endswith("#")


def test_export_then_import(run, tmp_path):
    run("add", "Read")
    out = tmp_path / "backup.json"

    assert run("export", "--output", str(out)).exit_code == 0
    assert json.loads(out.read_text())["habits"][0]["name"] == "Read"

    run("clear", "--yes")
    assert "No habits yet" in run("list").output

    result = run("import", str(out), "--yes")
    assert "Data imported successfully!" in result.output
    assert "Read" in run("list").output


def test_export_to_default_directory(run, tmp_path):
    result = run("export")

    assert result.exit_code == 0
    assert list((tmp_path / "instance" / "exports").glob("habitsage-backup-*.json"))


def test_import_invalid_file(run, tmp_path):
    bad = tmp_path / "bad.json"
    bad.write_text('{"habits": "nope"}', encoding="utf-8")

    result = run("import", str(bad), "--yes")

    assert result.exit_code == 1
    assert "Import failed" in result.output


def test_chart(run, tmp_path):
    run("add", "Read")
    target = tmp_path / "week.png"

    assert run("chart", str(target), "--kind", "week").exit_code == 0
    assert target.read_bytes()[:4] == b"\x89PNG"


def test_templates(run):
    output = run("templates").output
    assert "Drink 8 glasses of water" in output
    assert "weekends" in output


def test_sync_flow(run):
    run("add", "Read")
    assert "Sync not enabled" in run("sync", "status").output

    enabled = run("sync", "enable").output
    code = re.search(r"Your code: (\S+)", enabled).group(1)

    assert code in run("sync", "status").output
    assert "Backup complete" in run("sync", "backup").output

    run("clear", "--yes")
    restored = run("sync", "restore", code.lower(), "--yes").output
    assert "Restored 1 habits" in restored

    assert "Disconnected" in run("sync", "disconnect").output
    assert "Sync not enabled" in run("sync", "status").output


def test_sync_backup_without_enable(run):
    result = run("sync", "backup")
    assert result.exit_code == 1
    assert "enable sync" in result.output


def test_data_dir_option(run, tmp_path):
    other = tmp_path / "elsewhere"

    run("--data-dir", str(other), "add", "Read")

    assert (other / "habitsage.db").exists()
