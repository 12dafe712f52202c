"""Aggregate statistics for dashboards, charts and heatmaps.

Everything here is recomputed from the habit list and the completion ledger on
each call; nothing is cached on the habits themselves.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, timedelta
from typing import Iterable, Sequence

from ..models.habit import DayData, Habit, HabitStats
from .ledger import CompletionLedger
from .schedule import due_habits, is_due
from .streaks import current_streak, longest_streak

COMPLETION_WINDOW_DAYS = 30
WEEK_DAYS = 7
MONTH_DAYS = 30
HEATMAP_DAYS = 35

# Upper bounds (exclusive) for heatmap intensity levels 1-4; 100% is level 5.
_HEATMAP_THRESHOLDS = (25, 50, 75, 100)


def percent(numerator: int, denominator: int) -> int:
    """Integer percentage rounded half up; 0 when the denominator is 0."""

    if denominator <= 0:
        return 0
    return (200 * numerator + denominator) // (2 * denominator)


def completion_rate(habit: Habit, ledger: CompletionLedger, *, today: date | None = None) -> int:
    """Share of scheduled days in the trailing 30-day window that were completed."""

    today = today or date.today()
    window = [today - timedelta(days=offset) for offset in range(COMPLETION_WINDOW_DAYS)]
    scheduled = sum(1 for day in window if is_due(habit, day))
    if scheduled == 0:
        return 0
    completed = sum(
        1
        for day in ledger.dates_for(habit.id)
        if 0 <= (today - day).days < COMPLETION_WINDOW_DAYS
    )
    # Completions on unscheduled days still count toward the numerator.
    return min(percent(completed, scheduled), 100)


def habit_stats(habit: Habit, ledger: CompletionLedger, *, today: date | None = None) -> HabitStats:
    today = today or date.today()
    return HabitStats(
        habit_id=habit.id,
        current_streak=current_streak(habit, ledger, today=today),
        longest_streak=longest_streak(habit, ledger),
        total_completions=ledger.count_for(habit.id),
        completion_rate=completion_rate(habit, ledger, today=today),
    )


def day_data(habits: Iterable[Habit], ledger: CompletionLedger, day: date) -> DayData:
    """Completion totals for the habits scheduled on ``day``."""

    scheduled = [h for h in habits if is_due(h, day)]
    completed = sum(1 for h in scheduled if ledger.is_completed(h.id, day))
    return DayData(
        date=day,
        completed_count=completed,
        total_count=len(scheduled),
        percentage=percent(completed, len(scheduled)),
    )


def day_bucket_series(
    active_habits: Sequence[Habit],
    ledger: CompletionLedger,
    num_days: int,
    *,
    today: date | None = None,
) -> list[DayData]:
    """One bucket per day for the last ``num_days`` days, oldest first, ending today."""

    today = today or date.today()
    return [
        day_data(active_habits, ledger, today - timedelta(days=offset))
        for offset in range(num_days - 1, -1, -1)
    ]


def week_series(
    active_habits: Sequence[Habit], ledger: CompletionLedger, *, today: date | None = None
) -> list[DayData]:
    return day_bucket_series(active_habits, ledger, WEEK_DAYS, today=today)


def month_series(
    active_habits: Sequence[Habit], ledger: CompletionLedger, *, today: date | None = None
) -> list[DayData]:
    return day_bucket_series(active_habits, ledger, MONTH_DAYS, today=today)


def today_completed_count(
    today_habits: Sequence[Habit], ledger: CompletionLedger, *, today: date | None = None
) -> int:
    today = today or date.today()
    return sum(1 for h in today_habits if ledger.is_completed(h.id, today))


def today_progress(
    today_habits: Sequence[Habit], ledger: CompletionLedger, *, today: date | None = None
) -> int:
    """Percentage of today's due habits already completed."""

    return percent(today_completed_count(today_habits, ledger, today=today), len(today_habits))


@dataclass(frozen=True)
class OverallStats:
    average_completion_rate: int
    total_completions: int
    best_streak: int
    best_current_streak: int


def overall_stats(
    active_habits: Sequence[Habit], ledger: CompletionLedger, *, today: date | None = None
) -> OverallStats:
    """Summary across all active habits."""

    stats = [habit_stats(h, ledger, today=today) for h in active_habits]
    if not stats:
        return OverallStats(0, 0, 0, 0)
    rate_sum = sum(s.completion_rate for s in stats)
    return OverallStats(
        average_completion_rate=percent(rate_sum, 100 * len(stats)),
        total_completions=sum(s.total_completions for s in stats),
        best_streak=max(s.longest_streak for s in stats),
        best_current_streak=max(s.current_streak for s in stats),
    )


def habit_rankings(
    active_habits: Sequence[Habit], ledger: CompletionLedger, *, today: date | None = None
) -> list[tuple[Habit, HabitStats]]:
    """Habits paired with their stats, highest completion rate first."""

    ranked = [(h, habit_stats(h, ledger, today=today)) for h in active_habits]
    ranked.sort(key=lambda pair: pair[1].completion_rate, reverse=True)
    return ranked


def heatmap_level(percentage: int) -> int:
    """Map a day's percentage to an intensity level 0-5."""

    if percentage <= 0:
        return 0
    for level, upper in enumerate(_HEATMAP_THRESHOLDS, start=1):
        if percentage < upper:
            return level
    return 5


@dataclass(frozen=True)
class HeatmapCell:
    date: date
    percentage: int
    level: int


def heatmap(
    active_habits: Sequence[Habit],
    ledger: CompletionLedger,
    *,
    num_days: int = HEATMAP_DAYS,
    today: date | None = None,
) -> list[HeatmapCell]:
    """Per-day cells for the heatmap grid, oldest first."""

    return [
        HeatmapCell(date=d.date, percentage=d.percentage, level=heatmap_level(d.percentage))
        for d in day_bucket_series(active_habits, ledger, num_days, today=today)
    ]


def today_habits(habits: Iterable[Habit], *, today: date | None = None) -> list[Habit]:
    return due_habits(habits, today or date.today())


__all__ = [
    "COMPLETION_WINDOW_DAYS",
    "HeatmapCell",
    "OverallStats",
    "completion_rate",
    "day_bucket_series",
    "day_data",
    "habit_rankings",
    "habit_stats",
    "heatmap",
    "heatmap_level",
    "month_series",
    "overall_stats",
    "percent",
    "today_completed_count",
    "today_habits",
    "today_progress",
    "week_series",
]
