"""Streak calculations over the completion ledger."""

from __future__ import annotations

from datetime import date, timedelta

from ..models.habit import Habit
from .ledger import CompletionLedger
from .schedule import is_due

# Never look further back than this many days when walking a current streak.
STREAK_HORIZON_DAYS = 365


def current_streak(habit: Habit, ledger: CompletionLedger, *, today: date | None = None) -> int:
    """Count consecutive scheduled days completed, ending today or yesterday.

    An uncompleted today does not break the streak; counting starts from
    yesterday instead. Days the habit is not scheduled on are skipped.
    """

    today = today or date.today()
    cursor = today
    if not ledger.is_completed(habit.id, cursor):
        cursor -= timedelta(days=1)

    streak = 0
    while (today - cursor).days <= STREAK_HORIZON_DAYS:
        if not is_due(habit, cursor):
            cursor -= timedelta(days=1)
            continue
        if not ledger.is_completed(habit.id, cursor):
            break
        streak += 1
        cursor -= timedelta(days=1)
    return streak


def longest_streak(habit: Habit, ledger: CompletionLedger) -> int:
    """Longest run of completions on adjacent calendar days.

    The schedule is not consulted here, so a weekdays-only habit's run ends at
    every weekend. ``current_streak`` skips unscheduled days; the two numbers
    can therefore disagree for non-daily habits.
    """

    days = ledger.dates_for(habit.id)
    if not days:
        return 0

    longest = 1
    run = 1
    for previous, current in zip(days, days[1:]):
        gap = (current - previous).days
        if gap == 1:
            run += 1
            longest = max(longest, run)
        elif gap > 1:
            run = 1
    return longest


def compute_streaks(
    habit: Habit, ledger: CompletionLedger, *, today: date | None = None
) -> tuple[int, int]:
    """Return (current_streak, longest_streak) for ``habit``."""

    return current_streak(habit, ledger, today=today), longest_streak(habit, ledger)


__all__ = ["STREAK_HORIZON_DAYS", "compute_streaks", "current_streak", "longest_streak"]
