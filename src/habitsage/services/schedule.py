"""Schedule evaluation: is a habit due on a calendar day."""

from __future__ import annotations

from datetime import date
from typing import Iterable

from ..models.habit import Habit, Schedule, ScheduleKind

WEEKDAYS = frozenset({1, 2, 3, 4, 5})
WEEKEND_DAYS = frozenset({0, 6})


def weekday_index(day: date) -> int:
    """Return the weekday with Sunday as 0 and Saturday as 6."""
    return day.isoweekday() % 7


def schedule_includes(schedule: Schedule, day: date) -> bool:
    dow = weekday_index(day)
    if schedule.kind is ScheduleKind.DAILY:
        return True
    if schedule.kind is ScheduleKind.WEEKDAYS:
        return dow in WEEKDAYS
    if schedule.kind is ScheduleKind.WEEKENDS:
        return dow in WEEKEND_DAYS
    # Custom habits without a recorded day set count as due every day.
    if schedule.days is None:
        return True
    return dow in schedule.days


def is_due(habit: Habit, day: date) -> bool:
    """Return True when ``habit`` is scheduled on ``day``."""
    return schedule_includes(habit.schedule, day)


def active_habits(habits: Iterable[Habit]) -> list[Habit]:
    """Non-archived habits in display order (ties keep insertion order)."""
    return sorted((h for h in habits if not h.archived), key=lambda h: h.order)


def due_habits(habits: Iterable[Habit], day: date) -> list[Habit]:
    """Active habits due on ``day``."""
    return [h for h in active_habits(habits) if is_due(h, day)]


__all__ = [
    "active_habits",
    "due_habits",
    "is_due",
    "schedule_includes",
    "weekday_index",
]
