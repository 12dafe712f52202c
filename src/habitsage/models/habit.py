"""Habit and completion data structures.

Habits and completions are plain value objects. They are persisted as two JSON
collections (see ``services.snapshot``) rather than as relational rows, so the
wire helpers here define the on-disk and export shape as well.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime, timezone
from enum import Enum
from typing import Any, FrozenSet, Iterable, Optional


class HabitDataError(ValueError):
    """Raised when a habit or completion payload cannot be decoded."""


class HabitCategory(str, Enum):
    HEALTH = "health"
    PRODUCTIVITY = "productivity"
    MINDFULNESS = "mindfulness"
    FITNESS = "fitness"
    LEARNING = "learning"
    SOCIAL = "social"
    CUSTOM = "custom"


class ScheduleKind(str, Enum):
    DAILY = "daily"
    WEEKDAYS = "weekdays"
    WEEKENDS = "weekends"
    CUSTOM = "custom"


@dataclass(frozen=True)
class Schedule:
    """When a habit is due.

    Only ``CUSTOM`` carries a payload: the weekday indices (0=Sunday .. 6=Saturday)
    the habit is due on. ``CUSTOM`` with ``days=None`` means no day set was ever
    recorded; the evaluator treats that case as due every day.
    """

    kind: ScheduleKind = ScheduleKind.DAILY
    days: Optional[FrozenSet[int]] = None

    def __post_init__(self) -> None:
        if self.kind is not ScheduleKind.CUSTOM and self.days is not None:
            raise HabitDataError(f"{self.kind.value} schedules do not take a day set")
        if self.days is not None:
            if any(isinstance(d, bool) or not isinstance(d, int) for d in self.days):
                raise HabitDataError(f"Weekday indices must be integers, got {self.days!r}")
            days = frozenset(self.days)
            if any(d < 0 or d > 6 for d in days):
                raise HabitDataError(f"Weekday indices must be 0-6, got {sorted(days)}")
            object.__setattr__(self, "days", days)

    @classmethod
    def daily(cls) -> "Schedule":
        return cls(ScheduleKind.DAILY)

    @classmethod
    def weekdays(cls) -> "Schedule":
        return cls(ScheduleKind.WEEKDAYS)

    @classmethod
    def weekends(cls) -> "Schedule":
        return cls(ScheduleKind.WEEKENDS)

    @classmethod
    def custom(cls, days: Optional[Iterable[int]] = None) -> "Schedule":
        return cls(ScheduleKind.CUSTOM, None if days is None else frozenset(days))


def coerce_schedule(value: Any) -> Schedule:
    """Accept a ``Schedule`` or a wire kind such as ``"weekdays"``."""

    if isinstance(value, Schedule):
        return value
    if isinstance(value, (ScheduleKind, str)):
        try:
            return Schedule(ScheduleKind(value))
        except ValueError as exc:
            raise HabitDataError(f"Unknown schedule {value!r}") from exc
    raise HabitDataError(f"Expected a schedule, got {type(value).__name__}")


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def format_timestamp(value: datetime) -> str:
    return value.isoformat()


def parse_timestamp(value: Any) -> datetime:
    """Parse ISO-8601 timestamps, including the ``Z`` suffix browsers emit."""

    if isinstance(value, datetime):
        return value
    if not isinstance(value, str):
        raise HabitDataError(f"Expected ISO timestamp string, got {type(value).__name__}")
    text = value.strip()
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    try:
        return datetime.fromisoformat(text)
    except ValueError as exc:
        raise HabitDataError(f"Invalid timestamp: {value!r}") from exc


def parse_day(value: Any) -> date:
    """Parse a ``YYYY-MM-DD`` calendar day."""

    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if not isinstance(value, str):
        raise HabitDataError(f"Expected YYYY-MM-DD string, got {type(value).__name__}")
    try:
        return date.fromisoformat(value.strip()[:10])
    except ValueError as exc:
        raise HabitDataError(f"Invalid date: {value!r}") from exc


@dataclass
class Habit:
    """A user-defined habit tracked per calendar day."""

    id: str
    name: str
    category: HabitCategory = HabitCategory.CUSTOM
    schedule: Schedule = field(default_factory=Schedule.daily)
    color: str = ""
    icon: str = "Target"
    description: Optional[str] = None
    reminder_enabled: bool = False
    reminder_time: Optional[str] = None  # HH:mm, stored only
    archived: bool = False
    order: int = 0
    created_at: datetime = field(default_factory=utcnow)

    def __post_init__(self) -> None:
        if not isinstance(self.name, str) or not self.name.strip():
            raise HabitDataError("Habit name must be a non-empty string")
        try:
            self.category = HabitCategory(self.category)
        except ValueError as exc:
            raise HabitDataError(f"Unknown category {self.category!r}") from exc
        self.schedule = coerce_schedule(self.schedule)
        if not isinstance(self.order, int) or isinstance(self.order, bool):
            raise HabitDataError("Habit order must be an integer")
        if not self.color:
            from ..constants.catalog import category_color

            self.color = category_color(self.category)

    def to_dict(self) -> dict[str, Any]:
        payload: dict[str, Any] = {
            "id": self.id,
            "name": self.name,
            "category": self.category.value,
            "color": self.color,
            "icon": self.icon,
            "schedule": self.schedule.kind.value,
            "reminderEnabled": self.reminder_enabled,
            "createdAt": format_timestamp(self.created_at),
            "archived": self.archived,
            "order": self.order,
        }
        if self.description is not None:
            payload["description"] = self.description
        if self.schedule.days is not None:
            payload["customDays"] = sorted(self.schedule.days)
        if self.reminder_time is not None:
            payload["reminderTime"] = self.reminder_time
        return payload

    @classmethod
    def from_dict(cls, payload: Any) -> "Habit":
        if not isinstance(payload, dict):
            raise HabitDataError(f"Habit entry must be an object, got {type(payload).__name__}")
        try:
            habit_id = payload["id"]
            name = payload["name"]
        except KeyError as exc:
            raise HabitDataError(f"Habit entry is missing {exc.args[0]!r}") from exc
        if not isinstance(habit_id, str) or not habit_id:
            raise HabitDataError("Habit id must be a non-empty string")

        try:
            kind = ScheduleKind(payload.get("schedule", ScheduleKind.DAILY.value))
            category = HabitCategory(payload.get("category", HabitCategory.CUSTOM.value))
        except ValueError as exc:
            raise HabitDataError(str(exc)) from exc

        custom_days = payload.get("customDays")
        if kind is ScheduleKind.CUSTOM and custom_days is not None:
            if not isinstance(custom_days, (list, tuple)):
                raise HabitDataError("customDays must be a list of weekday indices")
            try:
                schedule = Schedule.custom(custom_days)
            except TypeError as exc:
                raise HabitDataError(f"Invalid customDays: {custom_days!r}") from exc
        else:
            # Non-custom schedules ignore any stale customDays left behind by an edit.
            schedule = Schedule(kind)

        created_raw = payload.get("createdAt")
        order = payload.get("order", 0)
        if not isinstance(order, int) or isinstance(order, bool):
            raise HabitDataError("Habit order must be an integer")

        return cls(
            id=habit_id,
            name=name,
            category=category,
            schedule=schedule,
            color=payload.get("color") or "",
            icon=payload.get("icon") or "Target",
            description=payload.get("description"),
            reminder_enabled=bool(payload.get("reminderEnabled", False)),
            reminder_time=payload.get("reminderTime"),
            archived=bool(payload.get("archived", False)),
            order=order,
            created_at=parse_timestamp(created_raw) if created_raw is not None else utcnow(),
        )


@dataclass(frozen=True)
class HabitCompletion:
    """A habit marked done on one calendar day."""

    habit_id: str
    date: date
    completed_at: datetime = field(default_factory=utcnow)

    @property
    def key(self) -> tuple[str, date]:
        return (self.habit_id, self.date)

    def to_dict(self) -> dict[str, Any]:
        return {
            "habitId": self.habit_id,
            "date": self.date.isoformat(),
            "completedAt": format_timestamp(self.completed_at),
        }

    @classmethod
    def from_dict(cls, payload: Any) -> "HabitCompletion":
        if not isinstance(payload, dict):
            raise HabitDataError(
                f"Completion entry must be an object, got {type(payload).__name__}"
            )
        habit_id = payload.get("habitId")
        if not isinstance(habit_id, str) or not habit_id:
            raise HabitDataError("Completion habitId must be a non-empty string")
        if "date" not in payload:
            raise HabitDataError("Completion entry is missing 'date'")
        completed_raw = payload.get("completedAt")
        return cls(
            habit_id=habit_id,
            date=parse_day(payload["date"]),
            completed_at=parse_timestamp(completed_raw) if completed_raw is not None else utcnow(),
        )


@dataclass(frozen=True)
class HabitStats:
    habit_id: str
    current_streak: int
    longest_streak: int
    total_completions: int
    completion_rate: int


@dataclass(frozen=True)
class DayData:
    """Completion totals for one calendar day across the habits due on it."""

    date: date
    completed_count: int
    total_count: int
    percentage: int


__all__ = [
    "DayData",
    "Habit",
    "HabitCategory",
    "HabitCompletion",
    "HabitDataError",
    "HabitStats",
    "Schedule",
    "ScheduleKind",
    "coerce_schedule",
    "parse_day",
    "parse_timestamp",
    "utcnow",
]
