"""Model exports."""

from .habit import (
    DayData,
    Habit,
    HabitCategory,
    HabitCompletion,
    HabitDataError,
    HabitStats,
    Schedule,
    ScheduleKind,
)
from .slot import StorageSlot
from .sync import SyncData

__all__ = [
    "DayData",
    "Habit",
    "HabitCategory",
    "HabitCompletion",
    "HabitDataError",
    "HabitStats",
    "Schedule",
    "ScheduleKind",
    "StorageSlot",
    "SyncData",
]
