"""Completion ledger keyed by (habit id, calendar day)."""

from __future__ import annotations

from datetime import date, datetime
from typing import Iterable, Iterator, Optional

from ..logging_config import get_logger
from ..models.habit import HabitCompletion, utcnow

logger = get_logger(__name__)


class CompletionLedger:
    """In-memory completion log with at most one record per (habit, day)."""

    def __init__(self, completions: Iterable[HabitCompletion] = ()):
        self._records: dict[tuple[str, date], HabitCompletion] = {}
        for completion in completions:
            if completion.key in self._records:
                logger.debug(
                    "Dropping duplicate completion",
                    extra={"habit_id": completion.habit_id, "day": completion.date.isoformat()},
                )
                continue
            self._records[completion.key] = completion

    def __len__(self) -> int:
        return len(self._records)

    def __iter__(self) -> Iterator[HabitCompletion]:
        return iter(self._records.values())

    def copy(self) -> "CompletionLedger":
        return CompletionLedger(self._records.values())

    def records(self) -> list[HabitCompletion]:
        """All completions in insertion order."""
        return list(self._records.values())

    def is_completed(self, habit_id: str, day: date) -> bool:
        return (habit_id, day) in self._records

    def get(self, habit_id: str, day: date) -> Optional[HabitCompletion]:
        return self._records.get((habit_id, day))

    def toggle(self, habit_id: str, day: date, *, now: datetime | None = None) -> bool:
        """Flip completion for the pair and return the new state."""

        key = (habit_id, day)
        if key in self._records:
            del self._records[key]
            return False
        self._records[key] = HabitCompletion(
            habit_id=habit_id, date=day, completed_at=now or utcnow()
        )
        return True

    def dates_for(self, habit_id: str) -> list[date]:
        """Completion days for one habit, ascending."""
        return sorted(day for hid, day in self._records if hid == habit_id)

    def count_for(self, habit_id: str) -> int:
        return sum(1 for hid, _ in self._records if hid == habit_id)

    def remove_habit(self, habit_id: str) -> int:
        """Drop every completion for ``habit_id``; return how many were removed."""

        doomed = [key for key in self._records if key[0] == habit_id]
        for key in doomed:
            del self._records[key]
        return len(doomed)


__all__ = ["CompletionLedger"]
