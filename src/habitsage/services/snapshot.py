"""Habit snapshot manager.

Owns the ``(habits, completions)`` pair, applies mutations to it and writes
both collections back to the slot store after every change. Derived numbers
(streaks, rates, series) are always computed on demand from the two
collections via ``services.analytics``.
"""

from __future__ import annotations

import json
import uuid
from dataclasses import fields, replace
from datetime import date, datetime
from typing import Any, Callable, Optional, Sequence

from ..config import BaseConfig
from ..domain.repositories.slots import SlotStore
from ..logging_config import get_logger
from ..models.habit import (
    DayData,
    Habit,
    HabitCompletion,
    HabitDataError,
    HabitStats,
    utcnow,
)
from . import analytics
from .ledger import CompletionLedger
from .schedule import active_habits, due_habits

logger = get_logger(__name__)

# Fields callers may never overwrite through update_habit.
_IMMUTABLE_FIELDS = frozenset({"id", "created_at"})
_HABIT_FIELDS = frozenset(f.name for f in fields(Habit))


def _is_sequence(value: Any) -> bool:
    return isinstance(value, (list, tuple))


def decode_habits(payload: Any) -> list[Habit]:
    """Decode a wire-format habit list, rejecting duplicate ids."""

    if not _is_sequence(payload):
        raise HabitDataError("habits must be a list")
    habits = [item if isinstance(item, Habit) else Habit.from_dict(item) for item in payload]
    seen: set[str] = set()
    for habit in habits:
        if habit.id in seen:
            raise HabitDataError(f"Duplicate habit id {habit.id!r}")
        seen.add(habit.id)
    return habits


def decode_completions(payload: Any) -> list[HabitCompletion]:
    if not _is_sequence(payload):
        raise HabitDataError("completions must be a list")
    return [
        item if isinstance(item, HabitCompletion) else HabitCompletion.from_dict(item)
        for item in payload
    ]


class HabitSnapshotManager:
    """Single-writer owner of the habit and completion collections."""

    def __init__(
        self,
        store: SlotStore,
        *,
        habits_key: str = BaseConfig.HABITS_SLOT,
        completions_key: str = BaseConfig.COMPLETIONS_SLOT,
        clock: Callable[[], datetime] = utcnow,
        today_provider: Callable[[], date] = date.today,
    ):
        self.store = store
        self.habits_key = habits_key
        self.completions_key = completions_key
        self._clock = clock
        self._today = today_provider
        self._habits: list[Habit] = []
        self._ledger = CompletionLedger()

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------
    def load(self) -> "HabitSnapshotManager":
        """Read both slots; unreadable slots become empty collections."""

        self._habits = self._load_slot(self.habits_key, decode_habits)
        self._ledger = CompletionLedger(self._load_slot(self.completions_key, decode_completions))
        logger.info(
            "Loaded habit snapshot",
            extra={"habits": len(self._habits), "completions": len(self._ledger)},
        )
        return self

    def _load_slot(self, key: str, decoder: Callable[[Any], list]) -> list:
        raw = self.store.read(key)
        if raw is None:
            return []
        try:
            return decoder(json.loads(raw))
        except (json.JSONDecodeError, HabitDataError) as exc:
            logger.warning("Stored slot %s is unreadable; starting empty (%s)", key, exc)
            return []

    def save(self) -> None:
        """Overwrite both slots with the current collections."""

        self._commit(self._habits, self._ledger)

    def _commit(self, habits: list[Habit], ledger: CompletionLedger) -> None:
        """Write both collections in one store call, then adopt them in memory.

        A store failure propagates with the previous in-memory state intact.
        """

        self.store.write_many(
            {
                self.habits_key: json.dumps([h.to_dict() for h in habits]),
                self.completions_key: json.dumps([c.to_dict() for c in ledger]),
            }
        )
        self._habits = habits
        self._ledger = ledger

    # ------------------------------------------------------------------
    # Read views
    # ------------------------------------------------------------------
    @property
    def habits(self) -> list[Habit]:
        return list(self._habits)

    @property
    def completions(self) -> list[HabitCompletion]:
        return self._ledger.records()

    @property
    def ledger(self) -> CompletionLedger:
        return self._ledger

    @property
    def active_habits(self) -> list[Habit]:
        return active_habits(self._habits)

    @property
    def archived_habits(self) -> list[Habit]:
        return [h for h in self._habits if h.archived]

    def today_habits(self, today: date | None = None) -> list[Habit]:
        return due_habits(self._habits, today or self._today())

    def get_habit(self, habit_id: str) -> Optional[Habit]:
        for habit in self._habits:
            if habit.id == habit_id:
                return habit
        return None

    def is_completed(self, habit_id: str, day: date | None = None) -> bool:
        return self._ledger.is_completed(habit_id, day or self._today())

    # ------------------------------------------------------------------
    # Mutations
    # ------------------------------------------------------------------
    def add_habit(self, **data: Any) -> Optional[Habit]:
        """Create a habit with a fresh id, appended after existing habits.

        Returns None, leaving the snapshot unchanged, when ``data`` does not
        describe a valid habit.
        """

        unknown = set(data) - _HABIT_FIELDS
        if unknown:
            raise TypeError(f"Unknown habit fields: {sorted(unknown)}")
        payload = {k: v for k, v in data.items() if k not in _IMMUTABLE_FIELDS | {"order"}}
        try:
            habit = Habit(
                id=str(uuid.uuid4()),
                created_at=self._clock(),
                order=len(self._habits),
                **payload,
            )
        except HabitDataError as exc:
            logger.warning("Rejected new habit: %s", exc)
            return None
        self._commit([*self._habits, habit], self._ledger)
        logger.info("Habit created", extra={"habit_id": habit.id, "habit_name": habit.name})
        return habit

    def update_habit(self, habit_id: str, **changes: Any) -> Optional[Habit]:
        """Merge ``changes`` into the habit.

        Returns None when the id is unknown or the merged habit is invalid; the
        snapshot is left unchanged in both cases.
        """

        unknown = set(changes) - _HABIT_FIELDS
        if unknown:
            raise TypeError(f"Unknown habit fields: {sorted(unknown)}")
        changes = {k: v for k, v in changes.items() if k not in _IMMUTABLE_FIELDS}
        for index, habit in enumerate(self._habits):
            if habit.id != habit_id:
                continue
            try:
                updated = replace(habit, **changes)
            except HabitDataError as exc:
                logger.warning("Rejected update for habit %s: %s", habit_id, exc)
                return None
            habits = list(self._habits)
            habits[index] = updated
            self._commit(habits, self._ledger)
            logger.info("Habit updated", extra={"habit_id": habit_id, "fields": sorted(changes)})
            return updated
        logger.debug("update_habit: no habit %s", habit_id)
        return None

    def delete_habit(self, habit_id: str) -> bool:
        """Remove the habit and every completion that references it."""

        remaining = [h for h in self._habits if h.id != habit_id]
        if len(remaining) == len(self._habits):
            logger.debug("delete_habit: no habit %s", habit_id)
            return False
        ledger = self._ledger.copy()
        removed = ledger.remove_habit(habit_id)
        self._commit(remaining, ledger)
        logger.info("Habit deleted", extra={"habit_id": habit_id, "completions_removed": removed})
        return True

    def archive_habit(self, habit_id: str) -> Optional[Habit]:
        """Toggle the archived flag."""

        habit = self.get_habit(habit_id)
        if habit is None:
            logger.debug("archive_habit: no habit %s", habit_id)
            return None
        return self.update_habit(habit_id, archived=not habit.archived)

    def toggle_completion(self, habit_id: str, day: date | None = None) -> bool:
        """Flip completion for ``day`` (default today); returns the new state."""

        target = day or self._today()
        ledger = self._ledger.copy()
        done = ledger.toggle(habit_id, target, now=self._clock())
        self._commit(self._habits, ledger)
        logger.debug(
            "Completion toggled",
            extra={"habit_id": habit_id, "day": target.isoformat(), "completed": done},
        )
        return done

    def replace_all(self, habits: Any, completions: Any) -> bool:
        """Atomically swap both collections; False leaves the state untouched."""

        try:
            new_habits = decode_habits(habits)
            new_ledger = CompletionLedger(decode_completions(completions))
        except HabitDataError as exc:
            logger.warning("Rejected snapshot replacement: %s", exc)
            return False
        self._commit(new_habits, new_ledger)
        logger.info(
            "Snapshot replaced",
            extra={"habits": len(new_habits), "completions": len(new_ledger)},
        )
        return True

    def export_snapshot(self) -> dict[str, Any]:
        """Serializable ``{habits, completions, exportedAt}`` view of the state."""

        return {
            "habits": [h.to_dict() for h in self._habits],
            "completions": [c.to_dict() for c in self._ledger],
            "exportedAt": self._clock().isoformat(),
        }

    def clear_all(self) -> None:
        self.store.delete(self.habits_key)
        self.store.delete(self.completions_key)
        self._habits = []
        self._ledger = CompletionLedger()
        logger.info("All habit data cleared")

    # ------------------------------------------------------------------
    # Derived statistics
    # ------------------------------------------------------------------
    def habit_stats(self, habit_id: str, today: date | None = None) -> Optional[HabitStats]:
        habit = self.get_habit(habit_id)
        if habit is None:
            return None
        return analytics.habit_stats(habit, self._ledger, today=today or self._today())

    def today_progress(self, today: date | None = None) -> int:
        day = today or self._today()
        return analytics.today_progress(self.today_habits(day), self._ledger, today=day)

    def week_data(self, today: date | None = None) -> list[DayData]:
        return analytics.week_series(self.active_habits, self._ledger, today=today or self._today())

    def month_data(self, today: date | None = None) -> list[DayData]:
        return analytics.month_series(self.active_habits, self._ledger, today=today or self._today())


def snapshot_payload(habits: Sequence[Habit], completions: Sequence[HabitCompletion]) -> dict:
    """Wire ``{habits, completions}`` pair for backup transports."""

    return {
        "habits": [h.to_dict() for h in habits],
        "completions": [c.to_dict() for c in completions],
    }


__all__ = ["HabitSnapshotManager", "decode_completions", "decode_habits", "snapshot_payload"]
