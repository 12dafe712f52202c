"""Tests for the habit snapshot manager."""

from __future__ import annotations

import json
from datetime import date, timedelta

import pytest

from habitsage.infra.repositories import InMemorySlotStore
from habitsage.models.habit import HabitCategory, Schedule
from habitsage.services.snapshot import HabitSnapshotManager

from tests.conftest import FIXED_NOW, MONDAY


def _reload(store: InMemorySlotStore) -> HabitSnapshotManager:
    return HabitSnapshotManager(store, today_provider=lambda: MONDAY).load()


class FailingSlotStore(InMemorySlotStore):
    """Slot store whose multi-slot writes fail once ``broken`` is set."""

    broken = False

    def write_many(self, items):
        if self.broken:
            raise OSError("disk full")
        super().write_many(items)


class TestHabitLifecycle:
    def test_add_assigns_id_order_and_timestamp(self, manager):
        first = manager.add_habit(name="Read", category=HabitCategory.LEARNING)
        second = manager.add_habit(name="Walk")

        assert first.id != second.id
        assert (first.order, second.order) == (0, 1)
        assert first.created_at == FIXED_NOW
        assert first.color == "#EC4899"

    def test_add_ignores_caller_supplied_identity(self, manager):
        habit = manager.add_habit(name="Read", id="forced", order=99)

        assert habit.id != "forced"
        assert habit.order == 0

    def test_add_rejects_unknown_fields(self, manager):
        with pytest.raises(TypeError):
            manager.add_habit(name="Read", colour="red")

    def test_add_rejects_blank_name(self, manager, slot_store):
        assert manager.add_habit(name="   ") is None
        assert manager.habits == []
        assert slot_store.writes == 0

    def test_add_accepts_schedule_kind_string(self, manager, slot_store):
        habit = manager.add_habit(name="Run", schedule="weekends")

        assert habit.schedule == Schedule.weekends()
        assert _reload(slot_store).get_habit(habit.id).schedule == Schedule.weekends()

    @pytest.mark.parametrize("schedule", ["hourly", 5, None])
    def test_add_rejects_bad_schedule(self, manager, slot_store, schedule):
        manager.add_habit(name="Keep")
        before = (manager.habits, dict(slot_store.slots))

        assert manager.add_habit(name="Run", schedule=schedule) is None

        assert (manager.habits, dict(slot_store.slots)) == before

    def test_update_merges_fields(self, manager):
        habit = manager.add_habit(name="Read")

        updated = manager.update_habit(habit.id, name="Read more", schedule=Schedule.weekdays())

        assert updated.name == "Read more"
        assert updated.schedule == Schedule.weekdays()
        assert updated.created_at == habit.created_at
        assert manager.get_habit(habit.id).name == "Read more"

    def test_update_cannot_change_id(self, manager):
        habit = manager.add_habit(name="Read")

        updated = manager.update_habit(habit.id, id="other", name="Renamed")

        assert updated.id == habit.id

    def test_update_unknown_id_is_noop(self, manager):
        habit = manager.add_habit(name="Read")

        assert manager.update_habit("missing", name="X") is None
        assert manager.habits == [habit]

    def test_update_accepts_schedule_kind_string(self, manager):
        habit = manager.add_habit(name="Read")

        updated = manager.update_habit(habit.id, schedule="weekdays")

        assert updated.schedule == Schedule.weekdays()
        assert manager.today_habits() == [updated]

    @pytest.mark.parametrize(
        "changes",
        [
            {"schedule": "hourly"},
            {"schedule": 5},
            {"name": ""},
            {"category": "hobbies"},
            {"order": "first"},
        ],
    )
    def test_invalid_update_leaves_snapshot_usable(self, manager, slot_store, changes):
        habit = manager.add_habit(name="Read")
        other = manager.add_habit(name="Walk")
        before = (manager.habits, dict(slot_store.slots))

        assert manager.update_habit(habit.id, **changes) is None

        assert (manager.habits, dict(slot_store.slots)) == before
        assert manager.toggle_completion(other.id) is True
        assert manager.today_progress() == 50
        assert _reload(slot_store).get_habit(habit.id).schedule == Schedule.daily()

    def test_archive_toggles_both_ways(self, manager):
        habit = manager.add_habit(name="Read")

        assert manager.archive_habit(habit.id).archived is True
        assert manager.active_habits == []
        assert manager.archived_habits[0].id == habit.id
        assert manager.archive_habit(habit.id).archived is False
        assert manager.active_habits[0].id == habit.id

    def test_archive_unknown_is_noop(self, manager):
        assert manager.archive_habit("missing") is None

    def test_archived_habit_excluded_from_today_but_keeps_history(self, manager):
        habit = manager.add_habit(name="Read")
        manager.toggle_completion(habit.id)
        manager.archive_habit(habit.id)

        assert manager.today_habits() == []
        assert manager.is_completed(habit.id)
        assert manager.habit_stats(habit.id).total_completions == 1

    def test_active_habits_sorted_by_order(self, manager):
        a = manager.add_habit(name="A")
        b = manager.add_habit(name="B")
        manager.update_habit(a.id, order=5)

        assert [h.name for h in manager.active_habits] == ["B", "A"]
        assert b.order == 1


class TestCompletions:
    def test_toggle_defaults_to_today(self, manager):
        habit = manager.add_habit(name="Read")

        assert manager.toggle_completion(habit.id) is True
        assert manager.completions[0].date == MONDAY
        assert manager.completions[0].completed_at == FIXED_NOW

    def test_toggle_twice_is_noop(self, manager):
        habit = manager.add_habit(name="Read")
        day = MONDAY - timedelta(days=3)

        manager.toggle_completion(habit.id, day)
        manager.toggle_completion(habit.id, day)

        assert not manager.is_completed(habit.id, day)
        assert manager.completions == []

    def test_delete_cascades_completions(self, manager):
        keep = manager.add_habit(name="Keep")
        drop = manager.add_habit(name="Drop")
        for offset in range(3):
            manager.toggle_completion(drop.id, MONDAY - timedelta(days=offset))
        manager.toggle_completion(keep.id)

        assert manager.delete_habit(drop.id) is True

        assert [c.habit_id for c in manager.completions] == [keep.id]
        assert manager.habit_stats(drop.id) is None
        assert manager.get_habit(drop.id) is None

    def test_delete_unknown_returns_false(self, manager, slot_store):
        manager.add_habit(name="Read")
        writes = slot_store.writes

        assert manager.delete_habit("missing") is False
        assert slot_store.writes == writes


class TestDerivedViews:
    def test_progress_and_series(self, manager):
        a = manager.add_habit(name="A")
        manager.add_habit(name="B")
        manager.toggle_completion(a.id)

        assert manager.today_progress() == 50
        week = manager.week_data()
        assert len(week) == 7
        assert week[-1].date == MONDAY
        assert week[-1].completed_count == 1
        assert len(manager.month_data()) == 30

    def test_stats_for_known_habit(self, manager):
        habit = manager.add_habit(name="A")
        for offset in range(3):
            manager.toggle_completion(habit.id, MONDAY - timedelta(days=offset))

        stats = manager.habit_stats(habit.id)

        assert stats.current_streak == 3
        assert stats.longest_streak == 3
        assert stats.total_completions == 3
        assert stats.completion_rate == 10


class TestPersistence:
    def test_every_mutation_rewrites_both_slots(self, manager, slot_store):
        habit = manager.add_habit(name="Read")
        assert slot_store.writes == 2
        manager.toggle_completion(habit.id)
        assert slot_store.writes == 4

    def test_round_trip_through_store(self, manager, slot_store):
        habit = manager.add_habit(name="Read", schedule=Schedule.custom({1, 3}))
        manager.toggle_completion(habit.id, date(2024, 1, 3))

        reloaded = _reload(slot_store)

        assert reloaded.habits == manager.habits
        assert reloaded.completions == manager.completions

    def test_failed_write_keeps_previous_state(self):
        store = FailingSlotStore()
        manager = HabitSnapshotManager(store, today_provider=lambda: MONDAY).load()
        habit = manager.add_habit(name="Read")
        manager.toggle_completion(habit.id)
        before = (manager.habits, manager.completions, dict(store.slots))
        store.broken = True

        with pytest.raises(OSError):
            manager.replace_all([{"id": "a", "name": "A"}], [])
        with pytest.raises(OSError):
            manager.toggle_completion(habit.id)
        with pytest.raises(OSError):
            manager.add_habit(name="Walk")
        with pytest.raises(OSError):
            manager.delete_habit(habit.id)

        assert (manager.habits, manager.completions, dict(store.slots)) == before
        assert manager.is_completed(habit.id)

    def test_corrupt_slot_falls_back_to_empty(self):
        store = InMemorySlotStore(
            {"habitsage_habits": "{not json", "habitsage_completions": json.dumps([])}
        )

        reloaded = _reload(store)

        assert reloaded.habits == []
        assert reloaded.completions == []

    def test_wrong_shape_slot_falls_back_to_empty(self):
        store = InMemorySlotStore({"habitsage_habits": json.dumps({"id": "x"})})
        assert _reload(store).habits == []

    def test_missing_slots_load_empty(self, slot_store):
        reloaded = _reload(slot_store)
        assert reloaded.habits == []
        assert len(reloaded.ledger) == 0


class TestReplaceAndExport:
    def test_export_shape(self, manager):
        habit = manager.add_habit(name="Read")
        manager.toggle_completion(habit.id)

        snapshot = manager.export_snapshot()

        assert set(snapshot) == {"habits", "completions", "exportedAt"}
        assert snapshot["habits"][0]["id"] == habit.id
        assert snapshot["completions"][0] == {
            "habitId": habit.id,
            "date": "2024-01-08",
            "completedAt": FIXED_NOW.isoformat(),
        }
        assert snapshot["exportedAt"] == FIXED_NOW.isoformat()
        json.dumps(snapshot)

    def test_replace_all_swaps_both_collections(self, manager):
        manager.add_habit(name="Old")
        source = HabitSnapshotManager(InMemorySlotStore(), today_provider=lambda: MONDAY)
        new = source.add_habit(name="New")
        source.toggle_completion(new.id)
        payload = source.export_snapshot()

        assert manager.replace_all(payload["habits"], payload["completions"]) is True

        assert [h.name for h in manager.habits] == ["New"]
        assert manager.is_completed(new.id)

    @pytest.mark.parametrize(
        ("habits", "completions"),
        [
            ([], None),
            (None, []),
            ("habits", []),
            ({"id": "x"}, []),
            ([{"name": "no id"}], []),
            ([{"id": "a", "name": "A"}, {"id": "a", "name": "B"}], []),
            ([], [{"habitId": "a", "date": "not-a-date"}]),
            ([{"id": "a", "name": "A", "schedule": "hourly"}], []),
        ],
    )
    def test_invalid_replace_leaves_state_untouched(self, manager, slot_store, habits, completions):
        habit = manager.add_habit(name="Keep")
        manager.toggle_completion(habit.id)
        before = (manager.habits, manager.completions, dict(slot_store.slots))

        assert manager.replace_all(habits, completions) is False

        assert (manager.habits, manager.completions, dict(slot_store.slots)) == before

    def test_replace_keeps_dangling_completions_harmless(self, manager):
        assert manager.replace_all(
            [{"id": "a", "name": "A"}],
            [{"habitId": "ghost", "date": "2024-01-08", "completedAt": "2024-01-08T10:00:00Z"}],
        )

        assert manager.today_progress() == 0
        assert manager.habit_stats("ghost") is None
        assert manager.week_data()[-1].completed_count == 0

    def test_clear_all_empties_and_deletes_slots(self, manager, slot_store):
        habit = manager.add_habit(name="Read")
        manager.toggle_completion(habit.id)

        manager.clear_all()

        assert manager.habits == []
        assert manager.completions == []
        assert slot_store.slots == {}
