"""Pytest configuration and shared fixtures for HabitSage tests.

Fixtures provide an in-memory slot store, a snapshot manager pinned to a fixed
clock, habit/ledger factories for the pure analytics functions, and an
isolated SQLite database for the SQLModel-backed repositories.
"""

from __future__ import annotations

from datetime import date, datetime, timedelta, timezone
from itertools import count

import matplotlib
import pytest
from sqlmodel import SQLModel, create_engine

matplotlib.use("Agg")

from habitsage import models  # noqa: E402,F401  (registers tables)
from habitsage.infra.database import create_session_factory  # noqa: E402
from habitsage.infra.repositories import InMemorySlotStore  # noqa: E402
from habitsage.models.habit import Habit, HabitCompletion, Schedule  # noqa: E402
from habitsage.services.ledger import CompletionLedger  # noqa: E402
from habitsage.services.snapshot import HabitSnapshotManager  # noqa: E402

# 2024-01-08 is a Monday.
MONDAY = date(2024, 1, 8)
FIXED_NOW = datetime(2024, 1, 8, 9, 30, tzinfo=timezone.utc)


def days_back(today: date, *offsets: int) -> list[date]:
    """Dates ``offset`` days before ``today``."""
    return [today - timedelta(days=o) for o in offsets]


# =============================================================================
# Environment
# =============================================================================


@pytest.fixture(autouse=True)
def isolated_env(tmp_path, monkeypatch):
    """Point configuration at a throwaway data directory."""

    monkeypatch.setenv("HABITSAGE_DATA_DIR", str(tmp_path / "instance"))
    monkeypatch.delenv("HABITSAGE_DATABASE_URL", raising=False)
    monkeypatch.delenv("HABITSAGE_SYNC_DATABASE_URL", raising=False)
    monkeypatch.delenv("HABITSAGE_DEV_MODE", raising=False)
    monkeypatch.delenv("HABITSAGE_DEVICE_NAME", raising=False)
    yield


# =============================================================================
# Database Fixtures
# =============================================================================


@pytest.fixture(scope="function")
def db_engine(tmp_path):
    """Create an isolated SQLite database file for each test."""

    engine = create_engine(f"sqlite:///{tmp_path / 'test.db'}", echo=False)
    SQLModel.metadata.create_all(engine)
    yield engine
    engine.dispose()


@pytest.fixture(scope="function")
def session_factory(db_engine):
    """Session factory matching what repositories expect."""

    return create_session_factory(db_engine)


# =============================================================================
# Test Data Factories
# =============================================================================


@pytest.fixture
def habit_factory():
    """Build detached Habit objects for the pure analytics functions."""

    ids = count(1)

    def _create_habit(
        name: str = "Exercise",
        schedule: Schedule | None = None,
        archived: bool = False,
        order: int | None = None,
        habit_id: str | None = None,
    ) -> Habit:
        n = next(ids)
        return Habit(
            id=habit_id or f"habit-{n}",
            name=name,
            schedule=schedule or Schedule.daily(),
            archived=archived,
            order=n if order is None else order,
            created_at=FIXED_NOW,
        )

    return _create_habit


@pytest.fixture
def ledger_factory():
    """Build a ledger from ``{habit_id: [dates]}``."""

    def _create_ledger(entries: dict[str, list[date]] | None = None) -> CompletionLedger:
        completions = [
            HabitCompletion(habit_id=hid, date=day, completed_at=FIXED_NOW)
            for hid, days in (entries or {}).items()
            for day in days
        ]
        return CompletionLedger(completions)

    return _create_ledger


@pytest.fixture
def slot_store() -> InMemorySlotStore:
    return InMemorySlotStore()


@pytest.fixture
def manager(slot_store) -> HabitSnapshotManager:
    """Snapshot manager whose clock is pinned to Monday 2024-01-08."""

    return HabitSnapshotManager(
        slot_store,
        clock=lambda: FIXED_NOW,
        today_provider=lambda: MONDAY,
    ).load()
