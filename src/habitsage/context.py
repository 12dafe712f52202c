"""Application context for dependency injection."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Optional

from sqlmodel import Session

from .config import BaseConfig
from .infra.database import create_db_engine, create_session_factory, init_database
from .infra.repositories import SQLModelBackupTransport, SQLModelSlotStore
from .services.cloud_sync import CloudSyncService
from .services.snapshot import HabitSnapshotManager


@dataclass
class AppContext:
    """Wired configuration, storage, snapshot manager and sync service."""

    config: BaseConfig
    session_factory: Callable[[], Session]
    slot_store: SQLModelSlotStore
    manager: HabitSnapshotManager
    sync_service: CloudSyncService
    sync_session_factory: Optional[Callable[[], Session]] = None


def create_app_context(config: Optional[BaseConfig] = None) -> AppContext:
    """Create the database, load the snapshot and wire the sync service."""

    if config is None:
        config = BaseConfig()

    engine = create_db_engine(config)
    init_database(engine)
    session_factory = create_session_factory(engine)
    slot_store = SQLModelSlotStore(session_factory)

    if config.SYNC_DATABASE_URL == config.DATABASE_URL:
        sync_session_factory = session_factory
    else:
        sync_engine = create_db_engine(config, config.SYNC_DATABASE_URL)
        init_database(sync_engine)
        sync_session_factory = create_session_factory(sync_engine)

    manager = HabitSnapshotManager(
        slot_store,
        habits_key=config.HABITS_SLOT,
        completions_key=config.COMPLETIONS_SLOT,
    ).load()
    sync_service = CloudSyncService(
        SQLModelBackupTransport(sync_session_factory),
        slot_store,
        device_name=config.DEVICE_NAME,
        code_key=config.SYNC_CODE_SLOT,
        last_sync_key=config.LAST_SYNC_SLOT,
    )

    return AppContext(
        config=config,
        session_factory=session_factory,
        slot_store=slot_store,
        manager=manager,
        sync_service=sync_service,
        sync_session_factory=sync_session_factory,
    )


__all__ = ["AppContext", "create_app_context"]
