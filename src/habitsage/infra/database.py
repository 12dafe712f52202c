"""Engine and session plumbing behind the slot store and the sync transport.

``SQLModelSlotStore`` keeps the serialized habit and completion collections,
plus local sync state, in ``storage_slot`` rows. ``SQLModelBackupTransport``
keeps cloud backups in ``sync_data`` rows. Both tables live in the local
database unless ``HABITSAGE_SYNC_DATABASE_URL`` points sync at a separate one,
in which case ``create_db_engine(config, url)`` builds its engine.
"""

from __future__ import annotations

from contextlib import contextmanager
from typing import Iterator

from sqlmodel import Session, SQLModel, create_engine

from ..config import BaseConfig


def create_db_engine(config: BaseConfig, url: str | None = None):
    """Create an engine for ``url``, defaulting to the habit database."""
    target = url or config.DATABASE_URL
    return create_engine(target, **config.sqlalchemy_engine_options(target))


def init_database(engine) -> None:
    """Create the ``storage_slot`` and ``sync_data`` tables if missing."""
    # Import all models to ensure they're registered
    from .. import models  # noqa: F401

    SQLModel.metadata.create_all(engine)


@contextmanager
def session_scope(engine) -> Iterator[Session]:
    """Provide a transactional scope around operations.

    Every write in the block commits together or rolls back together;
    ``SQLModelSlotStore.write_many`` depends on this.
    """
    session = Session(engine, expire_on_commit=False)
    try:
        yield session
        session.commit()
    except Exception:
        session.rollback()
        raise
    finally:
        session.close()


def create_session_factory(engine):
    """Create a session factory function."""

    def factory():
        return session_scope(engine)

    return factory
