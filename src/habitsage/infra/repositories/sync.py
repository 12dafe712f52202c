"""SQLModel implementation of the cloud backup transport."""

from __future__ import annotations

import json
from datetime import datetime
from typing import Any, Callable, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import Session, select

from ...domain.repositories.backup import BackupTransportError, SyncRecord
from ...models.sync import SyncData


class SQLModelBackupTransport:
    """Stores snapshots in the ``sync_data`` table of any SQLAlchemy database.

    Point ``HABITSAGE_SYNC_DATABASE_URL`` at a shared server database to back up
    across devices. Database errors surface as ``BackupTransportError``.
    """

    def __init__(self, session_factory: Callable[[], Session]):
        self.session_factory = session_factory

    def _find(self, session: Session, code: str) -> Optional[SyncData]:
        return session.exec(select(SyncData).where(SyncData.sync_code == code)).first()

    def code_exists(self, code: str) -> bool:
        try:
            with self.session_factory() as session:
                return self._find(session, code) is not None
        except SQLAlchemyError as exc:
            raise BackupTransportError(f"Could not look up sync code: {exc}") from exc

    def insert(
        self, code: str, snapshot: dict[str, list[Any]], *, device_name: str, synced_at: datetime
    ) -> None:
        row = SyncData(
            sync_code=code,
            habits=json.dumps(snapshot["habits"]),
            completions=json.dumps(snapshot["completions"]),
            device_name=device_name,
            last_synced_at=synced_at,
            created_at=synced_at,
        )
        try:
            with self.session_factory() as session:
                session.add(row)
                session.commit()
        except SQLAlchemyError as exc:
            raise BackupTransportError(f"Could not store backup: {exc}") from exc

    def update(
        self, code: str, snapshot: dict[str, list[Any]], *, device_name: str, synced_at: datetime
    ) -> bool:
        try:
            with self.session_factory() as session:
                row = self._find(session, code)
                if row is None:
                    return False
                row.habits = json.dumps(snapshot["habits"])
                row.completions = json.dumps(snapshot["completions"])
                row.device_name = device_name
                row.last_synced_at = synced_at
                session.add(row)
                session.commit()
                return True
        except SQLAlchemyError as exc:
            raise BackupTransportError(f"Could not update backup: {exc}") from exc

    def fetch(self, code: str) -> Optional[SyncRecord]:
        try:
            with self.session_factory() as session:
                row = self._find(session, code)
                if row is None:
                    return None
                habits_raw, completions_raw = row.habits, row.completions
                record_meta = (row.device_name, row.last_synced_at, row.created_at)
        except SQLAlchemyError as exc:
            raise BackupTransportError(f"Could not fetch backup: {exc}") from exc

        try:
            habits = json.loads(habits_raw) or []
            completions = json.loads(completions_raw) or []
        except json.JSONDecodeError as exc:
            raise BackupTransportError(f"Stored backup for {code} is corrupt") from exc
        device_name, last_synced_at, created_at = record_meta
        return SyncRecord(
            sync_code=code,
            habits=habits,
            completions=completions,
            device_name=device_name,
            last_synced_at=last_synced_at,
            created_at=created_at,
        )


class InMemoryBackupTransport:
    """Dictionary-backed transport for tests and offline use."""

    def __init__(self) -> None:
        self.records: dict[str, SyncRecord] = {}
        self.fail_with: Optional[str] = None

    def _check(self) -> None:
        if self.fail_with:
            raise BackupTransportError(self.fail_with)

    def code_exists(self, code: str) -> bool:
        self._check()
        return code in self.records

    def insert(
        self, code: str, snapshot: dict[str, list[Any]], *, device_name: str, synced_at: datetime
    ) -> None:
        self._check()
        if code in self.records:
            raise BackupTransportError(f"Sync code {code} already exists")
        self.records[code] = SyncRecord(
            sync_code=code,
            habits=list(snapshot["habits"]),
            completions=list(snapshot["completions"]),
            device_name=device_name,
            last_synced_at=synced_at,
            created_at=synced_at,
        )

    def update(
        self, code: str, snapshot: dict[str, list[Any]], *, device_name: str, synced_at: datetime
    ) -> bool:
        self._check()
        existing = self.records.get(code)
        if existing is None:
            return False
        self.records[code] = SyncRecord(
            sync_code=code,
            habits=list(snapshot["habits"]),
            completions=list(snapshot["completions"]),
            device_name=device_name,
            last_synced_at=synced_at,
            created_at=existing.created_at,
        )
        return True

    def fetch(self, code: str) -> Optional[SyncRecord]:
        self._check()
        return self.records.get(code)


__all__ = ["InMemoryBackupTransport", "SQLModelBackupTransport"]
