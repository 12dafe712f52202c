"""Cloud backup and restore keyed by a shareable sync code.

The service never touches the snapshot manager's collections itself: callers
hand it the current habits/completions for a backup, and a restore returns a
plain ``{habits, completions}`` snapshot which ``restore_into`` feeds to
``HabitSnapshotManager.replace_all``.
"""

from __future__ import annotations

import random
from datetime import datetime
from enum import Enum
from typing import Any, Callable, Optional, Sequence

from ..config import BaseConfig
from ..domain.repositories.backup import BackupTransport, BackupTransportError
from ..domain.repositories.slots import SlotStore
from ..logging_config import get_logger
from ..models.habit import Habit, HabitCompletion, HabitDataError, parse_timestamp, utcnow
from .snapshot import HabitSnapshotManager, snapshot_payload

logger = get_logger(__name__)

# No 0/O or 1/I to keep codes readable when typed by hand.
SYNC_CODE_ALPHABET = "ABCDEFGHJKLMNPQRSTUVWXYZ23456789"
SYNC_CODE_SEGMENTS = 3
SYNC_CODE_SEGMENT_LENGTH = 4
MAX_CODE_ATTEMPTS = 10


class SyncStatus(str, Enum):
    IDLE = "idle"
    SYNCING = "syncing"
    SUCCESS = "success"
    ERROR = "error"


def generate_sync_code(rng: random.Random | None = None) -> str:
    """Return a code shaped like ``XXXX-XXXX-XXXX``."""

    rng = rng or random.SystemRandom()
    return "-".join(
        "".join(rng.choice(SYNC_CODE_ALPHABET) for _ in range(SYNC_CODE_SEGMENT_LENGTH))
        for _ in range(SYNC_CODE_SEGMENTS)
    )


def normalize_sync_code(code: str) -> str:
    return code.strip().upper()


class CloudSyncService:
    """Enable, back up and restore cloud snapshots through a transport."""

    def __init__(
        self,
        transport: BackupTransport,
        store: SlotStore,
        *,
        device_name: str = "Unknown",
        code_key: str = BaseConfig.SYNC_CODE_SLOT,
        last_sync_key: str = BaseConfig.LAST_SYNC_SLOT,
        clock: Callable[[], datetime] = utcnow,
        code_factory: Callable[[], str] = generate_sync_code,
    ):
        self.transport = transport
        self.store = store
        self.device_name = device_name
        self.code_key = code_key
        self.last_sync_key = last_sync_key
        self._clock = clock
        self._code_factory = code_factory
        self.status = SyncStatus.IDLE
        self.last_error: Optional[str] = None

    # ------------------------------------------------------------------
    # Persisted sync state
    # ------------------------------------------------------------------
    @property
    def sync_code(self) -> Optional[str]:
        return self.store.read(self.code_key)

    @property
    def last_synced_at(self) -> Optional[datetime]:
        raw = self.store.read(self.last_sync_key)
        if raw is None:
            return None
        try:
            return parse_timestamp(raw)
        except HabitDataError:
            logger.warning("Ignoring unreadable last-sync timestamp %r", raw)
            return None

    @property
    def is_connected(self) -> bool:
        return self.sync_code is not None

    def _remember(self, code: str, synced_at: datetime) -> None:
        self.store.write_many({self.code_key: code, self.last_sync_key: synced_at.isoformat()})

    def _start(self) -> None:
        self.status = SyncStatus.SYNCING
        self.last_error = None

    def _succeed(self) -> None:
        self.status = SyncStatus.SUCCESS

    def mark_failed(self, message: str) -> None:
        self.status = SyncStatus.ERROR
        self.last_error = message
        logger.warning("Cloud sync failed: %s", message)

    # ------------------------------------------------------------------
    # Operations
    # ------------------------------------------------------------------
    def enable(
        self, habits: Sequence[Habit], completions: Sequence[HabitCompletion]
    ) -> Optional[str]:
        """Create a fresh sync code holding an initial backup; None on failure."""

        self._start()
        try:
            code = self._code_factory()
            for _ in range(MAX_CODE_ATTEMPTS):
                if not self.transport.code_exists(code):
                    break
                code = self._code_factory()
            now = self._clock()
            self.transport.insert(
                code,
                snapshot_payload(habits, completions),
                device_name=self.device_name,
                synced_at=now,
            )
        except BackupTransportError as exc:
            self.mark_failed(str(exc) or "Failed to enable sync")
            return None

        self._remember(code, now)
        self._succeed()
        logger.info("Cloud sync enabled", extra={"sync_code": code})
        return code

    def backup(self, habits: Sequence[Habit], completions: Sequence[HabitCompletion]) -> bool:
        """Overwrite the cloud snapshot under the current sync code."""

        code = self.sync_code
        if code is None:
            self.mark_failed("No sync code. Please enable sync first.")
            return False

        self._start()
        now = self._clock()
        try:
            found = self.transport.update(
                code,
                snapshot_payload(habits, completions),
                device_name=self.device_name,
                synced_at=now,
            )
        except BackupTransportError as exc:
            self.mark_failed(str(exc) or "Backup failed")
            return False
        if not found:
            self.mark_failed("Sync code not found in cloud. It may have been deleted.")
            return False

        self.store.write(self.last_sync_key, now.isoformat())
        self._succeed()
        logger.info("Cloud backup written", extra={"sync_code": code})
        return True

    def restore(self, code: str) -> Optional[dict[str, list[Any]]]:
        """Fetch the snapshot stored under ``code``; None on failure.

        A successful restore also adopts ``code`` as this device's sync code.
        """

        self._start()
        normalized = normalize_sync_code(code)
        try:
            record = self.transport.fetch(normalized)
        except BackupTransportError as exc:
            self.mark_failed(str(exc) or "Restore failed")
            return None
        if record is None:
            self.mark_failed("Sync code not found. Please double-check your code.")
            return None

        self._remember(normalized, record.last_synced_at)
        self._succeed()
        return {
            "habits": record.habits if record.habits is not None else [],
            "completions": record.completions if record.completions is not None else [],
        }

    def check(self, code: str) -> dict[str, Any]:
        """Describe the backup stored under ``code`` without restoring it."""

        try:
            record = self.transport.fetch(normalize_sync_code(code))
        except BackupTransportError as exc:
            logger.warning("Sync code lookup failed: %s", exc)
            return {"exists": False}
        if record is None:
            return {"exists": False}
        return {
            "exists": True,
            "last_synced_at": record.last_synced_at,
            "device_name": record.device_name,
            "created_at": record.created_at,
        }

    def disconnect(self) -> None:
        """Forget the local sync code; the cloud copy is left in place."""

        self.store.delete(self.code_key)
        self.store.delete(self.last_sync_key)
        self.status = SyncStatus.IDLE
        self.last_error = None
        logger.info("Cloud sync disconnected")


def restore_into(manager: HabitSnapshotManager, service: CloudSyncService, code: str) -> bool:
    """Restore ``code`` and replace the manager's snapshot with it."""

    snapshot = service.restore(code)
    if snapshot is None:
        return False
    if not manager.replace_all(snapshot["habits"], snapshot["completions"]):
        service.mark_failed("Restored snapshot is malformed")
        return False
    return True


__all__ = [
    "CloudSyncService",
    "MAX_CODE_ATTEMPTS",
    "SYNC_CODE_ALPHABET",
    "SyncStatus",
    "generate_sync_code",
    "normalize_sync_code",
    "restore_into",
]
