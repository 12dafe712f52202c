"""Backup transport protocol for cloud snapshots."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Any, Optional, Protocol


class BackupTransportError(RuntimeError):
    """Raised by transports when the remote store cannot be reached or written."""


@dataclass(frozen=True)
class SyncRecord:
    """A stored backup as returned by a transport."""

    sync_code: str
    habits: list[Any]
    completions: list[Any]
    device_name: str
    last_synced_at: datetime
    created_at: datetime


class BackupTransport(Protocol):
    """Remote storage for whole ``{habits, completions}`` snapshots."""

    def code_exists(self, code: str) -> bool:
        """Return True when a backup is already stored under ``code``."""
        ...

    def insert(
        self, code: str, snapshot: dict[str, list[Any]], *, device_name: str, synced_at: datetime
    ) -> None:
        """Store a new backup under ``code``."""
        ...

    def update(
        self, code: str, snapshot: dict[str, list[Any]], *, device_name: str, synced_at: datetime
    ) -> bool:
        """Replace the backup under ``code``; False when the code is unknown."""
        ...

    def fetch(self, code: str) -> Optional[SyncRecord]:
        """Return the backup stored under ``code``, if any."""
        ...
