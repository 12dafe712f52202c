"""Repository protocol definitions for domain layer."""

from .backup import BackupTransport, BackupTransportError, SyncRecord
from .slots import SlotStore

__all__ = [
    "BackupTransport",
    "BackupTransportError",
    "SlotStore",
    "SyncRecord",
]
