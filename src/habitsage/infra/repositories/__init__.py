"""Concrete repository implementations."""

from .slots import InMemorySlotStore, SQLModelSlotStore
from .sync import InMemoryBackupTransport, SQLModelBackupTransport

__all__ = [
    "InMemoryBackupTransport",
    "InMemorySlotStore",
    "SQLModelBackupTransport",
    "SQLModelSlotStore",
]
