"""Cloud backup rows keyed by a shareable sync code."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import ClassVar, Optional

from sqlalchemy import Column, Text
from sqlmodel import Field, SQLModel


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class SyncData(SQLModel, table=True):
    """Whole-snapshot backup stored under a sync code (last write wins)."""

    __tablename__: ClassVar[str] = "sync_data"

    id: Optional[int] = Field(default=None, primary_key=True)
    sync_code: str = Field(nullable=False, max_length=14, unique=True, index=True)
    habits: str = Field(sa_column=Column(Text, nullable=False))
    completions: str = Field(sa_column=Column(Text, nullable=False))
    device_name: str = Field(default="", max_length=80)
    last_synced_at: datetime = Field(default_factory=_utcnow, nullable=False)
    created_at: datetime = Field(default_factory=_utcnow, nullable=False)
