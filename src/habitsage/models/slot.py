"""Key/value storage rows backing the persisted habit collections."""

from __future__ import annotations

from typing import ClassVar

from sqlalchemy import Column, Text
from sqlmodel import Field, SQLModel


class StorageSlot(SQLModel, table=True):
    """One named slot holding a serialized collection."""

    __tablename__: ClassVar[str] = "storage_slot"

    key: str = Field(primary_key=True, max_length=64)
    value: str = Field(sa_column=Column(Text, nullable=False))
