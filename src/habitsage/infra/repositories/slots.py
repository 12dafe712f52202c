"""Slot store implementations."""

from __future__ import annotations

from typing import Callable, Mapping, Optional

from sqlmodel import Session, select

from ...models.slot import StorageSlot


class SQLModelSlotStore:
    """SQLModel-based slot store; one row per slot."""

    def __init__(self, session_factory: Callable[[], Session]):
        self.session_factory = session_factory

    def _upsert(self, session: Session, key: str, value: str) -> None:
        slot = session.exec(select(StorageSlot).where(StorageSlot.key == key)).first()
        if slot:
            slot.value = value
        else:
            slot = StorageSlot(key=key, value=value)
        session.add(slot)

    def read(self, key: str) -> Optional[str]:
        with self.session_factory() as session:
            slot = session.exec(select(StorageSlot).where(StorageSlot.key == key)).first()
            return slot.value if slot else None

    def write(self, key: str, value: str) -> None:
        self.write_many({key: value})

    def write_many(self, items: Mapping[str, str]) -> None:
        # One session, one commit: a failure rolls back every slot in ``items``.
        with self.session_factory() as session:
            for key, value in items.items():
                self._upsert(session, key, value)
            session.commit()

    def delete(self, key: str) -> None:
        with self.session_factory() as session:
            slot = session.exec(select(StorageSlot).where(StorageSlot.key == key)).first()
            if slot:
                session.delete(slot)
                session.commit()


class InMemorySlotStore:
    """Dictionary-backed slot store for tests and throwaway sessions."""

    def __init__(self, initial: dict[str, str] | None = None):
        self.slots: dict[str, str] = dict(initial or {})
        self.writes = 0

    def read(self, key: str) -> Optional[str]:
        return self.slots.get(key)

    def write(self, key: str, value: str) -> None:
        self.write_many({key: value})

    def write_many(self, items: Mapping[str, str]) -> None:
        self.slots.update(items)
        self.writes += len(items)

    def delete(self, key: str) -> None:
        self.slots.pop(key, None)


__all__ = ["InMemorySlotStore", "SQLModelSlotStore"]
