"""Slot store protocol."""

from __future__ import annotations

from typing import Mapping, Optional, Protocol


class SlotStore(Protocol):
    """Named key/value slots each holding one serialized collection."""

    def read(self, key: str) -> Optional[str]:
        """Return the stored value, or None when the slot is empty."""
        ...

    def write(self, key: str, value: str) -> None:
        """Overwrite the slot with ``value``."""
        ...

    def write_many(self, items: Mapping[str, str]) -> None:
        """Overwrite several slots together; either all are written or none."""
        ...

    def delete(self, key: str) -> None:
        """Remove the slot if present."""
        ...
