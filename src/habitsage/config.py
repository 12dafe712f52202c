"""Application configuration objects and helpers."""

from __future__ import annotations

import os
import platform
from pathlib import Path
from typing import Any

from dotenv import load_dotenv

load_dotenv()


def _env_bool(name: str, default: bool = False) -> bool:
    """Interpret environment variable values as booleans."""

    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() in {"1", "true", "yes", "on"}


class BaseConfig:
    """Base configuration shared across environments."""

    APP_NAME = "HabitSage"
    DB_FILENAME = "habitsage.db"
    EXPORT_RETENTION = 5
    HABITS_SLOT = "habitsage_habits"
    COMPLETIONS_SLOT = "habitsage_completions"
    SYNC_CODE_SLOT = "habitsage_sync_code"
    LAST_SYNC_SLOT = "habitsage_last_sync"

    def __init__(self) -> None:
        self.DATA_DIR = self._resolve_data_dir()
        self.DEV_MODE = _env_bool("HABITSAGE_DEV_MODE", default=True)
        self.DATABASE_URL = os.getenv("HABITSAGE_DATABASE_URL", self._build_sqlite_url())
        self.SYNC_DATABASE_URL = os.getenv("HABITSAGE_SYNC_DATABASE_URL") or self.DATABASE_URL
        self.DEVICE_NAME = os.getenv("HABITSAGE_DEVICE_NAME") or platform.system() or "Unknown"

    def _resolve_data_dir(self) -> Path:
        """Return the directory where the SQLite file, exports and logs live."""

        data_root = os.getenv("HABITSAGE_DATA_DIR", "instance")
        base_path = Path(data_root).expanduser()
        try:
            path = base_path.resolve()
            path.mkdir(parents=True, exist_ok=True)
            return path
        except PermissionError:
            # Protected install locations fall back to per-user storage.
            fallback_path = Path.home() / f".{self.APP_NAME.lower()}"
            fallback_path.mkdir(parents=True, exist_ok=True)
            return fallback_path.resolve()

    def _build_sqlite_url(self) -> str:
        db_path = self.DATA_DIR / self.DB_FILENAME
        return f"sqlite:///{db_path}"

    @property
    def export_dir(self) -> Path:
        return self.DATA_DIR / "exports"

    def sqlalchemy_engine_options(self, url: str | None = None) -> dict[str, Any]:
        """Expose engine kwargs for SQLModel to consume."""

        target = url or self.DATABASE_URL
        if target.startswith("sqlite"):
            return {"connect_args": {"check_same_thread": False}}
        return {"pool_pre_ping": True}


__all__ = ["BaseConfig"]
