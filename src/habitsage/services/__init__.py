"""Service module exports."""

from . import (
    analytics,
    cloud_sync,
    export_json,
    ledger,
    reports,
    schedule,
    snapshot,
    streaks,
)

__all__ = [
    "analytics",
    "cloud_sync",
    "export_json",
    "ledger",
    "reports",
    "schedule",
    "snapshot",
    "streaks",
]
