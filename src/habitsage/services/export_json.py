"""JSON export/import of the habit snapshot."""

from __future__ import annotations

import json
from datetime import date
from pathlib import Path

from ..logging_config import get_logger
from .snapshot import HabitSnapshotManager

logger = get_logger(__name__)

EXPORT_PREFIX = "habitsage-backup-"


def export_filename(day: date | None = None) -> str:
    return f"{EXPORT_PREFIX}{(day or date.today()).isoformat()}.json"


def _prune_old_exports(directory: Path, keep: int) -> None:
    """Keep only the newest ``keep`` export files in ``directory``."""

    exports = sorted(
        directory.glob(f"{EXPORT_PREFIX}*.json"),
        key=lambda p: p.stat().st_mtime,
        reverse=True,
    )
    for stale in exports[keep:]:
        stale.unlink(missing_ok=True)


def export_snapshot_json(
    manager: HabitSnapshotManager,
    *,
    output_path: Path | None = None,
    output_dir: Path | None = None,
    retention: int | None = None,
) -> Path:
    """Write ``{habits, completions, exportedAt}`` to disk and return the path.

    Either ``output_path`` names the file, or the file lands in ``output_dir``
    under a dated name. ``retention`` prunes older dated exports in that
    directory.
    """

    if output_path is None:
        if output_dir is None:
            raise ValueError("output_path or output_dir is required")
        output_path = output_dir / export_filename()
    output_path.parent.mkdir(parents=True, exist_ok=True)

    snapshot = manager.export_snapshot()
    with output_path.open("w", encoding="utf-8") as fh:
        json.dump(snapshot, fh, indent=2)

    if retention is not None:
        _prune_old_exports(output_path.parent, keep=retention)
    logger.info(
        "Exported habit snapshot",
        extra={
            "path": str(output_path),
            "habits": len(snapshot["habits"]),
            "completions": len(snapshot["completions"]),
        },
    )
    return output_path


def import_snapshot_json(manager: HabitSnapshotManager, text: str) -> bool:
    """Replace the snapshot from an export document; False on any invalid input."""

    try:
        data = json.loads(text)
    except json.JSONDecodeError as exc:
        logger.warning("Import rejected: invalid JSON (%s)", exc)
        return False
    if not isinstance(data, dict) or "habits" not in data or "completions" not in data:
        logger.warning("Import rejected: document needs 'habits' and 'completions'")
        return False
    return manager.replace_all(data["habits"], data["completions"])


def import_snapshot_file(manager: HabitSnapshotManager, path: Path) -> bool:
    try:
        text = path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as exc:
        logger.warning("Import rejected: cannot read %s (%s)", path, exc)
        return False
    return import_snapshot_json(manager, text)


__all__ = [
    "export_filename",
    "export_snapshot_json",
    "import_snapshot_file",
    "import_snapshot_json",
]
