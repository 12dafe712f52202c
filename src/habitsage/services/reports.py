"""Reporting utilities for HabitSage."""

from __future__ import annotations

from pathlib import Path
from typing import Protocol, Sequence

import matplotlib.pyplot as plt
from matplotlib.figure import Figure

from ..models.habit import DayData


class ReportRenderer(Protocol):
    """Protocol describing renderer behavior."""

    def render(self, figure: Figure, *, output_path: Path) -> None:  # pragma: no cover - interface
        ...


def build_week_chart(series: Sequence[DayData]) -> Figure:
    """Bar chart of completed vs scheduled habits per day."""

    labels = [d.date.strftime("%a") for d in series]
    totals = [d.total_count for d in series]
    completed = [d.completed_count for d in series]

    fig, ax = plt.subplots(figsize=(8, 4.5))
    if series and any(totals):
        positions = range(len(series))
        ax.bar(positions, totals, color="#E5E7EB", label="Scheduled", width=0.6)
        ax.bar(positions, completed, color="#6366F1", label="Completed", width=0.6)
        ax.set_xticks(list(positions))
        ax.set_xticklabels(labels)
        ax.set_ylabel("Habits")
        ax.legend(loc="upper left", fontsize=9, framealpha=0.9)
        for x, d in zip(positions, series):
            if d.total_count:
                ax.text(x, d.total_count, f"{d.percentage}%", ha="center", va="bottom", fontsize=8)
        ax.set_title("This Week", fontsize=14, fontweight="bold")
    else:
        ax.text(0.5, 0.5, "No habits scheduled", ha="center", va="center", fontsize=14, color="#666")
        ax.axis("off")

    plt.tight_layout()
    return fig


def build_month_chart(series: Sequence[DayData]) -> Figure:
    """Area chart of the daily completion percentage."""

    fig, ax = plt.subplots(figsize=(10, 4.5))
    if series:
        positions = list(range(len(series)))
        values = [d.percentage for d in series]
        ax.fill_between(positions, values, color="#6366F1", alpha=0.25)
        ax.plot(positions, values, color="#6366F1", linewidth=2)
        step = max(len(series) // 6, 1)
        ax.set_xticks(positions[::step])
        ax.set_xticklabels([d.date.strftime("%b %d") for d in series][::step])
        ax.set_ylim(0, 100)
        ax.set_ylabel("Completion %")
        ax.grid(axis="y", linestyle="--", alpha=0.4)
        ax.set_title("30-Day Trend", fontsize=14, fontweight="bold")
    else:
        ax.text(0.5, 0.5, "No data", ha="center", va="center", fontsize=14, color="#666")
        ax.axis("off")

    plt.tight_layout()
    return fig


def export_progress_png(
    *,
    series: Sequence[DayData],
    output_path: Path,
    kind: str = "week",
    renderer: ReportRenderer | None = None,
) -> Path:
    """Render a week (bar) or month (trend) chart to PNG and return the path."""

    if kind == "week":
        fig = build_week_chart(series)
    elif kind == "month":
        fig = build_month_chart(series)
    else:
        raise ValueError(f"Unknown chart kind: {kind!r}")

    output_path.parent.mkdir(parents=True, exist_ok=True)
    if renderer is not None:
        renderer.render(fig, output_path=output_path)
    else:
        fig.savefig(output_path, bbox_inches="tight", dpi=120)
    plt.close(fig)
    return output_path


__all__ = ["build_month_chart", "build_week_chart", "export_progress_png"]
