"""Human-readable and JSON renderings of a finished merge run."""

from __future__ import annotations

from datetime import datetime, timezone
from pathlib import Path
from typing import TYPE_CHECKING, Any

from rich.markup import escape
from rich.table import Table

from treemerge.merger.models import MergeOutcome, MergeStats
from treemerge.utils import console, format_duration, print_details, save_json

if TYPE_CHECKING:
    from treemerge.pipeline import MergeRun


_OUTCOME_ROWS: tuple[tuple[str, str, str], ...] = (
    ("Created", "created", "green"),
    ("Preserved", "preserved", "yellow"),
    ("Skipped", "skipped", "dim"),
)


def build_stats_table(stats: MergeStats, title: str = "Merge Summary") -> Table:
    """Return a Rich table with one row per outcome and folder/file columns."""
    table = Table(title=title, show_header=True, header_style="bold cyan")
    table.add_column("Outcome", no_wrap=True)
    table.add_column("Folders", justify="right")
    table.add_column("Files", justify="right")
    table.add_column("Total", justify="right")

    for label, attribute, style in _OUTCOME_ROWS:
        counts = getattr(stats, attribute)
        table.add_row(
            f"[{style}]{label}[/{style}]",
            str(counts.folders),
            str(counts.files),
            str(counts.total),
        )
    return table


def updated_files(stats: MergeStats) -> list[str]:
    """Paths of placeholder files that were refilled (counted as created)."""
    return [a.path for a in stats.actions if a.outcome is MergeOutcome.UPDATE]


def print_merge_summary(run: "MergeRun") -> None:
    """Print the outcome table followed by any per-node errors."""
    console.print()
    console.print(build_stats_table(run.stats))

    refilled = updated_files(run.stats)
    details = {
        "Target": str(run.target),
        "Project type": run.project_type,
        "Duration": format_duration(run.duration),
    }
    if refilled:
        details["Refilled placeholders"] = str(len(refilled))
    if run.stats.cancelled:
        details["Status"] = "cancelled before completion"
    print_details(details, title="Run")

    if run.stats.errors:
        console.print("[red bold]Errors:[/red bold]")
        for err in run.stats.errors:
            console.print(f"  [red]- {escape(err.path)}: {escape(err.message)}[/red]")
        console.print("")


def build_report(run: "MergeRun") -> dict[str, Any]:
    """JSON-ready report: counters, every decision, warnings, issues and errors."""
    return {
        "generated_at": datetime.now(timezone.utc).isoformat(),
        "target": str(run.target),
        "project_type": run.project_type,
        "duration_seconds": round(run.duration, 3),
        "stats": run.stats.model_dump(mode="json"),
        "warnings": [w.model_dump(mode="json") for w in run.warnings],
        "issues": [i.model_dump(mode="json") for i in run.issues],
    }


async def write_report(run: "MergeRun", path: str | Path) -> Path:
    """Write :func:`build_report` output to *path* and return the path."""
    target = Path(path)
    await save_json(build_report(run), target)
    return target
