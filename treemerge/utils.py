"""Shared utility functions for treemerge.

The Rich console every module prints through, manifest and report JSON
I/O, and the status lines and detail block the CLI prints around a merge.
"""

from __future__ import annotations

import asyncio
import json
from pathlib import Path
from typing import Any

from rich.console import Console
from rich.rule import Rule
from rich.table import Table

console = Console()

# ---------------------------------------------------------------------------
# JSON I/O
# ---------------------------------------------------------------------------


def load_json(path: str | Path) -> Any:
    """Parse the JSON document at *path*.

    The top-level value is returned as is; manifest readers check that it
    is an object before looking inside.

    Raises:
        FileNotFoundError: If the file does not exist.
        json.JSONDecodeError: If the file is not valid JSON.
    """
    return json.loads(Path(path).read_text(encoding="utf-8"))


async def save_json(data: dict[str, Any] | list[Any], path: str | Path) -> None:
    """Save data as pretty-printed JSON.

    Parent directories are created automatically and the write runs in a
    worker thread so the event loop is not blocked.
    """
    file_path = Path(path)
    content = json.dumps(data, indent=2, ensure_ascii=False, default=str)

    def _write() -> None:
        file_path.parent.mkdir(parents=True, exist_ok=True)
        file_path.write_text(content, encoding="utf-8")

    await asyncio.to_thread(_write)


async def read_text(path: str | Path) -> str:
    """Read a UTF-8 text file off the event loop.

    Raises:
        FileNotFoundError: If the file does not exist.
    """
    file_path = Path(path)
    if not file_path.exists():
        raise FileNotFoundError(f"File not found: {file_path}")
    return await asyncio.to_thread(file_path.read_text, "utf-8")


# ---------------------------------------------------------------------------
# Formatting helpers
# ---------------------------------------------------------------------------


def format_duration(seconds: float) -> str:
    """Render a run time: ``"3.7s"`` under a minute, ``"1m 5s"`` or ``"1h 1m 1s"`` above.

    Negative values (clock skew) read as zero.
    """
    seconds = max(seconds, 0.0)
    if seconds < 60:
        return f"{seconds:.1f}s"
    minutes, secs = divmod(int(seconds), 60)
    hours, minutes = divmod(minutes, 60)
    if hours:
        return f"{hours}h {minutes}m {secs}s"
    return f"{minutes}m {secs}s"


def pluralize(count: int, word: str, plural: str | None = None) -> str:
    """``pluralize(1, "file") -> "1 file"``, ``pluralize(2, "file") -> "2 files"``."""
    if count == 1:
        return f"{count} {word}"
    return f"{count} {plural or word + 's'}"


# ---------------------------------------------------------------------------
# Rich output helpers
# ---------------------------------------------------------------------------


def print_section_header(name: str, color: str = "bright_cyan") -> None:
    """Print a full-width rule announcing a stage of the run."""
    console.print()
    console.print(Rule(f"[bold {color}] {name} [/bold {color}]", style=color))
    console.print()


def print_details(details: dict[str, str], title: str) -> None:
    """Print *details* as a headerless label / value block under *title*."""
    table = Table(title=title, title_justify="left", show_header=False, box=None, padding=(0, 2))
    table.add_column(style="bold", no_wrap=True)
    table.add_column()
    for label, value in details.items():
        table.add_row(label, value)
    console.print(table)
    console.print()


def print_success(message: str) -> None:
    console.print(f"[bold green]✓[/bold green] {message}")


def print_error(message: str) -> None:
    console.print(f"[bold red]✗ {message}[/bold red]")


def print_warning(message: str) -> None:
    """One line per skipped entry or validation issue; *message* may hold markup."""
    console.print(f"[yellow]![/yellow] {message}")
