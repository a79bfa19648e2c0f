"""treemerge orchestrator and command-line entry point.

Runs one merge end to end:

1. Safety check   -- refuse protected or non-directory merge roots.
2. Parse          -- text tree to nodes, collecting warnings.
3. Validate       -- report suspicious names (never blocks).
4. Adjust         -- framework remapping and conflict filtering.
5. Execute        -- create / preserve / skip / update on disk.

Usage::

    treemerge structure.txt --target ./my-app
    pbpaste | treemerge - --dirs-only
"""

from __future__ import annotations

import asyncio
import sys
import time
from pathlib import Path
from typing import Optional

from pydantic import BaseModel, Field, ValidationError
from rich.markup import escape

from treemerge.config import Config
from treemerge.content import ContentProvider, EmptyContentProvider, TemplateContentProvider
from treemerge.detector import detect_project
from treemerge.merger import merge_tree
from treemerge.merger.models import MergeOptions, MergeStats, ProjectContext
from treemerge.merger.safety import UnsafeTargetError, ensure_safe_target
from treemerge.parser import parse_tree, validate_tree
from treemerge.parser.models import ParseWarning, ValidationIssue
from treemerge.reporter import print_merge_summary, write_report
from treemerge.utils import (
    console,
    pluralize,
    print_error,
    print_section_header,
    print_success,
    print_warning,
    read_text,
)


EXIT_FATAL = 1
EXIT_NODE_ERRORS = 2


# ---------------------------------------------------------------------------
# Result model
# ---------------------------------------------------------------------------


class MergeRun(BaseModel):
    """Everything one call to :func:`merge_structure` produced."""

    target: Path = Field(..., description="Merge root the tree was applied to")
    project_type: str = Field(default="unknown")
    stats: MergeStats = Field(default_factory=MergeStats)
    warnings: list[ParseWarning] = Field(default_factory=list)
    issues: list[ValidationIssue] = Field(default_factory=list)
    duration: float = Field(default=0.0, ge=0.0, description="Wall-clock seconds")

    @property
    def has_errors(self) -> bool:
        return bool(self.stats.errors)


# ---------------------------------------------------------------------------
# Library entry points
# ---------------------------------------------------------------------------


async def merge_structure(
    text: str,
    context: ProjectContext,
    *,
    options: Optional[MergeOptions] = None,
    provider: Optional[ContentProvider] = None,
    cancel_event: Optional[asyncio.Event] = None,
) -> MergeRun:
    """Parse *text* and merge it into ``context.base_path``.

    Raises:
        UnsafeTargetError: The merge root is protected; nothing was written.
    """
    start = time.monotonic()
    await asyncio.to_thread(ensure_safe_target, context.base_path)

    parsed = parse_tree(text)
    issues = validate_tree(parsed.nodes)
    stats = await merge_tree(
        parsed.nodes,
        context,
        provider or TemplateContentProvider(),
        options,
        cancel_event=cancel_event,
    )
    return MergeRun(
        target=context.base_path,
        project_type=context.type,
        stats=stats,
        warnings=parsed.warnings,
        issues=issues,
        duration=time.monotonic() - start,
    )


def build_context(config: Config) -> ProjectContext:
    """Detect the project under ``config.target_dir`` or use it as-is."""
    if config.detect_project:
        return detect_project(config.target_dir)
    return ProjectContext(base_path=config.target_dir)


async def run(text: str, config: Config) -> MergeRun:
    """Merge *text* as configured and write the JSON report if one is requested."""
    context = await asyncio.to_thread(build_context, config)
    provider: ContentProvider = EmptyContentProvider() if config.empty_files else TemplateContentProvider()
    result = await merge_structure(text, context, options=config.options, provider=provider)
    if config.report_path is not None:
        await write_report(result, config.report_path)
    return result


# ---------------------------------------------------------------------------
# CLI
# ---------------------------------------------------------------------------


def _print_findings(text: str) -> int:
    """Print parse warnings and validation issues. Returns the node count."""
    parsed = parse_tree(text)
    for warning in parsed.warnings:
        print_warning(f"Skipped {escape(str(warning))}")
    for issue in validate_tree(parsed.nodes):
        print_warning(f"{escape(issue.path)}: {escape(issue.message)}")
    return parsed.node_count


def main(argv: Optional[list[str]] = None) -> None:
    """CLI entry point for ``treemerge``."""
    import argparse

    parser = argparse.ArgumentParser(
        prog="treemerge",
        description="Merge a pasted directory tree into a project without overwriting real work",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=(
            "Examples:\n"
            "  treemerge structure.txt\n"
            "  treemerge structure.txt --target ./my-app --dirs-only\n"
            "  pbpaste | treemerge - --report merge-report.json\n"
        ),
    )
    parser.add_argument("structure", help="Path to the tree text file, or '-' to read stdin")
    parser.add_argument("--target", "-t", default=None, help="Merge root (default: current directory)")
    parser.add_argument("--dirs-only", action="store_true", help="Create folders only, never files")
    parser.add_argument(
        "--no-skip-critical", action="store_true",
        help="Inspect critical files like any other file (existing ones are still kept)",
    )
    parser.add_argument("--no-detect", action="store_true", help="Skip framework and nested-project detection")
    parser.add_argument("--no-conventions", action="store_true", help="Do not remap folders to framework layouts")
    parser.add_argument("--empty-files", action="store_true", help="Create new files empty")
    parser.add_argument("--quiet", "-q", action="store_true", help="Do not print one line per decision")
    parser.add_argument("--report", default=None, help="Write a JSON report of the run to this path")

    args = parser.parse_args(argv)

    try:
        config = Config.from_env()
    except ValidationError as exc:
        console.print(f"[bold red]Error:[/bold red] Invalid TREEMERGE_* environment setting: {escape(str(exc))}")
        sys.exit(EXIT_FATAL)

    if args.target is not None:
        config.target_dir = Path(args.target)
    if args.no_detect:
        config.detect_project = False
    if args.empty_files:
        config.empty_files = True
    if args.report:
        config.report_path = Path(args.report)
    if args.dirs_only:
        config.options.dirs_only = True
    if args.no_skip_critical:
        config.options.skip_critical = False
    if args.no_conventions:
        config.options.apply_conventions = False
    if args.quiet:
        config.options.verbose = False

    try:
        if args.structure == "-":
            text = sys.stdin.read()
        else:
            text = asyncio.run(read_text(args.structure))
    except (OSError, UnicodeDecodeError) as exc:
        console.print(f"[bold red]Error:[/bold red] Cannot read structure: {escape(str(exc))}")
        sys.exit(EXIT_FATAL)

    print_section_header("Structure")
    node_count = _print_findings(text)
    if node_count == 0:
        console.print("[bold red]Error:[/bold red] No folders or files found in the structure")
        sys.exit(EXIT_FATAL)
    console.print(f"Parsed {pluralize(node_count, 'entry', 'entries')}.")

    print_section_header("Merge")
    try:
        result = asyncio.run(run(text, config))
    except UnsafeTargetError as exc:
        console.print(f"[bold red]Error:[/bold red] {escape(str(exc))}")
        sys.exit(EXIT_FATAL)

    print_merge_summary(result)
    if config.report_path is not None:
        console.print(f"Report written to {escape(str(config.report_path))}")

    if result.has_errors:
        print_error(f"Merge finished with {pluralize(len(result.stats.errors), 'error')}.")
        sys.exit(EXIT_NODE_ERRORS)
    print_success("Merge completed successfully!")


if __name__ == "__main__":
    main()
