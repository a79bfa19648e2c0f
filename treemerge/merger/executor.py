"""Walk an adjusted tree against the live filesystem and apply it.

The walk is depth-first and pre-order: a folder is created (or found) before
any of its children are visited.  Every filesystem call runs through
``asyncio.to_thread`` and is awaited before the next one starts, so the
event loop stays responsive without any two writes racing each other.
"""

from __future__ import annotations

import asyncio
from pathlib import Path
from typing import Mapping, Optional

from rich.markup import escape

from treemerge.content.provider import ContentProvider
from treemerge.merger.models import MergeOptions, MergeOutcome, MergeStats, ProjectContext
from treemerge.merger.rules import (
    FileState,
    display_path,
    inspect_file,
    is_critical_file,
    is_sensitive_folder,
    resolve_node_path,
)
from treemerge.merger.safety import PathEscapeError, is_within_root
from treemerge.parser.models import Node, NodeKind
from treemerge.utils import console


_OUTCOME_STYLES: dict[MergeOutcome, tuple[str, str]] = {
    MergeOutcome.CREATE: ("+", "green"),
    MergeOutcome.UPDATE: ("~", "cyan"),
    MergeOutcome.PRESERVE: ("=", "yellow"),
    MergeOutcome.SKIP: ("-", "dim"),
}


class MergeExecutor:
    """Applies create / preserve / skip / update decisions node by node.

    A filesystem error on one node is recorded in ``stats.errors`` and the
    walk carries on with its siblings.

    Attributes:
        context: The project being merged into; ``base_path`` is the merge root.
        provider: Source of default content for created and updated files.
        options: Run switches (directories only, critical skipping, verbosity).
        held_back: Display path -> reason for files the adjuster decided to
            keep as they are.  They are reported as preserved when the walk
            reaches them.
    """

    def __init__(
        self,
        context: ProjectContext,
        provider: ContentProvider,
        options: Optional[MergeOptions] = None,
        held_back: Optional[Mapping[str, str]] = None,
    ) -> None:
        self.context = context
        self.provider = provider
        self.options = options or MergeOptions()
        self.held_back: Mapping[str, str] = held_back or {}

    @property
    def root(self) -> Path:
        return self.context.base_path

    # -- Public API --------------------------------------------------------

    async def execute(
        self,
        nodes: list[Node],
        stats: Optional[MergeStats] = None,
        cancel_event: Optional[asyncio.Event] = None,
    ) -> MergeStats:
        """Merge *nodes* into the merge root and return the filled-in stats.

        Args:
            nodes: Adjusted root nodes.
            stats: Accumulator to extend; a fresh one is created if omitted.
            cancel_event: When set, the walk stops before the next sibling
                and ``stats.cancelled`` is raised.
        """
        if stats is None:
            stats = MergeStats()
        await self._walk(nodes, self.root, stats, cancel_event, top_level=True)
        return stats

    # -- Walk --------------------------------------------------------------

    async def _walk(
        self,
        nodes: list[Node],
        parent_dir: Path,
        stats: MergeStats,
        cancel_event: Optional[asyncio.Event],
        *,
        top_level: bool = False,
    ) -> bool:
        """Visit *nodes* in order. Returns ``False`` once cancellation is seen."""
        handlers = {
            NodeKind.FOLDER: self._merge_folder,
            NodeKind.FILE: self._merge_file,
        }
        for node in nodes:
            if cancel_event is not None and cancel_event.is_set():
                stats.cancelled = True
                return False
            path = resolve_node_path(node, parent_dir, self.root, top_level=top_level)
            if not await asyncio.to_thread(is_within_root, path, self.root):
                shown = display_path(path, self.root)
                stats.record_error(shown, PathEscapeError(f"'{node.name}' resolves outside the merge root"))
                self._record(stats, node, MergeOutcome.SKIP, shown, "outside the merge root")
                continue
            if not await handlers[node.kind](node, path, stats, cancel_event):
                return False
        return True

    async def _merge_folder(
        self,
        node: Node,
        path: Path,
        stats: MergeStats,
        cancel_event: Optional[asyncio.Event],
    ) -> bool:
        shown = display_path(path, self.root)
        exists = await asyncio.to_thread(path.exists)

        if is_sensitive_folder(node.name):
            if exists:
                self._record(stats, node, MergeOutcome.PRESERVE, shown, "sensitive folder left alone")
            else:
                self._record(stats, node, MergeOutcome.SKIP, shown, "sensitive folder not created")
            return True

        if exists:
            if not await asyncio.to_thread(path.is_dir):
                stats.record_error(shown, NotADirectoryError(f"{shown} exists and is not a folder"))
                self._record(stats, node, MergeOutcome.SKIP, shown, "a file is in the way")
                return True
            self._record(stats, node, MergeOutcome.PRESERVE, shown, "folder exists")
        else:
            try:
                await asyncio.to_thread(path.mkdir, parents=True, exist_ok=True)
            except OSError as exc:
                stats.record_error(shown, exc)
                return True
            self._record(stats, node, MergeOutcome.CREATE, shown, "folder created")

        return await self._walk(node.children, path, stats, cancel_event)

    async def _merge_file(
        self,
        node: Node,
        path: Path,
        stats: MergeStats,
        cancel_event: Optional[asyncio.Event],
    ) -> bool:
        shown = display_path(path, self.root)

        if self.options.dirs_only:
            self._record(stats, node, MergeOutcome.SKIP, shown, "directories only")
            return True

        held_reason = self.held_back.get(shown)
        if held_reason is not None:
            self._record(stats, node, MergeOutcome.PRESERVE, shown, held_reason)
            return True

        if (
            self.options.skip_critical
            and is_critical_file(node.name, self.context.framework_tag)
            and await asyncio.to_thread(path.exists)
        ):
            self._record(stats, node, MergeOutcome.PRESERVE, shown, "critical file")
            return True

        inspection = await asyncio.to_thread(inspect_file, path)

        if inspection.state is FileState.NOT_A_FILE:
            stats.record_error(shown, IsADirectoryError(f"{shown} exists and is not a file"))
            self._record(stats, node, MergeOutcome.SKIP, shown, "a folder is in the way")
            return True
        if inspection.state is FileState.UNREADABLE:
            stats.record_error(shown, inspection.error or OSError("unreadable"))
            self._record(stats, node, MergeOutcome.PRESERVE, shown, "unreadable, left as is")
            return True
        if inspection.state is FileState.MEANINGFUL:
            self._record(stats, node, MergeOutcome.PRESERVE, shown, "existing content")
            return True

        content = self.provider.get_default_content(node.name)

        if inspection.state is FileState.PLACEHOLDER:
            if content == inspection.content:
                self._record(stats, node, MergeOutcome.PRESERVE, shown, "already holds the default")
                return True
            outcome, reason = MergeOutcome.UPDATE, "placeholder replaced"
        else:
            outcome, reason = MergeOutcome.CREATE, "file created"

        try:
            await asyncio.to_thread(_write_file, path, content)
        except OSError as exc:
            stats.record_error(shown, exc)
            return True
        self._record(stats, node, outcome, shown, reason)
        return True

    # -- Helpers -----------------------------------------------------------

    def _record(
        self,
        stats: MergeStats,
        node: Node,
        outcome: MergeOutcome,
        shown: str,
        reason: str,
    ) -> None:
        stats.record(node.kind, outcome, shown, reason)
        if self.options.verbose:
            symbol, color = _OUTCOME_STYLES[outcome]
            console.print(f"  [{color}]{symbol}[/{color}] {escape(shown)} [dim]({reason})[/dim]")


def _write_file(path: Path, content: str) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(content, encoding="utf-8")
