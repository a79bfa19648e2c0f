"""Non-destructive merge of a parsed tree into a real directory.

Usage::

    from treemerge.merger import merge_tree

    stats = await merge_tree(nodes, context, provider)
    print(stats.created, stats.preserved, stats.skipped)
"""

from __future__ import annotations

import asyncio
from typing import Optional

from treemerge.content.provider import ContentProvider
from treemerge.merger.adjuster import DroppedNode, StructureAdjuster
from treemerge.merger.executor import MergeExecutor
from treemerge.merger.models import (
    FrameworkTag,
    ItemCounts,
    MergeAction,
    MergeError,
    MergeOptions,
    MergeOutcome,
    MergeStats,
    ProjectContext,
)
from treemerge.merger.rules import is_critical_file, is_meaningful_content, is_sensitive_folder
from treemerge.merger.safety import PathEscapeError, UnsafeTargetError, ensure_safe_target, is_within_root
from treemerge.parser.models import Node


async def merge_tree(
    nodes: list[Node],
    context: ProjectContext,
    provider: ContentProvider,
    options: Optional[MergeOptions] = None,
    *,
    cancel_event: Optional[asyncio.Event] = None,
) -> MergeStats:
    """Adjust *nodes* to the project and merge them into ``context.base_path``.

    The safety check runs first and nothing is written if it fails.  Files
    the adjuster holds back are reported as preserved where the walk meets
    them, so every file in the incoming tree shows up in the returned stats
    exactly once and in tree order.

    Raises:
        UnsafeTargetError: The merge root is protected or is not a folder.
    """
    options = options or MergeOptions()
    root = await asyncio.to_thread(ensure_safe_target, context.base_path)
    await asyncio.to_thread(root.mkdir, parents=True, exist_ok=True)

    adjuster = StructureAdjuster(context, apply_conventions=options.apply_conventions)
    adjusted = await asyncio.to_thread(adjuster.adjust, nodes, keep_held=True)
    held_back = {dropped.path: dropped.reason for dropped in adjuster.dropped}

    executor = MergeExecutor(context, provider, options, held_back=held_back)
    return await executor.execute(adjusted, MergeStats(), cancel_event)


__all__ = [
    "merge_tree",
    "ensure_safe_target",
    "is_within_root",
    "is_critical_file",
    "is_meaningful_content",
    "is_sensitive_folder",
    "DroppedNode",
    "FrameworkTag",
    "ItemCounts",
    "MergeAction",
    "MergeError",
    "MergeExecutor",
    "MergeOptions",
    "MergeOutcome",
    "MergeStats",
    "PathEscapeError",
    "ProjectContext",
    "StructureAdjuster",
    "UnsafeTargetError",
]
