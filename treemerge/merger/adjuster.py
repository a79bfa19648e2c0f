"""Adapt a parsed tree to the project it is being merged into.

Three passes, each producing new nodes rather than editing the input:

1. Fold duplicate siblings (same kind and name) into their first occurrence.
2. Remap top-level folders onto the framework's canonical parent when that
   parent already exists on disk (``components`` -> ``src/components``).
3. Drop files whose on-disk counterpart is critical or already holds
   meaningful content.  Folders are always kept: an existing folder is
   merged into, never blocked.

Filtering runs after remapping so it inspects the file the executor would
actually touch.
"""

from __future__ import annotations

from pathlib import Path

from pydantic import BaseModel, Field

from treemerge.merger.models import ProjectContext
from treemerge.merger.rules import (
    FileState,
    convention_for,
    display_path,
    inspect_file,
    is_critical_file,
    is_sensitive_folder,
    resolve_node_path,
)
from treemerge.merger.safety import is_within_root
from treemerge.parser.models import Node, NodeKind


class DroppedNode(BaseModel):
    """A file removed from the incoming tree because the disk copy wins."""
    path: str = Field(..., description="Path relative to the merge root")
    reason: str = Field(..., description="Why the file was held back")


class StructureAdjuster:
    """Rewrites an incoming tree against the live state of the merge root.

    Attributes:
        context: The detected project the tree is merged into.
        dropped: Files held back by the last :meth:`adjust` call.
    """

    def __init__(self, context: ProjectContext, *, apply_conventions: bool = True) -> None:
        self.context = context
        self.apply_conventions = apply_conventions
        self.dropped: list[DroppedNode] = []
        self._keep_held = False

    @property
    def root(self) -> Path:
        return self.context.base_path

    # -- Public API --------------------------------------------------------

    def adjust(self, nodes: list[Node], *, keep_held: bool = False) -> list[Node]:
        """Return the adjusted tree. Never contains more nodes than *nodes*.

        With *keep_held*, held-back files stay in the returned tree and are
        only listed in :attr:`dropped`, so a later walk can report them in
        tree order.
        """
        self.dropped = []
        self._keep_held = keep_held
        folded = _fold_duplicates(nodes)
        if self.apply_conventions:
            folded = self._remap(folded)
        return self._filter(folded, self.root, top_level=True)

    # -- Convention remapping ----------------------------------------------

    def _remap(self, nodes: list[Node]) -> list[Node]:
        framework = self.context.framework_tag
        convention = convention_for(framework)
        if convention is None:
            return nodes

        parent_dir = self.root / convention.parent
        if not parent_dir.is_dir():
            return nodes

        remapped: list[Node] = []
        for node in nodes:
            if (
                node.kind is NodeKind.FOLDER
                and node.target_path is None
                and node.name.lower() in convention.folders
                and not (self.root / node.name).exists()
            ):
                node = node.model_copy(update={"target_path": f"{convention.parent}/{node.name}"})
            remapped.append(node)
        return remapped

    # -- Conflict filtering ------------------------------------------------

    def _filter(self, nodes: list[Node], parent_dir: Path, *, top_level: bool) -> list[Node]:
        kept: list[Node] = []
        for node in nodes:
            path = resolve_node_path(node, parent_dir, self.root, top_level=top_level)
            if not is_within_root(path, self.root):
                # Left for the executor, which refuses and records it.
                kept.append(node)
                continue

            if node.kind is NodeKind.FOLDER:
                if is_sensitive_folder(node.name) or not node.children:
                    kept.append(node)
                    continue
                children = self._filter(node.children, path, top_level=False)
                kept.append(node.model_copy(update={"children": children}))
                continue

            try:
                reason = self._drop_reason(node, path)
            except OSError:
                # The executor hits the same error and records it.
                reason = ""
            if reason:
                self.dropped.append(DroppedNode(path=display_path(path, self.root), reason=reason))
            if not reason or self._keep_held:
                kept.append(node)
        return kept

    def _drop_reason(self, node: Node, path: Path) -> str:
        if not path.is_file():
            return ""
        if is_critical_file(node.name, self.context.framework_tag):
            return "critical file"
        if inspect_file(path).state is FileState.MEANINGFUL:
            return "existing content"
        # Placeholders are kept for repopulation; unreadable files are left to
        # the executor, which records the error and preserves them.
        return ""


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def _fold_duplicates(nodes: list[Node]) -> list[Node]:
    """Merge repeated siblings into their first occurrence, recursively."""
    order: list[tuple[NodeKind, str]] = []
    merged: dict[tuple[NodeKind, str], Node] = {}
    for node in nodes:
        key = (node.kind, node.name)
        if key not in merged:
            order.append(key)
            merged[key] = node
        elif node.kind is NodeKind.FOLDER:
            first = merged[key]
            merged[key] = first.model_copy(update={"children": [*first.children, *node.children]})

    result: list[Node] = []
    for key in order:
        node = merged[key]
        if node.children:
            node = node.model_copy(update={"children": _fold_duplicates(node.children)})
        result.append(node)
    return result
