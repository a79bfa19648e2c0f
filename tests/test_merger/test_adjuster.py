"""Unit tests for the structure adjuster (treemerge.merger.adjuster).

Tests cover:
- Folders are always kept, files are dropped only for critical/meaningful content
- Framework convention remapping and its guards
- Filtering against the remapped path
- Duplicate sibling folding
- Input trees are never mutated
"""

from __future__ import annotations

from pathlib import Path

import pytest

from treemerge.merger.adjuster import StructureAdjuster
from treemerge.merger.models import ProjectContext
from treemerge.parser import parse_tree
from treemerge.parser.models import Node, NodeKind


pytestmark = pytest.mark.unit


def _names(nodes: list[Node]) -> list[str]:
    return [n.name for n in nodes]


# ---------------------------------------------------------------------------
# Conflict filtering
# ---------------------------------------------------------------------------


class TestConflictFiltering:
    def test_nothing_on_disk_keeps_everything(self, context, box_tree_text):
        nodes = parse_tree(box_tree_text).nodes
        adjusted = StructureAdjuster(context).adjust(nodes)

        assert [n.model_dump() for n in adjusted] == [n.model_dump() for n in nodes]

    def test_meaningful_file_is_dropped(self, context, merge_root, make_files):
        make_files(merge_root, {"src/app.js": 'console.log("x")'})
        nodes = parse_tree("src/\n  app.js\n  other.js\n").nodes

        adjuster = StructureAdjuster(context)
        adjusted = adjuster.adjust(nodes)

        assert _names(adjusted) == ["src"]
        assert _names(adjusted[0].children) == ["other.js"]
        assert [(d.path, d.reason) for d in adjuster.dropped] == [("src/app.js", "existing content")]

    def test_placeholder_file_is_kept(self, context, merge_root, make_files):
        make_files(merge_root, {"src/index.css": ""})
        nodes = parse_tree("src/\n  index.css\n").nodes

        adjusted = StructureAdjuster(context).adjust(nodes)
        assert _names(adjusted[0].children) == ["index.css"]

    def test_empty_critical_file_is_dropped(self, context, merge_root, make_files):
        make_files(merge_root, {"package.json": ""})
        adjuster = StructureAdjuster(context)
        adjusted = adjuster.adjust(parse_tree("package.json\n").nodes)

        assert adjusted == []
        assert adjuster.dropped[0].reason == "critical file"

    def test_missing_critical_file_is_kept(self, context):
        adjusted = StructureAdjuster(context).adjust(parse_tree(".gitignore\n").nodes)
        assert _names(adjusted) == [".gitignore"]

    def test_existing_folder_is_kept(self, context, merge_root, make_files):
        make_files(merge_root, {"src": None})
        adjusted = StructureAdjuster(context).adjust(parse_tree("src/\n").nodes)
        assert _names(adjusted) == ["src"]

    def test_sensitive_folder_is_not_descended(self, context, merge_root, make_files):
        make_files(merge_root, {"node_modules/pkg/index.js": "module.exports = 1;"})
        nodes = parse_tree("node_modules/\n  pkg/\n    index.js\n").nodes

        adjuster = StructureAdjuster(context)
        adjusted = adjuster.adjust(nodes)

        assert adjusted[0].children[0].children[0].name == "index.js"
        assert adjuster.dropped == []

    def test_root_named_folder_filters_against_root(self, context, merge_root, make_files):
        make_files(merge_root, {"src/index.js": "start();"})
        nodes = parse_tree("my-app/\n├── src/\n│   └── index.js\n").nodes

        adjuster = StructureAdjuster(context)
        adjusted = adjuster.adjust(nodes)

        assert adjusted[0].children[0].children == []
        assert adjuster.dropped[0].path == "src/index.js"

    def test_never_grows_the_tree(self, context, merge_root, make_files, box_tree_text):
        make_files(merge_root, {"package.json": '{"name": "my-app"}', "README.md": "# App"})
        nodes = parse_tree(box_tree_text).nodes
        adjusted = StructureAdjuster(context).adjust(nodes)
        assert sum(n.count() for n in adjusted) <= sum(n.count() for n in nodes)


# ---------------------------------------------------------------------------
# Convention remapping
# ---------------------------------------------------------------------------


class TestConventionRemapping:
    def test_remaps_when_parent_exists(self, vite_context, merge_root, make_files):
        make_files(merge_root, {"src": None})
        adjusted = StructureAdjuster(vite_context).adjust(parse_tree("components/\n  Button.jsx\n").nodes)

        assert adjusted[0].target_path == "src/components"

    def test_no_remap_without_parent(self, vite_context):
        adjusted = StructureAdjuster(vite_context).adjust(parse_tree("components/\n").nodes)
        assert adjusted[0].target_path is None

    def test_no_remap_when_root_folder_exists(self, vite_context, merge_root, make_files):
        make_files(merge_root, {"src": None, "components": None})
        adjusted = StructureAdjuster(vite_context).adjust(parse_tree("components/\n").nodes)
        assert adjusted[0].target_path is None

    def test_unknown_framework_never_remaps(self, context, merge_root, make_files):
        make_files(merge_root, {"src": None})
        adjusted = StructureAdjuster(context).adjust(parse_tree("components/\n").nodes)
        assert adjusted[0].target_path is None

    def test_only_top_level_folders_remap(self, vite_context, merge_root, make_files):
        make_files(merge_root, {"src": None})
        adjusted = StructureAdjuster(vite_context).adjust(parse_tree("app/\n  components/\n").nodes)
        assert adjusted[0].children[0].target_path is None

    def test_conventions_can_be_disabled(self, vite_context, merge_root, make_files):
        make_files(merge_root, {"src": None})
        adjuster = StructureAdjuster(vite_context, apply_conventions=False)
        adjusted = adjuster.adjust(parse_tree("components/\n").nodes)
        assert adjusted[0].target_path is None

    def test_filter_uses_remapped_path(self, vite_context, merge_root, make_files):
        make_files(merge_root, {"src/components/Button.jsx": "export const Button = () => null;"})
        adjuster = StructureAdjuster(vite_context)
        adjusted = adjuster.adjust(parse_tree("components/\n  Button.jsx\n").nodes)

        assert adjusted[0].children == []
        assert adjuster.dropped[0].path == "src/components/Button.jsx"

    def test_angular_nested_parent(self, tmp_path: Path, make_files):
        root = tmp_path / "shop"
        make_files(root, {"src/app": None})
        context = ProjectContext(type="angular-frontend", framework="Angular", base_path=root)

        adjusted = StructureAdjuster(context).adjust(parse_tree("services/\n").nodes)
        assert adjusted[0].target_path == "src/app/services"


# ---------------------------------------------------------------------------
# Folding and purity
# ---------------------------------------------------------------------------


class TestFoldingAndPurity:
    def test_duplicate_folders_merge_children(self, context):
        nodes = parse_tree("src/\n  a.js\nsrc/\n  b.js\n  a.js\n").nodes
        adjusted = StructureAdjuster(context).adjust(nodes)

        assert _names(adjusted) == ["src"]
        assert _names(adjusted[0].children) == ["a.js", "b.js"]

    def test_file_and_folder_with_same_name_are_distinct(self, context):
        nodes = [
            Node(name="data", kind=NodeKind.FOLDER),
            Node(name="data", kind=NodeKind.FILE),
        ]
        adjusted = StructureAdjuster(context).adjust(nodes)
        assert [(n.name, n.kind) for n in adjusted] == [("data", NodeKind.FOLDER), ("data", NodeKind.FILE)]

    def test_input_is_not_mutated(self, vite_context, merge_root, make_files):
        make_files(merge_root, {"src/components/Button.jsx": "export {Button};", "src": None})
        nodes = parse_tree("components/\n  Button.jsx\nsrc/\n").nodes
        before = [n.model_dump() for n in nodes]

        StructureAdjuster(vite_context).adjust(nodes)
        assert [n.model_dump() for n in nodes] == before

    def test_dropped_resets_between_calls(self, context, merge_root, make_files):
        make_files(merge_root, {"a.js": "run();"})
        adjuster = StructureAdjuster(context)
        adjuster.adjust(parse_tree("a.js\n").nodes)
        adjuster.adjust(parse_tree("b.js\n").nodes)
        assert adjuster.dropped == []


# ---------------------------------------------------------------------------
# Held-back files and paths outside the root
# ---------------------------------------------------------------------------


class TestKeepHeldAndContainment:
    def test_keep_held_leaves_file_in_tree(self, context, merge_root, make_files):
        make_files(merge_root, {"src/app.js": 'console.log("x")'})
        nodes = parse_tree("src/\n  app.js\n  other.js\n").nodes

        adjuster = StructureAdjuster(context)
        adjusted = adjuster.adjust(nodes, keep_held=True)

        assert _names(adjusted[0].children) == ["app.js", "other.js"]
        assert [(d.path, d.reason) for d in adjuster.dropped] == [("src/app.js", "existing content")]

    def test_keep_held_does_not_stick_to_later_calls(self, context, merge_root, make_files):
        make_files(merge_root, {"a.js": "run();"})
        adjuster = StructureAdjuster(context)
        adjuster.adjust(parse_tree("a.js\n").nodes, keep_held=True)

        assert adjuster.adjust(parse_tree("a.js\n").nodes) == []

    def test_node_outside_root_is_passed_through_untouched(self, context, merge_root, tmp_path: Path):
        outside = tmp_path / "outside.js"
        outside.write_text("keep();", encoding="utf-8")
        nodes = [Node(name="../outside.js", kind=NodeKind.FILE)]

        adjuster = StructureAdjuster(context)
        adjusted = adjuster.adjust(nodes)

        assert _names(adjusted) == ["../outside.js"]
        assert adjuster.dropped == []
