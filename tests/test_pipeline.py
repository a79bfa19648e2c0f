"""Tests for the merge orchestrator and CLI (treemerge.pipeline).

Tests cover:
- merge_structure end to end (parse, validate, merge)
- Parse warnings and validation issues carried on the run
- Unsafe merge roots abort before parsing or writing
- build_context with and without detection
- run() provider selection and JSON report writing
- main() exit codes, stdin input and CLI flag overrides
"""

from __future__ import annotations

import io
import json
import os
from pathlib import Path

import pytest

from treemerge.config import Config
from treemerge.merger.models import MergeOptions, ProjectContext
from treemerge.merger.safety import UnsafeTargetError
from treemerge.parser.models import IssueType
from treemerge.pipeline import (
    EXIT_FATAL,
    EXIT_NODE_ERRORS,
    MergeRun,
    build_context,
    main,
    merge_structure,
    run,
)


pytestmark = pytest.mark.integration


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch):
    """Keep TREEMERGE_* settings from the developer's shell out of the tests."""
    for name in list(os.environ):
        if name.startswith("TREEMERGE_"):
            monkeypatch.delenv(name)


@pytest.fixture
def structure_file(tmp_path: Path, box_tree_text: str) -> Path:
    path = tmp_path / "structure.txt"
    path.write_text(box_tree_text, encoding="utf-8")
    return path


# ---------------------------------------------------------------------------
# merge_structure
# ---------------------------------------------------------------------------


class TestMergeStructure:
    @pytest.mark.asyncio
    async def test_merges_tree(self, context, merge_root, quiet_options, box_tree_text):
        result = await merge_structure(box_tree_text, context, options=quiet_options)

        assert isinstance(result, MergeRun)
        assert result.target == merge_root.absolute()
        assert result.project_type == "unknown"
        assert result.has_errors is False
        assert result.duration >= 0
        assert (merge_root / "src" / "styles" / "index.css").is_file()
        assert result.stats.created.files == 5

    @pytest.mark.asyncio
    async def test_carries_warnings_and_issues(self, context, quiet_options):
        text = "src/\n  ├──\n  a.js\n  a.js\n"
        result = await merge_structure(text, context, options=quiet_options)

        assert len(result.warnings) == 1
        assert result.warnings[0].line_number == 2
        assert [i.issue for i in result.issues] == [IssueType.DUPLICATE_NAME]

    @pytest.mark.asyncio
    async def test_unsafe_root_raises(self, tmp_path: Path, quiet_options):
        target = tmp_path / "file.txt"
        target.write_text("x", encoding="utf-8")

        with pytest.raises(UnsafeTargetError):
            await merge_structure("src/\n", ProjectContext(base_path=target), options=quiet_options)

    @pytest.mark.asyncio
    async def test_custom_provider(self, context, merge_root, quiet_options):
        class Fixed:
            def get_default_content(self, file_name: str) -> str:
                return f"// {file_name}\nrun();\n"

        await merge_structure("app.js\n", context, options=quiet_options, provider=Fixed())
        assert (merge_root / "app.js").read_text(encoding="utf-8") == "// app.js\nrun();\n"


# ---------------------------------------------------------------------------
# build_context / run
# ---------------------------------------------------------------------------


class TestRun:
    def test_build_context_without_detection(self, tmp_path: Path):
        (tmp_path / "vite.config.js").write_text("", encoding="utf-8")
        context = build_context(Config(target_dir=tmp_path, detect_project=False))
        assert context.type == "unknown"
        assert context.base_path == tmp_path.absolute()

    def test_build_context_with_detection(self, tmp_path: Path):
        (tmp_path / "vite.config.js").write_text("", encoding="utf-8")
        assert build_context(Config(target_dir=tmp_path)).type == "vite-frontend"

    @pytest.mark.asyncio
    async def test_empty_files_provider(self, merge_root):
        config = Config(target_dir=merge_root, empty_files=True, options=MergeOptions(verbose=False))
        await run("Button.jsx\n", config)
        assert (merge_root / "Button.jsx").read_bytes() == b""

    @pytest.mark.asyncio
    async def test_writes_report(self, merge_root, tmp_path: Path):
        report = tmp_path / "out" / "report.json"
        config = Config(target_dir=merge_root, report_path=report, options=MergeOptions(verbose=False))

        await run("src/\n", config)

        data = json.loads(report.read_text(encoding="utf-8"))
        assert data["stats"]["created"]["folders"] == 1


# ---------------------------------------------------------------------------
# CLI
# ---------------------------------------------------------------------------


class TestMain:
    def test_success(self, structure_file: Path, merge_root: Path, capsys):
        main([str(structure_file), "--target", str(merge_root), "--quiet"])

        out = capsys.readouterr().out
        assert "Merge completed successfully!" in out
        assert "Parsed 10 entries." in out
        assert (merge_root / "src" / "components" / "Button.jsx").is_file()

    def test_missing_structure_file(self, tmp_path: Path, merge_root: Path, capsys):
        with pytest.raises(SystemExit) as excinfo:
            main([str(tmp_path / "missing.txt"), "--target", str(merge_root)])
        assert excinfo.value.code == EXIT_FATAL
        assert "Cannot read structure" in capsys.readouterr().out

    def test_empty_structure(self, tmp_path: Path, merge_root: Path):
        path = tmp_path / "blank.txt"
        path.write_text("\n\n", encoding="utf-8")
        with pytest.raises(SystemExit) as excinfo:
            main([str(path), "--target", str(merge_root)])
        assert excinfo.value.code == EXIT_FATAL

    def test_unsafe_target(self, structure_file: Path, tmp_path: Path, capsys):
        target = tmp_path / "file.txt"
        target.write_text("x", encoding="utf-8")
        with pytest.raises(SystemExit) as excinfo:
            main([str(structure_file), "--target", str(target), "--no-detect"])
        assert excinfo.value.code == EXIT_FATAL
        assert "Refusing to merge" in capsys.readouterr().out

    def test_node_error_exit_code(self, tmp_path: Path, merge_root: Path, make_files):
        make_files(merge_root, {"src/app.js": None})
        path = tmp_path / "tree.txt"
        path.write_text("src/\n  app.js\n  other.js\n", encoding="utf-8")

        with pytest.raises(SystemExit) as excinfo:
            main([str(path), "--target", str(merge_root), "--quiet", "--no-detect"])
        assert excinfo.value.code == EXIT_NODE_ERRORS
        assert (merge_root / "src" / "other.js").is_file()

    def test_reads_stdin(self, merge_root: Path, monkeypatch):
        monkeypatch.setattr("sys.stdin", io.StringIO("docs/\n  guide.md\n"))
        main(["-", "--target", str(merge_root), "--quiet"])
        assert (merge_root / "docs" / "guide.md").is_file()

    def test_dirs_only_flag(self, structure_file: Path, merge_root: Path):
        main([str(structure_file), "--target", str(merge_root), "--dirs-only", "--quiet"])

        assert (merge_root / "src" / "components").is_dir()
        assert not (merge_root / "package.json").exists()
        assert list((merge_root / "src").rglob("*.js*")) == []

    def test_report_flag(self, structure_file: Path, merge_root: Path, tmp_path: Path):
        report = tmp_path / "report.json"
        main([str(structure_file), "--target", str(merge_root), "--quiet", "--report", str(report)])

        data = json.loads(report.read_text(encoding="utf-8"))
        assert data["target"] == str(merge_root.absolute())

    def test_invalid_env_setting(self, structure_file: Path, merge_root: Path, monkeypatch):
        monkeypatch.setenv("TREEMERGE_VERBOSE", "loud")
        with pytest.raises(SystemExit) as excinfo:
            main([str(structure_file), "--target", str(merge_root)])
        assert excinfo.value.code == EXIT_FATAL

    def test_env_target_used_without_flag(self, structure_file: Path, merge_root: Path, monkeypatch):
        monkeypatch.setenv("TREEMERGE_TARGET_DIR", str(merge_root))
        main([str(structure_file), "--quiet", "--no-detect"])
        assert (merge_root / "README.md").is_file()
