"""Shared pytest fixtures for the treemerge test suite.

Provides reusable fixtures for:
- A temporary merge root named like a real project folder
- Project contexts (plain and framework-flavoured)
- Content providers and quiet merge options
- Sample tree texts in the formats people paste
- A helper that lays out files on disk from a mapping
"""

from __future__ import annotations

import textwrap
from collections.abc import Callable
from pathlib import Path

import pytest

from treemerge.content import TemplateContentProvider
from treemerge.merger.models import MergeOptions, ProjectContext


# ---------------------------------------------------------------------------
# Paths & Directories
# ---------------------------------------------------------------------------

@pytest.fixture
def merge_root(tmp_path: Path) -> Path:
    """Empty merge root called ``my-app`` (auto-cleanup)."""
    root = tmp_path / "my-app"
    root.mkdir()
    yield root


@pytest.fixture
def make_files() -> Callable[[Path, dict[str, str | bytes | None]], None]:
    """Return a helper that creates files and folders under a root.

    Keys are slash-separated relative paths.  ``None`` creates a folder,
    ``str`` a UTF-8 file and ``bytes`` a binary file.
    """

    def _make(root: Path, layout: dict[str, str | bytes | None]) -> None:
        for relative, content in layout.items():
            path = root / relative
            if content is None:
                path.mkdir(parents=True, exist_ok=True)
                continue
            path.parent.mkdir(parents=True, exist_ok=True)
            if isinstance(content, bytes):
                path.write_bytes(content)
            else:
                path.write_text(content, encoding="utf-8")

    return _make


# ---------------------------------------------------------------------------
# Merge collaborators
# ---------------------------------------------------------------------------

@pytest.fixture
def context(merge_root: Path) -> ProjectContext:
    """Context for an undetected project rooted at ``merge_root``."""
    return ProjectContext(base_path=merge_root)


@pytest.fixture
def vite_context(merge_root: Path) -> ProjectContext:
    """Context for a Vite frontend rooted at ``merge_root``."""
    return ProjectContext(type="vite-frontend", base_path=merge_root, framework="Vite")


@pytest.fixture
def provider() -> TemplateContentProvider:
    return TemplateContentProvider()


@pytest.fixture
def quiet_options() -> MergeOptions:
    """Default merge options with per-decision printing turned off."""
    return MergeOptions(verbose=False)


# ---------------------------------------------------------------------------
# Sample trees
# ---------------------------------------------------------------------------

@pytest.fixture
def box_tree_text() -> str:
    """A ``tree``-style listing with box-drawing glyphs and annotations."""
    return textwrap.dedent("""\
        my-app/
        ├── src/
        │   ├── components/
        │   │   └── Button.jsx      # shared button
        │   ├── styles/
        │   │   └── index.css
        │   └── index.js            // entry point
        ├── public/
        ├── package.json
        └── README.md
    """)


@pytest.fixture
def indented_tree_text() -> str:
    """The same kind of tree written with plain two-space indentation."""
    return textwrap.dedent("""\
        src/
          app.js
          utils/
            helpers.js
        README.md
    """)
