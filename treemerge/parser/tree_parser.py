"""Best-effort parser for pasted directory trees.

Turns the kind of listing people (and language models) paste into chat --
``tree`` output, box-drawing trees, ASCII ``|--`` trees, indented bullet
lists -- into a :class:`~treemerge.parser.models.Node` tree.  Parsing is
line-local: a malformed line is skipped with a :class:`ParseWarning` and the
rest of the document is still parsed.  Nothing in here raises on bad input.
"""

from __future__ import annotations

import asyncio
import re
from pathlib import Path
from typing import Optional

from pydantic import ValidationError

from .models import Node, NodeKind, ParseResult, ParseWarning


# ---------------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------------

# Pictographs and dingbats used as folder/file decorations, plus the joiners
# and variation selectors that travel with them.  Box-drawing glyphs
# (U+2500..U+257F) and arrows (U+2190..) are outside these ranges.
_DECORATION_PATTERN = re.compile(
    "[\U0001F000-\U0001FAFF\u2600-\u27BF\u2B00-\u2BFF\uFE0E\uFE0F\u200D\u20E3]"
)

_PREFIX_PATTERN = re.compile(
    r"^(?P<indent>[ \t\u00a0│┃|]*)"
    r"(?P<branch>(?:[├└┣┗`+]?[─━]+|[├└┣┗`+|]?-{2,}|[├└┣┗]|[-*+](?=\s))?)"
    r"[ \t]*"
)

_ANNOTATION_PATTERN = re.compile(r"(?:\s+(?:#|//|--|<-|<--|←)|\s*\().*$")
_COMMENT_LINE_PATTERN = re.compile(r"^(?:#|//)")
_CODE_FENCE_PATTERN = re.compile(r"^(?:```|~~~)")
_ELLIPSIS_LABELS = frozenset({"...", "…", "....", "etc..."})
# `tree` prints the listed directory itself as the first line.
_CURRENT_DIR_LABELS = frozenset({".", "./"})

_TAB_WIDTH = 2
_INDENT_UNIT = 2

WELL_KNOWN_FOLDERS: frozenset[str] = frozenset({
    "src", "source", "lib", "libs", "app", "apps", "public", "static", "assets",
    "dist", "build", "out", "bin", "components", "pages", "views", "layouts",
    "hooks", "utils", "helpers", "services", "api", "routes", "controllers",
    "models", "middleware", "middlewares", "config", "configs", "store",
    "stores", "styles", "context", "types", "tests", "test", "__tests__",
    "spec", "specs", "e2e", "docs", "scripts", "packages", "modules",
    "migrations", "templates", "fixtures", "node_modules", "coverage",
    ".git", ".github", ".vscode", ".idea", ".husky", ".storybook",
    ".circleci", ".devcontainer", ".next", ".nuxt", ".svelte-kit", ".vite",
    ".venv", "__pycache__",
})

# Extension-less names that are files, not folders.
WELL_KNOWN_FILES: frozenset[str] = frozenset({
    "makefile", "dockerfile", "license", "licence", "procfile", "gemfile",
    "rakefile", "jenkinsfile", "vagrantfile", "brewfile", "caddyfile",
    "readme", "changelog", "authors", "contributors", "codeowners", "notice",
})


# ---------------------------------------------------------------------------
# Line handling
# ---------------------------------------------------------------------------

class _Frame:
    """An entry on the ancestor stack: the node and the level it sits at."""

    __slots__ = ("level", "node")

    def __init__(self, level: int, node: Optional[Node]) -> None:
        self.level = level
        self.node = node

    def __repr__(self) -> str:
        name = self.node.name if self.node is not None else "<root>"
        return f"_Frame(level={self.level}, node={name!r})"


def _normalize(text: str) -> list[str]:
    """Normalise line endings, drop decorations and split into lines."""
    text = text.lstrip("\ufeff").replace("\r\n", "\n").replace("\r", "\n")
    text = _DECORATION_PATTERN.sub("", text)
    return text.split("\n")


def _indent_level(prefix: str) -> int:
    """Convert a leading prefix into a level counted in two-column units."""
    columns = len(prefix.replace("\t", " " * _TAB_WIDTH))
    return columns // _INDENT_UNIT


def _split_line(line: str) -> tuple[int, str]:
    """Split a line into ``(level, label)`` with tree glyphs and annotations removed."""
    match = _PREFIX_PATTERN.match(line)
    prefix = match.group(0) if match else ""
    label = line[len(prefix):]
    label = _ANNOTATION_PATTERN.sub("", label).strip()
    label = label.strip("`").strip("*").strip().strip("\"'")
    return _indent_level(prefix), label


def classify_label(label: str) -> tuple[str, NodeKind]:
    """Return the entry name and kind for a cleaned label.

    Examples::

        classify_label("src/")        -> ("src", NodeKind.FOLDER)
        classify_label("components")  -> ("components", NodeKind.FOLDER)
        classify_label(".github")     -> (".github", NodeKind.FOLDER)
        classify_label("Dockerfile")  -> ("Dockerfile", NodeKind.FILE)
        classify_label("app.js")      -> ("app.js", NodeKind.FILE)
    """
    if label.endswith("/"):
        return label.rstrip("/"), NodeKind.FOLDER
    lower = label.lower()
    if lower in WELL_KNOWN_FILES:
        return label, NodeKind.FILE
    if lower in WELL_KNOWN_FOLDERS:
        return label, NodeKind.FOLDER
    if "." not in label:
        return label, NodeKind.FOLDER
    return label, NodeKind.FILE


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------

def parse_tree(text: str) -> ParseResult:
    """Parse a pasted directory tree into root-level nodes.

    Every line contributes at most one node.  A line's level is the column
    where its label starts (indentation, ``│`` guides and the ``├──`` branch
    connector all count) divided into two-column units.  The nearest
    shallower entry above it becomes its parent.  The ``.`` line that ``tree`` prints
    for the listed directory stands for the root and adds no node.  A line that would become a
    child of a file, or that carries no usable name, is skipped with a
    warning.

    Args:
        text: Raw tree text.

    Returns:
        A :class:`ParseResult` holding the root nodes and any warnings.
    """
    roots: list[Node] = []
    warnings: list[ParseWarning] = []
    stack: list[_Frame] = [_Frame(-1, None)]

    for number, line in enumerate(_normalize(text), start=1):
        if not line.strip():
            continue
        stripped = line.strip()
        if _CODE_FENCE_PATTERN.match(stripped) or _COMMENT_LINE_PATTERN.match(stripped):
            continue

        level, label = _split_line(line.rstrip())
        if not label:
            # A bare "│" guide line is a spacer, not an entry.
            if stripped.strip("│┃| \t"):
                warnings.append(ParseWarning(
                    line_number=number, line=line, message="line has no entry name",
                ))
            continue
        if label in _CURRENT_DIR_LABELS:
            continue
        if label in _ELLIPSIS_LABELS:
            warnings.append(ParseWarning(
                line_number=number, line=line, message="placeholder entry ignored",
            ))
            continue

        name, kind = classify_label(label)
        if not name:
            warnings.append(ParseWarning(
                line_number=number, line=line, message="line has no entry name",
            ))
            continue

        while stack[-1].level >= level:
            stack.pop()
        parent = stack[-1].node

        if parent is not None and parent.kind is NodeKind.FILE:
            warnings.append(ParseWarning(
                line_number=number,
                line=line,
                message=f"'{name}' is nested under file '{parent.name}' and was dropped",
            ))
            continue

        try:
            node = Node(name=name, kind=kind)
        except ValidationError as exc:
            warnings.append(ParseWarning(
                line_number=number, line=line, message=f"invalid entry: {exc.errors()[0]['msg']}",
            ))
            continue

        if parent is None:
            roots.append(node)
        else:
            parent.children.append(node)
        stack.append(_Frame(level, node))

    return ParseResult(nodes=roots, warnings=warnings)


async def parse_tree_file(path: str | Path) -> ParseResult:
    """Read a UTF-8 tree file without blocking the event loop and parse it.

    Raises:
        FileNotFoundError: If the file does not exist.
    """
    file_path = Path(path)
    if not file_path.is_file():
        raise FileNotFoundError(f"Structure file not found: {path}")
    text = await asyncio.to_thread(file_path.read_text, "utf-8")
    return parse_tree(text)
