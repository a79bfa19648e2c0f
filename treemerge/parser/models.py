"""Pydantic v2 models for the structure parser.

Defines the node tree produced from a pasted directory listing together with
the warning and validation records the parser reports alongside it.
"""

from __future__ import annotations

from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field, model_validator


# ---------------------------------------------------------------------------
# Enumerations
# ---------------------------------------------------------------------------

class NodeKind(str, Enum):
    """Kind of a tree entry. A folder may hold children, a file never does."""
    FOLDER = "folder"
    FILE = "file"


class IssueType(str, Enum):
    """Classification of a validation issue."""
    DUPLICATE_NAME = "duplicate_name"
    ILLEGAL_CHARACTER = "illegal_character"
    RESERVED_NAME = "reserved_name"
    NAME_TOO_LONG = "name_too_long"
    TRAILING_CHARACTER = "trailing_character"
    UNSAFE_PATH = "unsafe_path"


# ---------------------------------------------------------------------------
# Tree
# ---------------------------------------------------------------------------

class Node(BaseModel):
    """One entry of the parsed directory tree."""
    name: str = Field(..., min_length=1, description="Entry name, e.g. 'src' or 'app.js'")
    kind: NodeKind = Field(..., description="Folder or file")
    children: list[Node] = Field(
        default_factory=list, description="Ordered child entries (folders only)"
    )
    target_path: Optional[str] = Field(
        default=None,
        description="Path relative to the merge root that overrides '<parent>/<name>'",
    )

    @model_validator(mode="after")
    def _files_have_no_children(self) -> Node:
        if self.kind is NodeKind.FILE and self.children:
            raise ValueError(f"file node '{self.name}' cannot have children")
        return self

    @property
    def is_folder(self) -> bool:
        return self.kind is NodeKind.FOLDER

    def count(self) -> int:
        """Number of nodes in this subtree, including this node."""
        return 1 + sum(child.count() for child in self.children)


# ---------------------------------------------------------------------------
# Diagnostics
# ---------------------------------------------------------------------------

class ParseWarning(BaseModel):
    """A line the parser could not place in the tree and therefore skipped."""
    line_number: int = Field(..., ge=1, description="1-based line number in the input")
    line: str = Field(default="", description="The raw line as received")
    message: str = Field(..., description="Why the line was skipped")

    def __str__(self) -> str:
        return f"line {self.line_number}: {self.message} ({self.line.strip()!r})"


class ValidationIssue(BaseModel):
    """A problem found in a parsed tree. Reported only, never blocks a merge."""
    path: str = Field(..., description="Slash-joined path of the offending node")
    issue: IssueType = Field(..., description="Issue classification")
    message: str = Field(..., description="Human-readable description")

    def __str__(self) -> str:
        return f"{self.path}: {self.message}"


class ParseResult(BaseModel):
    """Complete result of parsing a text tree."""
    nodes: list[Node] = Field(default_factory=list, description="Root-level nodes")
    warnings: list[ParseWarning] = Field(
        default_factory=list, description="Lines skipped while parsing"
    )

    @property
    def node_count(self) -> int:
        return sum(node.count() for node in self.nodes)
