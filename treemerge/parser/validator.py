"""Read-only checks over a parsed tree.

Reports names that would collide or that some filesystems refuse.  The merge
proceeds regardless; these issues are shown to the user before it runs.
"""

from __future__ import annotations

import re
from collections import Counter
from pathlib import PurePosixPath, PureWindowsPath

from .models import IssueType, Node, ValidationIssue


_ILLEGAL_CHARACTERS = re.compile(r'[<>:"|?*\\\x00-\x1f]')
_SEGMENT_SPLIT = re.compile(r"[\\/]")
_MAX_NAME_LENGTH = 255
_RESERVED_NAMES = frozenset(
    {"CON", "PRN", "AUX", "NUL"}
    | {f"COM{i}" for i in range(1, 10)}
    | {f"LPT{i}" for i in range(1, 10)}
)


def _escapes_parent(name: str) -> bool:
    """True for absolute names and names with a ``..`` segment."""
    if PurePosixPath(name).is_absolute() or PureWindowsPath(name).anchor:
        return True
    return ".." in _SEGMENT_SPLIT.split(name)


def _name_issues(name: str, path: str) -> list[ValidationIssue]:
    issues: list[ValidationIssue] = []
    if _escapes_parent(name):
        issues.append(ValidationIssue(
            path=path,
            issue=IssueType.UNSAFE_PATH,
            message="name is absolute or climbs out of its folder with '..'",
        ))
    bad = sorted(set(_ILLEGAL_CHARACTERS.findall(name)))
    if bad:
        shown = ", ".join(repr(ch) for ch in bad)
        issues.append(ValidationIssue(
            path=path,
            issue=IssueType.ILLEGAL_CHARACTER,
            message=f"name contains characters not allowed on all filesystems: {shown}",
        ))
    if name.split(".")[0].upper() in _RESERVED_NAMES:
        issues.append(ValidationIssue(
            path=path,
            issue=IssueType.RESERVED_NAME,
            message="name is reserved on Windows",
        ))
    if len(name) > _MAX_NAME_LENGTH:
        issues.append(ValidationIssue(
            path=path,
            issue=IssueType.NAME_TOO_LONG,
            message=f"name is longer than {_MAX_NAME_LENGTH} characters",
        ))
    if name.endswith((" ", ".")):
        issues.append(ValidationIssue(
            path=path,
            issue=IssueType.TRAILING_CHARACTER,
            message="name ends with a space or a dot",
        ))
    return issues


def _walk(nodes: list[Node], prefix: str, issues: list[ValidationIssue]) -> None:
    seen: Counter[str] = Counter()
    for node in nodes:
        path = f"{prefix}/{node.name}" if prefix else node.name
        seen[node.name] += 1
        if seen[node.name] == 2:
            issues.append(ValidationIssue(
                path=path,
                issue=IssueType.DUPLICATE_NAME,
                message=f"'{node.name}' appears more than once in the same folder",
            ))
        issues.extend(_name_issues(node.name, path))
        if node.children:
            _walk(node.children, path, issues)


def validate_tree(nodes: list[Node]) -> list[ValidationIssue]:
    """Return every issue found in *nodes*, in tree order. The tree is not modified."""
    issues: list[ValidationIssue] = []
    _walk(nodes, "", issues)
    return issues
