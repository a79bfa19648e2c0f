"""Structure parser.

Parses a pasted, loosely formatted directory tree into a typed node tree and
reports lines it had to skip.

Usage::

    from treemerge.parser import parse_tree, validate_tree

    result = parse_tree(text)
    print(result.nodes)
    print(result.warnings)
    print(validate_tree(result.nodes))
"""

from treemerge.parser.models import (
    IssueType,
    Node,
    NodeKind,
    ParseResult,
    ParseWarning,
    ValidationIssue,
)
from treemerge.parser.tree_parser import classify_label, parse_tree, parse_tree_file
from treemerge.parser.validator import validate_tree

__all__ = [
    "parse_tree",
    "parse_tree_file",
    "classify_label",
    "validate_tree",
    "Node",
    "NodeKind",
    "IssueType",
    "ParseResult",
    "ParseWarning",
    "ValidationIssue",
]
