"""treemerge: merge a pasted directory tree into a real project, non-destructively."""

__version__ = "0.1.0"
