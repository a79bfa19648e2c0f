"""Default content for created files, rendered from Jinja2 templates."""

from treemerge.content.provider import (
    ContentProvider,
    EmptyContentProvider,
    TemplateContentProvider,
)
from treemerge.content.templates import TemplateRenderer

__all__ = [
    "ContentProvider",
    "EmptyContentProvider",
    "TemplateContentProvider",
    "TemplateRenderer",
]
