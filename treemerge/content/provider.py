"""Default content for files the merge creates or refills."""

from __future__ import annotations

from pathlib import PurePath
from typing import Optional, Protocol, runtime_checkable

from .templates import TemplateRenderer


@runtime_checkable
class ContentProvider(Protocol):
    """Anything that can supply starter text for a file name.

    Implementations must be pure: the same name always yields the same text
    and nothing is written anywhere.
    """

    def get_default_content(self, file_name: str) -> str:
        ...


class EmptyContentProvider:
    """Creates every file empty."""

    def get_default_content(self, file_name: str) -> str:
        return ""


# (extension, basename keywords, template). First match wins; an empty
# keyword tuple matches any basename.
_TEMPLATE_RULES: tuple[tuple[str, tuple[str, ...], str], ...] = (
    (".js", ("config",), "config.js.j2"),
    (".js", ("utils", "helper"), "utils.js.j2"),
    (".js", (), "module.js.j2"),
    (".mjs", (), "module.js.j2"),
    (".ts", ("config",), "config.ts.j2"),
    (".ts", ("types", "interface"), "types.ts.j2"),
    (".ts", ("utils", "helper"), "utils.ts.j2"),
    (".ts", (), "module.ts.j2"),
    (".jsx", (), "component.jsx.j2"),
    (".tsx", (), "component.tsx.j2"),
    (".vue", (), "component.vue.j2"),
    (".svelte", (), "component.svelte.j2"),
    (".css", (), "stylesheet.css.j2"),
    (".scss", (), "stylesheet.scss.j2"),
    (".sass", (), "stylesheet.sass.j2"),
    (".md", (), "readme.md.j2"),
    (".json", ("config",), "config.json.j2"),
    (".json", (), "object.json.j2"),
    (".html", (), "page.html.j2"),
    (".py", (), "module.py.j2"),
)

# Manifests owned by package managers; a stub must not pretend to be one.
_VERBATIM: dict[str, str] = {
    "package.json": "{}",
}


class TemplateContentProvider:
    """Picks a Jinja2 template by extension and basename keywords.

    Unknown extensions get an empty string, so the file is created empty.

    Usage::

        provider = TemplateContentProvider()
        provider.get_default_content("UserCard.tsx")
    """

    def __init__(self, renderer: Optional[TemplateRenderer] = None) -> None:
        self.renderer = renderer or TemplateRenderer()

    def template_for(self, file_name: str) -> Optional[str]:
        """Return the template name used for *file_name*, or ``None``."""
        lower = file_name.lower()
        if lower == ".gitignore":
            return "gitignore.j2"
        if lower == ".env" or lower.startswith(".env."):
            return "env.j2"

        pure = PurePath(lower)
        extension, basename = pure.suffix, pure.stem
        for rule_extension, keywords, template in _TEMPLATE_RULES:
            if extension != rule_extension:
                continue
            if not keywords or any(word in basename for word in keywords):
                return template
        return None

    def get_default_content(self, file_name: str) -> str:
        verbatim = _VERBATIM.get(file_name.lower())
        if verbatim is not None:
            return verbatim
        template = self.template_for(file_name)
        if template is None:
            return ""
        basename = PurePath(file_name).stem
        return self.renderer.render(template, {"name": file_name, "basename": basename})
