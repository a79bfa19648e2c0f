"""Shared merge policy: protected names, framework conventions and content checks.

Both the structure adjuster and the merge executor decide through the
functions in this module, so a file is never judged "meaningful" by one and
"placeholder" by the other.
"""

from __future__ import annotations

import re
from collections.abc import Callable
from dataclasses import dataclass
from enum import Enum
from pathlib import Path, PurePath
from typing import Optional

from treemerge.merger.models import FrameworkTag
from treemerge.parser.models import Node, NodeKind


# ---------------------------------------------------------------------------
# Protected names
# ---------------------------------------------------------------------------

CRITICAL_FILES: frozenset[str] = frozenset({
    # package and lock manifests
    "package.json", "package-lock.json", "yarn.lock", "pnpm-lock.yaml",
    "bun.lockb", "npm-shrinkwrap.json", "composer.json", "composer.lock",
    "gemfile.lock", "poetry.lock", "pipfile.lock", "cargo.lock", "go.sum",
    # environment
    ".env", ".env.local", ".env.development", ".env.production", ".env.test",
    # version control
    ".gitignore", ".gitattributes", ".gitmodules",
    # license and readme
    "readme.md", "readme", "license", "license.md", "license.txt",
    # type-checker config
    "tsconfig.json", "jsconfig.json", "tsconfig.node.json", "tsconfig.app.json",
    # container
    "dockerfile", "docker-compose.yml", "docker-compose.yaml",
})

FRAMEWORK_CRITICAL_FILES: dict[FrameworkTag, frozenset[str]] = {
    FrameworkTag.REACT: frozenset({"index.jsx", "index.tsx", "main.jsx", "main.tsx"}),
    FrameworkTag.VITE: frozenset({
        "vite.config.js", "vite.config.ts", "vite.config.mjs", "main.jsx", "main.tsx", "index.html",
    }),
    FrameworkTag.NEXT: frozenset({"next.config.js", "next.config.mjs", "next.config.ts", "_app.js", "_app.tsx"}),
    FrameworkTag.VUE: frozenset({"main.js", "main.ts", "vite.config.js", "vite.config.ts", "vue.config.js"}),
    FrameworkTag.NUXT: frozenset({"nuxt.config.js", "nuxt.config.ts", "app.vue"}),
    FrameworkTag.ANGULAR: frozenset({"angular.json", "main.ts", "app.module.ts"}),
    FrameworkTag.SVELTE: frozenset({"svelte.config.js", "vite.config.js", "vite.config.ts"}),
    FrameworkTag.NESTJS: frozenset({"nest-cli.json", "main.ts", "app.module.ts"}),
    FrameworkTag.EXPRESS: frozenset({"server.js", "app.js"}),
    FrameworkTag.FASTIFY: frozenset({"server.js", "app.js"}),
    FrameworkTag.KOA: frozenset({"server.js", "app.js"}),
    FrameworkTag.DJANGO: frozenset({"manage.py", "settings.py", "wsgi.py", "asgi.py"}),
    FrameworkTag.FLASK: frozenset({"app.py", "wsgi.py", "requirements.txt"}),
    FrameworkTag.SPRING: frozenset({"pom.xml", "build.gradle", "application.properties", "application.yml"}),
}

SENSITIVE_FOLDERS: frozenset[str] = frozenset({
    ".git", ".svn", ".hg", ".vscode", ".idea", "node_modules", "bower_components",
    ".venv", "venv", "__pycache__", ".cache", ".parcel-cache", ".turbo",
    "dist", "build", "out", "coverage", ".nyc_output",
    ".next", ".nuxt", ".svelte-kit", ".angular", ".vite", ".output",
})


def is_critical_file(name: str, framework: FrameworkTag = FrameworkTag.UNKNOWN) -> bool:
    """Return ``True`` if a file called *name* must never be overwritten."""
    lower = name.lower()
    if lower in CRITICAL_FILES:
        return True
    return lower in FRAMEWORK_CRITICAL_FILES.get(framework, frozenset())


def is_sensitive_folder(name: str) -> bool:
    """Return ``True`` for folders that are never created and never descended into."""
    return name.lower() in SENSITIVE_FOLDERS


# ---------------------------------------------------------------------------
# Framework conventions
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class FolderConvention:
    """Top-level folder names that belong under ``parent`` in a framework's layout."""
    parent: str
    folders: frozenset[str]


_FRONTEND_SRC_FOLDERS = frozenset({
    "components", "hooks", "utils", "pages", "assets", "styles", "services",
    "context", "contexts", "store", "stores", "layouts", "lib", "types", "api",
    "views", "router", "features",
})

FRAMEWORK_CONVENTIONS: dict[FrameworkTag, Optional[FolderConvention]] = {
    FrameworkTag.REACT: FolderConvention("src", _FRONTEND_SRC_FOLDERS),
    FrameworkTag.VITE: FolderConvention("src", _FRONTEND_SRC_FOLDERS),
    FrameworkTag.VUE: FolderConvention("src", _FRONTEND_SRC_FOLDERS | {"composables", "plugins"}),
    FrameworkTag.SVELTE: FolderConvention("src", frozenset({"lib", "routes", "components", "stores", "utils"})),
    FrameworkTag.NEXT: FolderConvention("src", frozenset({"components", "hooks", "utils", "lib", "styles", "types"})),
    FrameworkTag.NUXT: None,
    FrameworkTag.ANGULAR: FolderConvention("src/app", frozenset({
        "components", "services", "models", "guards", "pipes", "directives",
        "interceptors", "shared", "core", "features",
    })),
    FrameworkTag.NESTJS: FolderConvention("src", frozenset({
        "modules", "common", "config", "guards", "interceptors", "filters",
        "pipes", "decorators", "dto", "entities",
    })),
    FrameworkTag.EXPRESS: FolderConvention("src", frozenset({
        "routes", "controllers", "models", "middleware", "middlewares",
        "services", "utils", "config", "validators",
    })),
    FrameworkTag.FASTIFY: FolderConvention("src", frozenset({"routes", "plugins", "schemas", "services", "utils"})),
    FrameworkTag.KOA: FolderConvention("src", frozenset({"routes", "controllers", "middleware", "services", "utils"})),
    FrameworkTag.DJANGO: FolderConvention("apps", frozenset({"accounts", "users", "core", "api"})),
    FrameworkTag.FLASK: FolderConvention("app", frozenset({"routes", "models", "templates", "static", "services"})),
    FrameworkTag.SPRING: FolderConvention("src/main/java", frozenset({
        "controller", "controllers", "service", "services", "repository",
        "repositories", "model", "models", "entity", "entities", "dto", "config",
    })),
    FrameworkTag.UNKNOWN: None,
}


def _validate_tables() -> None:
    missing = [tag.value for tag in FrameworkTag if tag not in FRAMEWORK_CONVENTIONS]
    if missing:
        raise RuntimeError(f"framework conventions missing for: {', '.join(missing)}")
    stray = [str(tag) for tag in FRAMEWORK_CRITICAL_FILES if not isinstance(tag, FrameworkTag)]
    if stray:
        raise RuntimeError(f"unknown framework tags in critical table: {', '.join(stray)}")


_validate_tables()


def convention_for(framework: FrameworkTag) -> Optional[FolderConvention]:
    return FRAMEWORK_CONVENTIONS[framework]


# ---------------------------------------------------------------------------
# Meaningful content
# ---------------------------------------------------------------------------

_BLOCK_COMMENT = re.compile(r"/\*[\s\S]*?\*/")
_LINE_COMMENT = re.compile(r"//.*$", re.MULTILINE)
_SHELL_COMMENT = re.compile(r"^\s*#.*$", re.MULTILINE)
_HTML_COMMENT = re.compile(r"<!--[\s\S]*?-->")

# `#` starts a selector or a heading here, not a comment.
_HASH_IS_CONTENT_SUFFIXES = frozenset({".css", ".scss", ".sass", ".less", ".md", ".markdown"})

_EMPTY_OBJECT = re.compile(r"^\{\s*\}$")
_EMPTY_ARRAY = re.compile(r"^\[\s*\]$")
_EMPTY_DEFAULT_EXPORT = re.compile(r"^export\s+default\s+\{\s*\};?$")
_EMPTY_MODULE_EXPORTS = re.compile(r"^module\.exports\s*=\s*\{\s*\};?$")


def strip_comments(text: str, file_name: str = "") -> str:
    """Remove block, line, shell-style and HTML comments and trim the result.

    Shell-style ``#`` lines are kept for stylesheets and Markdown, where
    *file_name* says the text comes from one.
    """
    body = text.strip()
    body = _BLOCK_COMMENT.sub("", body)
    body = _LINE_COMMENT.sub("", body)
    if PurePath(file_name).suffix.lower() not in _HASH_IS_CONTENT_SUFFIXES:
        body = _SHELL_COMMENT.sub("", body)
    body = _HTML_COMMENT.sub("", body)
    return body.strip()


def is_blank(body: str) -> bool:
    return not body


def is_empty_object(body: str) -> bool:
    return bool(_EMPTY_OBJECT.match(body))


def is_empty_array(body: str) -> bool:
    return bool(_EMPTY_ARRAY.match(body))


def is_empty_default_export(body: str) -> bool:
    return bool(_EMPTY_DEFAULT_EXPORT.match(body))


def is_empty_module_exports(body: str) -> bool:
    return bool(_EMPTY_MODULE_EXPORTS.match(body))


# Evaluated in order against the comment-stripped body; any hit means placeholder.
PLACEHOLDER_CHECKS: tuple[Callable[[str], bool], ...] = (
    is_blank,
    is_empty_object,
    is_empty_array,
    is_empty_default_export,
    is_empty_module_exports,
)


def is_meaningful_content(text: str, file_name: str = "") -> bool:
    """Return ``True`` if *text* carries real work rather than a placeholder.

    Comments are stripped first; what remains must be non-empty and must not
    be one of the empty idioms in :data:`PLACEHOLDER_CHECKS`.  A single real
    statement is enough to count as meaningful.
    *file_name* only selects which comment styles apply.
    """
    body = strip_comments(text, file_name)
    return not any(check(body) for check in PLACEHOLDER_CHECKS)


class FileState(str, Enum):
    """What an on-disk path holds, as far as a merge is concerned."""
    MISSING = "missing"
    PLACEHOLDER = "placeholder"
    MEANINGFUL = "meaningful"
    NOT_A_FILE = "not_a_file"
    UNREADABLE = "unreadable"


@dataclass
class FileInspection:
    state: FileState
    content: Optional[str] = None
    error: Optional[OSError] = None


def inspect_file(path: Path) -> FileInspection:
    """Classify the file at *path*.

    Bytes that are not valid UTF-8 are treated as meaningful: binary data is
    real content.  A read failure yields ``UNREADABLE`` with the error
    attached; callers treat that as meaningful too and never overwrite it.
    """
    try:
        if not path.exists():
            return FileInspection(FileState.MISSING)
        if not path.is_file():
            return FileInspection(FileState.NOT_A_FILE)
        raw = path.read_bytes()
    except OSError as exc:
        return FileInspection(FileState.UNREADABLE, error=exc)
    try:
        content = raw.decode("utf-8")
    except UnicodeDecodeError:
        return FileInspection(FileState.MEANINGFUL)
    if is_meaningful_content(content, path.name):
        return FileInspection(FileState.MEANINGFUL, content=content)
    return FileInspection(FileState.PLACEHOLDER, content=content)


# ---------------------------------------------------------------------------
# Path resolution
# ---------------------------------------------------------------------------

def resolve_node_path(node: Node, parent_dir: Path, merge_root: Path, *, top_level: bool) -> Path:
    """Return the on-disk path a node maps to.

    ``target_path`` wins and is taken relative to the merge root.  A
    top-level folder named like the merge root itself collapses onto the
    root, so pasting ``my-app/`` into ``my-app`` does not nest a copy.
    """
    if node.target_path:
        return merge_root / node.target_path
    if top_level and node.kind is NodeKind.FOLDER and node.name == merge_root.name:
        return merge_root
    return parent_dir / node.name


def display_path(path: Path, merge_root: Path) -> str:
    """Slash-joined path relative to the merge root (``'.'`` for the root itself)."""
    try:
        relative = path.relative_to(merge_root)
    except ValueError:
        return path.as_posix()
    text = relative.as_posix()
    return text or "."
