"""Project detection for the merge target.

Looks at ``package.json`` dependencies and well-known marker files to
guess which framework a directory uses, then falls back to one level of
sub-folders (``frontend/``, ``server/`` ...) for monorepo-style layouts.
The result is a :class:`~treemerge.merger.models.ProjectContext`; the merge
core only ever reads it.
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from treemerge.merger.models import ProjectContext
from treemerge.merger.rules import is_sensitive_folder
from treemerge.utils import load_json


@dataclass(frozen=True)
class _Rule:
    type: str
    framework: str
    dependencies: tuple[str, ...] = ()
    markers: tuple[str, ...] = ()
    all_markers: bool = False

    def matches(self, directory: Path, dependencies: set[str]) -> bool:
        if any(dep in dependencies for dep in self.dependencies):
            return True
        if not self.markers:
            return False
        found = [(directory / marker).exists() for marker in self.markers]
        return all(found) if self.all_markers else any(found)


# Checked in order; the first match wins.  Build tools come before the UI
# library they wrap, so a Vite + React project is reported as Vite.
_RULES: tuple[_Rule, ...] = (
    _Rule("vite-frontend", "Vite", ("vite",), ("vite.config.js", "vite.config.ts", "vite.config.mjs")),
    _Rule("next-frontend", "Next.js", ("next",), ("next.config.js", "next.config.mjs", "next.config.ts")),
    _Rule("nuxt-frontend", "Nuxt", ("nuxt",), ("nuxt.config.js", "nuxt.config.ts")),
    _Rule("angular-frontend", "Angular", ("@angular/core",), ("angular.json",)),
    _Rule("nestjs-backend", "NestJS", ("@nestjs/core",), ("nest-cli.json",)),
    _Rule("express-backend", "Express", ("express",)),
    _Rule("fastify-backend", "Fastify", ("fastify",)),
    _Rule("koa-backend", "Koa", ("koa",)),
    _Rule("react-frontend", "React", ("react",)),
    _Rule("vue-frontend", "Vue", ("vue",)),
    _Rule("svelte-frontend", "Svelte", ("svelte", "@sveltejs/kit"), ("svelte.config.js",)),
    _Rule("django-backend", "Django", markers=("manage.py",)),
    _Rule("flask-backend", "Flask", markers=("app.py", "requirements.txt"), all_markers=True),
    _Rule("spring-backend", "Spring Boot", markers=("pom.xml", "build.gradle", "build.gradle.kts")),
    _Rule("express-backend", "Express", markers=("server.js", "app.js")),
    _Rule("react-frontend", "React", markers=("src/index.jsx", "src/index.tsx", "src/App.jsx", "src/App.tsx")),
    _Rule("vue-frontend", "Vue", markers=("src/App.vue",)),
)

NESTED_PROJECT_FOLDERS: tuple[str, ...] = (
    "frontend", "client", "web", "ui", "app",
    "backend", "server", "api",
)

ARCHITECTURE_PATTERNS: dict[str, tuple[str, ...]] = {
    "mvc": ("models", "views", "controllers"),
    "clean": ("domain", "infrastructure", "application"),
    "layered": ("services", "repositories", "controllers"),
    "microservice": ("services", "gateway", "common"),
    "monorepo": ("packages", "apps", "libs"),
}


def _read_dependencies(directory: Path) -> Optional[set[str]]:
    """Return dependency names from ``package.json``, or ``None`` without one."""
    manifest = directory / "package.json"
    if not manifest.is_file():
        return None
    try:
        data = load_json(manifest)
    except (OSError, ValueError):
        return set()
    if not isinstance(data, dict):
        return set()
    names: set[str] = set()
    for key in ("dependencies", "devDependencies", "peerDependencies"):
        section = data.get(key)
        if isinstance(section, dict):
            names.update(section)
    return names


def detect_architecture(directory: Path) -> str:
    """Name the folder layout of *directory* (``mvc``, ``clean`` ...).

    A pattern matches when at least two of its folders exist either at the
    top level or under ``src/``.  Anything else is ``standard``.
    """
    for label, folders in ARCHITECTURE_PATTERNS.items():
        hits = sum(
            1 for folder in folders
            if (directory / folder).is_dir() or (directory / "src" / folder).is_dir()
        )
        if hits >= 2:
            return label
    return "standard"


def _detect_in(directory: Path) -> Optional[tuple[str, Optional[str]]]:
    dependencies = _read_dependencies(directory)
    for rule in _RULES:
        if rule.matches(directory, dependencies or set()):
            return rule.type, rule.framework
    if dependencies is not None:
        return "nodejs", None
    return None


def _candidate_subfolders(cwd: Path) -> list[Path]:
    """Conventional project folders first, then every other visible sub-folder."""
    try:
        others = sorted(
            child for child in cwd.iterdir()
            if child.is_dir()
            and not child.name.startswith(".")
            and not is_sensitive_folder(child.name)
            and child.name not in NESTED_PROJECT_FOLDERS
        )
    except OSError:
        others = []
    preferred = [cwd / name for name in NESTED_PROJECT_FOLDERS if (cwd / name).is_dir()]
    return preferred + others


def detect_project(cwd: str | Path) -> ProjectContext:
    """Detect the project rooted at (or one level below) *cwd*.

    Returns a context with ``type="unknown"`` and ``base_path=cwd`` when
    nothing is recognised.
    """
    root = Path(cwd).expanduser().absolute()

    found = _detect_in(root) if root.is_dir() else None
    if found is not None:
        project_type, framework = found
        return ProjectContext(
            type=project_type,
            base_path=root,
            framework=framework,
            architecture=detect_architecture(root),
        )

    if root.is_dir():
        for candidate in _candidate_subfolders(root):
            nested = _detect_in(candidate)
            if nested is None:
                continue
            project_type, framework = nested
            return ProjectContext(
                type=project_type,
                base_path=candidate,
                framework=framework,
                is_nested=True,
                architecture=detect_architecture(candidate),
            )

    return ProjectContext(type="unknown", base_path=root)
