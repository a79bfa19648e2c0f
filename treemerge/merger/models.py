"""Pydantic v2 models shared by the structure adjuster and the merge executor."""

from __future__ import annotations

from enum import Enum
from pathlib import Path
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from treemerge.parser.models import NodeKind


# ---------------------------------------------------------------------------
# Enumerations
# ---------------------------------------------------------------------------

class MergeOutcome(str, Enum):
    """What happened to a single node during a merge."""
    CREATE = "create"
    PRESERVE = "preserve"
    SKIP = "skip"
    UPDATE = "update"


class FrameworkTag(str, Enum):
    """Closed set of frameworks the convention tables know about."""
    REACT = "react"
    VITE = "vite"
    NEXT = "next"
    VUE = "vue"
    NUXT = "nuxt"
    ANGULAR = "angular"
    SVELTE = "svelte"
    NESTJS = "nestjs"
    EXPRESS = "express"
    FASTIFY = "fastify"
    KOA = "koa"
    DJANGO = "django"
    FLASK = "flask"
    SPRING = "spring"
    UNKNOWN = "unknown"


# ---------------------------------------------------------------------------
# Project context
# ---------------------------------------------------------------------------

class ProjectContext(BaseModel):
    """Facts about the merge target, supplied by a project detector.

    Immutable for the duration of a merge run.
    """

    model_config = ConfigDict(frozen=True)

    type: str = Field(default="unknown", description="Detected project type, e.g. 'vite-frontend'")
    base_path: Path = Field(..., description="Absolute merge root")
    framework: Optional[str] = Field(default=None, description="Framework display name, e.g. 'NestJS'")
    is_nested: bool = Field(default=False, description="Whether the project sits in a sub-folder")
    architecture: Optional[str] = Field(default=None, description="Layout label, e.g. 'mvc'")

    @field_validator("base_path")
    @classmethod
    def _absolute(cls, value: Path) -> Path:
        return Path(value).expanduser().absolute()

    @property
    def framework_tag(self) -> FrameworkTag:
        """The convention-table key for this project.

        Uses ``framework`` when it names a known tag, otherwise the first
        dash-separated word of ``type`` (``'vite-frontend'`` -> ``vite``).
        """
        candidates = []
        if self.framework:
            candidates.append(self.framework.lower().replace(" ", "").replace(".js", ""))
        candidates.append(self.type.lower().split("-")[0])
        for candidate in candidates:
            if candidate == "springboot":
                candidate = FrameworkTag.SPRING.value
            try:
                return FrameworkTag(candidate)
            except ValueError:
                continue
        return FrameworkTag.UNKNOWN


# ---------------------------------------------------------------------------
# Merge statistics
# ---------------------------------------------------------------------------

class ItemCounts(BaseModel):
    """Folder and file counters for one outcome bucket."""
    folders: int = Field(default=0, ge=0)
    files: int = Field(default=0, ge=0)

    @property
    def total(self) -> int:
        return self.folders + self.files


class MergeAction(BaseModel):
    """One terminal decision taken for one node."""
    path: str = Field(..., description="Path relative to the merge root")
    kind: NodeKind = Field(..., description="Folder or file")
    outcome: MergeOutcome = Field(..., description="Decision taken")
    reason: str = Field(default="", description="Short explanation of the decision")


class MergeError(BaseModel):
    """A filesystem failure confined to a single node."""
    path: str = Field(..., description="Path relative to the merge root")
    message: str = Field(..., description="Error text")


class MergeStats(BaseModel):
    """Accumulator for one top-level merge run.

    ``record`` is the only mutator; every call increments exactly one
    counter.  UPDATE is counted as a created file: the node goes from
    "exists but empty" to "has real content".
    """

    created: ItemCounts = Field(default_factory=ItemCounts)
    preserved: ItemCounts = Field(default_factory=ItemCounts)
    skipped: ItemCounts = Field(default_factory=ItemCounts)
    errors: list[MergeError] = Field(default_factory=list)
    actions: list[MergeAction] = Field(default_factory=list)
    cancelled: bool = Field(default=False)

    def record(
        self,
        kind: NodeKind,
        outcome: MergeOutcome,
        path: str,
        reason: str = "",
    ) -> None:
        if outcome in (MergeOutcome.CREATE, MergeOutcome.UPDATE):
            bucket = self.created
        elif outcome is MergeOutcome.PRESERVE:
            bucket = self.preserved
        else:
            bucket = self.skipped

        if kind is NodeKind.FOLDER:
            bucket.folders += 1
        else:
            bucket.files += 1
        self.actions.append(MergeAction(path=path, kind=kind, outcome=outcome, reason=reason))

    def record_error(self, path: str, error: BaseException) -> None:
        self.errors.append(MergeError(path=path, message=f"{type(error).__name__}: {error}"))

    def outcome_for(self, path: str) -> Optional[MergeOutcome]:
        """Return the recorded outcome for *path*, or ``None`` if it was never visited."""
        for action in self.actions:
            if action.path == path:
                return action.outcome
        return None


# ---------------------------------------------------------------------------
# Options
# ---------------------------------------------------------------------------

class MergeOptions(BaseModel):
    """Switches that change how the executor treats files."""
    skip_critical: bool = Field(
        default=True, description="Never inspect or touch existing critical files"
    )
    dirs_only: bool = Field(default=False, description="Create folders only, never files")
    verbose: bool = Field(default=True, description="Print one line per decision")
    apply_conventions: bool = Field(
        default=True, description="Remap top-level folders to the framework's layout"
    )
