"""treemerge configuration.

Typed run configuration for the CLI and the merge pipeline.  Settings use
Pydantic v2 models so they are validated at construction time and can be
serialised to/from JSON or read from environment variables.
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import Any, Optional

from pydantic import BaseModel, Field

from treemerge.merger.models import MergeOptions


# Environment variable -> MergeOptions field.
_OPTION_ENV_VARS: dict[str, str] = {
    "TREEMERGE_DIRS_ONLY": "dirs_only",
    "TREEMERGE_SKIP_CRITICAL": "skip_critical",
    "TREEMERGE_VERBOSE": "verbose",
    "TREEMERGE_APPLY_CONVENTIONS": "apply_conventions",
}


class Config(BaseModel):
    """Global treemerge configuration.

    Instances are created once by the CLI entry point (or by a caller of
    :func:`treemerge.pipeline.merge_structure`) and passed down from there.
    """

    target_dir: Path = Field(default=Path("."), description="Directory the structure is merged into")
    options: MergeOptions = Field(default_factory=MergeOptions)
    detect_project: bool = Field(
        default=True, description="Detect the framework (and a nested project folder) before merging"
    )
    empty_files: bool = Field(default=False, description="Create files empty instead of from templates")
    report_path: Optional[Path] = Field(default=None, description="Where to write the JSON merge report")

    # ------------------------------------------------------------------
    # Serialisation helpers
    # ------------------------------------------------------------------

    def save(self, path: Path) -> Path:
        """Persist the configuration to a JSON file.

        Returns:
            The path where the file was written.
        """
        target = Path(path)
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_text(self.model_dump_json(indent=2), encoding="utf-8")
        return target

    @classmethod
    def load(cls, path: Path) -> "Config":
        """Load a previously-saved configuration from JSON."""
        raw = Path(path).read_text(encoding="utf-8")
        return cls.model_validate_json(raw)

    @classmethod
    def from_env(cls) -> "Config":
        """Build a ``Config`` from environment variables.

        Recognised variables (all optional):
            TREEMERGE_TARGET_DIR, TREEMERGE_DIRS_ONLY, TREEMERGE_SKIP_CRITICAL,
            TREEMERGE_VERBOSE, TREEMERGE_APPLY_CONVENTIONS,
            TREEMERGE_DETECT_PROJECT, TREEMERGE_EMPTY_FILES,
            TREEMERGE_REPORT_PATH.

        Boolean values accept anything Pydantic does (``1``/``0``,
        ``true``/``false``, ``yes``/``no``, ``on``/``off``).

        Raises:
            pydantic.ValidationError: If a value cannot be parsed.
        """
        options: dict[str, Any] = {}
        for env_var, field in _OPTION_ENV_VARS.items():
            if os.environ.get(env_var):
                options[field] = os.environ[env_var]

        data: dict[str, Any] = {"options": options}
        if os.environ.get("TREEMERGE_TARGET_DIR"):
            data["target_dir"] = os.environ["TREEMERGE_TARGET_DIR"]
        if os.environ.get("TREEMERGE_DETECT_PROJECT"):
            data["detect_project"] = os.environ["TREEMERGE_DETECT_PROJECT"]
        if os.environ.get("TREEMERGE_EMPTY_FILES"):
            data["empty_files"] = os.environ["TREEMERGE_EMPTY_FILES"]
        if os.environ.get("TREEMERGE_REPORT_PATH"):
            data["report_path"] = os.environ["TREEMERGE_REPORT_PATH"]

        return cls.model_validate(data)
