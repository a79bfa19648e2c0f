"""Containment checks: the merge root itself, and every path written below it."""

from __future__ import annotations

from pathlib import Path, PurePath, PurePosixPath, PureWindowsPath


class UnsafeTargetError(Exception):
    """The merge root is a filesystem root, a system directory, or not a directory."""

    def __init__(self, path: Path, reason: str) -> None:
        self.path = path
        self.reason = reason
        super().__init__(f"Refusing to merge into {path}: {reason}")


# Nothing below these may be a merge root.
_POSIX_PROTECTED_TREES = tuple(PurePosixPath(p) for p in (
    "/etc", "/usr", "/bin", "/sbin", "/boot", "/proc", "/sys", "/dev",
    "/lib", "/lib32", "/lib64", "/System", "/Library", "/private/etc",
))
# These are refused themselves, their sub-folders are fine (``/home/me/app``).
_POSIX_PROTECTED_EXACT = tuple(PurePosixPath(p) for p in (
    "/var", "/home", "/Users", "/opt", "/root", "/tmp", "/private", "/private/var",
))

_WINDOWS_PROTECTED_TREES = tuple(PureWindowsPath(p) for p in (
    "C:/Windows", "C:/Program Files", "C:/Program Files (x86)", "C:/ProgramData",
))
_WINDOWS_PROTECTED_EXACT = tuple(PureWindowsPath(p) for p in ("C:/Users",))


def _protected_for(path: PurePath) -> tuple[tuple[PurePath, ...], tuple[PurePath, ...]]:
    if isinstance(path, PureWindowsPath):
        return _WINDOWS_PROTECTED_TREES, _WINDOWS_PROTECTED_EXACT
    return _POSIX_PROTECTED_TREES, _POSIX_PROTECTED_EXACT


def unsafe_reason(path: PurePath) -> str:
    """Return why *path* may not be a merge root, or ``""`` if it may.

    *path* must already be absolute and resolved.  Pure paths are accepted
    so the check can be exercised for either platform's rules.
    """
    if path == type(path)(path.anchor):
        return "it is a filesystem root"
    trees, exact = _protected_for(path)
    for protected in exact + trees:
        if path == protected:
            return f"{protected} is a protected system directory"
    for protected in trees:
        if protected in path.parents:
            return f"it lies inside the protected system directory {protected}"
    return ""


def ensure_safe_target(path: str | Path) -> Path:
    """Resolve *path* and make sure a merge may write into it.

    Symlinks are followed, so a link pointing at ``/etc`` is refused too.

    Returns:
        The resolved merge root.

    Raises:
        UnsafeTargetError: The path is protected, or exists and is not a folder.
    """
    resolved = Path(path).expanduser().resolve()
    reason = unsafe_reason(resolved)
    if reason:
        raise UnsafeTargetError(resolved, reason)
    if resolved.exists() and not resolved.is_dir():
        raise UnsafeTargetError(resolved, "it exists and is not a folder")
    return resolved


class PathEscapeError(ValueError):
    """A node's on-disk path falls outside the merge root."""


def is_within_root(path: str | Path, root: str | Path) -> bool:
    """Return ``True`` if *path* is *root* or lies below it.

    Both sides are resolved first, so ``..`` segments and symlinks that
    lead elsewhere are caught too.
    """
    resolved = Path(path).resolve()
    base = Path(root).resolve()
    return resolved == base or base in resolved.parents
