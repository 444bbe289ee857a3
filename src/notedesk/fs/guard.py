"""Root-directory containment checks.

Every path handed to the filesystem service goes through :func:`validate`
before any I/O happens. Paths are normalized lexically (separators unified,
``.`` and ``..`` collapsed, relative paths anchored at the root) and compared
component by component, so ``/data2/secret`` is never mistaken for a child of
``/data``.
"""

from __future__ import annotations

import os
from pathlib import Path

from notedesk.core.errors import ErrorKind, FsError

PathLike = str | os.PathLike[str]


def normalize_root(root: PathLike) -> Path:
    text = _unify_separators(os.fspath(root))
    return Path(os.path.normpath(os.path.abspath(text)))


def normalize(candidate: PathLike, root: Path) -> Path:
    text = _unify_separators(os.fspath(candidate))
    if "\x00" in text:
        raise FsError(ErrorKind.PATH_TRAVERSAL, "Path contains a null byte", text)
    path = Path(text)
    if not path.is_absolute():
        path = root / path
    return Path(os.path.normpath(path))


def is_contained(path: Path, root: Path) -> bool:
    path_key = Path(os.path.normcase(path))
    root_key = Path(os.path.normcase(root))
    return path_key == root_key or root_key in path_key.parents


def validate(candidate: PathLike, root: PathLike) -> Path:
    """Return the normalized ``candidate`` or raise a path traversal error."""
    root_path = normalize_root(root)
    normalized = normalize(candidate, root_path)
    if not is_contained(normalized, root_path):
        raise FsError(
            ErrorKind.PATH_TRAVERSAL,
            f"Path escapes root directory: {candidate}",
            os.fspath(candidate),
        )
    return normalized


def validate_resolved(path: Path, root: Path) -> Path:
    """Reject ``path`` if following symlinks lands outside ``root``."""
    try:
        resolved = path.resolve()
        resolved_root = root.resolve()
    except (OSError, RuntimeError) as exc:
        # RuntimeError is how Python < 3.13 reports a symlink loop
        raise FsError(
            ErrorKind.IO_ERROR, f"Cannot resolve {path}: {exc}", path
        ) from exc
    if not is_contained(resolved, resolved_root):
        raise FsError(
            ErrorKind.PATH_TRAVERSAL,
            f"Path resolves outside root directory: {path}",
            path,
        )
    return path


def _unify_separators(text: str) -> str:
    if os.sep == "/":
        return text.replace("\\", "/")
    return text.replace("/", os.sep)


class PathGuard:
    """Containment checks bound to the current root directory."""

    def __init__(self, root: PathLike | None = None) -> None:
        self._root = normalize_root(root) if root is not None else None

    @property
    def root(self) -> Path | None:
        return self._root

    def set_root(self, root: PathLike | None) -> None:
        self._root = normalize_root(root) if root is not None else None

    def check(self, candidate: PathLike) -> Path:
        if self._root is None:
            raise FsError(ErrorKind.NO_ROOT, "No root directory set", os.fspath(candidate))
        return validate(candidate, self._root)

    def contains(self, candidate: PathLike) -> bool:
        if self._root is None:
            return False
        try:
            self.check(candidate)
        except FsError:
            return False
        return True
