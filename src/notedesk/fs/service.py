"""Filesystem operations confined to the root directory."""

from __future__ import annotations

import asyncio
import datetime as dt
import locale
import logging
import os
import tempfile
import unicodedata
from pathlib import Path
from typing import Protocol

from notedesk.core.errors import ErrorKind, FsError, fs_error_from_os
from notedesk.core.models import DirectoryEntry, RootSelection
from notedesk.fs.guard import PathGuard, PathLike, normalize_root, validate_resolved

logger = logging.getLogger(__name__)

WRITE_PROBE_NAME = ".notedesk-test"


class FolderPicker(Protocol):
    async def pick_folder(self) -> Path | None: ...


class FilesystemService:
    def __init__(self, guard: PathGuard | None = None) -> None:
        self._guard = guard or PathGuard()

    @property
    def guard(self) -> PathGuard:
        return self._guard

    @property
    def root(self) -> Path | None:
        return self._guard.root

    def set_root(self, root: PathLike | None) -> None:
        self._guard.set_root(root)

    def list_directory(self, path: PathLike) -> list[DirectoryEntry]:
        target = self._checked(path)
        try:
            if not target.is_dir():
                if target.exists():
                    raise FsError(
                        ErrorKind.NOT_A_DIRECTORY, f"{target} is not a directory", target
                    )
                raise FsError(ErrorKind.NOT_FOUND, f"{target} does not exist", target)
            with os.scandir(target) as it:
                items = list(it)
        except OSError as exc:
            raise fs_error_from_os(exc, target, "listing") from exc

        entries: list[DirectoryEntry] = []
        for item in items:
            try:
                stats = item.stat()
                is_dir = item.is_dir()
            except FileNotFoundError:
                # removed between scandir and stat
                continue
            except OSError as exc:
                # symlink loops, unreadable mounts: hide the entry, not the folder
                logger.warning("Skipping %s: %s", item.path, exc)
                continue
            entries.append(
                DirectoryEntry(
                    name=item.name,
                    path=target / item.name,
                    is_directory=is_dir,
                    size=stats.st_size,
                    last_modified=dt.datetime.fromtimestamp(stats.st_mtime, dt.UTC),
                )
            )
        return sort_entries(entries)

    def read_file(self, path: PathLike) -> str:
        target = self._checked(path)
        try:
            if not target.exists():
                raise FsError(ErrorKind.NOT_FOUND, f"{target} does not exist", target)
            if not target.is_file():
                raise FsError(ErrorKind.NOT_A_FILE, f"{target} is not a file", target)
            return target.read_text(encoding="utf-8")
        except UnicodeDecodeError as exc:
            raise FsError(
                ErrorKind.IO_ERROR, f"{target} is not valid UTF-8 text", target
            ) from exc
        except OSError as exc:
            raise fs_error_from_os(exc, target, "reading") from exc

    def write_file(self, path: PathLike, content: str) -> None:
        target = self._checked(path)
        if target == self.root:
            raise FsError(ErrorKind.NOT_A_FILE, f"{target} is not a file", target)
        try:
            target.parent.mkdir(parents=True, exist_ok=True)
            _atomic_write(target, content)
        except OSError as exc:
            raise fs_error_from_os(exc, target, "writing") from exc
        logger.debug("Wrote %s (%d chars)", target, len(content))

    async def select_root_directory(self, picker: FolderPicker) -> RootSelection:
        chosen = await picker.pick_folder()
        if chosen is None:
            return RootSelection(cancelled=True)
        root = normalize_root(chosen)
        await asyncio.to_thread(probe_write_access, root)
        logger.info("Selected root directory %s", root)
        return RootSelection(path=root)

    def _checked(self, path: PathLike) -> Path:
        target = self._guard.check(path)
        root = self._guard.root
        if root is not None:
            validate_resolved(target, root)
        return target


def sort_entries(entries: list[DirectoryEntry]) -> list[DirectoryEntry]:
    """Directories first, then case- and accent-insensitive name order.

    Ties between names that differ only in case or accents fall back to the
    active collation locale, then to the raw name.
    """
    return sorted(
        entries,
        key=lambda entry: (
            not entry.is_directory,
            collation_key(entry.name),
            locale.strxfrm(entry.name.casefold()),
            entry.name,
        ),
    )


def collation_key(name: str) -> str:
    decomposed = unicodedata.normalize("NFKD", name.casefold())
    return "".join(char for char in decomposed if not unicodedata.combining(char))


def probe_write_access(directory: Path) -> None:
    if not directory.exists():
        raise FsError(ErrorKind.NOT_FOUND, f"{directory} does not exist", directory)
    if not directory.is_dir():
        raise FsError(ErrorKind.NOT_A_DIRECTORY, f"{directory} is not a directory", directory)
    marker = directory / WRITE_PROBE_NAME
    try:
        marker.write_text("test", encoding="utf-8")
        marker.unlink()
    except OSError as exc:
        logger.warning("Write probe failed for %s: %s", directory, exc)
        raise FsError(
            ErrorKind.PERMISSION_DENIED,
            "Unable to write to the selected directory. "
            "Please choose a directory with write permissions.",
            directory,
        ) from exc


def _atomic_write(target: Path, content: str) -> None:
    fd, tmp_name = tempfile.mkstemp(
        dir=target.parent, prefix=f".{target.name}.", suffix=".tmp"
    )
    tmp_path = Path(tmp_name)
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as handle:
            handle.write(content)
            handle.flush()
            os.fsync(handle.fileno())
        mode = target.stat().st_mode & 0o777 if target.exists() else 0o644
        tmp_path.chmod(mode)
        tmp_path.replace(target)
    except BaseException:
        tmp_path.unlink(missing_ok=True)
        raise
