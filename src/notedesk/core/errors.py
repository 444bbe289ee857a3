"""Error taxonomy shared by the filesystem bridge and the state models."""

from __future__ import annotations

from enum import Enum
from pathlib import Path


class ErrorKind(str, Enum):
    PATH_TRAVERSAL = "path_traversal"
    NOT_FOUND = "not_found"
    NOT_A_FILE = "not_a_file"
    NOT_A_DIRECTORY = "not_a_directory"
    PERMISSION_DENIED = "permission_denied"
    IO_ERROR = "io_error"
    CONFIG_IO_ERROR = "config_io_error"
    NO_ROOT = "no_root"


class NotedeskError(Exception):
    kind: ErrorKind = ErrorKind.IO_ERROR

    def __init__(self, message: str, kind: ErrorKind | None = None) -> None:
        super().__init__(message)
        self.message = message
        if kind is not None:
            self.kind = kind

    def to_result(self) -> dict[str, str]:
        return {"error": self.kind.value, "message": self.message}


class FsError(NotedeskError):
    """A filesystem operation was rejected or failed."""

    def __init__(
        self, kind: ErrorKind, message: str, path: Path | str | None = None
    ) -> None:
        super().__init__(message, kind)
        self.path = path


class ConfigStoreError(NotedeskError):
    kind = ErrorKind.CONFIG_IO_ERROR


def fs_error_from_os(exc: OSError, path: Path, action: str) -> FsError:
    """Translate an ``OSError`` raised while touching ``path``."""
    if isinstance(exc, FileNotFoundError):
        return FsError(ErrorKind.NOT_FOUND, f"{path} does not exist", path)
    if isinstance(exc, NotADirectoryError):
        return FsError(ErrorKind.NOT_A_DIRECTORY, f"{path} is not a directory", path)
    if isinstance(exc, IsADirectoryError):
        return FsError(ErrorKind.NOT_A_FILE, f"{path} is not a file", path)
    if isinstance(exc, PermissionError):
        return FsError(
            ErrorKind.PERMISSION_DENIED, f"Permission denied while {action} {path}", path
        )
    return FsError(ErrorKind.IO_ERROR, f"Failed {action} {path}: {exc}", path)
