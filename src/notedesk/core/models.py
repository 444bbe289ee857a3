"""State records for the directory tree and the workspace."""

from __future__ import annotations

import datetime as dt
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any

from notedesk.core.filetypes import FileKind, file_kind


@dataclass(frozen=True)
class DirectoryEntry:
    name: str
    path: Path
    is_directory: bool
    size: int
    last_modified: dt.datetime

    def to_dict(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "path": str(self.path),
            "isDirectory": self.is_directory,
            "size": self.size,
            "lastModified": self.last_modified.isoformat(),
        }


class LoadState(str, Enum):
    UNLOADED = "unloaded"
    LOADING = "loading"
    LOADED = "loaded"
    ERROR = "error"


@dataclass
class TreeNode:
    entry: DirectoryEntry
    load_state: LoadState = LoadState.UNLOADED
    children: list[TreeNode] = field(default_factory=list)
    expanded: bool = False
    error: str | None = None

    @property
    def path(self) -> Path:
        return self.entry.path

    @property
    def is_directory(self) -> bool:
        return self.entry.is_directory


@dataclass
class OpenFile:
    path: Path
    name: str
    content: str
    modified: bool = False

    @property
    def kind(self) -> FileKind:
        return file_kind(self.name)


@dataclass(frozen=True)
class RootSelection:
    path: Path | None = None
    cancelled: bool = False
