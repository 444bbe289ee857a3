"""File kind detection and tree glyphs."""

from __future__ import annotations

import fnmatch
from collections.abc import Iterable
from enum import Enum
from pathlib import PurePath


class FileKind(str, Enum):
    MARKDOWN = "markdown"
    TEXT = "text"
    IMAGE = "image"
    PDF = "pdf"
    OTHER = "other"


DEFAULT_IGNORE_PATTERNS: tuple[str, ...] = (
    ".git",
    "node_modules",
    ".DS_Store",
    "Thumbs.db",
    "*.tmp",
    "*.temp",
)

_KINDS: dict[str, FileKind] = {
    "md": FileKind.MARKDOWN,
    "markdown": FileKind.MARKDOWN,
    "txt": FileKind.TEXT,
    "text": FileKind.TEXT,
    "log": FileKind.TEXT,
    "jpg": FileKind.IMAGE,
    "jpeg": FileKind.IMAGE,
    "png": FileKind.IMAGE,
    "gif": FileKind.IMAGE,
    "svg": FileKind.IMAGE,
    "webp": FileKind.IMAGE,
    "bmp": FileKind.IMAGE,
    "ico": FileKind.IMAGE,
    "pdf": FileKind.PDF,
}

_ICONS: dict[FileKind, str] = {
    FileKind.MARKDOWN: "📝",
    FileKind.TEXT: "📄",
    FileKind.IMAGE: "🖼️",
    FileKind.PDF: "📕",
    FileKind.OTHER: "📄",
}

_CODE_EXTENSIONS = {"js", "ts", "py", "html", "css", "json", "xml", "yml", "yaml", "toml"}

FOLDER_ICON = "📁"


def _extension(name: str) -> str:
    return PurePath(name).suffix.lstrip(".").lower()


def file_kind(name: str) -> FileKind:
    return _KINDS.get(_extension(name), FileKind.OTHER)


def file_icon(name: str) -> str:
    if _extension(name) in _CODE_EXTENSIONS:
        return "📜"
    return _ICONS[file_kind(name)]


def is_editable(name: str) -> bool:
    return file_kind(name) not in {FileKind.IMAGE, FileKind.PDF}


def is_ignored(name: str, patterns: Iterable[str]) -> bool:
    return any(fnmatch.fnmatchcase(name, pattern) for pattern in patterns)
