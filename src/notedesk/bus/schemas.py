"""Event message schemas."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Any

from notedesk.utils.time import now_ts


@dataclass(frozen=True)
class RootChanged:
    root: Path | None
    ts: int


@dataclass(frozen=True)
class TreeChanged:
    path: Path
    ts: int


@dataclass(frozen=True)
class WorkspaceChanged:
    active_file: Path | None
    ts: int


@dataclass(frozen=True)
class ConfigWriteFailed:
    key: str
    value: Any
    error: str
    ts: int


def root_changed(root: Path | None) -> RootChanged:
    return RootChanged(root=root, ts=now_ts())


def tree_changed(path: Path) -> TreeChanged:
    return TreeChanged(path=path, ts=now_ts())


def workspace_changed(active_file: Path | None) -> WorkspaceChanged:
    return WorkspaceChanged(active_file=active_file, ts=now_ts())
