"""Open files, tab order and the active selection."""

from __future__ import annotations

import asyncio
import logging
from pathlib import Path
from typing import Any

from notedesk.bus import topics
from notedesk.bus.broker import EventBus
from notedesk.bus.schemas import workspace_changed
from notedesk.core.errors import ErrorKind, FsError
from notedesk.core.models import OpenFile
from notedesk.core.persistence import ConfigKey, ConfigPersistence
from notedesk.fs.guard import PathLike, is_contained
from notedesk.fs.service import FilesystemService

logger = logging.getLogger(__name__)


class WorkspaceModel:
    def __init__(
        self,
        fs: FilesystemService,
        persistence: ConfigPersistence,
        bus: EventBus | None = None,
    ) -> None:
        self._fs = fs
        self._persistence = persistence
        self._bus = bus
        self._files: list[OpenFile] = []
        self._active: Path | None = None
        self._opening: dict[Path, asyncio.Task[OpenFile]] = {}

    @property
    def files(self) -> list[OpenFile]:
        return list(self._files)

    @property
    def active_file(self) -> Path | None:
        return self._active

    def get(self, path: PathLike) -> OpenFile | None:
        try:
            target = self._fs.guard.check(path)
        except FsError:
            return None
        return self._find(target)

    async def open_file(self, path: PathLike, activate: bool = True) -> OpenFile:
        return await self._open(path, activate=activate, persist=True)

    async def close_file(self, path: PathLike) -> bool:
        opened = self.get(path)
        if opened is None:
            return False
        self._files.remove(opened)
        if self._active == opened.path:
            self._active = self._files[0].path if self._files else None
        self._persist()
        await self._publish()
        return True

    async def activate(self, path: PathLike) -> None:
        opened = self._require(path)
        if self._active == opened.path:
            return
        self._active = opened.path
        self._persistence.save(ConfigKey.ACTIVE_FILE, str(opened.path))
        await self._publish()

    async def mark_modified(self, path: PathLike) -> bool:
        opened = self._require(path)
        if opened.modified:
            return False
        opened.modified = True
        await self._publish()
        return True

    async def update_content(self, path: PathLike, content: str) -> None:
        opened = self._require(path)
        if opened.content == content:
            return
        opened.content = content
        await self.mark_modified(opened.path)

    async def save_file(self, path: PathLike) -> OpenFile:
        opened = self._require(path)
        content = opened.content
        await asyncio.to_thread(self._fs.write_file, opened.path, content)
        if opened.content == content and opened.modified:
            opened.modified = False
            await self._publish()
        logger.info("Saved %s", opened.path)
        return opened

    def prune(self, root: Path | None) -> bool:
        """Drop open files outside ``root``; synchronous, like the tree reset."""
        kept = [
            opened
            for opened in self._files
            if root is not None and is_contained(opened.path, root)
        ]
        if len(kept) == len(self._files):
            return False
        dropped = len(self._files) - len(kept)
        self._files = kept
        if self._find(self._active) is None:
            self._active = kept[0].path if kept else None
        self._opening.clear()
        self._persist()
        logger.info("Closed %d file(s) outside %s", dropped, root)
        return True

    async def restore(self) -> None:
        saved = await self._persistence.load(ConfigKey.OPEN_FILES, [])
        saved_active = await self._persistence.load(ConfigKey.ACTIVE_FILE)
        paths = [item for item in saved if isinstance(item, str)] if isinstance(saved, list) else []

        for item in paths:
            if not self._fs.guard.contains(item):
                logger.info("Not restoring %s: outside root directory", item)
                continue
            try:
                await self._open(item, activate=False, persist=False)
            except FsError as exc:
                logger.warning("Not restoring %s: %s", item, exc.message)

        target = self.get(saved_active) if isinstance(saved_active, str) else None
        if target is None and self._files:
            target = self._files[0]
        self._active = target.path if target is not None else None
        self._persist()
        await self._publish()

    def snapshot(self) -> dict[str, Any]:
        return {
            "openFiles": [
                {
                    "path": str(opened.path),
                    "name": opened.name,
                    "modified": opened.modified,
                    "kind": opened.kind.value,
                }
                for opened in self._files
            ],
            "activeFile": str(self._active) if self._active else None,
        }

    async def _open(self, path: PathLike, activate: bool, persist: bool) -> OpenFile:
        target = self._fs.guard.check(path)
        opened = self._find(target)
        if opened is None:
            task = self._opening.get(target)
            if task is None:
                task = asyncio.create_task(self._read(target, persist))
                self._opening[target] = task
            opened = await asyncio.shield(task)
        if activate:
            await self.activate(opened.path)
        return opened

    async def _read(self, target: Path, persist: bool) -> OpenFile:
        try:
            content = await asyncio.to_thread(self._fs.read_file, target)
        finally:
            if self._opening.get(target) is asyncio.current_task():
                del self._opening[target]

        existing = self._find(target)
        if existing is not None:
            return existing
        if not self._fs.guard.contains(target):
            raise FsError(
                ErrorKind.PATH_TRAVERSAL,
                f"Root directory changed while opening {target}",
                target,
            )
        opened = OpenFile(path=target, name=target.name, content=content)
        self._files.append(opened)
        if persist:
            self._persist()
        await self._publish()
        return opened

    def _require(self, path: PathLike) -> OpenFile:
        opened = self.get(path)
        if opened is None:
            raise FsError(ErrorKind.NOT_FOUND, f"{path} is not open", path)
        return opened

    def _find(self, target: Path | None) -> OpenFile | None:
        if target is None:
            return None
        for opened in self._files:
            if opened.path == target:
                return opened
        return None

    def _persist(self) -> None:
        self._persistence.save(
            ConfigKey.OPEN_FILES, [str(opened.path) for opened in self._files]
        )
        self._persistence.save(
            ConfigKey.ACTIVE_FILE, str(self._active) if self._active else None
        )

    async def _publish(self) -> None:
        if self._bus is None:
            return
        await self._bus.publish(topics.WORKSPACE_CHANGED, workspace_changed(self._active))
