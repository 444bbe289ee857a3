"""Lazily loaded directory tree.

Each directory node moves through ``unloaded -> loading -> loaded`` (or
``error``). Listings are fetched on first expand and cached; collapsing keeps
the cached children and re-expanding a loaded node never fetches again. Only
``refresh`` re-lists a loaded or failed node.

At most one listing is in flight per node. A second expand or refresh while a
node is loading awaits the same task. A listing that resolves after its node
was collapsed, dropped by a parent refresh, or left behind by a root change is
discarded.
"""

from __future__ import annotations

import asyncio
import datetime as dt
import logging
from collections.abc import Iterable
from pathlib import Path
from typing import Any

from notedesk.bus import topics
from notedesk.bus.broker import EventBus
from notedesk.bus.schemas import tree_changed
from notedesk.core.errors import ErrorKind, FsError
from notedesk.core.filetypes import DEFAULT_IGNORE_PATTERNS, is_ignored
from notedesk.core.models import DirectoryEntry, LoadState, TreeNode
from notedesk.core.persistence import ConfigKey, ConfigPersistence
from notedesk.fs.guard import PathLike, is_contained, normalize
from notedesk.fs.service import FilesystemService

logger = logging.getLogger(__name__)


class DirectoryTreeModel:
    def __init__(
        self,
        fs: FilesystemService,
        persistence: ConfigPersistence,
        bus: EventBus | None = None,
        ignore_patterns: Iterable[str] = DEFAULT_IGNORE_PATTERNS,
    ) -> None:
        self._fs = fs
        self._persistence = persistence
        self._bus = bus
        self._ignore_patterns = tuple(ignore_patterns)
        self._root: TreeNode | None = None
        self._nodes: dict[Path, TreeNode] = {}
        self._expanded: set[Path] = set()
        self._inflight: dict[Path, asyncio.Task[None]] = {}
        self._epoch = 0

    @property
    def root(self) -> TreeNode | None:
        return self._root

    @property
    def ignore_patterns(self) -> tuple[str, ...]:
        return self._ignore_patterns

    def expanded_paths(self) -> set[Path]:
        return set(self._expanded)

    def node(self, path: PathLike) -> TreeNode | None:
        try:
            target = self._fs.guard.check(path)
        except FsError:
            return None
        return self._nodes.get(target)

    def is_loading(self, path: PathLike) -> bool:
        node = self.node(path)
        return node is not None and node.load_state is LoadState.LOADING

    def reset(self, root: Path | None, expanded: Iterable[PathLike] = ()) -> None:
        """Drop every node and start over at ``root``.

        Synchronous so a root change can swap the tree and the workspace with
        no suspension point in between.
        """
        self._epoch += 1
        self._nodes.clear()
        self._inflight.clear()
        if root is None:
            self._root = None
            self._expanded = set()
            self._persist_expanded()
            return

        self._expanded = set()
        for item in expanded:
            try:
                path = normalize(item, root)
            except FsError:
                continue
            if path != root and is_contained(path, root):
                self._expanded.add(path)
        entry = DirectoryEntry(
            name=root.name or str(root),
            path=root,
            is_directory=True,
            size=0,
            last_modified=dt.datetime.now(dt.UTC),
        )
        self._root = TreeNode(entry=entry, expanded=True)
        self._nodes[root] = self._root
        self._persist_expanded()
        logger.debug("Tree reset at %s (%d remembered folders)", root, len(self._expanded))

    async def load_root(self) -> None:
        if self._root is None:
            return
        await self.expand(self._root.path)

    async def expand(self, path: PathLike) -> None:
        node = self._directory_node(path)
        changed = False
        if not node.expanded:
            node.expanded = True
            if node is not self._root:
                self._expanded.add(node.path)
                self._persist_expanded()
            changed = True

        task: asyncio.Task[None] | None = None
        if node.load_state is LoadState.LOADING:
            task = self._inflight.get(node.path)
        elif node.load_state is LoadState.UNLOADED:
            task = self._start_fetch(node)
            changed = True

        if changed:
            await self._publish(node.path)
        if task is not None:
            await asyncio.shield(task)

    async def collapse(self, path: PathLike) -> None:
        node = self._directory_node(path)
        if node is self._root or not node.expanded:
            return
        node.expanded = False
        self._expanded.discard(node.path)
        self._persist_expanded()
        await self._publish(node.path)

    async def toggle(self, path: PathLike) -> None:
        node = self._directory_node(path)
        if node.expanded and node is not self._root:
            await self.collapse(node.path)
        else:
            await self.expand(node.path)

    async def refresh(self, path: PathLike | None = None) -> None:
        if path is None:
            if self._root is None:
                raise FsError(ErrorKind.NO_ROOT, "No root directory set")
            path = self._root.path
        node = self._directory_node(path)
        task = self._inflight.get(node.path)
        if task is None or node.load_state is not LoadState.LOADING:
            task = self._start_fetch(node)
            await self._publish(node.path)
        await asyncio.shield(task)

    async def wait_idle(self) -> None:
        """Wait until no listing is in flight, including restored folders."""
        while self._inflight:
            await asyncio.gather(*list(self._inflight.values()))

    def visible_children(self, path: PathLike) -> list[TreeNode]:
        node = self.node(path)
        if node is None or node.load_state is not LoadState.LOADED:
            return []
        return [
            child
            for child in node.children
            if not is_ignored(child.entry.name, self._ignore_patterns)
        ]

    def snapshot(self) -> dict[str, Any] | None:
        if self._root is None:
            return None
        return self._node_dict(self._root)

    def _node_dict(self, node: TreeNode) -> dict[str, Any]:
        data: dict[str, Any] = {
            "name": node.entry.name,
            "path": str(node.path),
            "isDirectory": node.is_directory,
            "loadState": node.load_state.value,
            "expanded": node.expanded,
        }
        if node.error:
            data["error"] = node.error
        if node.is_directory:
            data["children"] = [
                self._node_dict(child) for child in self.visible_children(node.path)
            ]
        return data

    def _directory_node(self, path: PathLike) -> TreeNode:
        target = self._fs.guard.check(path)
        node = self._nodes.get(target)
        if node is None:
            raise FsError(ErrorKind.NOT_FOUND, f"{target} is not in the tree", target)
        if not node.is_directory:
            raise FsError(ErrorKind.NOT_A_DIRECTORY, f"{target} is not a directory", target)
        return node

    def _start_fetch(self, node: TreeNode) -> asyncio.Task[None]:
        previous = node.load_state
        node.load_state = LoadState.LOADING
        node.error = None
        task = asyncio.create_task(self._fetch(node, self._epoch, previous, node.expanded))
        self._inflight[node.path] = task
        return task

    async def _fetch(
        self, node: TreeNode, epoch: int, previous: LoadState, was_expanded: bool
    ) -> None:
        entries: list[DirectoryEntry] | None = None
        failure: FsError | None = None
        try:
            entries = await asyncio.to_thread(self._fs.list_directory, node.path)
        except FsError as exc:
            failure = exc
        finally:
            if epoch == self._epoch and self._inflight.get(node.path) is asyncio.current_task():
                del self._inflight[node.path]

        if epoch != self._epoch or self._nodes.get(node.path) is not node:
            logger.debug("Discarding stale listing of %s", node.path)
            return
        if was_expanded and not node.expanded:
            logger.debug("Discarding listing of collapsed folder %s", node.path)
            node.load_state = (
                previous if previous in (LoadState.LOADED, LoadState.ERROR) else LoadState.UNLOADED
            )
            await self._publish(node.path)
            return
        if failure is not None:
            logger.warning("Failed to list %s: %s", node.path, failure.message)
            node.load_state = LoadState.ERROR
            node.error = failure.message
            await self._publish(node.path)
            return

        self._apply_listing(node, entries or [])
        node.load_state = LoadState.LOADED
        await self._publish(node.path)
        self._expand_remembered(node)

    def _apply_listing(self, node: TreeNode, entries: list[DirectoryEntry]) -> None:
        existing = {child.path: child for child in node.children}
        remembered = len(self._expanded)
        children: list[TreeNode] = []
        for entry in entries:
            child = existing.pop(entry.path, None)
            if child is not None and child.is_directory == entry.is_directory:
                child.entry = entry
            else:
                if child is not None:
                    self._forget(child)
                child = TreeNode(entry=entry)
                if entry.is_directory and entry.path in self._expanded:
                    child.expanded = True
            children.append(child)
            self._nodes[entry.path] = child

        for child in existing.values():
            self._forget(child)
        node.children = children
        if len(self._expanded) != remembered:
            self._persist_expanded()

    def _expand_remembered(self, node: TreeNode) -> None:
        for child in node.children:
            if (
                child.is_directory
                and child.expanded
                and child.load_state is LoadState.UNLOADED
            ):
                self._start_fetch(child)

    def _forget(self, node: TreeNode) -> None:
        # drops remembered descendants too, loaded or not
        self._expanded = {
            path for path in self._expanded if not is_contained(path, node.path)
        }
        self._nodes.pop(node.path, None)
        self._inflight.pop(node.path, None)
        for child in node.children:
            self._forget(child)

    def _persist_expanded(self) -> None:
        self._persistence.save(
            ConfigKey.EXPANDED_FOLDERS, sorted(str(path) for path in self._expanded)
        )

    async def _publish(self, path: Path) -> None:
        if self._bus is None:
            return
        await self._bus.publish(topics.TREE_CHANGED, tree_changed(path))
