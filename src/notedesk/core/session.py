"""Editor session: owns the root directory, the tree and the workspace."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Iterable
from pathlib import Path

from notedesk.bus import topics
from notedesk.bus.broker import EventBus
from notedesk.bus.schemas import root_changed, tree_changed, workspace_changed
from notedesk.core.filetypes import DEFAULT_IGNORE_PATTERNS
from notedesk.core.models import RootSelection
from notedesk.core.persistence import ConfigKey, ConfigPersistence
from notedesk.core.tree import DirectoryTreeModel
from notedesk.core.workspace import WorkspaceModel
from notedesk.fs.guard import PathGuard, PathLike, normalize_root
from notedesk.fs.service import FilesystemService, FolderPicker, probe_write_access
from notedesk.storage.config_store import ConfigStore

logger = logging.getLogger(__name__)


class EditorSession:
    def __init__(
        self,
        fs: FilesystemService,
        persistence: ConfigPersistence,
        tree: DirectoryTreeModel,
        workspace: WorkspaceModel,
        bus: EventBus | None = None,
        restore_workspace: bool = True,
    ) -> None:
        self.fs = fs
        self.persistence = persistence
        self.tree = tree
        self.workspace = workspace
        self._bus = bus
        self._restore_workspace = restore_workspace

    @classmethod
    def build(
        cls,
        store: ConfigStore,
        bus: EventBus | None = None,
        ignore_patterns: Iterable[str] = DEFAULT_IGNORE_PATTERNS,
        debounce_s: float = 0.0,
        restore_workspace: bool = True,
    ) -> EditorSession:
        fs = FilesystemService(PathGuard())
        persistence = ConfigPersistence(store, bus=bus, debounce_s=debounce_s)
        tree = DirectoryTreeModel(fs, persistence, bus=bus, ignore_patterns=ignore_patterns)
        workspace = WorkspaceModel(fs, persistence, bus=bus)
        return cls(
            fs,
            persistence,
            tree,
            workspace,
            bus=bus,
            restore_workspace=restore_workspace,
        )

    @property
    def root(self) -> Path | None:
        return self.fs.root

    async def start(self, root_override: PathLike | None = None) -> Path | None:
        """Restore the last root directory, its tree and its open files."""
        saved_root = await self.persistence.load(ConfigKey.ROOT_DIRECTORY)
        candidate = root_override if root_override is not None else saved_root
        if not candidate or not isinstance(candidate, (str, Path)):
            logger.info("No root directory configured")
            return None
        root = normalize_root(candidate)
        if not await asyncio.to_thread(root.is_dir):
            logger.warning("Root directory %s is missing, not restoring", root)
            return None

        expanded = await self.persistence.load(ConfigKey.EXPANDED_FOLDERS, [])
        self._apply_root(root, _string_items(expanded))
        if str(root) != saved_root:
            self.persistence.save(ConfigKey.ROOT_DIRECTORY, str(root))
        await self._publish_root(root)
        await self.tree.load_root()
        if self._restore_workspace:
            await self.workspace.restore()
        logger.info("Session started at %s", root)
        return root

    async def set_root(self, path: PathLike, probe: bool = True) -> Path:
        root = normalize_root(path)
        if probe:
            await asyncio.to_thread(probe_write_access, root)
        self._apply_root(root, self.tree.expanded_paths())
        self.persistence.save(ConfigKey.ROOT_DIRECTORY, str(root))
        await self._publish_root(root)
        await self.tree.load_root()
        logger.info("Root directory set to %s", root)
        return root

    async def select_root(self, picker: FolderPicker) -> RootSelection:
        selection = await self.fs.select_root_directory(picker)
        if selection.cancelled or selection.path is None:
            return selection
        await self.set_root(selection.path, probe=False)
        return selection

    async def close(self) -> None:
        await self.tree.wait_idle()
        await self.persistence.flush()

    def _apply_root(self, root: Path, expanded: Iterable[PathLike]) -> None:
        # no await in here: the three models switch roots together
        self.fs.set_root(root)
        self.tree.reset(root, expanded)
        self.workspace.prune(root)

    async def _publish_root(self, root: Path) -> None:
        if self._bus is None:
            return
        await self._bus.publish(topics.ROOT_CHANGED, root_changed(root))
        await self._bus.publish(topics.TREE_CHANGED, tree_changed(root))
        await self._bus.publish(
            topics.WORKSPACE_CHANGED, workspace_changed(self.workspace.active_file)
        )


def _string_items(value: object) -> list[str]:
    if not isinstance(value, list):
        return []
    return [item for item in value if isinstance(item, str)]
