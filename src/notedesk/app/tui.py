"""Textual-based TUI."""

from __future__ import annotations

from collections.abc import Awaitable
from pathlib import Path
from typing import Any, ClassVar

from textual.app import App, ComposeResult
from textual.binding import Binding, BindingType
from textual.containers import Horizontal
from textual.widgets import Footer, Header, Static, TabbedContent, TextArea, Tree

from notedesk.app.components.editor import EditorTabs
from notedesk.app.components.file_tree import FileTreeView
from notedesk.app.components.modals import ModalFolderPicker
from notedesk.bridge import Bridge
from notedesk.bus import topics
from notedesk.bus.broker import EventBus
from notedesk.bus.schemas import ConfigWriteFailed
from notedesk.core.models import LoadState, TreeNode


class NotesApp(App):
    CSS_PATH = "style.tcss"
    TITLE = "notedesk"

    BINDINGS: ClassVar[list[BindingType]] = [
        ("ctrl+o", "select_folder", "Open Folder"),
        ("ctrl+s", "save", "Save"),
        Binding("ctrl+w", "close_tab", "Close Tab", priority=True),
        ("f5", "refresh", "Refresh"),
    ]

    def __init__(
        self,
        bridge: Bridge,
        bus: EventBus,
        root_override: Path | None = None,
    ) -> None:
        super().__init__()
        self._bridge = bridge
        self._bus = bus
        self._root_override = root_override

    def compose(self) -> ComposeResult:
        yield Header()
        with Horizontal(id="main"):
            yield FileTreeView(id="file-tree")
            yield EditorTabs(id="editor-tabs")
        yield Static("", id="status")
        yield Footer()

    def on_mount(self) -> None:
        self._bridge.set_picker(ModalFolderPicker(self))
        self._bus.subscribe(topics.TREE_CHANGED, self._handle_tree_changed)
        self._bus.subscribe(topics.WORKSPACE_CHANGED, self._handle_workspace_changed)
        self._bus.subscribe(topics.ROOT_CHANGED, self._handle_root_changed)
        self._bus.subscribe(topics.CONFIG_WRITE_FAILED, self._handle_config_failed)
        self.run_worker(self._start_session(), exclusive=True, group="session")

    async def on_unmount(self) -> None:
        self._bus.unsubscribe(topics.TREE_CHANGED, self._handle_tree_changed)
        self._bus.unsubscribe(topics.WORKSPACE_CHANGED, self._handle_workspace_changed)
        self._bus.unsubscribe(topics.ROOT_CHANGED, self._handle_root_changed)
        self._bus.unsubscribe(topics.CONFIG_WRITE_FAILED, self._handle_config_failed)
        await self._bridge.session.close()

    async def on_tree_node_expanded(self, event: Tree.NodeExpanded[Path]) -> None:
        node = self._model_node(event.control, event.node.data)
        if node is None or node.expanded:
            return
        self._call(self._bridge.expand_folder(str(node.path)))

    async def on_tree_node_collapsed(self, event: Tree.NodeCollapsed[Path]) -> None:
        node = self._model_node(event.control, event.node.data)
        if node is None or not node.expanded:
            return
        self._call(self._bridge.collapse_folder(str(node.path)))

    async def on_tree_node_selected(self, event: Tree.NodeSelected[Path]) -> None:
        node = self._model_node(event.control, event.node.data)
        if node is None or node.is_directory:
            return
        self._call(self._bridge.open_file(str(node.path)))

    async def on_tabbed_content_tab_activated(
        self, event: TabbedContent.TabActivated
    ) -> None:
        tabs = self.query_one(EditorTabs)
        if event.tabbed_content is not tabs or event.pane.id != tabs.active:
            return
        path = tabs.path_for(event.pane.id)
        if path is None or path == self._bridge.session.workspace.active_file:
            return
        self._report(await self._bridge.activate_file(str(path)))

    async def on_text_area_changed(self, event: TextArea.Changed) -> None:
        path = self.query_one(EditorTabs).path_for(event.text_area.id)
        if path is None:
            return
        opened = self._bridge.session.workspace.get(path)
        if opened is None or opened.content == event.text_area.text:
            return
        self._report(await self._bridge.edit_file(str(path), event.text_area.text))

    def action_select_folder(self) -> None:
        self.run_worker(self._select_folder(), exclusive=True, group="picker")

    def action_save(self) -> None:
        active = self._bridge.session.workspace.active_file
        if active is None:
            self._set_status("Nothing to save")
            return
        self._call(self._bridge.save_file(str(active)), f"Saved {active.name}")

    def action_close_tab(self) -> None:
        active = self._bridge.session.workspace.active_file
        if active is None:
            return
        self._call(self._bridge.close_file(str(active)))

    def action_refresh(self) -> None:
        tree = self.query_one(FileTreeView)
        target = tree.cursor_node.data if tree.cursor_node is not None else None
        node = self._bridge.session.tree.node(target) if target is not None else None
        if node is None or not node.is_directory:
            self._call(self._bridge.refresh_folder())
            return
        self._call(self._bridge.refresh_folder(str(node.path)))

    async def _start_session(self) -> None:
        root = await self._bridge.session.start(self._root_override)
        if root is None:
            self._set_status("No folder selected. Press Ctrl+O to choose a notes directory.")

    async def _select_folder(self) -> None:
        result = await self._bridge.select_root_directory()
        if result.get("cancelled"):
            self._set_status("Folder selection cancelled")
            return
        self._report(result)

    def _call(self, request: Awaitable[dict[str, Any]], success: str | None = None) -> None:
        async def _run() -> None:
            result = await request
            self._report(result)
            if success and "error" not in result:
                self._set_status(success)

        self.run_worker(_run(), group="bridge")

    def _model_node(self, control: object, data: object) -> TreeNode | None:
        # Only the sidebar tree maps onto the model; the picker's tree does not.
        if not isinstance(control, FileTreeView) or not isinstance(data, Path):
            return None
        return self._bridge.session.tree.node(data)

    def _report(self, result: dict[str, Any]) -> None:
        if "error" in result:
            self.notify(result.get("message", result["error"]), severity="error")

    async def _handle_tree_changed(self, message: object) -> None:
        tree_view = self.query_one(FileTreeView)
        tree_view.render_model(self._bridge.session.tree)
        root = self._bridge.session.tree.root
        if root is not None and root.load_state is LoadState.ERROR:
            self._set_status(f"Cannot list {root.path}: {root.error}")

    async def _handle_workspace_changed(self, message: object) -> None:
        await self.query_one(EditorTabs).sync(self._bridge.session.workspace)

    async def _handle_root_changed(self, message: object) -> None:
        root = self._bridge.session.root
        self.sub_title = str(root) if root else ""
        self._set_status(f"Root: {root}" if root else "")

    async def _handle_config_failed(self, message: object) -> None:
        if isinstance(message, ConfigWriteFailed):
            self.notify(f"Could not save {message.key}: {message.error}", severity="warning")

    def _set_status(self, text: str) -> None:
        self.query_one("#status", Static).update(text)


def run_tui(bridge: Bridge, bus: EventBus, root_override: Path | None = None) -> None:
    app = NotesApp(bridge=bridge, bus=bus, root_override=root_override)
    app.run()
