"""Directory tree widget, rebuilt from the tree model on every change."""

from __future__ import annotations

from pathlib import Path

from rich.text import Text
from textual.widgets import Tree
from textual.widgets.tree import TreeNode as WidgetNode

from notedesk.core.filetypes import FOLDER_ICON, file_icon
from notedesk.core.models import LoadState, TreeNode
from notedesk.core.tree import DirectoryTreeModel


class FileTreeView(Tree[Path]):
    def __init__(self, *, id: str | None = None) -> None:
        super().__init__(Text("No folder selected", style="dim"), id=id)
        self.show_root = True

    def render_model(self, model: DirectoryTreeModel) -> None:
        cursor = self.cursor_node.data if self.cursor_node is not None else None
        self.clear()
        root = model.root
        if root is None:
            self.root.set_label(Text("No folder selected", style="dim"))
            self.root.data = None
            return
        self.root.set_label(_folder_label(root))
        self.root.data = root.path
        if not self.root.is_expanded:
            self.root.expand()
        self._add_children(self.root, model, root)
        if cursor is not None:
            self._restore_cursor(self.root, cursor)

    def _add_children(
        self, parent: WidgetNode[Path], model: DirectoryTreeModel, node: TreeNode
    ) -> None:
        if node.load_state is LoadState.LOADING:
            parent.add_leaf(Text("Loading…", style="dim italic"))
            return
        if node.load_state is LoadState.ERROR:
            parent.add_leaf(Text(f"Error: {node.error}", style="red"))
            return
        if node.load_state is LoadState.UNLOADED:
            return

        children = model.visible_children(node.path)
        if not children:
            parent.add_leaf(Text("Empty folder", style="dim"))
            return
        for child in children:
            if child.is_directory:
                branch = parent.add(
                    _folder_label(child), data=child.path, expand=child.expanded
                )
                if child.expanded:
                    self._add_children(branch, model, child)
            else:
                label = Text.assemble(file_icon(child.entry.name), " ", child.entry.name)
                parent.add_leaf(label, data=child.path)

    def _restore_cursor(self, node: WidgetNode[Path], target: Path) -> bool:
        if node.data == target:
            self.move_cursor(node)
            return True
        return any(self._restore_cursor(child, target) for child in node.children)


def _folder_label(node: TreeNode) -> Text:
    return Text.assemble(FOLDER_ICON, " ", node.entry.name)
