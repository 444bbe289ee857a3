"""Tabbed editors projected from the workspace model."""

from __future__ import annotations

import itertools
from pathlib import Path

from rich.text import Text
from textual.content import Content
from textual.widget import Widget
from textual.widgets import Static, TabbedContent, TabPane, TextArea

from notedesk.core.filetypes import is_editable
from notedesk.core.models import OpenFile
from notedesk.core.workspace import WorkspaceModel

EDITOR_SUFFIX = "-editor"


class EditorTabs(TabbedContent):
    def __init__(self, *, id: str | None = None) -> None:
        super().__init__(id=id)
        self._pane_ids: dict[Path, str] = {}
        self._counter = itertools.count(1)

    def path_for(self, pane_id: str | None) -> Path | None:
        if pane_id is None:
            return None
        if pane_id.endswith(EDITOR_SUFFIX):
            pane_id = pane_id[: -len(EDITOR_SUFFIX)]
        for path, known in self._pane_ids.items():
            if known == pane_id:
                return path
        return None

    async def sync(self, workspace: WorkspaceModel) -> None:
        open_paths = {opened.path for opened in workspace.files}
        for path in [path for path in self._pane_ids if path not in open_paths]:
            await self.remove_pane(self._pane_ids.pop(path))

        for opened in workspace.files:
            pane_id = self._pane_ids.get(opened.path)
            if pane_id is None:
                pane_id = f"pane-{next(self._counter)}"
                self._pane_ids[opened.path] = pane_id
                await self.add_pane(
                    TabPane(_tab_title(opened), _body(opened, pane_id), id=pane_id)
                )
            else:
                self.get_tab(pane_id).label = _tab_title(opened)

        active = workspace.active_file
        if active is not None and active in self._pane_ids:
            self.active = self._pane_ids[active]


def _tab_title(opened: OpenFile) -> Content:
    # Content, not markup: file names may contain square brackets
    if opened.modified:
        return Content.assemble(("● ", "yellow"), opened.name)
    return Content(opened.name)


def _body(opened: OpenFile, pane_id: str) -> Widget:
    if not is_editable(opened.name):
        return Static(
            Text(f"No preview for {opened.kind.value} files: {opened.name}", style="dim")
        )
    return TextArea(opened.content, id=f"{pane_id}{EDITOR_SUFFIX}")
