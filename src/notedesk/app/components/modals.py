"""Folder picker modal."""

from __future__ import annotations

from pathlib import Path

from textual import on
from textual.app import App, ComposeResult
from textual.containers import Horizontal, Vertical
from textual.screen import ModalScreen
from textual.widgets import Button, DirectoryTree, Input, Label


class FolderPickerScreen(ModalScreen[Path | None]):
    """Choose the notes directory, by typing a path or browsing for it."""

    BINDINGS = [("escape", "cancel", "Close")]

    def __init__(self, start: Path):
        super().__init__()
        self.start = start

    def action_cancel(self) -> None:
        self.dismiss(None)

    def compose(self) -> ComposeResult:
        with Vertical(id="modal-container"):
            yield Label("Select Notes Directory", classes="modal-title")
            yield Input(value=str(self.start), id="folder-input")
            yield DirectoryTree(self.start, id="folder-tree")
            with Horizontal(classes="buttons"):
                yield Button("Cancel", variant="error", id="cancel", flat=True)
                yield Button("Select Folder", variant="success", id="ok", flat=True)

    @on(DirectoryTree.DirectorySelected)
    def directory_selected(self, event: DirectoryTree.DirectorySelected) -> None:
        self.query_one("#folder-input", Input).value = str(event.path)

    @on(Button.Pressed, "#cancel")
    def cancel(self) -> None:
        self.dismiss(None)

    @on(Button.Pressed, "#ok")
    def ok(self) -> None:
        value = self.query_one("#folder-input", Input).value.strip()
        self.dismiss(Path(value).expanduser() if value else None)

    @on(Input.Submitted)
    def submit(self) -> None:
        self.ok()


class ModalFolderPicker:
    """Folder picker backed by :class:`FolderPickerScreen`.

    Must be awaited from a worker, since it waits for the screen to close.
    """

    def __init__(self, app: App, start: Path | None = None) -> None:
        self._app = app
        self._start = start

    async def pick_folder(self) -> Path | None:
        return await self._app.push_screen_wait(
            FolderPickerScreen(self._start or Path.home())
        )
