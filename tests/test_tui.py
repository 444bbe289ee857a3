from __future__ import annotations

from pathlib import Path

import pytest
from textual.widgets import TextArea

from notedesk.app.components.editor import EditorTabs, _tab_title
from notedesk.app.components.file_tree import FileTreeView
from notedesk.app.tui import NotesApp
from notedesk.bridge import Bridge
from notedesk.bus.broker import InMemoryBus
from notedesk.core.models import OpenFile
from notedesk.core.session import EditorSession
from notedesk.storage.config_store import InMemoryConfigStore


def _app(root=None) -> tuple[NotesApp, Bridge]:
    bus = InMemoryBus()
    session = EditorSession.build(InMemoryConfigStore(), bus=bus)
    bridge = Bridge(session)
    return NotesApp(bridge, bus, root_override=root), bridge


@pytest.mark.asyncio
async def test_tui_starts_without_root() -> None:
    app, bridge = _app()
    async with app.run_test() as pilot:
        await app.workers.wait_for_complete()
        await pilot.pause()
        assert bridge.session.root is None
        assert app.query_one(FileTreeView).root.data is None


@pytest.mark.asyncio
async def test_tui_renders_tree_and_edits_files(notes_root) -> None:
    app, bridge = _app(notes_root)
    async with app.run_test() as pilot:
        await app.workers.wait_for_complete()
        await pilot.pause()

        tree_view = app.query_one(FileTreeView)
        assert tree_view.root.data == notes_root
        labels = [child.label.plain for child in tree_view.root.children]
        assert len(labels) == 4
        assert labels[0].endswith("archive")
        assert labels[-1].endswith("README.md")

        readme = tree_view.root.children[-1]
        tree_view.select_node(readme)
        await pilot.pause()
        await app.workers.wait_for_complete()
        await pilot.pause()

        tabs = app.query_one(EditorTabs)
        assert bridge.session.workspace.active_file == notes_root / "README.md"
        assert tabs.path_for(tabs.active) == notes_root / "README.md"
        editor = app.query_one(TextArea)
        assert editor.text == "# Notes\n"

        editor.insert("Hi ")
        await pilot.pause()
        assert bridge.session.workspace.get(notes_root / "README.md").modified is True
        assert tabs.get_tab(tabs.active).label.plain == "● README.md"

        await pilot.press("ctrl+s")
        await app.workers.wait_for_complete()
        await pilot.pause()
        assert (notes_root / "README.md").read_text(encoding="utf-8") == "Hi # Notes\n"
        assert bridge.session.workspace.get(notes_root / "README.md").modified is False
        assert tabs.get_tab(tabs.active).label.plain == "README.md"


def test_tab_title_keeps_brackets_in_file_names() -> None:
    clean = OpenFile(path=Path("/notes/[draft].md"), name="[draft].md", content="")
    dirty = OpenFile(path=clean.path, name=clean.name, content="", modified=True)

    assert _tab_title(clean).plain == "[draft].md"
    assert _tab_title(dirty).plain == "● [draft].md"
