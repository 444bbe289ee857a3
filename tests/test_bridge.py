from __future__ import annotations

import os
from pathlib import Path

import pytest

from notedesk.bridge import Bridge
from notedesk.core.session import EditorSession
from notedesk.storage.config_store import InMemoryConfigStore


class StubPicker:
    def __init__(self, choice: Path | None) -> None:
        self.choice = choice

    async def pick_folder(self) -> Path | None:
        return self.choice


async def _bridge(root: Path | None = None, store: InMemoryConfigStore | None = None) -> Bridge:
    session = EditorSession.build(store or InMemoryConfigStore())
    bridge = Bridge(session)
    if root is not None:
        result = await bridge.set_root_directory(str(root))
        assert result == {"rootPath": str(root)}
    return bridge


@pytest.mark.asyncio
async def test_requests_without_root_are_tagged(notes_root) -> None:
    bridge = await _bridge()
    result = await bridge.list_directory(str(notes_root))
    assert result["error"] == "no_root"
    assert result["message"]


@pytest.mark.asyncio
async def test_traversal_attempts_are_tagged(notes_root) -> None:
    bridge = await _bridge(notes_root)

    for request in (
        bridge.list_directory(f"{notes_root}/../"),
        bridge.read_file("../../etc/passwd"),
        bridge.write_file("../evil.md", "x"),
    ):
        result = await request
        assert result["error"] == "path_traversal"
    assert not (notes_root.parent / "evil.md").exists()


@pytest.mark.asyncio
async def test_list_read_write(notes_root) -> None:
    bridge = await _bridge(notes_root)

    listing = await bridge.list_directory(str(notes_root))
    assert [entry["name"] for entry in listing["entries"]] == [
        "archive",
        "Projects",
        "ideas.txt",
        "README.md",
    ]
    assert listing["entries"][0]["isDirectory"] is True

    assert await bridge.write_file(str(notes_root / "new.md"), "fresh") == {"ok": True}
    assert await bridge.read_file(str(notes_root / "new.md")) == {"content": "fresh"}
    assert (await bridge.read_file("nope.md"))["error"] == "not_found"


@pytest.mark.asyncio
async def test_config_values() -> None:
    store = InMemoryConfigStore()
    bridge = await _bridge(store=store)

    assert await bridge.get_config_value("theme") == {"value": None}
    assert await bridge.set_config_value("theme", {"dark": True}) == {"ok": True}
    assert await bridge.get_config_value("theme") == {"value": {"dark": True}}


@pytest.mark.asyncio
async def test_select_root_directory(notes_root) -> None:
    bridge = await _bridge()
    assert await bridge.select_root_directory() == {"cancelled": True}

    bridge.set_picker(StubPicker(None))
    assert await bridge.select_root_directory() == {"cancelled": True}

    bridge.set_picker(StubPicker(notes_root / "missing"))
    assert (await bridge.select_root_directory())["error"] == "not_found"

    bridge.set_picker(StubPicker(notes_root))
    assert await bridge.select_root_directory() == {"rootPath": str(notes_root)}
    await bridge.session.close()


@pytest.mark.asyncio
async def test_folder_operations(notes_root) -> None:
    bridge = await _bridge(notes_root)
    projects = str(notes_root / "Projects")

    expanded = await bridge.expand_folder(projects)
    assert expanded["loadState"] == "loaded"
    assert expanded["expanded"] is True
    assert [child["name"] for child in expanded["children"]] == ["alpha", "plan.md"]

    collapsed = await bridge.collapse_folder(projects)
    assert collapsed["expanded"] is False

    toggled = await bridge.toggle_folder(projects)
    assert toggled["expanded"] is True

    (notes_root / "Projects" / "extra.md").write_text("x", encoding="utf-8")
    refreshed = await bridge.refresh_folder(projects)
    assert "extra.md" in [child["name"] for child in refreshed["children"]]

    assert (await bridge.expand_folder(str(notes_root / "README.md")))["error"] == (
        "not_a_directory"
    )
    await bridge.session.close()


@pytest.mark.asyncio
async def test_file_operations_and_snapshot(notes_root) -> None:
    bridge = await _bridge(notes_root)
    readme = str(notes_root / "README.md")

    opened = await bridge.open_file(readme)
    assert opened["ok"] is True
    assert opened["file"]["content"] == "# Notes\n"
    assert opened["file"]["kind"] == "markdown"

    assert await bridge.edit_file(readme, "# Changed\n") == {"ok": True, "modified": True}
    assert await bridge.save_file(readme) == {"ok": True, "modified": False}
    assert (notes_root / "README.md").read_text(encoding="utf-8") == "# Changed\n"

    await bridge.open_file(str(notes_root / "ideas.txt"))
    activated = await bridge.activate_file(readme)
    assert activated["activeFile"] == readme

    snapshot = await bridge.snapshot()
    assert snapshot["rootDirectory"] == str(notes_root)
    assert snapshot["tree"]["loadState"] == "loaded"
    assert [item["name"] for item in snapshot["openFiles"]] == ["README.md", "ideas.txt"]

    closed = await bridge.close_file(readme)
    assert closed["ok"] is True
    assert closed["activeFile"] == str(notes_root / "ideas.txt")

    assert (await bridge.activate_file(readme))["error"] == "not_found"
    await bridge.session.close()


@pytest.mark.asyncio
async def test_symlink_loop_is_tagged(tmp_path) -> None:
    os.symlink(tmp_path / "loop", tmp_path / "loop")
    bridge = await _bridge(tmp_path)

    result = await bridge.read_file(str(tmp_path / "loop"))
    listing = await bridge.list_directory(str(tmp_path))

    assert result["error"] in {"io_error", "not_found"}
    assert result["message"]
    assert listing == {"entries": []}
