from __future__ import annotations

import os
from pathlib import Path

import pytest

from notedesk.core.errors import ErrorKind, FsError
from notedesk.fs.service import (
    WRITE_PROBE_NAME,
    FilesystemService,
    probe_write_access,
)


class StubPicker:
    def __init__(self, choice: Path | None) -> None:
        self.choice = choice

    async def pick_folder(self) -> Path | None:
        return self.choice


def test_list_directory_sorts_folders_first_case_insensitive(tmp_path) -> None:
    for name in ("Zeta", "alpha"):
        (tmp_path / name).mkdir()
    for name in ("b.md", "A.md", "c.txt"):
        (tmp_path / name).write_text("x", encoding="utf-8")
    fs = FilesystemService()
    fs.set_root(tmp_path)

    entries = fs.list_directory(tmp_path)

    assert [entry.name for entry in entries] == ["alpha", "Zeta", "A.md", "b.md", "c.txt"]
    assert [entry.is_directory for entry in entries] == [True, True, False, False, False]
    assert entries[2].path == tmp_path / "A.md"
    assert entries[2].size == 1
    payload = entries[2].to_dict()
    assert payload["isDirectory"] is False
    assert "lastModified" in payload


def test_list_directory_errors(notes_root) -> None:
    fs = FilesystemService()
    fs.set_root(notes_root)

    with pytest.raises(FsError) as missing:
        fs.list_directory(notes_root / "nope")
    assert missing.value.kind is ErrorKind.NOT_FOUND

    with pytest.raises(FsError) as not_dir:
        fs.list_directory(notes_root / "README.md")
    assert not_dir.value.kind is ErrorKind.NOT_A_DIRECTORY

    with pytest.raises(FsError) as escape:
        fs.list_directory(notes_root.parent)
    assert escape.value.kind is ErrorKind.PATH_TRAVERSAL


def test_operations_require_a_root(notes_root) -> None:
    fs = FilesystemService()
    with pytest.raises(FsError) as excinfo:
        fs.read_file(notes_root / "README.md")
    assert excinfo.value.kind is ErrorKind.NO_ROOT


def test_read_file(notes_root) -> None:
    fs = FilesystemService()
    fs.set_root(notes_root)
    assert fs.read_file("README.md") == "# Notes\n"

    with pytest.raises(FsError) as missing:
        fs.read_file("missing.md")
    assert missing.value.kind is ErrorKind.NOT_FOUND

    with pytest.raises(FsError) as directory:
        fs.read_file("Projects")
    assert directory.value.kind is ErrorKind.NOT_A_FILE


def test_read_file_rejects_binary_content(notes_root) -> None:
    (notes_root / "blob.bin").write_bytes(b"\xff\xfe\x00\x81")
    fs = FilesystemService()
    fs.set_root(notes_root)
    with pytest.raises(FsError) as excinfo:
        fs.read_file("blob.bin")
    assert excinfo.value.kind is ErrorKind.IO_ERROR


def test_symlink_pointing_outside_root_is_rejected(tmp_path) -> None:
    root = tmp_path / "root"
    root.mkdir()
    outside = tmp_path / "secret.txt"
    outside.write_text("secret", encoding="utf-8")
    (root / "link.txt").symlink_to(outside)
    fs = FilesystemService()
    fs.set_root(root)

    with pytest.raises(FsError) as excinfo:
        fs.read_file("link.txt")
    assert excinfo.value.kind is ErrorKind.PATH_TRAVERSAL


def test_write_file_is_atomic_and_creates_parents(tmp_path) -> None:
    fs = FilesystemService()
    fs.set_root(tmp_path)

    fs.write_file("journal/2024/day.md", "first")
    fs.write_file("journal/2024/day.md", "second")

    target = tmp_path / "journal" / "2024" / "day.md"
    assert target.read_text(encoding="utf-8") == "second"
    assert os.listdir(target.parent) == ["day.md"]
    assert target.stat().st_mode & 0o777 == 0o644


def test_write_file_keeps_existing_mode(tmp_path) -> None:
    target = tmp_path / "private.md"
    target.write_text("old", encoding="utf-8")
    target.chmod(0o600)
    fs = FilesystemService()
    fs.set_root(tmp_path)

    fs.write_file(target, "new")

    assert target.stat().st_mode & 0o777 == 0o600


def test_write_file_outside_root_is_rejected(tmp_path) -> None:
    root = tmp_path / "root"
    root.mkdir()
    fs = FilesystemService()
    fs.set_root(root)
    with pytest.raises(FsError) as excinfo:
        fs.write_file("../escape.md", "nope")
    assert excinfo.value.kind is ErrorKind.PATH_TRAVERSAL
    assert not (tmp_path / "escape.md").exists()


def test_failed_write_leaves_no_temp_file(tmp_path, monkeypatch) -> None:
    fs = FilesystemService()
    fs.set_root(tmp_path)

    def broken_replace(self, target):
        raise PermissionError("read-only")

    monkeypatch.setattr(Path, "replace", broken_replace)
    with pytest.raises(FsError) as excinfo:
        fs.write_file("note.md", "text")
    assert excinfo.value.kind is ErrorKind.PERMISSION_DENIED
    assert os.listdir(tmp_path) == []


def test_probe_write_access(tmp_path) -> None:
    probe_write_access(tmp_path)
    assert not (tmp_path / WRITE_PROBE_NAME).exists()

    with pytest.raises(FsError) as missing:
        probe_write_access(tmp_path / "missing")
    assert missing.value.kind is ErrorKind.NOT_FOUND

    (tmp_path / "file.md").write_text("x", encoding="utf-8")
    with pytest.raises(FsError) as not_dir:
        probe_write_access(tmp_path / "file.md")
    assert not_dir.value.kind is ErrorKind.NOT_A_DIRECTORY


def test_probe_write_access_reports_unwritable_directory(tmp_path, monkeypatch) -> None:
    def refuse(self, *args, **kwargs):
        raise PermissionError("read-only filesystem")

    monkeypatch.setattr(Path, "write_text", refuse)
    with pytest.raises(FsError) as excinfo:
        probe_write_access(tmp_path)
    assert excinfo.value.kind is ErrorKind.PERMISSION_DENIED
    assert "write permissions" in excinfo.value.message


@pytest.mark.asyncio
async def test_select_root_directory(tmp_path) -> None:
    fs = FilesystemService()

    cancelled = await fs.select_root_directory(StubPicker(None))
    assert cancelled.cancelled is True
    assert cancelled.path is None

    chosen = await fs.select_root_directory(StubPicker(tmp_path))
    assert chosen.cancelled is False
    assert chosen.path == tmp_path
    assert fs.root is None

    with pytest.raises(FsError) as excinfo:
        await fs.select_root_directory(StubPicker(tmp_path / "missing"))
    assert excinfo.value.kind is ErrorKind.NOT_FOUND


def test_list_directory_orders_folder_before_same_named_files(tmp_path) -> None:
    (tmp_path / "b.txt").write_text("b", encoding="utf-8")
    (tmp_path / "A").mkdir()
    (tmp_path / "a.txt").write_text("a", encoding="utf-8")
    fs = FilesystemService()
    fs.set_root(tmp_path)

    assert [entry.name for entry in fs.list_directory(tmp_path)] == ["A", "a.txt", "b.txt"]


def test_list_directory_skips_unreadable_entries(tmp_path) -> None:
    (tmp_path / "good.md").write_text("x", encoding="utf-8")
    os.symlink(tmp_path / "loop", tmp_path / "loop")
    fs = FilesystemService()
    fs.set_root(tmp_path)

    entries = fs.list_directory(tmp_path)

    assert [entry.name for entry in entries] == ["good.md"]


def test_list_directory_ignores_accents_when_sorting(tmp_path) -> None:
    for name in ("zebra.md", "éclair.md", "apple.md"):
        (tmp_path / name).write_text("x", encoding="utf-8")
    fs = FilesystemService()
    fs.set_root(tmp_path)

    entries = fs.list_directory(tmp_path)

    assert [entry.name for entry in entries] == ["apple.md", "éclair.md", "zebra.md"]
