from __future__ import annotations

from pathlib import Path

import pytest


@pytest.fixture
def notes_root(tmp_path: Path) -> Path:
    """A small notes directory::

    notes/
      Projects/
        alpha/
          todo.md
        plan.md
      archive/
      README.md
      ideas.txt
    """
    root = tmp_path / "notes"
    (root / "Projects" / "alpha").mkdir(parents=True)
    (root / "archive").mkdir()
    (root / "Projects" / "alpha" / "todo.md").write_text("- [ ] ship\n", encoding="utf-8")
    (root / "Projects" / "plan.md").write_text("# Plan\n", encoding="utf-8")
    (root / "README.md").write_text("# Notes\n", encoding="utf-8")
    (root / "ideas.txt").write_text("idea\n", encoding="utf-8")
    return root
