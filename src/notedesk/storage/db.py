"""SQLite database helpers."""

from __future__ import annotations

import sqlite3
from collections.abc import Iterator
from contextlib import contextmanager
from pathlib import Path

from notedesk.core.settings import Settings


def db_path(settings: Settings) -> Path:
    return settings.config_db_path


def connect(db_path_value: Path) -> sqlite3.Connection:
    conn = sqlite3.connect(db_path_value)
    conn.row_factory = sqlite3.Row
    return conn


@contextmanager
def session(db_path_value: Path) -> Iterator[sqlite3.Connection]:
    conn = connect(db_path_value)
    try:
        yield conn
    finally:
        conn.close()


def initialize_db(db_path_value: Path) -> None:
    db_path_value.parent.mkdir(parents=True, exist_ok=True)
    with session(db_path_value) as conn:
        migrations_dir = Path(__file__).resolve().parent / "migrations"
        _apply_migrations(conn, migrations_dir)


def _apply_migrations(conn: sqlite3.Connection, migrations_dir: Path) -> None:
    if not migrations_dir.exists():
        return
    for migration in sorted(migrations_dir.glob("*.sql")):
        conn.executescript(migration.read_text(encoding="utf-8"))
    conn.commit()
