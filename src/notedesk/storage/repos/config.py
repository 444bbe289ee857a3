"""Config key/value repository."""

from __future__ import annotations

import json
import sqlite3
from dataclasses import dataclass
from typing import Any


@dataclass(frozen=True)
class ConfigEntry:
    key: str
    value: Any
    updated_at: int


def get_value(conn: sqlite3.Connection, key: str) -> ConfigEntry | None:
    row = conn.execute(
        "SELECT key, value, updated_at FROM config WHERE key = ?", (key,)
    ).fetchone()
    if row is None:
        return None
    return _row_to_entry(row)


def set_value(conn: sqlite3.Connection, key: str, value: Any, ts: int) -> None:
    conn.execute(
        "INSERT INTO config (key, value, updated_at) VALUES (?, ?, ?) "
        "ON CONFLICT(key) DO UPDATE SET value=excluded.value, "
        "updated_at=excluded.updated_at",
        (key, json.dumps(value), ts),
    )
    conn.commit()


def delete_value(conn: sqlite3.Connection, key: str) -> bool:
    cursor = conn.execute("DELETE FROM config WHERE key = ?", (key,))
    conn.commit()
    return cursor.rowcount > 0


def list_values(conn: sqlite3.Connection) -> list[ConfigEntry]:
    rows = conn.execute(
        "SELECT key, value, updated_at FROM config ORDER BY key"
    ).fetchall()
    return [_row_to_entry(row) for row in rows]


def _row_to_entry(row: sqlite3.Row) -> ConfigEntry:
    return ConfigEntry(
        key=row["key"], value=json.loads(row["value"]), updated_at=row["updated_at"]
    )
