"""Persistent key/value stores for UI state."""

from __future__ import annotations

import copy
import sqlite3
import threading
from pathlib import Path
from typing import Any, Protocol

from notedesk.core.errors import ConfigStoreError
from notedesk.storage.db import session
from notedesk.storage.repos import config as config_repo
from notedesk.utils.time import now_ts


class ConfigStore(Protocol):
    def get(self, key: str) -> Any | None: ...

    def set(self, key: str, value: Any) -> None: ...


class InMemoryConfigStore:
    def __init__(self, initial: dict[str, Any] | None = None) -> None:
        self._values: dict[str, Any] = copy.deepcopy(initial or {})
        self._lock = threading.Lock()
        self.writes: list[tuple[str, Any]] = []

    def get(self, key: str) -> Any | None:
        with self._lock:
            return copy.deepcopy(self._values.get(key))

    def set(self, key: str, value: Any) -> None:
        with self._lock:
            self._values[key] = copy.deepcopy(value)
            self.writes.append((key, copy.deepcopy(value)))

    def items(self) -> dict[str, Any]:
        with self._lock:
            return copy.deepcopy(self._values)


class SQLiteConfigStore:
    def __init__(self, db_path: Path) -> None:
        self._db_path = db_path

    def get(self, key: str) -> Any | None:
        try:
            with session(self._db_path) as conn:
                entry = config_repo.get_value(conn, key)
        except (sqlite3.Error, ValueError) as exc:
            raise ConfigStoreError(f"Failed to read config key {key!r}: {exc}") from exc
        return entry.value if entry is not None else None

    def set(self, key: str, value: Any) -> None:
        try:
            with session(self._db_path) as conn:
                config_repo.set_value(conn, key, value, now_ts())
        except (sqlite3.Error, TypeError, ValueError) as exc:
            raise ConfigStoreError(f"Failed to write config key {key!r}: {exc}") from exc

    def delete(self, key: str) -> bool:
        try:
            with session(self._db_path) as conn:
                return config_repo.delete_value(conn, key)
        except sqlite3.Error as exc:
            raise ConfigStoreError(f"Failed to delete config key {key!r}: {exc}") from exc

    def items(self) -> dict[str, Any]:
        try:
            with session(self._db_path) as conn:
                entries = config_repo.list_values(conn)
        except (sqlite3.Error, ValueError) as exc:
            raise ConfigStoreError(f"Failed to list config: {exc}") from exc
        return {entry.key: entry.value for entry in entries}
