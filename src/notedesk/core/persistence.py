"""Write-behind persistence of tree and workspace state."""

from __future__ import annotations

import asyncio
import logging
from enum import Enum
from typing import Any

from notedesk.bus import topics
from notedesk.bus.broker import EventBus
from notedesk.bus.schemas import ConfigWriteFailed
from notedesk.core.errors import ConfigStoreError
from notedesk.storage.config_store import ConfigStore
from notedesk.utils.time import now_ts

logger = logging.getLogger(__name__)


class ConfigKey(str, Enum):
    ROOT_DIRECTORY = "rootDirectory"
    EXPANDED_FOLDERS = "expandedFolders"
    OPEN_FILES = "openFiles"
    ACTIVE_FILE = "activeFile"


class ConfigPersistence:
    """Fire-and-forget writes, serialized per key.

    Values saved for a key while a write for that key is in flight are
    coalesced, so the value that ends up in the store is always the last one
    saved. Failures are logged and published on the bus; they never undo the
    in-memory change that triggered the write.
    """

    def __init__(
        self,
        store: ConfigStore,
        bus: EventBus | None = None,
        debounce_s: float = 0.0,
    ) -> None:
        self._store = store
        self._bus = bus
        self._debounce_s = debounce_s
        self._pending: dict[str, Any] = {}
        self._writers: dict[str, asyncio.Task[None]] = {}

    @property
    def store(self) -> ConfigStore:
        return self._store

    def save(self, key: ConfigKey | str, value: Any) -> None:
        name = _key_name(key)
        try:
            asyncio.get_running_loop()
        except RuntimeError:
            self._write_now(name, value)
            return
        self._pending[name] = value
        if name not in self._writers:
            self._writers[name] = asyncio.create_task(self._drain(name))

    async def load(self, key: ConfigKey | str, default: Any = None) -> Any:
        name = _key_name(key)
        try:
            value = await asyncio.to_thread(self._store.get, name)
        except ConfigStoreError:
            logger.exception("Failed to load config key %s", name)
            return default
        return default if value is None else value

    async def flush(self) -> None:
        while self._writers:
            await asyncio.gather(*list(self._writers.values()))

    def pending(self) -> bool:
        return bool(self._writers)

    async def _drain(self, name: str) -> None:
        try:
            if self._debounce_s > 0:
                await asyncio.sleep(self._debounce_s)
            while name in self._pending:
                value = self._pending.pop(name)
                try:
                    await asyncio.to_thread(self._store.set, name, value)
                except ConfigStoreError as exc:
                    logger.error("Failed to persist config key %s: %s", name, exc)
                    await self._report(name, value, exc)
        finally:
            self._writers.pop(name, None)

    def _write_now(self, name: str, value: Any) -> None:
        try:
            self._store.set(name, value)
        except ConfigStoreError as exc:
            logger.error("Failed to persist config key %s: %s", name, exc)

    async def _report(self, name: str, value: Any, exc: ConfigStoreError) -> None:
        if self._bus is None:
            return
        await self._bus.publish(
            topics.CONFIG_WRITE_FAILED,
            ConfigWriteFailed(key=name, value=value, error=str(exc), ts=now_ts()),
        )


def _key_name(key: ConfigKey | str) -> str:
    return key.value if isinstance(key, ConfigKey) else key
