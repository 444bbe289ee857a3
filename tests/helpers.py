from __future__ import annotations

import threading
from pathlib import Path
from typing import Any

from notedesk.core.errors import ConfigStoreError
from notedesk.fs.guard import PathLike
from notedesk.fs.service import FilesystemService


class CountingFs(FilesystemService):
    """Counts listings and reads, optionally holding them until released."""

    def __init__(self, root: PathLike | None = None, hold: bool = False) -> None:
        super().__init__()
        if root is not None:
            self.set_root(root)
        self.listings: list[Path] = []
        self.reads: list[Path] = []
        self.release = threading.Event()
        if not hold:
            self.release.set()

    def list_directory(self, path: PathLike):
        self.listings.append(Path(path))
        self.release.wait(timeout=5)
        return super().list_directory(path)

    def read_file(self, path: PathLike) -> str:
        self.reads.append(Path(path))
        self.release.wait(timeout=5)
        return super().read_file(path)


class FailingStore:
    """Config store whose writes always fail."""

    def __init__(self, values: dict[str, Any] | None = None) -> None:
        self._values = dict(values or {})

    def get(self, key: str) -> Any | None:
        return self._values.get(key)

    def set(self, key: str, value: Any) -> None:
        raise ConfigStoreError(f"disk full while writing {key}")


class RecordingBus:
    def __init__(self) -> None:
        self.messages: list[tuple[str, object]] = []

    def subscribe(self, topic, handler) -> None:
        pass

    def unsubscribe(self, topic, handler) -> None:
        pass

    async def publish(self, topic: str, message: object) -> None:
        self.messages.append((topic, message))

    def topics(self) -> list[str]:
        return [topic for topic, _ in self.messages]
