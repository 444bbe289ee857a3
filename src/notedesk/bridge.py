"""Request/response surface used by the shell.

Every method returns a plain dict. Expected failures come back as
``{"error": <kind>, "message": <text>}`` instead of raising.
"""

from __future__ import annotations

import asyncio
import functools
import logging
from collections.abc import Awaitable, Callable
from typing import Any, ParamSpec

from notedesk.core.errors import NotedeskError
from notedesk.core.session import EditorSession
from notedesk.fs.service import FolderPicker

logger = logging.getLogger(__name__)

P = ParamSpec("P")
Result = dict[str, Any]


def _tagged(
    func: Callable[P, Awaitable[Result]],
) -> Callable[P, Awaitable[Result]]:
    @functools.wraps(func)
    async def wrapper(*args: P.args, **kwargs: P.kwargs) -> Result:
        try:
            return await func(*args, **kwargs)
        except NotedeskError as exc:
            logger.info("%s failed: %s (%s)", func.__name__, exc.message, exc.kind.value)
            return exc.to_result()

    return wrapper


class Bridge:
    def __init__(self, session: EditorSession, picker: FolderPicker | None = None) -> None:
        self._session = session
        self._picker = picker

    @property
    def session(self) -> EditorSession:
        return self._session

    def set_picker(self, picker: FolderPicker) -> None:
        self._picker = picker

    @_tagged
    async def select_root_directory(self) -> Result:
        if self._picker is None:
            return {"cancelled": True}
        selection = await self._session.select_root(self._picker)
        if selection.cancelled or selection.path is None:
            return {"cancelled": True}
        return {"rootPath": str(selection.path)}

    @_tagged
    async def set_root_directory(self, path: str) -> Result:
        root = await self._session.set_root(path)
        return {"rootPath": str(root)}

    @_tagged
    async def list_directory(self, path: str) -> Result:
        entries = await asyncio.to_thread(self._session.fs.list_directory, path)
        return {"entries": [entry.to_dict() for entry in entries]}

    @_tagged
    async def read_file(self, path: str) -> Result:
        content = await asyncio.to_thread(self._session.fs.read_file, path)
        return {"content": content}

    @_tagged
    async def write_file(self, path: str, content: str) -> Result:
        await asyncio.to_thread(self._session.fs.write_file, path, content)
        return {"ok": True}

    @_tagged
    async def get_config_value(self, key: str) -> Result:
        store = self._session.persistence.store
        value = await asyncio.to_thread(store.get, key)
        return {"value": value}

    @_tagged
    async def set_config_value(self, key: str, value: Any) -> Result:
        store = self._session.persistence.store
        await asyncio.to_thread(store.set, key, value)
        return {"ok": True}

    @_tagged
    async def expand_folder(self, path: str) -> Result:
        await self._session.tree.expand(path)
        return self._node_result(path)

    @_tagged
    async def collapse_folder(self, path: str) -> Result:
        await self._session.tree.collapse(path)
        return self._node_result(path)

    @_tagged
    async def toggle_folder(self, path: str) -> Result:
        await self._session.tree.toggle(path)
        return self._node_result(path)

    @_tagged
    async def refresh_folder(self, path: str | None = None) -> Result:
        await self._session.tree.refresh(path)
        root = self._session.root
        return self._node_result(path if path is not None else str(root))

    @_tagged
    async def open_file(self, path: str) -> Result:
        opened = await self._session.workspace.open_file(path)
        return {
            "ok": True,
            "file": {
                "path": str(opened.path),
                "name": opened.name,
                "content": opened.content,
                "modified": opened.modified,
                "kind": opened.kind.value,
            },
        }

    @_tagged
    async def close_file(self, path: str) -> Result:
        closed = await self._session.workspace.close_file(path)
        return {"ok": closed, **self._session.workspace.snapshot()}

    @_tagged
    async def activate_file(self, path: str) -> Result:
        await self._session.workspace.activate(path)
        return {"ok": True, **self._session.workspace.snapshot()}

    @_tagged
    async def edit_file(self, path: str, content: str) -> Result:
        await self._session.workspace.update_content(path, content)
        opened = self._session.workspace.get(path)
        return {"ok": True, "modified": bool(opened and opened.modified)}

    @_tagged
    async def save_file(self, path: str) -> Result:
        opened = await self._session.workspace.save_file(path)
        return {"ok": True, "modified": opened.modified}

    async def snapshot(self) -> Result:
        root = self._session.root
        return {
            "rootDirectory": str(root) if root else None,
            "tree": self._session.tree.snapshot(),
            **self._session.workspace.snapshot(),
        }

    def _node_result(self, path: str) -> Result:
        node = self._session.tree.node(path)
        if node is None:
            return {"ok": True}
        return {
            "ok": True,
            "loadState": node.load_state.value,
            "expanded": node.expanded,
            "error": node.error,
            "children": [
                child.entry.to_dict() for child in self._session.tree.visible_children(path)
            ],
        }
