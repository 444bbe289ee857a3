"""Typer CLI for notedesk."""

from __future__ import annotations

import asyncio
import json
from collections.abc import Awaitable, Callable
from pathlib import Path
from typing import Any

import typer
from rich.console import Console
from rich.table import Table

from notedesk.app.main import configure_locale, run_app
from notedesk.bridge import Bridge
from notedesk.core.persistence import ConfigKey
from notedesk.core.session import EditorSession
from notedesk.core.settings import load_settings
from notedesk.storage.config_store import SQLiteConfigStore
from notedesk.storage.db import db_path, initialize_db

app = typer.Typer(help="notedesk: browse and edit a notes directory")
console = Console()

root_app = typer.Typer(help="Root directory")
config_app = typer.Typer(help="Configuration")
db_app = typer.Typer(help="Database operations")


@app.command()
def tui(root: Path | None = typer.Option(None, help="Open this directory as the root")) -> None:
    """Run the Textual TUI."""
    run_app(root_override=root)


@app.command("ls")
def ls(path: str | None = typer.Argument(None)) -> None:
    """List a directory inside the root."""

    async def _run(bridge: Bridge) -> dict[str, Any]:
        target = path if path is not None else str(bridge.session.root or "")
        return await bridge.list_directory(target)

    result = _with_bridge(_run)
    table = Table(show_header=True, header_style="bold")
    table.add_column("Name")
    table.add_column("Size", justify="right")
    table.add_column("Modified")
    for entry in result["entries"]:
        name = f"{entry['name']}/" if entry["isDirectory"] else entry["name"]
        size = "" if entry["isDirectory"] else str(entry["size"])
        table.add_row(name, size, entry["lastModified"])
    console.print(table)


@app.command("cat")
def cat(path: str) -> None:
    """Print a file inside the root."""

    async def _run(bridge: Bridge) -> dict[str, Any]:
        return await bridge.read_file(path)

    result = _with_bridge(_run)
    console.print(result["content"], markup=False, highlight=False, end="")


@root_app.command("show")
def root_show() -> None:
    settings = load_settings()
    if settings.root_override is not None:
        console.print(f"{settings.root_override} (from NOTEDESK_ROOT)")
        return
    root = _store().get(ConfigKey.ROOT_DIRECTORY.value)
    console.print(root if root else "no root directory set")


@root_app.command("set")
def root_set(path: Path) -> None:
    async def _run(bridge: Bridge) -> dict[str, Any]:
        return await bridge.set_root_directory(str(path.expanduser()))

    result = _with_bridge(_run, needs_root=False)
    console.print(f"root directory set to {result['rootPath']}")


@config_app.command("show")
def config_show() -> None:
    settings = load_settings()
    console.print(f"data_dir={settings.data_dir}")
    console.print(f"config_db_path={settings.config_db_path}")
    console.print(f"root_override={settings.root_override}")
    console.print(f"ignore_patterns={','.join(settings.ignore_patterns)}")
    console.print(f"restore_workspace={settings.restore_workspace}")
    console.print(f"persist_debounce_s={settings.persist_debounce_s}")
    console.print(f"log_level={settings.log_level}")
    console.print(f"log_file={settings.log_file}")
    for key, value in sorted(_store().items().items()):
        console.print(f"{key}={json.dumps(value)}")


@config_app.command("get")
def config_get(key: str) -> None:
    async def _run(bridge: Bridge) -> dict[str, Any]:
        return await bridge.get_config_value(key)

    result = _with_bridge(_run, needs_root=False)
    console.print(json.dumps(result["value"], indent=2))


@config_app.command("set")
def config_set(key: str, value_json: str) -> None:
    try:
        value = json.loads(value_json)
    except json.JSONDecodeError as exc:
        console.print(f"[red]invalid JSON value:[/red] {exc}")
        raise typer.Exit(code=2) from exc

    async def _run(bridge: Bridge) -> dict[str, Any]:
        return await bridge.set_config_value(key, value)

    _with_bridge(_run, needs_root=False)
    console.print(f"{key} updated")


@db_app.command("init")
def db_init() -> None:
    settings = load_settings()
    initialize_db(db_path(settings))
    console.print("database initialized")


app.add_typer(root_app, name="root")
app.add_typer(config_app, name="config")
app.add_typer(db_app, name="db")


def _store() -> SQLiteConfigStore:
    settings = load_settings()
    initialize_db(db_path(settings))
    return SQLiteConfigStore(db_path(settings))


def _with_bridge(
    action: Callable[[Bridge], Awaitable[dict[str, Any]]],
    needs_root: bool = True,
) -> dict[str, Any]:
    settings = load_settings()
    store = _store()
    session = EditorSession.build(
        store, ignore_patterns=settings.ignore_patterns, restore_workspace=False
    )
    if needs_root:
        root = settings.root_override or store.get(ConfigKey.ROOT_DIRECTORY.value)
        if root:
            session.fs.set_root(root)
    bridge = Bridge(session)

    async def _run() -> dict[str, Any]:
        try:
            return await action(bridge)
        finally:
            await session.close()

    result = asyncio.run(_run())
    if "error" in result:
        console.print(f"[red]{result['error']}:[/red] {result['message']}")
        raise typer.Exit(code=1)
    return result


def main() -> None:
    configure_locale()
    app()


if __name__ == "__main__":
    main()
