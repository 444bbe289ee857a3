"""Compose the TUI, session, and bus."""

from __future__ import annotations

import locale
import logging
from pathlib import Path

from notedesk.app.tui import run_tui
from notedesk.bridge import Bridge
from notedesk.bus.broker import InMemoryBus
from notedesk.core.session import EditorSession
from notedesk.core.settings import Settings, load_settings
from notedesk.storage.config_store import SQLiteConfigStore
from notedesk.storage.db import db_path, initialize_db

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


def configure_logging(settings: Settings) -> None:
    settings.log_file.parent.mkdir(parents=True, exist_ok=True)
    handler = logging.FileHandler(settings.log_file, encoding="utf-8")
    handler.setFormatter(logging.Formatter(LOG_FORMAT))
    root_logger = logging.getLogger()
    root_logger.setLevel(settings.log_level)
    root_logger.addHandler(handler)


def configure_locale() -> None:
    try:
        locale.setlocale(locale.LC_COLLATE, "")
    except locale.Error as exc:
        logging.getLogger(__name__).warning("Using the default collation: %s", exc)


def build_bridge(settings: Settings, bus: InMemoryBus) -> Bridge:
    store = SQLiteConfigStore(db_path(settings))
    session = EditorSession.build(
        store,
        bus=bus,
        ignore_patterns=settings.ignore_patterns,
        debounce_s=settings.persist_debounce_s,
        restore_workspace=settings.restore_workspace,
    )
    return Bridge(session)


def run_app(root_override: Path | None = None) -> None:
    settings = load_settings()
    settings.data_dir.mkdir(parents=True, exist_ok=True)
    configure_logging(settings)
    configure_locale()
    initialize_db(db_path(settings))

    bus = InMemoryBus()
    bridge = build_bridge(settings, bus)
    run_tui(bridge, bus=bus, root_override=root_override or settings.root_override)
