"""Settings loader for notedesk."""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Literal, cast

from dotenv import find_dotenv, load_dotenv

from notedesk.core.filetypes import DEFAULT_IGNORE_PATTERNS

LogLevel = Literal["DEBUG", "INFO", "WARNING", "ERROR"]


@dataclass(frozen=True)
class Settings:
    data_dir: Path
    config_db_path: Path
    root_override: Path | None
    ignore_patterns: tuple[str, ...]
    restore_workspace: bool
    persist_debounce_s: float
    log_level: LogLevel
    log_file: Path


def load_settings() -> Settings:
    load_dotenv(find_dotenv(usecwd=True))
    data_dir = Path(os.environ.get("NOTEDESK_DATA_DIR", "~/.notedesk")).expanduser()
    config_db_path = Path(
        os.environ.get("NOTEDESK_CONFIG_DB", str(data_dir / "notedesk.db"))
    ).expanduser()
    root_value = os.environ.get("NOTEDESK_ROOT") or None
    root_override = Path(root_value).expanduser() if root_value else None
    ignore_patterns = _parse_list(os.environ.get("NOTEDESK_IGNORE"))
    restore_workspace = _parse_bool(
        os.environ.get("NOTEDESK_RESTORE_WORKSPACE", "true"),
        "NOTEDESK_RESTORE_WORKSPACE",
    )
    persist_debounce_s = _parse_float(
        os.environ.get("NOTEDESK_PERSIST_DEBOUNCE_S", "0"),
        "NOTEDESK_PERSIST_DEBOUNCE_S",
    )
    if persist_debounce_s < 0:
        raise ValueError("NOTEDESK_PERSIST_DEBOUNCE_S must not be negative")
    log_level = _parse_log_level(os.environ.get("NOTEDESK_LOG_LEVEL", "INFO"))
    log_file = Path(
        os.environ.get("NOTEDESK_LOG_FILE", str(data_dir / "notedesk.log"))
    ).expanduser()

    return Settings(
        data_dir=data_dir,
        config_db_path=config_db_path,
        root_override=root_override,
        ignore_patterns=ignore_patterns or DEFAULT_IGNORE_PATTERNS,
        restore_workspace=restore_workspace,
        persist_debounce_s=persist_debounce_s,
        log_level=log_level,
        log_file=log_file,
    )


def _parse_list(value: str | None) -> tuple[str, ...]:
    if not value:
        return ()
    return tuple(item.strip() for item in value.split(",") if item.strip())


def _parse_log_level(value: str) -> LogLevel:
    normalized = value.strip().upper()
    if normalized not in {"DEBUG", "INFO", "WARNING", "ERROR"}:
        raise ValueError(f"Invalid log level: {value}")
    return cast(LogLevel, normalized)


def _parse_float(value: str, name: str) -> float:
    try:
        return float(value)
    except ValueError as exc:
        raise ValueError(f"Invalid float for {name}: {value}") from exc


def _parse_bool(value: str, name: str) -> bool:
    normalized = value.strip().lower()
    if normalized in {"1", "true", "yes", "y", "on"}:
        return True
    if normalized in {"0", "false", "no", "n", "off"}:
        return False
    raise ValueError(f"Invalid boolean for {name}: {value}")
