"""Settings: dashboard geometry, refresh timing, logging and the tool list.

Settings are read from a JSON file and deep-merged over the defaults. Tool
entries are validated one by one; an invalid entry is skipped with a
warning so that one bad tool never prevents the others from loading.
"""

from __future__ import annotations

import json
import logging
import math
from copy import deepcopy
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from toolbench.errors import ConfigurationFault
from toolbench.tools.descriptor import Tool, tool_from_config

logger = logging.getLogger(__name__)

CONFIG_DIR_NAME = ".toolbench"
SETTINGS_FILE_NAME = "settings.json"
LOG_FILE_NAME = "toolbench.log"


# --- Settings schema ---


@dataclass
class UISettings:
    """Dashboard window options.

    ``width``/``height`` are either a fraction of the screen in ``(0, 1]``
    or an absolute cell count above 1. ``backdrop`` is an opacity from 0
    (transparent) to 100 (no backdrop).
    """

    title: str = "Toolchain"
    width: float = 0.8
    height: float = 0.9
    border: str = "rounded"
    backdrop: int = 60
    refresh_interval_ms: int = 100
    status_check_delay_ms: int = 50


@dataclass
class LogSettings:
    level: str = "info"
    file: str | None = None


@dataclass
class Settings:
    ui: UISettings = field(default_factory=UISettings)
    log: LogSettings = field(default_factory=LogSettings)
    tools: list[Tool] = field(default_factory=list)


def _settings_defaults() -> dict[str, Any]:
    """Default settings values."""
    return {
        "ui": {
            "title": "Toolchain",
            "width": 0.8,
            "height": 0.9,
            "border": "rounded",
            "backdrop": 60,
            "refresh_interval_ms": 100,
            "status_check_delay_ms": 50,
        },
        "log": {
            "level": "info",
            "file": None,
        },
        "tools": [],
    }


# --- Deep merge ---


def deep_merge_settings(base: dict[str, Any], overrides: dict[str, Any]) -> dict[str, Any]:
    """Recursively merge overrides into base settings.

    For nested dicts, merge recursively. For primitives and arrays,
    override value wins completely.
    """
    result = dict(base)
    for key, value in overrides.items():
        if value is None:
            continue
        if key in result and isinstance(result[key], dict) and isinstance(value, dict):
            result[key] = deep_merge_settings(result[key], value)
        else:
            result[key] = value
    return result


# --- Paths ---


def get_config_dir() -> Path:
    return Path.home() / CONFIG_DIR_NAME


def default_settings_path() -> Path:
    return get_config_dir() / SETTINGS_FILE_NAME


def default_log_path() -> Path:
    return get_config_dir() / LOG_FILE_NAME


# --- Construction ---


def _build_tools(entries: list[Any]) -> list[Tool]:
    tools: list[Tool] = []
    for index, entry in enumerate(entries):
        try:
            tools.append(tool_from_config(entry))
        except ConfigurationFault as exc:
            logger.warning("Skipping tool entry %d: %s", index, exc)
    return tools


def _check_size(label: str, value: Any) -> float:
    if isinstance(value, bool) or not isinstance(value, (int, float)) or value <= 0:
        raise ConfigurationFault(f"ui.{label} must be a positive number, got {value!r}")
    return value


def _check_int(label: str, value: Any, minimum: int | None = None) -> int:
    if isinstance(value, bool) or not isinstance(value, (int, float)) or not math.isfinite(value):
        raise ConfigurationFault(f"ui.{label} must be a number, got {value!r}")
    if minimum is not None and value < minimum:
        raise ConfigurationFault(f"ui.{label} must be at least {minimum}, got {value!r}")
    return int(value)


def settings_from_dict(data: dict[str, Any]) -> Settings:
    """Build :class:`Settings` from raw (JSON-shaped) data merged over the defaults."""
    merged = deep_merge_settings(deepcopy(_settings_defaults()), data)
    ui_raw = merged["ui"]
    ui = UISettings(
        title=str(ui_raw["title"]),
        width=_check_size("width", ui_raw["width"]),
        height=_check_size("height", ui_raw["height"]),
        border=str(ui_raw["border"]),
        backdrop=max(0, min(100, _check_int("backdrop", ui_raw["backdrop"]))),
        refresh_interval_ms=_check_int("refresh_interval_ms", ui_raw["refresh_interval_ms"], 1),
        status_check_delay_ms=_check_int("status_check_delay_ms", ui_raw["status_check_delay_ms"], 0),
    )
    log = LogSettings(level=str(merged["log"]["level"]), file=merged["log"].get("file"))
    tools_raw = merged.get("tools") or []
    if not isinstance(tools_raw, list):
        raise ConfigurationFault("tools must be a list")
    return Settings(ui=ui, log=log, tools=_build_tools(tools_raw))


def load_settings(path: str | Path | None = None) -> Settings:
    """Load settings from *path* (default ``~/.toolbench/settings.json``).

    A missing default file yields the defaults; a missing explicit file is
    an error.
    """
    explicit = path is not None
    settings_path = Path(path) if path is not None else default_settings_path()
    if not settings_path.exists():
        if explicit:
            raise FileNotFoundError(f"Settings file not found: {settings_path}")
        return settings_from_dict({})

    try:
        data = json.loads(settings_path.read_text(encoding="utf-8"))
    except json.JSONDecodeError as exc:
        raise ConfigurationFault(f"Invalid JSON in {settings_path}: {exc}") from exc
    if not isinstance(data, dict):
        raise ConfigurationFault(f"{settings_path} must contain a JSON object")
    return settings_from_dict(data)
