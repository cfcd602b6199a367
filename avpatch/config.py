"""
Application configuration.

This module has no Qt code of its own, so the node engine and the tests use
it directly. Importing the :mod:`avpatch` package still loads PySide6 through
the application factory. Values that users may want to move are read from
environment variables:

``AVPATCH_CONFIG_DIR``
    Directory holding the auto-saved diagram and the recent diagrams list.
    Defaults to ``~/.config/avpatch``.
``AVPATCH_CATALOG``
    Path to an equipment catalog JSON file replacing the bundled one.
``AVPATCH_LOG_LEVEL``
    Logging level name used by the entry point. Defaults to ``WARNING``.
"""

from __future__ import annotations

import logging
import os
from pathlib import Path

APP_NAME = "AV Patch"
ORGANIZATION_NAME = "AV Patch"
ORGANIZATION_DOMAIN = "avpatch.local"

DEFAULT_SVS_MAX_INPUTS = 32
DEFAULT_SVS_MAX_OUTPUTS = 6
RECENT_DIAGRAMS_LIMIT = 20

DIAGRAM_FILE_NAME = "diagram.json"
RECENT_FILE_NAME = "recent.json"

_PACKAGE_DIR = Path(__file__).resolve().parent


def config_dir() -> Path:
    raw = os.environ.get("AVPATCH_CONFIG_DIR", "").strip()
    path = Path(raw).expanduser() if raw else Path.home() / ".config" / "avpatch"
    path.mkdir(parents=True, exist_ok=True)
    return path


def default_diagram_path() -> Path:
    return config_dir() / DIAGRAM_FILE_NAME


def recent_diagrams_path() -> Path:
    return config_dir() / RECENT_FILE_NAME


def bundled_catalog_path() -> Path:
    return _PACKAGE_DIR / "data" / "items.json"


def catalog_path() -> Path:
    raw = os.environ.get("AVPATCH_CATALOG", "").strip()
    if raw:
        return Path(raw).expanduser()
    return bundled_catalog_path()


def log_level() -> int:
    name = os.environ.get("AVPATCH_LOG_LEVEL", "").strip().upper()
    level = logging.getLevelName(name) if name else logging.WARNING
    return level if isinstance(level, int) else logging.WARNING
