"""Host configuration: JSON settings file plus environment overrides."""

from __future__ import annotations

import json
import logging
import os
from dataclasses import fields
from pathlib import Path

from filedep.models import GraphConfig

logger = logging.getLogger(__name__)

CONFIG_DIR = Path.home() / ".filedep"
CONFIG_FILE = CONFIG_DIR / "config.json"
WORKSPACE_CONFIG_NAME = "filedep.json"

_ENV_INTS = {
    "FILEDEP_MAX_WORKERS": "max_workers",
    "FILEDEP_MAX_FILE_SIZE": "max_file_size",
}

# Accept the host editor's camelCase setting names too
_ALIASES = {
    "ignoredDirectories": "ignored_directories",
    "ignoredExtensions": "ignored_extensions",
    "targetExtensions": "target_extensions",
    "maxFileSize": "max_file_size",
    "maxWorkers": "max_workers",
    "autoDetect": "auto_detect",
    "skipHidden": "skip_hidden",
}


def find_config_file(workspace: Path | str | None = None) -> Path | None:
    """Workspace filedep.json wins over the per-user config file."""
    if workspace is not None:
        candidate = Path(workspace) / WORKSPACE_CONFIG_NAME
        if candidate.is_file():
            return candidate
    if CONFIG_FILE.is_file():
        return CONFIG_FILE
    return None


def _read_settings(path: Path) -> dict:
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except (OSError, ValueError) as e:
        logger.warning("Ignoring unreadable config %s: %s", path, e)
        return {}
    if not isinstance(data, dict):
        logger.warning("Ignoring config %s: top level must be an object", path)
        return {}
    return data


def config_from_dict(data: dict, base: GraphConfig | None = None) -> GraphConfig:
    config = base or GraphConfig()
    known = {f.name: f for f in fields(GraphConfig)}
    for key, value in data.items():
        name = _ALIASES.get(key, key)
        if name not in known:
            logger.warning("Unknown config key %r", key)
            continue
        current = getattr(config, name)
        if isinstance(current, bool) and not isinstance(value, bool):
            logger.warning("Config key %r expects true/false, got %r", key, value)
            continue
        if isinstance(current, int) and not isinstance(current, bool):
            try:
                value = int(value)
            except (TypeError, ValueError):
                logger.warning("Config key %r expects an integer, got %r", key, value)
                continue
        if name in ("target_extensions", "ignored_directories", "ignored_extensions", "directories"):
            if value is not None and not isinstance(value, list):
                logger.warning("Config key %r expects a list, got %r", key, value)
                continue
            if value is not None:
                value = [str(v) for v in value]
        setattr(config, name, value)
    return config


def apply_env(config: GraphConfig) -> GraphConfig:
    for var, name in _ENV_INTS.items():
        raw = os.getenv(var)
        if not raw:
            continue
        try:
            setattr(config, name, int(raw))
        except ValueError:
            logger.warning("Ignoring %s=%r: not an integer", var, raw)
    return config


def load_config(
    path: Path | str | None = None,
    workspace: Path | str | None = None,
) -> GraphConfig:
    """Load configuration, falling back to defaults on any problem."""
    config = GraphConfig()
    config_path = Path(path) if path is not None else find_config_file(workspace)
    if config_path is not None:
        config = config_from_dict(_read_settings(config_path), config)
        logger.debug("Loaded config from %s", config_path)
    return apply_env(config)
