import copy
import logging
from pathlib import Path
from typing import Optional

import yaml

DEFAULT_CONFIG_PATH = "config.yml"

DEFAULT_CONFIG = {
    "player": {
        "path": "ffplay",
        "args": ["-loglevel", "error", "-autoexit", "-vn", "-nodisp"],
        "stop_key": "q",
        "stop_command": "q",
        "poll_interval": 0.1,
        "graceful_timeout": 1.0,
        "kill_timeout": 2.0,
    },
    "progress": {
        "interval": 1.0,
    },
    "resolver": {
        "options": {},
    },
    "logging": {
        "dir": "logs",
        "level": "INFO",
        "backup_count": 14,
    },
}


def _merge(base: dict, override: dict) -> dict:
    merged = copy.deepcopy(base)
    for key, value in (override or {}).items():
        if isinstance(value, dict) and isinstance(merged.get(key), dict):
            merged[key] = _merge(merged[key], value)
        else:
            merged[key] = value
    return merged


def load_config(config_path: Optional[str] = None) -> dict:
    """Load YAML configuration on top of the defaults.

    An explicitly requested file must exist; the default ``config.yml`` is optional.
    """
    config_file = Path(config_path or DEFAULT_CONFIG_PATH)
    if not config_file.exists():
        if config_path:
            raise FileNotFoundError(f"Config file not found at {config_file.resolve()}")
        return copy.deepcopy(DEFAULT_CONFIG)

    with open(config_file, "r", encoding="utf-8") as f:
        data = yaml.safe_load(f) or {}
    if not isinstance(data, dict):
        raise ValueError(f"Config file {config_file} must contain a mapping")

    logging.debug(f"[CONFIG] Loaded {config_file}")
    return _merge(DEFAULT_CONFIG, data)
