import copy
import json
import logging
import os
from pathlib import Path
from typing import Optional, Union

log = logging.getLogger(__name__)

SETTINGS_FILENAME = ".mini_postman_settings.json"
SETTINGS_ENV = "MINI_POSTMAN_SETTINGS"
LOG_FORMAT = "%(asctime)s | %(levelname)s | %(message)s"

DEFAULT_SETTINGS = {
    "timeout": 30,
    "allow_redirects": True,
    "verify": True,
    "theme": "flatly",
    "log_level": "INFO",
    "default_method": "GET",
}

PathLike = Union[str, Path]


def settings_path(path: Optional[PathLike] = None) -> Path:
    if path:
        return Path(path)
    env = os.environ.get(SETTINGS_ENV)
    if env:
        return Path(env)
    return Path.home() / SETTINGS_FILENAME


def deep_merge(a: dict, b: dict) -> dict:
    out = copy.deepcopy(a)
    for k, v in b.items():
        if isinstance(v, dict) and isinstance(out.get(k), dict):
            out[k] = deep_merge(out[k], v)
        else:
            out[k] = v
    return out


def load_settings(path: Optional[PathLike] = None) -> dict:
    p = settings_path(path)
    if not p.exists():
        return copy.deepcopy(DEFAULT_SETTINGS)
    try:
        with open(p, "r", encoding="utf-8") as f:
            data = json.load(f)
        if not isinstance(data, dict):
            raise ValueError(f"settings root must be an object, got {type(data).__name__}")
        return deep_merge(DEFAULT_SETTINGS, data)
    except (OSError, ValueError):
        log.exception(f"Failed to load settings from {p}")
        return copy.deepcopy(DEFAULT_SETTINGS)


def save_settings(settings: dict, path: Optional[PathLike] = None) -> bool:
    p = settings_path(path)
    try:
        with open(p, "w", encoding="utf-8") as f:
            json.dump(settings, f, indent=2)
        return True
    except (OSError, TypeError, ValueError):
        log.exception(f"Failed to save settings to {p}")
        return False


def configure_logging(level: Union[str, int] = "INFO"):
    if isinstance(level, str):
        level = logging.getLevelName(level.upper())
        if not isinstance(level, int):
            level = logging.INFO
    logging.basicConfig(level=level, format=LOG_FORMAT)
