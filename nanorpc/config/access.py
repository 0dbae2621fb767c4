"""Process-wide server configuration: file + env loaded once, overrides per call."""

from __future__ import annotations

import threading
from pathlib import Path
from typing import Any

from loguru import logger

from nanorpc.config.loader import get_config_path, load_config
from nanorpc.config.schema import ServerConfig

_lock = threading.RLock()
_loaded: dict[Path, ServerConfig] = {}


def _resolve(config_path: Path | None) -> Path:
    return Path(config_path or get_config_path()).expanduser().resolve()


def get_config(*, config_path: Path | None = None, force_reload: bool = False) -> ServerConfig:
    """File and NANORPC_* env values, read once per config file."""
    path = _resolve(config_path)
    with _lock:
        config = _loaded.get(path)
        if config is None or force_reload:
            config = load_config(path)
            _loaded[path] = config
            logger.debug("Loaded server config from {}", path)
        return config


def get_server_config(config_path: Path | None = None, **overrides: Any) -> ServerConfig:
    """Cached config with explicit overrides applied; None means keep the loaded value."""
    base = get_config(config_path=config_path)
    updates = {key: value for key, value in overrides.items() if value is not None}
    if not updates:
        return base
    return ServerConfig.model_validate({**base.model_dump(), **updates})


def clear_config_cache(*, config_path: Path | None = None) -> None:
    """Forget one loaded file, or every file when no path is given."""
    with _lock:
        if config_path is None:
            _loaded.clear()
        else:
            _loaded.pop(_resolve(config_path), None)
