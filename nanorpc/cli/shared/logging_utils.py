"""Loguru helpers for consistent logging in CLI commands."""

from __future__ import annotations

import sys
from pathlib import Path

from loguru import logger

from nanorpc.utils.helpers import get_data_path

_SINK_IDS: dict[str, int] = {}


def configure_console_logging(level: str = "INFO") -> None:
    """Replace the default stderr sink with one at ``level``."""
    logger.remove()
    logger.add(
        sys.stderr,
        level=level.upper(),
        format="<dim>{time:HH:mm:ss.SSS}</dim> | <level>{level: <8}</level> | <level>{message}</level>",
    )


def ensure_rotating_log_file(name: str, level: str = "INFO", path: str | Path | None = None) -> Path:
    """Ensure a rotating log sink for the given command name."""
    log_path = Path(path).expanduser() if path else get_data_path() / "logs" / f"{name}.log"
    if name in _SINK_IDS:
        return log_path
    log_path.parent.mkdir(parents=True, exist_ok=True)
    sink_id = logger.add(
        str(log_path),
        level=level.upper(),
        rotation="10 MB",
        retention="14 days",
        enqueue=True,
        encoding="utf-8",
        backtrace=False,
        diagnose=False,
    )
    _SINK_IDS[name] = sink_id
    return log_path
