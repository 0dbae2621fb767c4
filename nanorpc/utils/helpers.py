"""Small shared helpers."""

from __future__ import annotations

import time
from pathlib import Path


def now_ms() -> int:
    """Wall-clock time in epoch milliseconds."""
    return int(time.time() * 1000)


def ensure_dir(path: Path) -> Path:
    """Ensure a directory exists, return it."""
    path.mkdir(parents=True, exist_ok=True)
    return path


def get_data_path() -> Path:
    """Get the nanorpc data directory (~/.nanorpc)."""
    return ensure_dir(Path.home() / ".nanorpc")
