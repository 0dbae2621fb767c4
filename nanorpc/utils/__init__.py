"""Utility functions for nanorpc."""

from nanorpc.utils.helpers import ensure_dir, get_data_path, now_ms
from nanorpc.utils.exceptions import (
    NanoRPCError,
    DuplicateMethodError,
    CallTimeoutError,
    ClientDisconnectedError,
    error_message,
    structured_error,
)

__all__ = [
    "ensure_dir",
    "get_data_path",
    "now_ms",
    "NanoRPCError",
    "DuplicateMethodError",
    "CallTimeoutError",
    "ClientDisconnectedError",
    "error_message",
    "structured_error",
]
