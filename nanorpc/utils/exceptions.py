"""
Exception hierarchy for nanorpc.

Provides:
- NanoRPCError, an error carrying an integer RPC error code
- Specialised errors for registry and reverse-call failures
- Helpers that turn arbitrary exceptions into reply-ready messages
"""

from __future__ import annotations

from typing import Any

from nanorpc.rpc.protocol import ErrorCode


class NanoRPCError(Exception):
    """Base exception for all nanorpc errors.

    Handlers may raise it (or a subclass) with an application-defined code;
    the dispatcher echoes ``code`` and ``message`` back to the caller.
    """

    def __init__(self, code: int, message: str):
        super().__init__(message)
        self.code = int(code)
        self.message = message

    def to_dict(self) -> dict[str, Any]:
        return {"code": self.code, "message": self.message}

    def __str__(self) -> str:
        return f"[{self.code}] {self.message}"


class DuplicateMethodError(NanoRPCError):
    """Method name registered twice."""

    def __init__(self, method: str):
        super().__init__(ErrorCode.DUPLICATE_METHOD, f"{method} method already registered")
        self.method = method


class CallTimeoutError(NanoRPCError, TimeoutError):
    """Reverse call not acknowledged within the configured timeout."""

    def __init__(self, method: str, timeout_ms: int):
        super().__init__(ErrorCode.CALL_ERROR, f"Call {method} timed out after {timeout_ms}ms")
        self.method = method
        self.timeout_ms = timeout_ms


class ClientDisconnectedError(NanoRPCError, ConnectionError):
    """Peer went away while a reverse call was pending."""

    def __init__(self, method: str):
        super().__init__(ErrorCode.CALL_ERROR, f"Call {method} aborted, client disconnected")
        self.method = method


def structured_error(exc: BaseException) -> tuple[int, str] | None:
    """Return ``(code, message)`` when ``exc`` carries an RPC-style error, else None."""
    if isinstance(exc, NanoRPCError):
        return exc.code, exc.message
    code = getattr(exc, "code", None)
    message = getattr(exc, "message", None)
    if isinstance(code, int) and not isinstance(code, bool) and isinstance(message, str):
        return code, message
    return None


def error_message(exc: BaseException) -> str:
    """Coerce any raised value to a human readable message."""
    if isinstance(exc, NanoRPCError):
        return exc.message
    if exc.args and isinstance(exc.args[0], str) and len(exc.args) == 1:
        return exc.args[0]
    text = str(exc)
    return text or type(exc).__name__
