"""Wire constants and envelope codec for the nanorpc protocol.

Request:  ``{"id": str, "method": str, "params": list | Any}``
Success:  ``{"id": str, "status": 0, "result": Any}``
Failure:  ``{"id": str, "status": 1, "error": {"code": int, "message": str}}``
"""

from __future__ import annotations

from enum import IntEnum
from typing import Any
from uuid import uuid4

RPC_EVENT = "/nanorpcs"
SUBSCRIBE_EVENT = "/subscribe"
UNSUBSCRIBE_EVENT = "/unsubscribe"
PUBLISH_EVENT = "/publish"
MESSAGE_EVENT_PREFIX = "/message/"


class RpcStatus(IntEnum):
    OK = 0
    EXCEPTION = 1


class ErrorCode(IntEnum):
    """Negative so they never collide with application error codes."""

    DUPLICATE_METHOD = -1
    PROTOCOL_ERROR = -2
    MISSING_METHOD = -3
    PARAMETER_ERROR = -4
    CALL_ERROR = -5


def message_event(event: str) -> str:
    return f"{MESSAGE_EVENT_PREFIX}{event}"


def create_rpc(method: str, params: list[Any] | tuple[Any, ...] | None = None) -> dict[str, Any]:
    """Build a request envelope with a fresh opaque id."""
    return {"id": uuid4().hex, "method": method, "params": list(params or [])}


def create_reply(rpc_id: Any, result: Any = None) -> dict[str, Any]:
    reply: dict[str, Any] = {"id": rpc_id, "status": int(RpcStatus.OK)}
    if result is not None:
        reply["result"] = result
    return reply


def create_error_reply(rpc_id: Any, code: int, message: str) -> dict[str, Any]:
    return {
        "id": rpc_id,
        "status": int(RpcStatus.EXCEPTION),
        "error": {"code": int(code), "message": message},
    }


def salvage_id(envelope: Any) -> Any:
    """Best-effort request id for replies to malformed envelopes."""
    if isinstance(envelope, dict):
        rpc_id = envelope.get("id")
        if rpc_id is not None:
            return rpc_id
    return ""


def is_valid_request(envelope: Any) -> bool:
    return isinstance(envelope, dict) and isinstance(envelope.get("method"), str)


def normalize_params(params: Any) -> list[Any]:
    """Arrays pass through, a single present value is wrapped, absent becomes []."""
    if isinstance(params, (list, tuple)):
        return list(params)
    if params is None:
        return []
    return [params]
