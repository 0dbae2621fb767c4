"""Inbound RPC envelope dispatch: validate, inject identity, schedule, reply."""

from __future__ import annotations

from typing import Any, Callable

from loguru import logger

from nanorpc.rpc.protocol import (
    ErrorCode,
    create_error_reply,
    create_reply,
    is_valid_request,
    normalize_params,
    salvage_id,
)
from nanorpc.rpc.registry import MethodRegistry
from nanorpc.rpc.scheduler import ExecutionScheduler
from nanorpc.rpc.validators import ValidatorGate
from nanorpc.utils.exceptions import error_message, structured_error

AckCallback = Callable[[dict[str, Any]], Any]


class Dispatcher:
    """Turns one request envelope into exactly one reply passed to ``ack``."""

    def __init__(
        self,
        registry: MethodRegistry,
        gate: ValidatorGate,
        scheduler: ExecutionScheduler | None = None,
    ):
        self.registry = registry
        self.gate = gate
        self.scheduler = scheduler or ExecutionScheduler()

    async def handle(self, connection_id: str, envelope: Any, ack: AckCallback | None) -> None:
        if not callable(ack):
            logger.debug("Dropping RPC envelope without ack from {}", connection_id)
            return
        ack(await self.build_reply(connection_id, envelope))

    async def build_reply(self, connection_id: str, envelope: Any) -> dict[str, Any]:
        if not is_valid_request(envelope):
            logger.debug("Protocol error from {}: {!r}", connection_id, envelope)
            return create_error_reply(salvage_id(envelope), ErrorCode.PROTOCOL_ERROR, "Protocol Error")

        rpc_id = salvage_id(envelope)
        method = envelope["method"]
        registration = self.registry.lookup(method)
        if registration is None:
            logger.debug("Missing method {} from {}", method, connection_id)
            return create_error_reply(rpc_id, ErrorCode.MISSING_METHOD, "Missing Method")

        outcome = self.gate.check(method, envelope)
        if not outcome.ok:
            logger.debug("Parameter error for {} from {}: {}", method, connection_id, outcome.message)
            return create_error_reply(rpc_id, ErrorCode.PARAMETER_ERROR, outcome.message)

        args = normalize_params(envelope.get("params"))
        if registration.options.identity:
            args = [connection_id, *args]

        try:
            result = await self.scheduler.run_exclusive(lambda: registration.handler(*args))
        except Exception as exc:
            structured = structured_error(exc)
            if structured is not None:
                code, message = structured
            else:
                code, message = ErrorCode.CALL_ERROR, error_message(exc)
            logger.warning("RPC method {} failed for {} with [{}]: {}", method, connection_id, code, message)
            return create_error_reply(rpc_id, code, message)

        logger.debug("RPC method {} ok for {}", method, connection_id)
        return create_reply(rpc_id, result)
