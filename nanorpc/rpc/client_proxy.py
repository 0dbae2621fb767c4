"""Server-held handle for reverse calls into one connected peer."""

from __future__ import annotations

import asyncio
from typing import TYPE_CHECKING, Any, Awaitable, Callable

from loguru import logger

from nanorpc.rpc.message import MessageChannel
from nanorpc.rpc.protocol import RPC_EVENT, ErrorCode, RpcStatus, create_rpc
from nanorpc.rpc.validators import ValidatorGate, Validators
from nanorpc.utils.exceptions import CallTimeoutError, ClientDisconnectedError, NanoRPCError

if TYPE_CHECKING:
    from nanorpc.rpc.lifecycle import Session


def parse_reply(method: str, reply: Any, gate: ValidatorGate) -> Any:
    """Validate a reply envelope and unwrap its result, raising NanoRPCError on failure."""
    outcome = gate.check(method, reply)
    if not outcome.ok:
        raise NanoRPCError(ErrorCode.CALL_ERROR, f"Call {method}, {outcome.message}")
    if not isinstance(reply, dict):
        raise NanoRPCError(ErrorCode.PROTOCOL_ERROR, f"Call {method} invalid reply")
    if reply.get("status") != RpcStatus.OK:
        error = reply.get("error") if isinstance(reply.get("error"), dict) else {}
        code = error.get("code")
        if not isinstance(code, int) or isinstance(code, bool):
            code = ErrorCode.CALL_ERROR
        raise NanoRPCError(code, f"Call {method} {error.get('message') or 'unknown error'}")
    return reply.get("result")


class ClientProxy:
    """Reverse RPC into one connection; ``timeout`` is in milliseconds, 0 waits forever."""

    def __init__(
        self,
        session: Session,
        sio: Any,
        gate: ValidatorGate,
        timeout: int = 0,
        namespace: str = "/",
    ):
        self.session = session
        self.gate = gate
        self.timeout = max(0, int(timeout or 0))
        self._sio = sio
        self._namespace = namespace
        self._pending: set[asyncio.Future[Any]] = set()
        self._closed = False
        self.message = MessageChannel(
            lambda event, args: sio.emit(event, args, to=session.id, namespace=namespace)
        )

    @property
    def id(self) -> str:
        return self.session.id

    @property
    def validators(self) -> Validators:
        return self.gate.validators

    @property
    def connected(self) -> bool:
        return not self._closed

    @property
    def disconnected(self) -> bool:
        return self._closed

    @property
    def pending(self) -> int:
        return len(self._pending)

    async def close(self) -> "ClientProxy":
        await self._sio.disconnect(self.id, namespace=self._namespace)
        return self

    async def apply(self, method: str, args: list[Any] | tuple[Any, ...]) -> Any:
        if self._closed:
            raise ClientDisconnectedError(method)
        rpc = create_rpc(method, args)
        call = asyncio.ensure_future(
            self._sio.call(RPC_EVENT, rpc, to=self.id, namespace=self._namespace, timeout=None)
        )
        self._pending.add(call)
        try:
            if self.timeout > 0:
                reply = await asyncio.wait_for(call, self.timeout / 1000.0)
            else:
                reply = await call
        except asyncio.TimeoutError:
            logger.warning("Reverse call {} to {} timed out after {}ms", method, self.id, self.timeout)
            raise CallTimeoutError(method, self.timeout) from None
        except asyncio.CancelledError:
            if self._closed and call.cancelled():
                raise ClientDisconnectedError(method) from None
            raise
        finally:
            self._pending.discard(call)
        return parse_reply(method, reply, self.gate)

    async def call(self, method: str, *args: Any) -> Any:
        return await self.apply(method, args)

    def invoke(self, method: str) -> Callable[..., Awaitable[Any]]:
        async def bound(*args: Any) -> Any:
            return await self.apply(method, args)

        return bound

    def detach(self) -> None:
        """Mark disconnected and abort pending reverse calls."""
        self._closed = True
        for call in list(self._pending):
            call.cancel()
        self.message.clear()
