"""Consumer-side client: calls server methods, joins channels, serves reverse calls."""

from __future__ import annotations

import inspect
from typing import Any, Awaitable, Callable, Iterable

import socketio
from loguru import logger

from nanorpc.rpc.client_proxy import parse_reply
from nanorpc.rpc.dispatcher import Dispatcher
from nanorpc.rpc.message import MessageChannel
from nanorpc.rpc.protocol import (
    MESSAGE_EVENT_PREFIX,
    PUBLISH_EVENT,
    RPC_EVENT,
    SUBSCRIBE_EVENT,
    UNSUBSCRIBE_EVENT,
    create_rpc,
)
from nanorpc.rpc.registry import Handler, MethodOptions, MethodRegistry
from nanorpc.rpc.validators import ValidatorGate, Validators
from nanorpc.transport.codec import create_packet_class
from nanorpc.utils.exceptions import CallTimeoutError

PublishListener = Callable[..., Any]


class NanoRPCClient:
    """``timeout`` is in milliseconds; 0 waits for the server's reply forever."""

    def __init__(self, *, secret: str = "", timeout: int = 0, sio: Any = None):
        self.sio = sio if sio is not None else socketio.AsyncClient(
            serializer=create_packet_class(secret),
            logger=False,
            engineio_logger=False,
        )
        self.timeout = max(0, int(timeout or 0))
        # Reply shapes expected from server methods.
        self.validators = Validators()
        # Request shapes accepted by methods this client serves to the server.
        self.method_validators = Validators()
        self.registry = MethodRegistry()
        self.dispatcher = Dispatcher(self.registry, ValidatorGate(self.method_validators))
        self.message = MessageChannel(lambda event, args: self.sio.emit(event, args))
        self._reply_gate = ValidatorGate(self.validators)
        self._publish_listeners: list[PublishListener] = []
        self.sio.on(RPC_EVENT, self._on_rpc)
        self.sio.on(PUBLISH_EVENT, self._on_publish)
        self.sio.on("*", self._on_any)

    @property
    def id(self) -> str | None:
        """Namespace sid; the server keys sessions and identity injection by it."""
        return self.sio.get_sid()

    @property
    def connected(self) -> bool:
        return bool(self.sio.connected)

    async def connect(
        self,
        url: str,
        *,
        auth: dict[str, Any] | None = None,
        path: str = "socket.io",
        transports: Iterable[str] = ("websocket",),
        wait_timeout: float = 5.0,
    ) -> "NanoRPCClient":
        await self.sio.connect(
            url,
            auth=auth,
            socketio_path=path,
            transports=list(transports),
            wait_timeout=wait_timeout,
        )
        logger.debug("Connected to {} as {}", url, self.id)
        return self

    async def close(self) -> None:
        await self.sio.disconnect()

    # ------------------------------------------------------------------
    # Calls into the server
    # ------------------------------------------------------------------

    async def apply(self, method: str, args: list[Any] | tuple[Any, ...]) -> Any:
        rpc = create_rpc(method, args)
        try:
            reply = await self.sio.call(
                RPC_EVENT,
                rpc,
                timeout=self.timeout / 1000.0 if self.timeout > 0 else None,
            )
        except socketio.exceptions.TimeoutError:
            raise CallTimeoutError(method, self.timeout) from None
        return parse_reply(method, reply, self._reply_gate)

    async def call(self, method: str, *args: Any) -> Any:
        return await self.apply(method, args)

    def invoke(self, method: str) -> Callable[..., Awaitable[Any]]:
        async def bound(*args: Any) -> Any:
            return await self.apply(method, args)

        return bound

    async def subscribe(self, channels: str | list[str]) -> list[str]:
        return await self.sio.call(SUBSCRIBE_EVENT, channels)

    async def unsubscribe(self, channels: str | list[str]) -> list[str]:
        return await self.sio.call(UNSUBSCRIBE_EVENT, channels)

    def on_publish(self, listener: PublishListener) -> Callable[[], None]:
        """``listener(channels, *args)`` for every publish this client receives."""
        self._publish_listeners.append(listener)

        def off() -> None:
            if listener in self._publish_listeners:
                self._publish_listeners.remove(listener)

        return off

    # ------------------------------------------------------------------
    # Reverse calls served to the server
    # ------------------------------------------------------------------

    def on(self, method: str, func: Handler, *, identity: bool = False) -> "NanoRPCClient":
        self.registry.register(method, func, MethodOptions(identity=identity))
        return self

    async def _on_rpc(self, *args: Any) -> dict[str, Any] | None:
        replies: list[dict[str, Any]] = []
        await self.dispatcher.handle(self.id or "", args[0] if args else None, replies.append)
        return replies[0] if replies else None

    async def _on_publish(self, channels: Any = None, *args: Any) -> None:
        for listener in list(self._publish_listeners):
            outcome = listener(channels, *args)
            if inspect.isawaitable(outcome):
                await outcome

    async def _on_any(self, event: str, *args: Any) -> None:
        if event.startswith(MESSAGE_EVENT_PREFIX):
            await self.message.dispatch(event[len(MESSAGE_EVENT_PREFIX):], args)
