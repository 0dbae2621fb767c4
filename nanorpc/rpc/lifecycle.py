"""Connection lifecycle: handshake, session table, auth hook, disconnect cleanup.

States: connecting -> authenticating -> active -> disconnected. Cleanup runs
exactly once per connection whichever path (error, disconnect) gets there first.
"""

from __future__ import annotations

import inspect
from dataclasses import dataclass
from enum import Enum
from typing import Any, Awaitable, Callable, Mapping

from loguru import logger

from nanorpc.rpc.client_proxy import ClientProxy
from nanorpc.rpc.validators import ValidatorGate
from nanorpc.utils.helpers import now_ms

ConnectHook = Callable[["Session", dict[str, Any]], Awaitable[Any] | Any]
DisconnectHook = Callable[["Session", str], Awaitable[Any] | Any]


@dataclass(frozen=True, slots=True)
class Session:
    id: str
    ip: str
    timestamp: int


class ConnectionState(str, Enum):
    CONNECTING = "connecting"
    AUTHENTICATING = "authenticating"
    ACTIVE = "active"
    DISCONNECTED = "disconnected"


def resolve_remote_ip(environ: Mapping[str, Any] | None) -> str:
    """First X-Forwarded-For entry when present, else the raw peer address."""
    environ = environ or {}
    forwarded = environ.get("HTTP_X_FORWARDED_FOR")
    if isinstance(forwarded, str) and forwarded.strip():
        return forwarded.split(",")[0].strip()
    return str(environ.get("REMOTE_ADDR") or "")


async def _maybe_await(outcome: Any) -> Any:
    return await outcome if inspect.isawaitable(outcome) else outcome


class LifecycleManager:
    """Owns the session and client-proxy tables keyed by connection id."""

    def __init__(
        self,
        sio: Any,
        reply_gate: ValidatorGate,
        *,
        timeout: int = 0,
        on_connect: ConnectHook | None = None,
        on_disconnect: DisconnectHook | None = None,
        namespace: str = "/",
    ):
        self._sio = sio
        self._reply_gate = reply_gate
        self._timeout = timeout
        self._namespace = namespace
        self.on_connect = on_connect
        self.on_disconnect = on_disconnect
        self.sessions: dict[str, Session] = {}
        self.clients: dict[str, ClientProxy] = {}
        self._states: dict[str, ConnectionState] = {}

    def state(self, connection_id: str) -> ConnectionState:
        return self._states.get(connection_id, ConnectionState.DISCONNECTED)

    def session(self, connection_id: str) -> Session | None:
        return self.sessions.get(connection_id)

    def client(self, connection_id: str) -> ClientProxy | None:
        return self.clients.get(connection_id)

    def is_active(self, connection_id: str) -> bool:
        return self._states.get(connection_id) == ConnectionState.ACTIVE

    async def connect(
        self,
        connection_id: str,
        environ: Mapping[str, Any] | None,
        auth: Any = None,
    ) -> bool:
        """Build the session, run the auth hook, register the proxy. False means reject."""
        self._states[connection_id] = ConnectionState.CONNECTING
        session = Session(id=connection_id, ip=resolve_remote_ip(environ), timestamp=now_ms())

        if self.on_connect is not None:
            self._states[connection_id] = ConnectionState.AUTHENTICATING
            try:
                allowed = await _maybe_await(self.on_connect(session, auth if isinstance(auth, dict) else {}))
            except BaseException:
                self._states.pop(connection_id, None)
                raise
            if not allowed:
                self._states.pop(connection_id, None)
                logger.info("Rejected connection {} from {}", connection_id, session.ip)
                return False
            if self._states.get(connection_id) != ConnectionState.AUTHENTICATING:
                # Peer went away while the hook was pending.
                return False

        self.sessions[connection_id] = session
        self.clients[connection_id] = ClientProxy(
            session,
            self._sio,
            self._reply_gate,
            timeout=self._timeout,
            namespace=self._namespace,
        )
        self._states[connection_id] = ConnectionState.ACTIVE
        logger.info("Accepted connection {} from {}", connection_id, session.ip)
        return True

    async def disconnect(self, connection_id: str, reason: Any = None) -> bool:
        """Transport disconnect; returns False when cleanup already ran."""
        return await self._close(connection_id, str(reason or "disconnect"))

    async def error(self, connection_id: str, error: BaseException | str) -> bool:
        """Transport error: clean up as a disconnect, then force the transport to drop."""
        message = error if isinstance(error, str) else (str(error) or type(error).__name__)
        closed = await self._close(connection_id, message)
        if closed:
            await _maybe_await(self._sio.disconnect(connection_id, namespace=self._namespace))
        return closed

    async def _close(self, connection_id: str, reason: str) -> bool:
        state = self._states.pop(connection_id, None)
        session = self.sessions.pop(connection_id, None)
        if session is None:
            if state is not None:
                logger.debug("Connection {} dropped during handshake ({})", connection_id, reason)
            return False
        logger.info("Disconnected {} from {} ({})", connection_id, session.ip, reason)
        try:
            if self.on_disconnect is not None:
                await _maybe_await(self.on_disconnect(session, reason))
        finally:
            proxy = self.clients.pop(connection_id, None)
            if proxy is not None:
                proxy.detach()
        return True
