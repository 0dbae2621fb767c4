"""Socket.IO RPC server.

One ASGI app serves HTTP (FastAPI, CORS, /health) and the Socket.IO endpoint;
Socket.IO events are routed into the lifecycle manager, dispatcher and
channel hub.
"""

from __future__ import annotations

import asyncio
from typing import Any, Callable

import socketio
import uvicorn
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from loguru import logger

from nanorpc import __version__
from nanorpc.config.schema import ServerConfig
from nanorpc.rpc.channels import ChannelHub
from nanorpc.rpc.client_proxy import ClientProxy
from nanorpc.rpc.dispatcher import Dispatcher
from nanorpc.rpc.lifecycle import ConnectHook, DisconnectHook, LifecycleManager, Session
from nanorpc.rpc.protocol import MESSAGE_EVENT_PREFIX, RPC_EVENT, SUBSCRIBE_EVENT, UNSUBSCRIBE_EVENT
from nanorpc.rpc.registry import Handler, MethodOptions, MethodRegistry
from nanorpc.rpc.scheduler import ExecutionScheduler
from nanorpc.rpc.validators import ValidatorGate, Validators
from nanorpc.transport.codec import create_packet_class


def create_socketio_server(config: ServerConfig) -> socketio.AsyncServer:
    return socketio.AsyncServer(
        async_mode="asgi",
        serializer=create_packet_class(config.secret),
        cors_allowed_origins=config.cors_allowed_origins,
        transports=list(config.transports),
        logger=False,
        engineio_logger=False,
    )


class NanoRPCServer:
    """Named, validated remote methods plus channels and reverse calls."""

    def __init__(
        self,
        config: ServerConfig | None = None,
        *,
        on_connect: ConnectHook | None = None,
        on_disconnect: DisconnectHook | None = None,
        sio: Any = None,
        **overrides: Any,
    ):
        config = config or ServerConfig()
        if overrides:
            config = config.model_copy(update=overrides)
        self.config = config
        self.sio = sio if sio is not None else create_socketio_server(config)
        self.validators = Validators()
        self.client_validators = Validators()
        self.registry = MethodRegistry()
        self.scheduler = ExecutionScheduler(queued=config.queued)
        self.dispatcher = Dispatcher(self.registry, ValidatorGate(self.validators), self.scheduler)
        self.channels = ChannelHub(self.sio)
        self.lifecycle = LifecycleManager(
            self.sio,
            ValidatorGate(self.client_validators),
            timeout=config.timeout,
            on_connect=on_connect,
            on_disconnect=on_disconnect,
        )
        self._uvicorn: uvicorn.Server | None = None
        self._asgi_app: Any = None
        self._bind_events()

    # ------------------------------------------------------------------
    # Registration and lookup
    # ------------------------------------------------------------------

    def on(self, method: str, func: Handler, *, identity: bool = False) -> "NanoRPCServer":
        """Register ``func`` under ``method``; raises DuplicateMethodError on reuse."""
        self.registry.register(method, func, MethodOptions(identity=identity))
        return self

    def method(self, name: str | None = None, *, identity: bool = False) -> Callable[[Handler], Handler]:
        """Decorator form of :meth:`on`; defaults to the function name."""

        def decorator(func: Handler) -> Handler:
            self.on(name or func.__name__, func, identity=identity)
            return func

        return decorator

    def client(self, connection_id: str) -> ClientProxy | None:
        return self.lifecycle.client(connection_id)

    @property
    def sessions(self) -> dict[str, Session]:
        return dict(self.lifecycle.sessions)

    # ------------------------------------------------------------------
    # Fan-out
    # ------------------------------------------------------------------

    async def publish(self, channels: str | list[str], *args: Any) -> "NanoRPCServer":
        await self.channels.publish(channels, *args)
        return self

    async def broadcast(self, event: str, *args: Any) -> "NanoRPCServer":
        await self.channels.broadcast(event, *args)
        return self

    # ------------------------------------------------------------------
    # Transport events
    # ------------------------------------------------------------------

    def _bind_events(self) -> None:
        self.sio.on("connect", self._on_connect)
        self.sio.on("disconnect", self._on_disconnect)
        self.sio.on(RPC_EVENT, self._on_rpc)
        self.sio.on(SUBSCRIBE_EVENT, self._on_subscribe)
        self.sio.on(UNSUBSCRIBE_EVENT, self._on_unsubscribe)
        self.sio.on("*", self._on_any)

    async def _on_connect(self, sid: str, environ: dict[str, Any], auth: Any = None) -> bool:
        return await self.lifecycle.connect(sid, environ, auth)

    async def _on_disconnect(self, sid: str, reason: Any = None) -> None:
        await self.lifecycle.disconnect(sid, reason)

    async def _on_rpc(self, sid: str, *args: Any) -> dict[str, Any] | None:
        if not self.lifecycle.is_active(sid):
            return None
        # The transport does not expose whether the peer asked for an ack.
        replies: list[dict[str, Any]] = []
        try:
            await self.dispatcher.handle(sid, args[0] if args else None, replies.append)
        except Exception as exc:
            logger.exception("RPC pipeline failed for {}", sid)
            await self.lifecycle.error(sid, exc)
            return None
        return replies[0] if replies else None

    async def _on_subscribe(self, sid: str, channels: Any = None, *_: Any) -> list[str]:
        if not self.lifecycle.is_active(sid):
            return []
        return await self.channels.subscribe(sid, channels)

    async def _on_unsubscribe(self, sid: str, channels: Any = None, *_: Any) -> list[str]:
        if not self.lifecycle.is_active(sid):
            return []
        return await self.channels.unsubscribe(sid, channels)

    async def _on_any(self, event: str, sid: str, *args: Any) -> None:
        proxy = self.lifecycle.client(sid)
        if proxy is None or not event.startswith(MESSAGE_EVENT_PREFIX):
            logger.debug("Ignoring event {} from {}", event, sid)
            return
        await proxy.message.dispatch(event[len(MESSAGE_EVENT_PREFIX):], args)

    # ------------------------------------------------------------------
    # HTTP bootstrap
    # ------------------------------------------------------------------

    def create_http_app(self) -> FastAPI:
        app = FastAPI(title="nanorpc", version=__version__)
        app.add_middleware(
            CORSMiddleware,
            allow_origins=["*"],
            allow_credentials=True,
            allow_methods=["*"],
            allow_headers=["*"],
        )

        @app.get("/health")
        async def health() -> dict[str, Any]:
            return {
                "status": "ok",
                "service": "nanorpc",
                "version": __version__,
                "connections": len(self.lifecycle.sessions),
                "methods": self.registry.names(),
                "scheduler": self.scheduler.status(),
            }

        return app

    @property
    def asgi_app(self) -> Any:
        if self._asgi_app is None:
            self._asgi_app = socketio.ASGIApp(
                self.sio,
                other_asgi_app=self.create_http_app(),
                socketio_path=self.config.path,
            )
        return self._asgi_app

    async def serve(self, port: int | None = None, host: str | None = None) -> None:
        """Serve until :meth:`shutdown` is called or the process is interrupted."""
        uvicorn_config = uvicorn.Config(
            self.asgi_app,
            host=host or self.config.host,
            port=port or self.config.port,
            log_level=self.config.log_level.lower(),
        )
        self._uvicorn = uvicorn.Server(uvicorn_config)
        logger.info(
            "nanorpc listening on {}:{} queued={} secret={}",
            uvicorn_config.host,
            uvicorn_config.port,
            self.config.queued,
            bool(self.config.secret),
        )
        await self._uvicorn.serve()

    @property
    def serving(self) -> bool:
        return self._uvicorn is not None and self._uvicorn.started

    def shutdown(self) -> None:
        if self._uvicorn is not None:
            self._uvicorn.should_exit = True

    def run(self, port: int | None = None, host: str | None = None) -> None:
        """Blocking variant of :meth:`serve`."""
        asyncio.run(self.serve(port=port, host=host))


def create_server(
    config: ServerConfig | None = None,
    *,
    on_connect: ConnectHook | None = None,
    on_disconnect: DisconnectHook | None = None,
    sio: Any = None,
    **overrides: Any,
) -> NanoRPCServer:
    return NanoRPCServer(config, on_connect=on_connect, on_disconnect=on_disconnect, sio=sio, **overrides)
