"""Channel fan-out on top of the transport's room primitive."""

from __future__ import annotations

import inspect
from typing import Any

from loguru import logger

from nanorpc.rpc.protocol import PUBLISH_EVENT, message_event


def normalize_channels(channels: Any) -> list[str]:
    """A single name becomes a one-element list; non-string entries are dropped."""
    if isinstance(channels, (list, tuple)):
        return [name for name in channels if isinstance(name, str)]
    if isinstance(channels, str):
        return [channels]
    return []


async def _maybe_await(outcome: Any) -> Any:
    return await outcome if inspect.isawaitable(outcome) else outcome


class ChannelHub:
    """subscribe/unsubscribe/publish/broadcast; membership lives in transport rooms."""

    def __init__(self, sio: Any, namespace: str = "/"):
        self._sio = sio
        self._namespace = namespace

    async def subscribe(self, connection_id: str, channels: Any) -> list[str]:
        names = normalize_channels(channels)
        for name in names:
            await _maybe_await(self._sio.enter_room(connection_id, name, namespace=self._namespace))
        logger.debug("Connection {} subscribed to {}", connection_id, names)
        return names

    async def unsubscribe(self, connection_id: str, channels: Any) -> list[str]:
        names = normalize_channels(channels)
        for name in names:
            await _maybe_await(self._sio.leave_room(connection_id, name, namespace=self._namespace))
        logger.debug("Connection {} unsubscribed from {}", connection_id, names)
        return names

    async def publish(self, channels: Any, *args: Any) -> list[str]:
        names = normalize_channels(channels)
        if not names:
            return names
        await self._sio.emit(PUBLISH_EVENT, (names, *args), to=names, namespace=self._namespace)
        return names

    async def broadcast(self, event: str, *args: Any) -> None:
        await self._sio.emit(message_event(event), args, namespace=self._namespace)

    def rooms(self, connection_id: str) -> list[str]:
        """Channels the connection is in, excluding its private room."""
        rooms = self._sio.rooms(connection_id, namespace=self._namespace)
        return [room for room in rooms if room != connection_id]
