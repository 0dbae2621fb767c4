"""Shared pytest fixtures."""

from __future__ import annotations

import asyncio
import inspect
from typing import Any, Callable

import pytest


class FakeSocketIO:
    """In-memory stand-in for socketio.AsyncServer: rooms, emit, call, disconnect."""

    def __init__(self):
        self.handlers: dict[str, Callable[..., Any]] = {}
        self.members: dict[str, set[str]] = {}
        self.connected: set[str] = set()
        self.delivered: list[tuple[str, Any, list[str]]] = []
        self.calls: list[tuple[str, Any, str | None]] = []
        self.responders: dict[str, Callable[[str, Any], Any]] = {}
        self.disconnected: list[str] = []

    def on(self, event: str, handler: Callable[..., Any] | None = None, namespace: str | None = None):
        self.handlers[event] = handler

    async def trigger(self, event: str, *args: Any) -> Any:
        return await self.handlers[event](*args)

    def add_peer(self, sid: str) -> None:
        self.connected.add(sid)

    async def enter_room(self, sid: str, room: str, namespace: str | None = None) -> None:
        self.members.setdefault(room, set()).add(sid)

    async def leave_room(self, sid: str, room: str, namespace: str | None = None) -> None:
        members = self.members.get(room)
        if members is not None:
            members.discard(sid)
            if not members:
                del self.members[room]

    def rooms(self, sid: str, namespace: str | None = None) -> list[str]:
        return [sid, *sorted(room for room, members in self.members.items() if sid in members)]

    def _recipients(self, to: Any) -> list[str]:
        if to is None:
            return sorted(self.connected)
        targets = [to] if isinstance(to, str) else list(to)
        out: set[str] = set()
        for target in targets:
            if target in self.connected:
                out.add(target)
            out |= self.members.get(target, set())
        return sorted(out)

    async def emit(self, event: str, data: Any = None, to: Any = None, room: Any = None, namespace: str | None = None, **_: Any) -> None:
        self.delivered.append((event, data, self._recipients(to if to is not None else room)))

    def received_by(self, sid: str, event: str) -> list[Any]:
        return [data for name, data, recipients in self.delivered if name == event and sid in recipients]

    async def call(self, event: str, data: Any = None, to: str | None = None, sid: str | None = None, namespace: str | None = None, timeout: float | None = 60) -> Any:
        target = to or sid
        self.calls.append((event, data, target))
        responder = self.responders.get(target)
        if responder is None:
            # Peer never acknowledges.
            await asyncio.Event().wait()
        reply = responder(event, data)
        if inspect.isawaitable(reply):
            reply = await reply
        return reply

    async def disconnect(self, sid: str, namespace: str | None = None) -> None:
        self.disconnected.append(sid)
        self.connected.discard(sid)


@pytest.fixture
def fake_sio() -> FakeSocketIO:
    return FakeSocketIO()
