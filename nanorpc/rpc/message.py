"""Free-form per-connection messages on ``/message/<event>``."""

from __future__ import annotations

import inspect
from typing import Any, Callable

from loguru import logger

from nanorpc.rpc.protocol import message_event

Listener = Callable[..., Any]


class MessageChannel:
    """Send to and listen for one peer's ``/message/*`` events."""

    def __init__(self, emit: Callable[..., Any]):
        self._emit = emit
        self._listeners: dict[str, list[tuple[Listener, bool]]] = {}

    def on(self, event: str, listener: Listener) -> Callable[[], None]:
        entry = (listener, False)
        self._listeners.setdefault(event, []).append(entry)

        def off() -> None:
            self._remove(event, entry)

        return off

    def once(self, event: str, listener: Listener) -> "MessageChannel":
        self._listeners.setdefault(event, []).append((listener, True))
        return self

    async def send(self, event: str, *args: Any) -> "MessageChannel":
        outcome = self._emit(message_event(event), args)
        if inspect.isawaitable(outcome):
            await outcome
        return self

    async def dispatch(self, event: str, args: tuple[Any, ...] | list[Any]) -> int:
        """Deliver an inbound message to listeners; returns how many were called."""
        entries = list(self._listeners.get(event, ()))
        for entry in entries:
            listener, once = entry
            if once:
                self._remove(event, entry)
            outcome = listener(*args)
            if inspect.isawaitable(outcome):
                await outcome
        if not entries:
            logger.debug("No message listener for {}", event)
        return len(entries)

    def clear(self) -> None:
        self._listeners.clear()

    def _remove(self, event: str, entry: tuple[Listener, bool]) -> None:
        entries = self._listeners.get(event)
        if not entries:
            return
        try:
            entries.remove(entry)
        except ValueError:
            return
        if not entries:
            del self._listeners[event]
