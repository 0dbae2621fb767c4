from __future__ import annotations

import pytest

from nanorpc.rpc.message import MessageChannel


def _channel() -> tuple[MessageChannel, list[tuple[str, tuple]]]:
    sent: list[tuple[str, tuple]] = []

    async def emit(event, args):
        sent.append((event, args))

    return MessageChannel(emit), sent


@pytest.mark.asyncio
async def test_send_prefixes_event():
    channel, sent = _channel()
    await channel.send("ping", 1, "two")
    assert sent == [("/message/ping", (1, "two"))]


@pytest.mark.asyncio
async def test_dispatch_calls_sync_and_async_listeners():
    channel, _ = _channel()
    seen: list[tuple] = []

    async def async_listener(*args):
        seen.append(("async", *args))

    channel.on("ping", lambda *args: seen.append(("sync", *args)))
    channel.on("ping", async_listener)

    assert await channel.dispatch("ping", (1,)) == 2
    assert seen == [("sync", 1), ("async", 1)]


@pytest.mark.asyncio
async def test_off_and_once():
    channel, _ = _channel()
    seen: list[str] = []

    off = channel.on("evt", lambda: seen.append("on"))
    channel.once("evt", lambda: seen.append("once"))

    await channel.dispatch("evt", ())
    off()
    await channel.dispatch("evt", ())

    assert seen == ["on", "once"]
    assert await channel.dispatch("evt", ()) == 0


@pytest.mark.asyncio
async def test_clear_drops_all_listeners():
    channel, _ = _channel()
    channel.on("a", lambda: None)
    channel.clear()
    assert await channel.dispatch("a", ()) == 0
