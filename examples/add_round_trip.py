"""Start a server, connect a client, and exercise calls, channels and reverse calls.

Run with ``python examples/add_round_trip.py``.
"""

from __future__ import annotations

import asyncio

from loguru import logger

from nanorpc import NanoRPCClient, create_server

PORT = 4411
SECRET = "demo-secret"


async def main() -> None:
    server = create_server(port=PORT, secret=SECRET, queued=True, timeout=2000)
    server.on("add", lambda a, b: a + b)
    server.on("whoami", lambda connection_id: connection_id, identity=True)
    server.validators.add_validator(
        "add",
        {"type": "object", "properties": {"params": {"type": "array", "items": {"type": "number"}}}},
    )

    serving = asyncio.create_task(server.serve())
    while not server.serving and not serving.done():
        await asyncio.sleep(0.05)
    if serving.done():
        serving.result()

    client = NanoRPCClient(secret=SECRET, timeout=2000)
    client.on("version", lambda: "demo-client/1.0")
    client.on_publish(lambda channels, *args: logger.info("publish {} {}", channels, args))
    await client.connect(f"http://127.0.0.1:{PORT}")
    try:
        logger.info("add(1, 2) = {}", await client.call("add", 1, 2))
        logger.info("whoami() = {}", await client.call("whoami"))

        await client.subscribe("news")
        await server.publish("news", "hello subscribers")

        proxy = server.client(client.id)
        logger.info("client version = {}", await proxy.call("version"))
        await asyncio.sleep(0.2)
    finally:
        await client.close()
        server.shutdown()
        await serving


if __name__ == "__main__":
    asyncio.run(main())
