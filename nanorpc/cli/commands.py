"""CLI commands for nanorpc.

``init`` writes a config file, ``serve`` starts a demo server, ``call``
performs one RPC against a running server, ``version`` prints the version.
"""

from __future__ import annotations

import asyncio
import json
from pathlib import Path
from typing import Any, Optional

import typer
from rich.console import Console

from nanorpc import __logo__, __version__
from nanorpc.cli.shared.logging_utils import configure_console_logging, ensure_rotating_log_file
from nanorpc.client import NanoRPCClient
from nanorpc.config.access import get_config, get_server_config
from nanorpc.config.loader import get_config_path, save_config
from nanorpc.config.schema import ServerConfig
from nanorpc.rpc.lifecycle import Session
from nanorpc.server import NanoRPCServer
from nanorpc.utils.exceptions import NanoRPCError

app = typer.Typer(
    name="nanorpc",
    help=f"{__logo__} nanorpc - RPC over Socket.IO",
    no_args_is_help=True,
)

console = Console()


def _parse_arg(raw: str) -> Any:
    """JSON when it parses, plain string otherwise."""
    try:
        return json.loads(raw)
    except json.JSONDecodeError:
        return raw


def build_demo_server(**overrides: Any) -> NanoRPCServer:
    """Server exposing ``add`` and ``whoami`` (identity-injected)."""

    def on_connect(session: Session, auth: dict[str, Any]) -> bool:
        console.print(f"[dim]connect {session.id} from {session.ip or '-'}[/dim]")
        return True

    def on_disconnect(session: Session, reason: str) -> None:
        console.print(f"[dim]disconnect {session.id} ({reason})[/dim]")

    config_path = overrides.pop("config_path", None)
    config = get_server_config(config_path, **overrides)
    server = NanoRPCServer(config, on_connect=on_connect, on_disconnect=on_disconnect)
    server.on("add", lambda a, b: a + b)
    server.on("whoami", lambda connection_id: connection_id, identity=True)
    server.validators.add_validator(
        "add",
        {
            "type": "object",
            "properties": {
                "params": {
                    "type": "array",
                    "items": {"type": "number"},
                    "minItems": 2,
                    "maxItems": 2,
                }
            },
            "required": ["params"],
        },
    )
    return server


@app.command()
def init(
    config: Optional[Path] = typer.Option(None, "--config", "-c", help="Config JSON path"),
    force: bool = typer.Option(False, "--force", "-f", help="Overwrite with defaults without asking"),
) -> None:
    """Write a server config file, keeping existing values unless reset."""
    config_path = config or get_config_path()
    if config_path.exists():
        console.print(f"[yellow]Config already exists at {config_path}[/yellow]")
        if force or typer.confirm("Overwrite with defaults?"):
            save_config(ServerConfig(), config_path)
            console.print(f"[green]✓[/green] Config reset to defaults at {config_path}")
        else:
            try:
                current = get_config(config_path=config_path, force_reload=True)
            except ValueError as e:
                console.print(f"[red]{e}[/red]")
                raise typer.Exit(1)
            save_config(current, config_path)
            console.print(f"[green]✓[/green] Config refreshed at {config_path} (existing values preserved)")
    else:
        save_config(ServerConfig(), config_path)
        console.print(f"[green]✓[/green] Created config at {config_path}")


@app.command()
def serve(
    host: Optional[str] = typer.Option(None, "--host", "-h", help="Bind host"),
    port: Optional[int] = typer.Option(None, "--port", "-p", help="Bind port"),
    secret: Optional[str] = typer.Option(None, "--secret", help="Shared secret for the sealed wire codec"),
    queued: Optional[bool] = typer.Option(None, "--queued/--no-queued", help="Serialize handler execution"),
    timeout: Optional[int] = typer.Option(None, "--timeout", help="Reverse-call timeout in ms (0 = none)"),
    config: Optional[Path] = typer.Option(None, "--config", "-c", help="Config JSON path"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Verbose output"),
) -> None:
    """Start a demo server with ``add`` and ``whoami`` methods."""
    try:
        server = build_demo_server(
            config_path=config,
            host=host,
            port=port,
            secret=secret,
            queued=queued,
            timeout=timeout,
        )
    except ValueError as e:
        console.print(f"[red]{e}[/red]")
        raise typer.Exit(1)

    level = "DEBUG" if verbose else server.config.log_level
    configure_console_logging(level)
    log_path = ensure_rotating_log_file("server", level=level, path=server.config.log_file or None)

    console.print(f"{__logo__} Starting nanorpc on {server.config.host}:{server.config.port}...")
    console.print(f"[dim]Logs: {log_path}[/dim]")
    try:
        server.run()
    except KeyboardInterrupt:
        console.print("\nGoodbye!")


@app.command()
def call(
    url: str = typer.Argument(..., help="Server URL, e.g. http://127.0.0.1:4000"),
    method: str = typer.Argument(..., help="Method name"),
    args: Optional[list[str]] = typer.Argument(None, help="Arguments (JSON or plain strings)"),
    secret: str = typer.Option("", "--secret", help="Shared secret for the sealed wire codec"),
    timeout: int = typer.Option(10000, "--timeout", help="Reply timeout in ms (0 = none)"),
    path: str = typer.Option("socket.io", "--path", help="Socket.IO endpoint path"),
) -> None:
    """Call one method on a running server and print the result."""
    params = [_parse_arg(raw) for raw in args or []]

    async def _run() -> Any:
        client = NanoRPCClient(secret=secret, timeout=timeout)
        await client.connect(url, path=path)
        try:
            return await client.apply(method, params)
        finally:
            await client.close()

    try:
        result = asyncio.run(_run())
    except NanoRPCError as e:
        console.print(f"[red]Error {e.code}:[/red] {e.message}")
        raise typer.Exit(1)
    except Exception as e:
        console.print(f"[red]Connection failed:[/red] {e}")
        raise typer.Exit(2)
    console.print(json.dumps(result, indent=2, ensure_ascii=False))


@app.command()
def version() -> None:
    """Show version."""
    console.print(f"{__logo__} nanorpc v{__version__}")


if __name__ == "__main__":
    app()
