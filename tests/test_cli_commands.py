from __future__ import annotations

import json

import pytest
from typer.testing import CliRunner

from nanorpc import __version__
from nanorpc.cli.commands import _parse_arg, app, build_demo_server
from nanorpc.rpc.protocol import ErrorCode

runner = CliRunner()


def test_version_command():
    result = runner.invoke(app, ["version"])
    assert result.exit_code == 0
    assert __version__ in result.output


def test_parse_arg_prefers_json():
    assert _parse_arg("3") == 3
    assert _parse_arg('{"a": [1]}') == {"a": [1]}
    assert _parse_arg("hello") == "hello"


@pytest.mark.asyncio
async def test_demo_server_methods(tmp_path):
    server = build_demo_server(config_path=tmp_path / "config.json", port=4555, queued=True)

    assert server.config.port == 4555
    assert server.registry.names() == ["add", "whoami"]

    ok = await server.dispatcher.build_reply("sid-1", {"id": "a", "method": "add", "params": [2, 3]})
    bad = await server.dispatcher.build_reply("sid-1", {"id": "b", "method": "add", "params": [2]})
    who = await server.dispatcher.build_reply("sid-1", {"id": "c", "method": "whoami", "params": []})

    assert ok["result"] == 5
    assert bad["error"]["code"] == ErrorCode.PARAMETER_ERROR
    assert who["result"] == "sid-1"


def test_init_creates_then_refreshes_config(tmp_path):
    path = tmp_path / "config.json"

    created = runner.invoke(app, ["init", "--config", str(path)])
    assert created.exit_code == 0
    assert json.loads(path.read_text())["port"] == 4000

    path.write_text(json.dumps({"port": 4321}))
    refreshed = runner.invoke(app, ["init", "--config", str(path)], input="n\n")
    assert refreshed.exit_code == 0
    saved = json.loads(path.read_text())
    assert saved["port"] == 4321
    assert "corsAllowedOrigins" in saved

    reset = runner.invoke(app, ["init", "--config", str(path), "--force"])
    assert reset.exit_code == 0
    assert json.loads(path.read_text())["port"] == 4000


@pytest.mark.asyncio
async def test_demo_server_reads_config_file(tmp_path):
    path = tmp_path / "config.json"
    path.write_text(json.dumps({"port": 4700, "queued": True}))

    server = build_demo_server(config_path=path, host=None, port=None)

    assert server.config.port == 4700
    assert server.scheduler.queued is True
