from __future__ import annotations

import asyncio

import pytest

from nanorpc.rpc.client_proxy import ClientProxy, parse_reply
from nanorpc.rpc.lifecycle import Session
from nanorpc.rpc.protocol import RPC_EVENT, ErrorCode
from nanorpc.rpc.validators import ValidatorGate, Validators
from nanorpc.utils.exceptions import CallTimeoutError, ClientDisconnectedError, NanoRPCError


def _proxy(fake_sio, timeout: int = 0, validators: Validators | None = None) -> ClientProxy:
    session = Session(id="s1", ip="10.0.0.1", timestamp=0)
    fake_sio.add_peer("s1")
    return ClientProxy(session, fake_sio, ValidatorGate(validators or Validators()), timeout=timeout)


def _ok(event, rpc):
    return {"id": rpc["id"], "status": 0, "result": sum(rpc["params"])}


@pytest.mark.asyncio
async def test_call_round_trip(fake_sio):
    proxy = _proxy(fake_sio)
    fake_sio.responders["s1"] = _ok

    assert await proxy.call("sum", 1, 2, 3) == 6
    event, rpc, target = fake_sio.calls[0]
    assert event == RPC_EVENT
    assert target == "s1"
    assert rpc["method"] == "sum"
    assert rpc["params"] == [1, 2, 3]
    assert proxy.pending == 0


@pytest.mark.asyncio
async def test_invoke_binds_method(fake_sio):
    proxy = _proxy(fake_sio)
    fake_sio.responders["s1"] = _ok
    total = proxy.invoke("sum")
    assert await total(4, 5) == 9


@pytest.mark.asyncio
async def test_error_status_raises_with_code(fake_sio):
    proxy = _proxy(fake_sio)
    fake_sio.responders["s1"] = lambda event, rpc: {
        "id": rpc["id"],
        "status": 1,
        "error": {"code": ErrorCode.MISSING_METHOD, "message": "Missing Method"},
    }

    with pytest.raises(NanoRPCError) as exc_info:
        await proxy.call("ghost")

    assert exc_info.value.code == ErrorCode.MISSING_METHOD
    assert exc_info.value.message == "Call ghost Missing Method"


@pytest.mark.asyncio
async def test_reply_validator_rejection(fake_sio):
    validators = Validators().add_validator(
        "sum",
        {"type": "object", "properties": {"result": {"type": "string"}}},
    )
    proxy = _proxy(fake_sio, validators=validators)
    fake_sio.responders["s1"] = _ok

    with pytest.raises(NanoRPCError) as exc_info:
        await proxy.call("sum", 1)

    assert exc_info.value.code == ErrorCode.CALL_ERROR
    assert exc_info.value.message.startswith("Call sum, type: /result, ")


@pytest.mark.asyncio
async def test_timeout_raises(fake_sio):
    proxy = _proxy(fake_sio, timeout=30)

    with pytest.raises(CallTimeoutError) as exc_info:
        await proxy.call("slow")

    assert exc_info.value.message == "Call slow timed out after 30ms"
    assert proxy.pending == 0


@pytest.mark.asyncio
async def test_detach_aborts_pending_calls(fake_sio):
    proxy = _proxy(fake_sio)
    task = asyncio.create_task(proxy.call("never"))
    await asyncio.sleep(0.01)
    assert proxy.pending == 1

    proxy.detach()

    with pytest.raises(ClientDisconnectedError):
        await task
    assert proxy.disconnected
    with pytest.raises(ClientDisconnectedError):
        await proxy.call("again")


@pytest.mark.asyncio
async def test_message_channel_targets_peer(fake_sio):
    proxy = _proxy(fake_sio)
    fake_sio.add_peer("other")

    await proxy.message.send("hello", "world")

    assert fake_sio.received_by("s1", "/message/hello") == [("world",)]
    assert fake_sio.received_by("other", "/message/hello") == []


@pytest.mark.asyncio
async def test_close_disconnects_transport(fake_sio):
    proxy = _proxy(fake_sio)
    await proxy.close()
    assert fake_sio.disconnected == ["s1"]


def test_parse_reply_rejects_non_object():
    with pytest.raises(NanoRPCError) as exc_info:
        parse_reply("m", "nope", ValidatorGate())
    assert exc_info.value.code == ErrorCode.PROTOCOL_ERROR


def test_parse_reply_defaults_missing_error_fields():
    with pytest.raises(NanoRPCError) as exc_info:
        parse_reply("m", {"id": "x", "status": 1}, ValidatorGate())
    assert exc_info.value.code == ErrorCode.CALL_ERROR
    assert exc_info.value.message == "Call m unknown error"


def test_parse_reply_without_result_returns_none():
    assert parse_reply("m", {"id": "x", "status": 0}, ValidatorGate()) is None
