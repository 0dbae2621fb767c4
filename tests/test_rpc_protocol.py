from __future__ import annotations

from nanorpc.rpc.protocol import (
    ErrorCode,
    RpcStatus,
    create_error_reply,
    create_reply,
    create_rpc,
    is_valid_request,
    message_event,
    normalize_params,
    salvage_id,
)


def test_create_rpc_generates_distinct_ids():
    first = create_rpc("add", (1, 2))
    second = create_rpc("add", [1, 2])

    assert first["method"] == "add"
    assert first["params"] == [1, 2]
    assert isinstance(first["id"], str) and first["id"]
    assert first["id"] != second["id"]


def test_reply_shapes():
    assert create_reply("a", 3) == {"id": "a", "status": RpcStatus.OK, "result": 3}
    assert create_reply("a") == {"id": "a", "status": 0}
    assert create_reply("a", 0)["result"] == 0
    assert create_error_reply("b", ErrorCode.MISSING_METHOD, "Missing Method") == {
        "id": "b",
        "status": 1,
        "error": {"code": -3, "message": "Missing Method"},
    }


def test_salvage_id_and_request_check():
    assert salvage_id({"id": "x"}) == "x"
    assert salvage_id({"method": "m"}) == ""
    assert salvage_id("garbage") == ""
    assert is_valid_request({"method": "m"})
    assert not is_valid_request({"method": 5})
    assert not is_valid_request(["method"])


def test_normalize_params():
    assert normalize_params([1, 2]) == [1, 2]
    assert normalize_params((1,)) == [1]
    assert normalize_params(None) == []
    assert normalize_params(5) == [5]
    assert normalize_params({"a": 1}) == [{"a": 1}]
    assert normalize_params(0) == [0]


def test_message_event_prefix():
    assert message_event("ping") == "/message/ping"
