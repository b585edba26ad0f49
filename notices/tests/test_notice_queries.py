from __future__ import annotations

from typing import Any

from ._console_helpers import _all_notices_response, _notice_node, _ReaderHandler, _serve, _serve_raw, _stop

from error_map import (  # noqa: E402
    ERR_QUERY_BAD_RESPONSE,
    ERR_QUERY_REMOTE,
    ERR_QUERY_TIMEOUT,
    ERR_QUERY_TRANSPORT,
)
from graphql_transport import invoke_graphql  # noqa: E402
from notice_queries import (  # noqa: E402
    NOTICES_BY_EPOCH_AND_INPUT_QUERY,
    NOTICES_BY_EPOCH_QUERY,
    NOTICES_QUERY,
    Epoch,
    Input,
    Notice,
    build_notices_query,
    fetch_notices,
    parse_notice,
)


class _FakeInvoker:
    def __init__(self, result: dict[str, Any]) -> None:
        self.result = result
        self.calls: list[dict[str, Any]] = []

    def __call__(self, **kwargs: Any) -> dict[str, Any]:
        self.calls.append(kwargs)
        return self.result


def _ok(graphql_response: Any) -> _FakeInvoker:
    return _FakeInvoker(
        {"ok": True, "error_code": None, "error_message": None, "graphql_response": graphql_response}
    )


def test_query_selection_by_filter():
    assert build_notices_query() == (NOTICES_QUERY, {})
    assert build_notices_query(epoch_index=3) == (NOTICES_BY_EPOCH_QUERY, {"epochIndex": 3})
    assert build_notices_query(epoch_index=3, input_index=1) == (
        NOTICES_BY_EPOCH_AND_INPUT_QUERY,
        {"epochIndex": 3, "inputIndex": 1},
    )
    assert build_notices_query(input_index=1) == (NOTICES_QUERY, {})


def test_epoch_zero_is_a_filter():
    query, variables = build_notices_query(epoch_index=0, input_index=0)
    assert query == NOTICES_BY_EPOCH_AND_INPUT_QUERY
    assert variables == {"epochIndex": 0, "inputIndex": 0}


def test_parse_notice_builds_nested_values():
    notice = parse_notice(_notice_node("n1", epoch=4, input_index=2, notice=1, payload="0x61"))
    assert notice == Notice(id="n1", index=1, payload="0x61", input=Input(index=2, epoch=Epoch(index=4)))


def test_fetch_all_notices_keeps_reader_order():
    invoker = _ok(
        _all_notices_response(
            [
                _notice_node("b", epoch=1, input_index=0, notice=0, payload="0x"),
                _notice_node("a", epoch=0, input_index=0, notice=0, payload="0x"),
            ]
        )
    )
    result = fetch_notices(url="http://reader", invoke_fn=invoker)
    assert result["ok"] is True
    assert [n.id for n in result["notices"]] == ["b", "a"]
    assert len(invoker.calls) == 1
    assert invoker.calls[0]["url"] == "http://reader"
    assert invoker.calls[0]["variables"] == {}


def test_fetch_by_epoch_flattens_inputs():
    response = {
        "data": {
            "epoch": {
                "inputs": {
                    "nodes": [
                        {"notices": {"nodes": [_notice_node("x", epoch=2, input_index=0, notice=0, payload="0x")]}},
                        {"notices": {"nodes": []}},
                        {
                            "notices": {
                                "nodes": [
                                    _notice_node("y", epoch=2, input_index=2, notice=0, payload="0x"),
                                    _notice_node("z", epoch=2, input_index=2, notice=1, payload="0x"),
                                ]
                            }
                        },
                    ]
                }
            }
        }
    }
    invoker = _ok(response)
    result = fetch_notices(url="http://reader", epoch_index=2, invoke_fn=invoker)
    assert result["ok"] is True
    assert [n.id for n in result["notices"]] == ["x", "y", "z"]
    assert invoker.calls[0]["query"] == NOTICES_BY_EPOCH_QUERY


def test_fetch_by_epoch_and_input():
    response = {
        "data": {
            "epoch": {
                "input": {
                    "notices": {"nodes": [_notice_node("k", epoch=1, input_index=3, notice=0, payload="0x")]}
                }
            }
        }
    }
    result = fetch_notices(url="http://reader", epoch_index=1, input_index=3, invoke_fn=_ok(response))
    assert result["ok"] is True
    assert [n.id for n in result["notices"]] == ["k"]


def test_missing_epoch_or_input_is_empty():
    result = fetch_notices(url="http://reader", epoch_index=9, invoke_fn=_ok({"data": {"epoch": None}}))
    assert result["ok"] is True
    assert result["notices"] == []

    result = fetch_notices(
        url="http://reader",
        epoch_index=9,
        input_index=0,
        invoke_fn=_ok({"data": {"epoch": {"input": None}}}),
    )
    assert result["ok"] is True
    assert result["notices"] == []


def test_input_only_filter_applies_across_epochs():
    response = _all_notices_response(
        [
            _notice_node("e0i1", epoch=0, input_index=1, notice=0, payload="0x"),
            _notice_node("e0i0", epoch=0, input_index=0, notice=0, payload="0x"),
            _notice_node("e1i1", epoch=1, input_index=1, notice=0, payload="0x"),
        ]
    )
    result = fetch_notices(url="http://reader", input_index=1, invoke_fn=_ok(response))
    assert result["ok"] is True
    assert [n.id for n in result["notices"]] == ["e0i1", "e1i1"]


def test_graphql_errors_are_remote_failures():
    response = {"data": None, "errors": [{"message": "epoch not found"}]}
    result = fetch_notices(url="http://reader", epoch_index=1, invoke_fn=_ok(response))
    assert result["ok"] is False
    assert result["error_code"] == ERR_QUERY_REMOTE
    assert result["graphql_response"] == response
    assert result["notices"] == []


def test_malformed_shape_is_bad_response():
    bad_nodes = _all_notices_response([{"id": "n", "index": "0", "payload": "0x", "input": None}])
    for response in ({"nope": 1}, {"data": None}, {"data": {"notices": []}}, bad_nodes, ["x"]):
        result = fetch_notices(url="http://reader", invoke_fn=_ok(response))
        assert result["ok"] is False
        assert result["error_code"] == ERR_QUERY_BAD_RESPONSE


def test_transport_failure_propagates():
    invoker = _FakeInvoker(
        {
            "ok": False,
            "error_code": ERR_QUERY_TRANSPORT,
            "error_message": "connection refused",
            "graphql_response": None,
        }
    )
    result = fetch_notices(url="http://reader", invoke_fn=invoker)
    assert result["ok"] is False
    assert result["error_code"] == ERR_QUERY_TRANSPORT
    assert result["error_message"] == "connection refused"
    assert len(invoker.calls) == 1


def test_invoke_graphql_posts_query_and_variables():
    server, url = _serve([_all_notices_response([])])
    try:
        result = invoke_graphql(url=url, query=NOTICES_BY_EPOCH_QUERY, variables={"epochIndex": 5})
        assert result["ok"] is True
        assert result["graphql_response"] == {"data": {"notices": {"nodes": []}}}
        assert _ReaderHandler.calls == [{"query": NOTICES_BY_EPOCH_QUERY, "variables": {"epochIndex": 5}}]
    finally:
        _stop(server)


def test_invoke_graphql_http_error_is_not_retried():
    server, url = _serve([(503, {"message": "unavailable"}), _all_notices_response([])])
    try:
        result = invoke_graphql(url=url, query=NOTICES_QUERY, variables={})
        assert result["ok"] is False
        assert result["error_code"] == ERR_QUERY_TRANSPORT
        assert result["error_message"] == "http error 503"
        assert result["graphql_response"]["status"] == 503
        assert len(_ReaderHandler.calls) == 1
    finally:
        _stop(server)


def test_invoke_graphql_non_json_body():
    server, url = _serve(["<html>nope</html>"])
    try:
        result = invoke_graphql(url=url, query=NOTICES_QUERY, variables={})
        assert result["ok"] is False
        assert result["error_code"] == ERR_QUERY_TRANSPORT
        assert result["graphql_response"] == {"raw": "<html>nope</html>"}
    finally:
        _stop(server)


def test_invoke_graphql_unreachable():
    result = invoke_graphql(url="http://127.0.0.1:1/graphql", query=NOTICES_QUERY, variables={}, timeout_seconds=2)
    assert result["ok"] is False
    assert result["error_code"] in {ERR_QUERY_TRANSPORT, ERR_QUERY_TIMEOUT}


def test_invoke_graphql_garbage_status_line():
    server, url = _serve_raw(b"NOT-HTTP garbage\r\n\r\n")
    try:
        result = invoke_graphql(url=url, query=NOTICES_QUERY, variables={}, timeout_seconds=5)
        assert result["ok"] is False
        assert result["error_code"] == ERR_QUERY_TRANSPORT
        assert result["error_message"]
        assert result["graphql_response"] is None
    finally:
        _stop(server)
