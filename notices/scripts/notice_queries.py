"""Notice retrieval from the rollup reader GraphQL API."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Callable

from error_map import ERR_QUERY_BAD_RESPONSE, ERR_QUERY_REMOTE
from graphql_transport import DEFAULT_TIMEOUT_SECONDS, invoke_graphql

NOTICE_FIELDS = """
          id
          index
          payload
          input {
            index
            epoch {
              index
            }
          }
"""

NOTICES_QUERY = (
    """query notices {
  notices {
    nodes {"""
    + NOTICE_FIELDS
    + """    }
  }
}
"""
)

NOTICES_BY_EPOCH_QUERY = (
    """query noticesByEpoch($epochIndex: Int!) {
  epoch(index: $epochIndex) {
    inputs {
      nodes {
        notices {
          nodes {"""
    + NOTICE_FIELDS
    + """          }
        }
      }
    }
  }
}
"""
)

NOTICES_BY_EPOCH_AND_INPUT_QUERY = (
    """query noticesByEpochAndInput($epochIndex: Int!, $inputIndex: Int!) {
  epoch(index: $epochIndex) {
    input(index: $inputIndex) {
      notices {
        nodes {"""
    + NOTICE_FIELDS
    + """        }
      }
    }
  }
}
"""
)

GraphqlInvoker = Callable[..., dict[str, Any]]


@dataclass(frozen=True)
class Epoch:
    index: int


@dataclass(frozen=True)
class Input:
    index: int
    epoch: Epoch


@dataclass(frozen=True)
class Notice:
    id: str
    index: int
    payload: str
    input: Input


def _require_int(value: Any, *, field: str) -> int:
    if isinstance(value, bool) or not isinstance(value, int):
        raise ValueError(f"{field} must be an integer")
    return value


def _require_object(value: Any, *, field: str) -> dict[str, Any]:
    if not isinstance(value, dict):
        raise ValueError(f"{field} must be an object")
    return value


def _require_nodes(connection: Any, *, field: str) -> list[Any]:
    nodes = _require_object(connection, field=field).get("nodes")
    if not isinstance(nodes, list):
        raise ValueError(f"{field}.nodes must be an array")
    return nodes


def parse_notice(node: Any) -> Notice:
    """Build a Notice from one reader node, validating the documented shape."""
    obj = _require_object(node, field="notice")
    notice_id = obj.get("id")
    if not isinstance(notice_id, str) or not notice_id:
        raise ValueError("notice.id must be a non-empty string")
    payload = obj.get("payload")
    if not isinstance(payload, str):
        raise ValueError("notice.payload must be a string")
    input_obj = _require_object(obj.get("input"), field="notice.input")
    epoch_obj = _require_object(input_obj.get("epoch"), field="notice.input.epoch")
    return Notice(
        id=notice_id,
        index=_require_int(obj.get("index"), field="notice.index"),
        payload=payload,
        input=Input(
            index=_require_int(input_obj.get("index"), field="notice.input.index"),
            epoch=Epoch(index=_require_int(epoch_obj.get("index"), field="notice.input.epoch.index")),
        ),
    )


def build_notices_query(
    *,
    epoch_index: int | None = None,
    input_index: int | None = None,
) -> tuple[str, dict[str, Any]]:
    """Return (query document, variables) for the given filter."""
    if epoch_index is not None and input_index is not None:
        return NOTICES_BY_EPOCH_AND_INPUT_QUERY, {"epochIndex": epoch_index, "inputIndex": input_index}
    if epoch_index is not None:
        return NOTICES_BY_EPOCH_QUERY, {"epochIndex": epoch_index}
    # input-only filtering happens locally over every notice
    return NOTICES_QUERY, {}


def extract_notice_nodes(
    data: Any,
    *,
    epoch_index: int | None = None,
    input_index: int | None = None,
) -> list[Any]:
    data_obj = _require_object(data, field="data")

    if epoch_index is None:
        return _require_nodes(data_obj.get("notices"), field="data.notices")

    epoch = data_obj.get("epoch")
    if epoch is None:
        return []
    epoch = _require_object(epoch, field="data.epoch")

    if input_index is not None:
        input_obj = epoch.get("input")
        if input_obj is None:
            return []
        input_obj = _require_object(input_obj, field="data.epoch.input")
        return _require_nodes(input_obj.get("notices"), field="data.epoch.input.notices")

    nodes: list[Any] = []
    for input_node in _require_nodes(epoch.get("inputs"), field="data.epoch.inputs"):
        input_obj = _require_object(input_node, field="data.epoch.inputs.nodes[]")
        nodes.extend(_require_nodes(input_obj.get("notices"), field="data.epoch.inputs.nodes[].notices"))
    return nodes


def fetch_notices(
    *,
    url: str,
    epoch_index: int | None = None,
    input_index: int | None = None,
    timeout_seconds: float = DEFAULT_TIMEOUT_SECONDS,
    invoke_fn: GraphqlInvoker = invoke_graphql,
) -> dict[str, Any]:
    """Fetch notices matching the filter with a single reader request.

    Returns an envelope ``{"ok", "error_code", "error_message", "notices",
    "graphql_request", "graphql_response"}``. The order of ``notices`` is
    whatever the reader returned.
    """
    query, variables = build_notices_query(epoch_index=epoch_index, input_index=input_index)
    graphql_request = {"url": url, "variables": variables}
    transport = invoke_fn(
        url=url,
        query=query,
        variables=variables,
        timeout_seconds=timeout_seconds,
    )
    if not transport["ok"]:
        return {
            "ok": False,
            "error_code": transport["error_code"],
            "error_message": transport["error_message"],
            "notices": [],
            "graphql_request": graphql_request,
            "graphql_response": transport.get("graphql_response"),
        }

    graphql_response = transport["graphql_response"]
    if isinstance(graphql_response, dict) and graphql_response.get("errors"):
        return {
            "ok": False,
            "error_code": ERR_QUERY_REMOTE,
            "error_message": "reader returned graphql errors",
            "notices": [],
            "graphql_request": graphql_request,
            "graphql_response": graphql_response,
        }

    try:
        if not isinstance(graphql_response, dict) or "data" not in graphql_response:
            raise ValueError("response is missing data")
        nodes = extract_notice_nodes(
            graphql_response["data"],
            epoch_index=epoch_index,
            input_index=input_index,
        )
        notices = [parse_notice(node) for node in nodes]
    except ValueError as err:
        return {
            "ok": False,
            "error_code": ERR_QUERY_BAD_RESPONSE,
            "error_message": f"unexpected reader response: {err}",
            "notices": [],
            "graphql_request": graphql_request,
            "graphql_response": graphql_response,
        }

    if epoch_index is None and input_index is not None:
        notices = [n for n in notices if n.input.index == input_index]

    return {
        "ok": True,
        "error_code": None,
        "error_message": None,
        "notices": notices,
        "graphql_request": graphql_request,
        "graphql_response": None,
    }
