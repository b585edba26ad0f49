"""HTTP GraphQL transport for the rollup reader."""

from __future__ import annotations

import json
import urllib.error
import urllib.request
from socket import timeout as SocketTimeout
from typing import Any

from error_map import ERR_QUERY_TIMEOUT, ERR_QUERY_TRANSPORT

DEFAULT_TIMEOUT_SECONDS = 20.0


def _failure(code: str, message: str, response: dict[str, Any] | None = None) -> dict[str, Any]:
    return {
        "ok": False,
        "error_code": code,
        "error_message": message,
        "graphql_response": response,
    }


def invoke_graphql(
    *,
    url: str,
    query: str,
    variables: dict[str, Any],
    timeout_seconds: float = DEFAULT_TIMEOUT_SECONDS,
) -> dict[str, Any]:
    """POST one GraphQL operation. Never retries."""
    body = json.dumps({"query": query, "variables": variables}).encode("utf-8")
    req = urllib.request.Request(
        url,
        data=body,
        method="POST",
        headers={"Content-Type": "application/json", "Accept": "application/json"},
    )
    try:
        with urllib.request.urlopen(req, timeout=timeout_seconds) as resp:
            text = resp.read().decode("utf-8", errors="replace")
    except SocketTimeout as err:
        return _failure(ERR_QUERY_TIMEOUT, str(err) or "timed out")
    except urllib.error.HTTPError as err:
        text = err.read().decode("utf-8", errors="replace")
        return _failure(ERR_QUERY_TRANSPORT, f"http error {err.code}", {"status": err.code, "raw": text})
    except urllib.error.URLError as err:
        if isinstance(err.reason, SocketTimeout):
            return _failure(ERR_QUERY_TIMEOUT, str(err.reason) or "timed out")
        return _failure(ERR_QUERY_TRANSPORT, str(err))
    except Exception as err:  # noqa: BLE001
        return _failure(ERR_QUERY_TRANSPORT, str(err) or type(err).__name__)

    try:
        graphql_response = json.loads(text)
    except json.JSONDecodeError:
        return _failure(
            ERR_QUERY_TRANSPORT,
            "reader endpoint returned non-json response",
            {"raw": text},
        )
    return {
        "ok": True,
        "error_code": None,
        "error_message": None,
        "graphql_response": graphql_response,
    }
