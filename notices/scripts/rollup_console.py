#!/usr/bin/env python3
"""Command-line console for reading rollup outputs from the reader GraphQL API."""

from __future__ import annotations

import argparse
import json
import sys
import time
from datetime import UTC, datetime
from pathlib import Path
from typing import Any

# Local imports for script execution (python3 scripts/rollup_console.py ...)
SCRIPT_DIR = Path(__file__).resolve().parent
if str(SCRIPT_DIR) not in sys.path:
    sys.path.insert(0, str(SCRIPT_DIR))

from error_map import (  # noqa: E402
    ERR_CONFIG_INVALID,
    ERR_QUERY_REMOTE,
    ERR_QUERY_TIMEOUT,
    ERR_QUERY_TRANSPORT,
)
from notice_presenter import render_notices  # noqa: E402
from notice_queries import fetch_notices  # noqa: E402
from reader_config import DEFAULT_READER_URL, READER_URL_ENV, resolve_reader_config  # noqa: E402


def _json_dump(payload: Any) -> str:
    return json.dumps(payload, separators=(",", ":"), sort_keys=False)


def _timestamp() -> str:
    return datetime.now(UTC).isoformat()


def _build_error_payload(
    *,
    command: str,
    status: str,
    code: str,
    message: str,
    request: dict[str, Any] | None = None,
    response: Any = None,
    duration_ms: int | None = None,
    hint: str | None = None,
) -> dict[str, Any]:
    payload: dict[str, Any] = {
        "timestamp_utc": _timestamp(),
        "command": command,
        "status": status,
        "ok": False,
        "error_code": code,
        "error_message": message,
    }
    if request is not None:
        payload["request"] = request
    if response is not None:
        payload["response"] = response
    if duration_ms is not None:
        payload["duration_ms"] = duration_ms
    if hint:
        payload["hint"] = hint
    return payload


def _print_error(payload: dict[str, Any]) -> None:
    # stdout carries only successful results
    print(_json_dump(payload), file=sys.stderr)


def _query_error_hint(error_code: str, response: Any, url_source: str) -> str | None:
    if error_code == ERR_QUERY_TIMEOUT:
        return "reader did not answer in time. retry or raise --timeout-seconds."
    # no response means the reader was never reached
    if error_code == ERR_QUERY_TRANSPORT and response is None:
        if url_source == "default":
            return (
                f"could not reach the reader at {DEFAULT_READER_URL}. "
                f"pass --url or set {READER_URL_ENV}."
            )
        return "could not reach the reader. check the url and that the reader is running."
    if error_code == ERR_QUERY_REMOTE:
        return "reader rejected the query. check that --epoch/--input exist and the reader schema version."
    return None


def cmd_notices_list(args: argparse.Namespace) -> int:
    command = "notices list"
    ok, config, config_err = resolve_reader_config(
        url=args.url,
        timeout_seconds=args.timeout_seconds,
        config_path=args.config,
    )
    if not ok:
        _print_error(
            _build_error_payload(
                command=command,
                status="error",
                code=ERR_CONFIG_INVALID,
                message=config_err,
            )
        )
        return 2

    start = time.perf_counter()
    result = fetch_notices(
        url=config["url"],
        epoch_index=args.epoch,
        input_index=args.input,
        timeout_seconds=config["timeout_seconds"],
    )
    duration_ms = int((time.perf_counter() - start) * 1000)

    if not result["ok"]:
        error_code = str(result["error_code"])
        _print_error(
            _build_error_payload(
                command=command,
                status="timeout" if error_code == ERR_QUERY_TIMEOUT else "error",
                code=error_code,
                message=str(result["error_message"]),
                request={**result["graphql_request"], "url_source": config["url_source"]},
                response=result.get("graphql_response"),
                duration_ms=duration_ms,
                hint=_query_error_hint(error_code, result.get("graphql_response"), config["url_source"]),
            )
        )
        return 1

    print(render_notices(result["notices"]))
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description=__doc__)
    sub = parser.add_subparsers(dest="command", required=True)

    notices_parser = sub.add_parser("notices", help="Notice commands")
    notices_sub = notices_parser.add_subparsers(dest="notices_command", required=True)

    list_parser = notices_sub.add_parser("list", help="List notices of an epoch and input")
    list_parser.add_argument(
        "--url",
        help=f"reader GraphQL URL (default: ${READER_URL_ENV} or {DEFAULT_READER_URL})",
    )
    list_parser.add_argument("--epoch", type=int, help="epoch index")
    list_parser.add_argument("--input", type=int, help="input index")
    list_parser.add_argument("--timeout-seconds", type=float, help="reader request timeout")
    list_parser.add_argument("--config", help="YAML config file with url/timeout_seconds")
    list_parser.set_defaults(func=cmd_notices_list)

    return parser


def main() -> int:
    parser = build_parser()
    args = parser.parse_args()
    return int(args.func(args))


if __name__ == "__main__":
    raise SystemExit(main())
