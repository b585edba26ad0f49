"""Stable error codes emitted by the rollup console."""

from __future__ import annotations

ERR_CONFIG_INVALID = "CONFIG_INVALID"

ERR_QUERY_TRANSPORT = "QUERY_TRANSPORT_FAILED"
ERR_QUERY_TIMEOUT = "QUERY_TIMEOUT"
ERR_QUERY_REMOTE = "QUERY_REMOTE_ERROR"
ERR_QUERY_BAD_RESPONSE = "QUERY_BAD_RESPONSE"
