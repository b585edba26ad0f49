"""Ordering and display projection for fetched notices."""

from __future__ import annotations

import json
from typing import Any, Iterable

from notice_queries import Notice
from payload_codec import decode_payload


def notice_sort_key(notice: Notice) -> tuple[int, int]:
    # epoch, then input; notices of one input keep reader order
    return notice.input.epoch.index, notice.input.index


def sort_notices(notices: Iterable[Notice]) -> list[Notice]:
    return sorted(notices, key=notice_sort_key)


def project_notice(notice: Notice) -> dict[str, Any]:
    return {
        "id": notice.id,
        "epoch": notice.input.epoch.index,
        "input": notice.input.index,
        "notice": notice.index,
        "payload": decode_payload(notice.payload),
    }


def present_notices(notices: Iterable[Notice]) -> list[dict[str, Any]]:
    """Sort notices by (epoch, input) and project them for display."""
    return [project_notice(n) for n in sort_notices(notices)]


def render_notices(notices: Iterable[Notice]) -> str:
    return json.dumps(present_notices(notices), separators=(",", ":"))
