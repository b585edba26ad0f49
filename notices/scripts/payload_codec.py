"""Notice payload decoding helpers."""

from __future__ import annotations

import re
from typing import Any

HEX_BODY_RE = re.compile(r"^(?:[0-9a-fA-F]{2})*$")


def strip_hex_prefix(value: str) -> str:
    if value[:2] in ("0x", "0X"):
        return value[2:]
    return value


def is_hex_bytes(value: Any) -> bool:
    if not isinstance(value, str):
        return False
    return bool(HEX_BODY_RE.fullmatch(strip_hex_prefix(value)))


def hex_to_bytes(value: str) -> bytes:
    return bytes.fromhex(strip_hex_prefix(value))


def decode_payload(value: Any) -> str:
    """Render a hex payload as text.

    Bytes that are not valid UTF-8 come back as U+FFFD replacement
    characters. A value that is not well-formed hex is returned as text,
    unchanged.
    """
    if not is_hex_bytes(value):
        return "" if value is None else str(value)
    return hex_to_bytes(value).decode("utf-8", errors="replace")
