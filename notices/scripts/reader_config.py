"""Reader endpoint configuration for the rollup console."""

from __future__ import annotations

import math
import os
from pathlib import Path
from typing import Any, Mapping

import yaml

from graphql_transport import DEFAULT_TIMEOUT_SECONDS

DEFAULT_READER_URL = "http://localhost:4000/graphql"
READER_URL_ENV = "ROLLUP_READER_URL"
CONFIG_PATH_ENV = "ROLLUP_CONSOLE_CONFIG"

ALLOWED_CONFIG_KEYS = {"url", "timeout_seconds"}


def _is_positive_finite(value: float) -> bool:
    return math.isfinite(value) and value > 0


def load_config_file(path: Path) -> dict[str, Any]:
    """Parse a YAML config mapping. Raises ValueError on bad content."""
    if not path.exists():
        raise ValueError(f"config file not found: {path}")
    parsed = yaml.safe_load(path.read_text(encoding="utf-8"))
    if parsed is None:
        return {}
    if not isinstance(parsed, dict):
        raise ValueError("config file must be a YAML mapping")

    unknown = sorted(str(k) for k in parsed.keys() if k not in ALLOWED_CONFIG_KEYS)
    if unknown:
        raise ValueError(f"unknown config keys: {', '.join(unknown)}")

    url = parsed.get("url")
    if url is not None and (not isinstance(url, str) or not url.strip()):
        raise ValueError("config url must be a non-empty string")

    timeout = parsed.get("timeout_seconds")
    if timeout is not None and (
        isinstance(timeout, bool) or not isinstance(timeout, (int, float)) or not _is_positive_finite(timeout)
    ):
        raise ValueError("config timeout_seconds must be a positive finite number")
    return parsed


def resolve_reader_config(
    *,
    url: str | None = None,
    timeout_seconds: float | None = None,
    config_path: str | None = None,
    env: Mapping[str, str] | None = None,
) -> tuple[bool, dict[str, Any], str]:
    """Return (ok, config, error_message).

    URL precedence is flag, environment, config file, then the default.
    """
    env = os.environ if env is None else env

    raw_path = config_path or str(env.get(CONFIG_PATH_ENV, "")).strip()
    file_config: dict[str, Any] = {}
    if raw_path:
        try:
            file_config = load_config_file(Path(raw_path).expanduser())
        except (OSError, ValueError, yaml.YAMLError) as err:
            return False, {}, str(err)

    if timeout_seconds is not None and not _is_positive_finite(timeout_seconds):
        return False, {}, "--timeout-seconds must be a positive finite number"

    env_url = str(env.get(READER_URL_ENV, "")).strip()
    if url:
        resolved_url, source = url, "flag"
    elif env_url:
        resolved_url, source = env_url, "env"
    elif file_config.get("url"):
        resolved_url, source = str(file_config["url"]).strip(), "config_file"
    else:
        resolved_url, source = DEFAULT_READER_URL, "default"

    if timeout_seconds is None:
        timeout_seconds = float(file_config.get("timeout_seconds", DEFAULT_TIMEOUT_SECONDS))

    return (
        True,
        {
            "url": resolved_url,
            "url_source": source,
            "timeout_seconds": float(timeout_seconds),
            "config_path": raw_path or None,
        },
        "",
    )
