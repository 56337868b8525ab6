"""Environment parsing for runtime settings."""

from __future__ import annotations

import os
import uuid
import socket
from urllib.parse import urlparse, urlunparse

from tabrelay.config.client import ENV_CLIENT_ID, CLIENT_ID_PREFIX
from tabrelay.config.targets import ENV_ORIGIN_PATTERNS, DEFAULT_ORIGIN_PATTERNS
from tabrelay.state.settings import (
    AppSettings,
    ClientSettings,
    TargetSettings,
    ConnectionSettings,
)
from tabrelay.config.websocket import (
    ENV_WS_URL,
    DEFAULT_WS_URL,
    WS_ENDPOINT_PATH,
    ENV_WS_FALLBACK_URL,
    ENV_CONNECT_TIMEOUT_MS,
    ENV_RECONNECT_DELAY_MS,
    DEFAULT_WS_FALLBACK_URL,
    ENV_WS_MAX_MESSAGE_BYTES,
    ENV_HEARTBEAT_INTERVAL_MS,
    DEFAULT_CONNECT_TIMEOUT_MS,
    DEFAULT_RECONNECT_DELAY_MS,
    ENV_MAX_RECONNECT_ATTEMPTS,
    DEFAULT_WS_MAX_MESSAGE_BYTES,
    DEFAULT_HEARTBEAT_INTERVAL_MS,
    DEFAULT_MAX_RECONNECT_ATTEMPTS,
)

MS_PER_S = 1000.0


def _str_env(name: str, default: str) -> str:
    raw = os.getenv(name)
    if raw is None:
        return default
    v = raw.strip()
    return v if v else default


def _int_env(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    try:
        return int(raw)
    except Exception:
        return default


def _positive_ms_env(name: str, default_ms: int) -> float:
    value = _int_env(name, default_ms)
    if value <= 0:
        value = default_ms
    return value / MS_PER_S


def _list_env(name: str, default: tuple[str, ...]) -> tuple[str, ...]:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    items = tuple(item.strip() for item in raw.split(",") if item.strip())
    return items or default


def normalize_ws_url(url: str) -> str:
    """Coerce an endpoint to a ws:// or wss:// URL.

    - ``http(s)://`` is mapped to ``ws(s)://``.
    - A bare ``host[:port]`` becomes ``ws://host[:port]/ws``.
    """
    url = (url or "").strip()
    if not url:
        return ""
    if url.startswith(("ws://", "wss://")):
        return url
    if url.startswith(("http://", "https://")):
        parsed = urlparse(url)
        scheme = "wss" if parsed.scheme == "https" else "ws"
        return urlunparse((scheme, parsed.netloc, parsed.path, parsed.params, parsed.query, parsed.fragment))
    if "://" in url:
        raise ValueError(f"unsupported endpoint scheme in {url!r}; expected ws://, wss://, http:// or https://")
    return f"ws://{url.rstrip('/')}{WS_ENDPOINT_PATH}"


def derive_client_id() -> str:
    """A client id that stays the same across restarts on one host."""
    host = socket.gethostname() or "localhost"
    return f"{CLIENT_ID_PREFIX}-{uuid.uuid5(uuid.NAMESPACE_DNS, host).hex[:12]}"


def _load_client_settings() -> ClientSettings:
    client_id = _str_env(ENV_CLIENT_ID, "") or derive_client_id()
    return ClientSettings(client_id=client_id)


def _load_connection_settings() -> ConnectionSettings:
    primary = normalize_ws_url(_str_env(ENV_WS_URL, DEFAULT_WS_URL))
    # An explicitly empty fallback disables it.
    fallback_raw = os.getenv(ENV_WS_FALLBACK_URL)
    fallback = normalize_ws_url(DEFAULT_WS_FALLBACK_URL if fallback_raw is None else fallback_raw)
    endpoint = primary or fallback
    if not endpoint:
        raise ValueError(f"no endpoint configured; set {ENV_WS_URL} or {ENV_WS_FALLBACK_URL}")

    max_message_bytes = _int_env(ENV_WS_MAX_MESSAGE_BYTES, DEFAULT_WS_MAX_MESSAGE_BYTES)
    if max_message_bytes <= 0:
        max_message_bytes = DEFAULT_WS_MAX_MESSAGE_BYTES

    return ConnectionSettings(
        endpoint_url=endpoint,
        fallback_url=fallback,
        reconnect_delay_s=_positive_ms_env(ENV_RECONNECT_DELAY_MS, DEFAULT_RECONNECT_DELAY_MS),
        heartbeat_interval_s=_positive_ms_env(ENV_HEARTBEAT_INTERVAL_MS, DEFAULT_HEARTBEAT_INTERVAL_MS),
        connect_timeout_s=_positive_ms_env(ENV_CONNECT_TIMEOUT_MS, DEFAULT_CONNECT_TIMEOUT_MS),
        max_reconnect_attempts=max(0, _int_env(ENV_MAX_RECONNECT_ATTEMPTS, DEFAULT_MAX_RECONNECT_ATTEMPTS)),
        max_message_bytes=max_message_bytes,
    )


def _load_target_settings() -> TargetSettings:
    return TargetSettings(origin_patterns=_list_env(ENV_ORIGIN_PATTERNS, DEFAULT_ORIGIN_PATTERNS))


def load_settings() -> AppSettings:
    return AppSettings(
        client=_load_client_settings(),
        connection=_load_connection_settings(),
        targets=_load_target_settings(),
    )


__all__ = ["derive_client_id", "load_settings", "normalize_ws_url"]
