"""Connection configuration and constants (env-resolved constants only)."""

from __future__ import annotations

ENV_WS_URL = "TABRELAY_WS_URL"
ENV_WS_FALLBACK_URL = "TABRELAY_WS_FALLBACK_URL"
ENV_RECONNECT_DELAY_MS = "TABRELAY_RECONNECT_DELAY_MS"
ENV_HEARTBEAT_INTERVAL_MS = "TABRELAY_HEARTBEAT_INTERVAL_MS"
ENV_CONNECT_TIMEOUT_MS = "TABRELAY_CONNECT_TIMEOUT_MS"
ENV_MAX_RECONNECT_ATTEMPTS = "TABRELAY_MAX_RECONNECT_ATTEMPTS"
ENV_WS_MAX_MESSAGE_BYTES = "TABRELAY_WS_MAX_MESSAGE_BYTES"

DEFAULT_WS_URL = ""
DEFAULT_WS_FALLBACK_URL = "ws://localhost:8787/ws"
DEFAULT_RECONNECT_DELAY_MS = 2000
DEFAULT_HEARTBEAT_INTERVAL_MS = 30000
DEFAULT_CONNECT_TIMEOUT_MS = 5000
DEFAULT_MAX_RECONNECT_ATTEMPTS = 3
DEFAULT_WS_MAX_MESSAGE_BYTES = 16 * 1024 * 1024

WS_ENDPOINT_PATH = "/ws"

# Close codes
WS_CLOSE_CLEAN_CODE = 1000
WS_CLOSE_ABNORMAL_CODE = 1006

WS_CLOSE_CLEAN_REASON = "User requested disconnect"

__all__ = [
    "ENV_WS_URL",
    "ENV_WS_FALLBACK_URL",
    "ENV_RECONNECT_DELAY_MS",
    "ENV_HEARTBEAT_INTERVAL_MS",
    "ENV_CONNECT_TIMEOUT_MS",
    "ENV_MAX_RECONNECT_ATTEMPTS",
    "ENV_WS_MAX_MESSAGE_BYTES",
    "DEFAULT_WS_URL",
    "DEFAULT_WS_FALLBACK_URL",
    "DEFAULT_RECONNECT_DELAY_MS",
    "DEFAULT_HEARTBEAT_INTERVAL_MS",
    "DEFAULT_CONNECT_TIMEOUT_MS",
    "DEFAULT_MAX_RECONNECT_ATTEMPTS",
    "DEFAULT_WS_MAX_MESSAGE_BYTES",
    "WS_ENDPOINT_PATH",
    "WS_CLOSE_CLEAN_CODE",
    "WS_CLOSE_ABNORMAL_CODE",
    "WS_CLOSE_CLEAN_REASON",
]
