"""Configuration module exports (env-resolved constants only)."""

from .websocket import (
    WS_CLOSE_CLEAN_CODE,
    DEFAULT_CONNECT_TIMEOUT_MS,
    DEFAULT_RECONNECT_DELAY_MS,
    DEFAULT_HEARTBEAT_INTERVAL_MS,
    DEFAULT_MAX_RECONNECT_ATTEMPTS,
)

__all__ = [
    "WS_CLOSE_CLEAN_CODE",
    "DEFAULT_CONNECT_TIMEOUT_MS",
    "DEFAULT_RECONNECT_DELAY_MS",
    "DEFAULT_HEARTBEAT_INTERVAL_MS",
    "DEFAULT_MAX_RECONNECT_ATTEMPTS",
]
