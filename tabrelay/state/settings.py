"""Runtime settings (dataclasses only)."""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True, slots=True)
class ConnectionSettings:
    endpoint_url: str
    reconnect_delay_s: float
    heartbeat_interval_s: float
    connect_timeout_s: float
    max_reconnect_attempts: int
    max_message_bytes: int
    fallback_url: str = ""


@dataclass(frozen=True, slots=True)
class TargetSettings:
    origin_patterns: tuple[str, ...]


@dataclass(frozen=True, slots=True)
class ClientSettings:
    client_id: str


@dataclass(frozen=True, slots=True)
class AppSettings:
    client: ClientSettings
    connection: ConnectionSettings
    targets: TargetSettings


__all__ = [
    "AppSettings",
    "ClientSettings",
    "ConnectionSettings",
    "TargetSettings",
]
