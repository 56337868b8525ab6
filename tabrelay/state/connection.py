"""Connection lifecycle state (dataclasses only)."""

from __future__ import annotations

import enum
from dataclasses import dataclass


class ConnectionState(str, enum.Enum):
    DISCONNECTED = "disconnected"
    CONNECTING = "connecting"
    CONNECTED = "connected"
    CLOSING = "closing"


class ConnectionEvent(str, enum.Enum):
    OPENED = "opened"
    CLOSED = "closed"
    FAILED = "failed"
    MESSAGE_RECEIVED = "messageReceived"


@dataclass(frozen=True, slots=True)
class ConnectOutcome:
    connected: bool
    reason: str | None = None

    @classmethod
    def ok(cls) -> ConnectOutcome:
        return cls(connected=True)

    @classmethod
    def failed(cls, reason: str) -> ConnectOutcome:
        return cls(connected=False, reason=reason)


@dataclass(frozen=True, slots=True)
class CloseInfo:
    code: int
    reason: str
    clean: bool


@dataclass(frozen=True, slots=True)
class ConnectionStatus:
    state: ConnectionState
    connected: bool
    client_id: str
    endpoint_url: str
    reconnect_attempts: int


__all__ = [
    "CloseInfo",
    "ConnectOutcome",
    "ConnectionEvent",
    "ConnectionState",
    "ConnectionStatus",
]
