"""Typed inbound events produced by the dispatcher."""

from __future__ import annotations

from typing import Any, ClassVar, Union
from dataclasses import field, dataclass

from tabrelay.config.protocol import (
    KIND_RESULT_ACK,
    KIND_SERVER_ERROR,
    KIND_HEARTBEAT_ACK,
    KIND_REGISTRATION_ACK,
    KIND_EXTRACTION_REQUEST,
)


@dataclass(frozen=True, slots=True)
class ExtractionRequest:
    kind: ClassVar[str] = KIND_EXTRACTION_REQUEST

    correlation_id: Any
    payload: Any
    received_at: float
    # True when the sender supplied no id and one was generated locally.
    synthesized_id: bool = False


@dataclass(frozen=True, slots=True)
class RegistrationAck:
    kind: ClassVar[str] = KIND_REGISTRATION_ACK

    frame: dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True, slots=True)
class HeartbeatAck:
    kind: ClassVar[str] = KIND_HEARTBEAT_ACK

    frame: dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True, slots=True)
class ServerError:
    kind: ClassVar[str] = KIND_SERVER_ERROR

    message: str
    frame: dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True, slots=True)
class ResultAck:
    kind: ClassVar[str] = KIND_RESULT_ACK

    correlation_id: Any = None
    frame: dict[str, Any] = field(default_factory=dict)


InboundEvent = Union[ExtractionRequest, RegistrationAck, HeartbeatAck, ServerError, ResultAck]

__all__ = [
    "ExtractionRequest",
    "HeartbeatAck",
    "InboundEvent",
    "RegistrationAck",
    "ResultAck",
    "ServerError",
]
