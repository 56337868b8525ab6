"""Classify inbound frames and fan them out to typed subscribers."""

from __future__ import annotations

import time
import uuid
import logging
from typing import Any
from collections.abc import Callable

from tabrelay.events import Handler, Subscribers
from tabrelay.errors import FrameParseError
from tabrelay.config.protocol import (
    INBOUND_KINDS,
    FRAME_KEY_KIND,
    KIND_RESULT_ACK,
    FRAME_KEY_MESSAGE,
    FRAME_KEY_PAYLOAD,
    KIND_SERVER_ERROR,
    KIND_HEARTBEAT_ACK,
    KIND_REGISTRATION_ACK,
    PAYLOAD_FALLBACK_KEYS,
    FRAME_KEY_CORRELATION_ID,
    KIND_EXTRACTION_REQUEST,
    CORRELATION_ID_FALLBACK_KEYS,
)

from .parser import parse_server_frame
from .messages import (
    ResultAck,
    ServerError,
    HeartbeatAck,
    InboundEvent,
    RegistrationAck,
    ExtractionRequest,
)

logger = logging.getLogger(__name__)

BuilderFn = Callable[[dict[str, Any], float], InboundEvent]


def _has_value(value: Any) -> bool:
    if value is None or isinstance(value, bool):
        return False
    if isinstance(value, str):
        return bool(value.strip())
    return isinstance(value, (int, float))


def _correlation_id(msg: dict[str, Any]) -> Any:
    for key in (FRAME_KEY_CORRELATION_ID, *CORRELATION_ID_FALLBACK_KEYS):
        value = msg.get(key)
        if _has_value(value):
            return value
    return None


def _payload(msg: dict[str, Any]) -> Any:
    if FRAME_KEY_PAYLOAD in msg:
        return msg[FRAME_KEY_PAYLOAD]
    for key in PAYLOAD_FALLBACK_KEYS:
        if key in msg:
            return msg[key]
    return None


def _build_extraction_request(msg: dict[str, Any], received_at: float) -> ExtractionRequest:
    correlation_id = _correlation_id(msg)
    if correlation_id is None:
        synthesized = uuid.uuid4().hex
        logger.warning("extractionRequest without correlationId; using synthesized id %s", synthesized)
        return ExtractionRequest(
            correlation_id=synthesized,
            payload=_payload(msg),
            received_at=received_at,
            synthesized_id=True,
        )
    return ExtractionRequest(correlation_id=correlation_id, payload=_payload(msg), received_at=received_at)


def _build_registration_ack(msg: dict[str, Any], _received_at: float) -> RegistrationAck:
    return RegistrationAck(frame=msg)


def _build_heartbeat_ack(msg: dict[str, Any], _received_at: float) -> HeartbeatAck:
    return HeartbeatAck(frame=msg)


def _build_server_error(msg: dict[str, Any], _received_at: float) -> ServerError:
    message = msg.get(FRAME_KEY_MESSAGE)
    if not isinstance(message, str) or not message.strip():
        message = "unspecified server error"
    return ServerError(message=message, frame=msg)


def _build_result_ack(msg: dict[str, Any], _received_at: float) -> ResultAck:
    return ResultAck(correlation_id=_correlation_id(msg), frame=msg)


BUILDERS: dict[str, BuilderFn] = {
    KIND_EXTRACTION_REQUEST: _build_extraction_request,
    KIND_REGISTRATION_ACK: _build_registration_ack,
    KIND_HEARTBEAT_ACK: _build_heartbeat_ack,
    KIND_SERVER_ERROR: _build_server_error,
    KIND_RESULT_ACK: _build_result_ack,
}


class MessageDispatcher:
    """Turns raw frames into typed events, in arrival order.

    Malformed frames and unrecognized kinds are logged and dropped; neither ever
    reaches the connection that delivered them.
    """

    def __init__(self, *, clock: Callable[[], float] | None = None) -> None:
        self._clock = clock or time.time
        self._subscribers = Subscribers("dispatcher", kinds=INBOUND_KINDS)
        self.parse_errors = 0
        self.unrecognized = 0

    def subscribe(self, kind: str, handler: Handler) -> Callable[[], None]:
        return self._subscribers.on(kind, handler)

    def unsubscribe(self, kind: str, handler: Handler) -> None:
        self._subscribers.off(kind, handler)

    def classify(self, raw: str | bytes) -> InboundEvent | None:
        """Return the typed event for ``raw``, or None for an unrecognized kind.

        Raises FrameParseError when ``raw`` is not a well-formed frame.
        """
        msg = parse_server_frame(raw)
        kind = msg[FRAME_KEY_KIND]
        builder = BUILDERS.get(kind)
        if builder is None:
            self.unrecognized += 1
            logger.warning("Ignoring frame with unrecognized kind %r", kind)
            return None
        return builder(msg, self._clock())

    async def dispatch(self, raw: str | bytes) -> InboundEvent | None:
        try:
            event = self.classify(raw)
        except FrameParseError as exc:
            self.parse_errors += 1
            logger.error("Error parsing frame: %s", exc)
            return None
        if event is None:
            return None
        logger.debug("Received frame kind=%s", event.kind)
        await self._subscribers.emit(event.kind, event)
        return event


def log_system_frames(dispatcher: MessageDispatcher) -> None:
    """Subscribe log-only handlers for the server's housekeeping frames."""

    def _on_registered(_event: RegistrationAck) -> None:
        logger.info("Successfully registered with server")

    def _on_heartbeat_ack(_event: HeartbeatAck) -> None:
        logger.debug("Heartbeat acknowledged")

    def _on_server_error(event: ServerError) -> None:
        logger.error("Server error: %s", event.message)

    def _on_result_ack(event: ResultAck) -> None:
        logger.info("Extraction result acknowledged correlation_id=%s", event.correlation_id)

    dispatcher.subscribe(KIND_REGISTRATION_ACK, _on_registered)
    dispatcher.subscribe(KIND_HEARTBEAT_ACK, _on_heartbeat_ack)
    dispatcher.subscribe(KIND_SERVER_ERROR, _on_server_error)
    dispatcher.subscribe(KIND_RESULT_ACK, _on_result_ack)


__all__ = ["BUILDERS", "MessageDispatcher", "log_system_frames"]
