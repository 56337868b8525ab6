"""Wire frame keys and message kinds."""

from __future__ import annotations

# Frame keys
FRAME_KEY_KIND = "kind"
FRAME_KEY_ID = "id"
FRAME_KEY_TIMESTAMP = "timestamp"
FRAME_KEY_CORRELATION_ID = "correlationId"
FRAME_KEY_PAYLOAD = "payload"
FRAME_KEY_SUCCESS = "success"
FRAME_KEY_DATA = "data"
FRAME_KEY_ERROR = "error"
FRAME_KEY_CAPTURED_AT = "capturedAt"
FRAME_KEY_MESSAGE = "message"

# Older senders put the correlation id and payload under these keys.
CORRELATION_ID_FALLBACK_KEYS = ("requestId",)
PAYLOAD_FALLBACK_KEYS = ("data", "content")

# Outbound kinds
KIND_REGISTER = "register"
KIND_HEARTBEAT = "heartbeat"
KIND_EXTRACTION_RESULT = "extractionResult"

# Inbound kinds
KIND_EXTRACTION_REQUEST = "extractionRequest"
KIND_REGISTRATION_ACK = "registrationAck"
KIND_HEARTBEAT_ACK = "heartbeatAck"
KIND_SERVER_ERROR = "serverError"
KIND_RESULT_ACK = "resultAck"

INBOUND_KINDS = frozenset({
    KIND_EXTRACTION_REQUEST,
    KIND_REGISTRATION_ACK,
    KIND_HEARTBEAT_ACK,
    KIND_SERVER_ERROR,
    KIND_RESULT_ACK,
})

__all__ = [
    "FRAME_KEY_KIND",
    "FRAME_KEY_ID",
    "FRAME_KEY_TIMESTAMP",
    "FRAME_KEY_CORRELATION_ID",
    "FRAME_KEY_PAYLOAD",
    "FRAME_KEY_SUCCESS",
    "FRAME_KEY_DATA",
    "FRAME_KEY_ERROR",
    "FRAME_KEY_CAPTURED_AT",
    "FRAME_KEY_MESSAGE",
    "CORRELATION_ID_FALLBACK_KEYS",
    "PAYLOAD_FALLBACK_KEYS",
    "KIND_REGISTER",
    "KIND_HEARTBEAT",
    "KIND_EXTRACTION_RESULT",
    "KIND_EXTRACTION_REQUEST",
    "KIND_REGISTRATION_ACK",
    "KIND_HEARTBEAT_ACK",
    "KIND_SERVER_ERROR",
    "KIND_RESULT_ACK",
    "INBOUND_KINDS",
]
