"""Outbound frame construction and serialization."""

from __future__ import annotations

from typing import Any
from collections.abc import Mapping
from datetime import datetime, timezone

import orjson

from tabrelay.config.protocol import (
    FRAME_KEY_ID,
    KIND_REGISTER,
    FRAME_KEY_DATA,
    FRAME_KEY_KIND,
    KIND_HEARTBEAT,
    FRAME_KEY_ERROR,
    FRAME_KEY_SUCCESS,
    FRAME_KEY_TIMESTAMP,
    FRAME_KEY_CAPTURED_AT,
    KIND_EXTRACTION_RESULT,
    FRAME_KEY_CORRELATION_ID,
)

DEFAULT_FAILURE_MESSAGE = "Extraction failed"


def iso_timestamp(now: datetime | None = None) -> str:
    """UTC timestamp with millisecond precision and a ``Z`` suffix."""
    moment = (now or datetime.now(timezone.utc)).astimezone(timezone.utc)
    return moment.strftime("%Y-%m-%dT%H:%M:%S.") + f"{moment.microsecond // 1000:03d}Z"


def frame_kind(frame: Any) -> str:
    if isinstance(frame, Mapping):
        kind = frame.get(FRAME_KEY_KIND)
        if isinstance(kind, str) and kind:
            return kind
    return "unknown"


def encode_frame(frame: Mapping[str, Any]) -> str:
    """Serialize a frame to JSON text.

    Raises TypeError (orjson.JSONEncodeError) for values that cannot be represented.
    """
    if not isinstance(frame, Mapping):
        raise TypeError(f"frame must be a mapping, got {type(frame).__name__}")
    return orjson.dumps(dict(frame), default=str, option=orjson.OPT_NON_STR_KEYS).decode("utf-8")


def build_register_frame(client_id: str, *, timestamp: str | None = None) -> dict[str, Any]:
    return {
        FRAME_KEY_KIND: KIND_REGISTER,
        FRAME_KEY_ID: client_id,
        FRAME_KEY_TIMESTAMP: timestamp or iso_timestamp(),
    }


def build_heartbeat_frame(client_id: str, *, timestamp: str | None = None) -> dict[str, Any]:
    return {
        FRAME_KEY_KIND: KIND_HEARTBEAT,
        FRAME_KEY_ID: client_id,
        FRAME_KEY_TIMESTAMP: timestamp or iso_timestamp(),
    }


def build_success_frame(
    correlation_id: Any,
    data: Any,
    *,
    client_id: str | None = None,
    captured_at: str | None = None,
) -> dict[str, Any]:
    frame: dict[str, Any] = {
        FRAME_KEY_KIND: KIND_EXTRACTION_RESULT,
        FRAME_KEY_CORRELATION_ID: correlation_id,
        FRAME_KEY_SUCCESS: True,
        FRAME_KEY_DATA: data,
        FRAME_KEY_CAPTURED_AT: captured_at or iso_timestamp(),
    }
    if client_id:
        frame[FRAME_KEY_ID] = client_id
    return frame


def build_failure_frame(
    correlation_id: Any,
    error: str | None,
    *,
    client_id: str | None = None,
    captured_at: str | None = None,
) -> dict[str, Any]:
    message = (error or "").strip() or DEFAULT_FAILURE_MESSAGE
    frame: dict[str, Any] = {
        FRAME_KEY_KIND: KIND_EXTRACTION_RESULT,
        FRAME_KEY_CORRELATION_ID: correlation_id,
        FRAME_KEY_SUCCESS: False,
        FRAME_KEY_ERROR: message,
        FRAME_KEY_CAPTURED_AT: captured_at or iso_timestamp(),
    }
    if client_id:
        frame[FRAME_KEY_ID] = client_id
    return frame


__all__ = [
    "DEFAULT_FAILURE_MESSAGE",
    "build_failure_frame",
    "build_heartbeat_frame",
    "build_register_frame",
    "build_success_frame",
    "encode_frame",
    "frame_kind",
    "iso_timestamp",
]
