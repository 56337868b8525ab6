"""Strict parsing of inbound server frames."""

from __future__ import annotations

from typing import Any

import orjson

from tabrelay.errors import FrameParseError
from tabrelay.config.protocol import FRAME_KEY_KIND


def parse_server_frame(raw: str | bytes) -> dict[str, Any]:
    try:
        msg = orjson.loads(raw)
    except (orjson.JSONDecodeError, TypeError) as exc:
        raise FrameParseError(f"invalid JSON: {exc}", raw=raw) from exc

    if not isinstance(msg, dict):
        raise FrameParseError("frame must be a JSON object", raw=raw)

    kind = msg.get(FRAME_KEY_KIND)
    if not isinstance(kind, str) or not kind.strip():
        raise FrameParseError(f"frame missing non-empty '{FRAME_KEY_KIND}'", raw=raw)

    msg[FRAME_KEY_KIND] = kind.strip()
    return msg


__all__ = ["parse_server_frame"]
