"""Bookkeeping for requests that have not produced a response yet."""

from __future__ import annotations

import logging
import itertools
from typing import Any
from dataclasses import dataclass

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class InFlightRequest:
    ticket: int
    correlation_id: Any
    payload: Any
    received_at: float
    target_id: Any = None
    responded: bool = False


class InFlightRegistry:
    """Tracks in-flight requests by ticket.

    A correlation id that is already in flight is accepted as a separate request;
    both round trips complete independently.
    """

    def __init__(self) -> None:
        self._entries: dict[int, InFlightRequest] = {}
        self._tickets = itertools.count(1)

    def register(self, correlation_id: Any, payload: Any, received_at: float) -> InFlightRequest:
        if correlation_id in self:
            logger.warning("correlation_id=%s is already in flight; handling as an independent request", correlation_id)
        entry = InFlightRequest(
            ticket=next(self._tickets),
            correlation_id=correlation_id,
            payload=payload,
            received_at=received_at,
        )
        self._entries[entry.ticket] = entry
        return entry

    def remove(self, entry: InFlightRequest) -> None:
        self._entries.pop(entry.ticket, None)

    def correlation_ids(self) -> list[Any]:
        return [entry.correlation_id for entry in self._entries.values()]

    def __contains__(self, correlation_id: object) -> bool:
        return any(entry.correlation_id == correlation_id for entry in self._entries.values())

    def __len__(self) -> int:
        return len(self._entries)


__all__ = ["InFlightRegistry", "InFlightRequest"]
