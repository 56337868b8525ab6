"""Turn each extraction request into exactly one correlated result frame."""

from __future__ import annotations

import time
import asyncio
import logging
from typing import Any, Protocol
from collections.abc import Mapping, Callable
from dataclasses import dataclass

from tabrelay.state.settings import TargetSettings
from tabrelay.protocol.messages import ExtractionRequest
from tabrelay.config.protocol import KIND_EXTRACTION_REQUEST
from tabrelay.errors import SandboxError, TargetResolutionError
from tabrelay.protocol.frames import build_failure_frame, build_success_frame

from .sandbox import Sandbox, run_extraction
from .targets import TargetLocator, TargetCriteria, resolve_target
from .inflight import InFlightRequest, InFlightRegistry

logger = logging.getLogger(__name__)


class FrameSender(Protocol):
    async def send(self, message: Mapping[str, Any]) -> bool: ...


class Subscribable(Protocol):
    def subscribe(self, kind: str, handler: Callable[[Any], Any]) -> Callable[[], None]: ...


@dataclass(slots=True)
class RouterStats:
    received: int = 0
    succeeded: int = 0
    failed: int = 0
    dropped: int = 0


class RequestRouter:
    """Runs one independent flow per request: resolve target, execute, respond, forget.

    Flows share only the sender. A send that fails because the connection is down
    drops the response; nothing is buffered or retried.
    """

    def __init__(
        self,
        *,
        sender: FrameSender,
        locator: TargetLocator,
        sandbox: Sandbox,
        settings: TargetSettings,
        client_id: str | None = None,
        clock: Callable[[], float] | None = None,
    ) -> None:
        self._sender = sender
        self._locator = locator
        self._sandbox = sandbox
        self._criteria = TargetCriteria(origin_patterns=tuple(settings.origin_patterns))
        self._client_id = client_id
        self._clock = clock or time.time
        self._inflight = InFlightRegistry()
        self._tasks: set[asyncio.Task] = set()
        self.stats = RouterStats()

    @property
    def in_flight(self) -> int:
        return len(self._inflight)

    def in_flight_ids(self) -> list[Any]:
        return self._inflight.correlation_ids()

    def attach(self, dispatcher: Subscribable) -> Callable[[], None]:
        return dispatcher.subscribe(KIND_EXTRACTION_REQUEST, self.on_extraction_request)

    def on_extraction_request(self, event: ExtractionRequest) -> None:
        """Dispatcher handler. Schedules the flow and returns without waiting on it."""
        self.schedule(event)

    def schedule(self, event: ExtractionRequest) -> asyncio.Task:
        entry = self._inflight.register(event.correlation_id, event.payload, event.received_at)
        self.stats.received += 1
        logger.info("Processing extraction request correlation_id=%s", entry.correlation_id)
        task = asyncio.create_task(self._run_flow(entry), name=f"extraction:{entry.correlation_id}")
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return task

    async def handle_request(self, event: ExtractionRequest) -> dict[str, Any]:
        """Run one request to completion and return the frame that was sent (or dropped)."""
        return await self.schedule(event)

    async def drain(self) -> None:
        """Wait for every running flow to finish."""
        while self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)

    async def _run_flow(self, entry: InFlightRequest) -> dict[str, Any]:
        try:
            frame = await self._execute(entry)
            await self._respond(entry, frame)
            return frame
        finally:
            self._inflight.remove(entry)

    async def _execute(self, entry: InFlightRequest) -> dict[str, Any]:
        correlation_id = entry.correlation_id
        try:
            target = await resolve_target(self._locator, self._criteria)
            entry.target_id = target.id
            logger.info(
                "Using execution target id=%s title=%r for correlation_id=%s",
                target.id,
                target.title,
                correlation_id,
            )
            data = await run_extraction(self._sandbox, target, entry.payload)
        except (TargetResolutionError, SandboxError) as exc:
            self.stats.failed += 1
            logger.error("Extraction request failed correlation_id=%s: %s", correlation_id, exc)
            return build_failure_frame(correlation_id, str(exc), client_id=self._client_id)
        except Exception as exc:
            self.stats.failed += 1
            logger.exception("Unexpected error handling correlation_id=%s", correlation_id)
            return build_failure_frame(correlation_id, str(exc) or type(exc).__name__, client_id=self._client_id)

        self.stats.succeeded += 1
        logger.info(
            "Extraction completed correlation_id=%s in %.3fs",
            correlation_id,
            max(0.0, self._clock() - entry.received_at),
        )
        return build_success_frame(correlation_id, data, client_id=self._client_id)

    async def _respond(self, entry: InFlightRequest, frame: dict[str, Any]) -> bool:
        if entry.responded:
            logger.error("Result for correlation_id=%s was already emitted", entry.correlation_id)
            return False
        entry.responded = True

        try:
            sent = await self._sender.send(frame)
        except Exception:
            logger.exception("Sender raised for correlation_id=%s", entry.correlation_id)
            sent = False

        if not sent:
            self.stats.dropped += 1
            logger.error("Dropped extraction result correlation_id=%s: connection unavailable", entry.correlation_id)
            return False
        logger.info("Sent extraction result correlation_id=%s", entry.correlation_id)
        return True


__all__ = ["FrameSender", "RequestRouter", "RouterStats"]
