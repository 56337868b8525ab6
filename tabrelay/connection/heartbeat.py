"""Periodic liveness frames while the connection is open."""

from __future__ import annotations

import asyncio
import logging
import contextlib
from typing import Any
from collections.abc import Callable, Awaitable

logger = logging.getLogger(__name__)


class HeartbeatTimer:
    def __init__(
        self,
        *,
        interval_s: float,
        beat_fn: Callable[[], Awaitable[Any]],
        is_alive_fn: Callable[[], bool] | None = None,
    ) -> None:
        self._interval_s = float(interval_s)
        self._beat_fn = beat_fn
        self._is_alive_fn = is_alive_fn or (lambda: True)
        self._task: asyncio.Task | None = None

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self) -> asyncio.Task | None:
        if self._interval_s <= 0:
            return None
        if self._task is None or self._task.done():
            self._task = asyncio.create_task(self._beat_loop())
        return self._task

    def stop(self) -> None:
        """Cancel the beat loop without waiting for it."""
        if self._task is None:
            return
        self._task.cancel()
        self._task = None

    async def aclose(self) -> None:
        task = self._task
        self.stop()
        if task is not None:
            with contextlib.suppress(asyncio.CancelledError, Exception):
                await task

    async def _beat_loop(self) -> None:
        try:
            while True:
                await asyncio.sleep(self._interval_s)
                if not self._is_alive_fn():
                    continue
                await self._beat_fn()
        except asyncio.CancelledError:
            return
        except Exception:
            logger.debug("heartbeat loop exiting due to unexpected error", exc_info=True)


__all__ = ["HeartbeatTimer"]
