"""Run the relay client until asked to stop."""

from __future__ import annotations

import asyncio
import logging

from tabrelay.state import RuntimeDeps
from tabrelay.state.settings import AppSettings
from tabrelay.routing import Sandbox, TargetLocator
from tabrelay.connection import TransportFactory
from tabrelay.runtime.logging import configure_logging
from tabrelay.runtime.dependencies import build_runtime_deps

logger = logging.getLogger(__name__)


async def run_relay(
    locator: TargetLocator,
    sandbox: Sandbox,
    *,
    settings: AppSettings | None = None,
    stop_event: asyncio.Event | None = None,
    connect_fn: TransportFactory | None = None,
) -> RuntimeDeps:
    """Connect, serve extraction requests until ``stop_event`` is set, then shut down."""
    configure_logging()
    runtime_deps = build_runtime_deps(locator, sandbox, settings=settings, connect_fn=connect_fn)
    stop_event = stop_event or asyncio.Event()

    outcome = await runtime_deps.connection.connect()
    if outcome.connected:
        logger.info("runtime: ready")
    else:
        logger.warning("runtime: initial connection failed (%s); automatic reconnection may follow", outcome.reason)

    try:
        await stop_event.wait()
    finally:
        await runtime_deps.shutdown()
        logger.info("runtime: stopped")
    return runtime_deps


__all__ = ["run_relay"]
