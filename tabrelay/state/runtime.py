"""Typed runtime state objects for dependency wiring."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING

logger = logging.getLogger(__name__)

if TYPE_CHECKING:
    from tabrelay.state.settings import AppSettings
    from tabrelay.routing.router import RequestRouter
    from tabrelay.protocol.dispatch import MessageDispatcher
    from tabrelay.connection.manager import ConnectionManager


@dataclass(slots=True)
class RuntimeDeps:
    connection: ConnectionManager
    dispatcher: MessageDispatcher
    router: RequestRouter
    settings: AppSettings

    async def shutdown(self) -> None:
        try:
            await self.connection.shutdown()
        except Exception:
            logger.exception("connection shutdown failed")
        try:
            await self.router.drain()
        except Exception:
            logger.exception("router drain failed")


__all__ = ["RuntimeDeps"]
