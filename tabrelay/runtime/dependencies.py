"""Runtime dependency construction (connection, dispatcher, router)."""

from __future__ import annotations

import logging

from tabrelay.state import RuntimeDeps
from tabrelay.state.settings import AppSettings
from tabrelay.routing import Sandbox, RequestRouter, TargetLocator
from tabrelay.protocol import MessageDispatcher, log_system_frames
from tabrelay.state.connection import ConnectionEvent
from tabrelay.connection import TransportFactory, ConnectionManager

from .settings import load_settings

logger = logging.getLogger(__name__)


def build_runtime_deps(
    locator: TargetLocator,
    sandbox: Sandbox,
    *,
    settings: AppSettings | None = None,
    connect_fn: TransportFactory | None = None,
) -> RuntimeDeps:
    settings = settings or load_settings()
    client_id = settings.client.client_id

    connection = ConnectionManager(settings.connection, client_id=client_id, connect_fn=connect_fn)
    dispatcher = MessageDispatcher()
    router = RequestRouter(
        sender=connection,
        locator=locator,
        sandbox=sandbox,
        settings=settings.targets,
        client_id=client_id,
    )

    connection.on(ConnectionEvent.MESSAGE_RECEIVED, dispatcher.dispatch)
    router.attach(dispatcher)
    log_system_frames(dispatcher)

    logger.info("runtime: client_id=%s endpoint=%s", client_id, settings.connection.endpoint_url)
    return RuntimeDeps(
        connection=connection,
        dispatcher=dispatcher,
        router=router,
        settings=settings,
    )


__all__ = ["RuntimeDeps", "build_runtime_deps"]
