"""Persistent connection lifecycle: connect, reconnect, heartbeat, send and receive."""

from __future__ import annotations

import asyncio
import logging
import contextlib
from typing import Any
from collections.abc import Callable, Mapping, Awaitable

import websockets
from websockets.exceptions import ConnectionClosed

from tabrelay.events import Handler, Subscribers
from tabrelay.errors import RelayConnectionError
from tabrelay.state.settings import ConnectionSettings
from tabrelay.state.connection import (
    CloseInfo,
    ConnectOutcome,
    ConnectionEvent,
    ConnectionState,
    ConnectionStatus,
)
from tabrelay.config.websocket import (
    WS_CLOSE_CLEAN_CODE,
    WS_CLOSE_CLEAN_REASON,
    WS_CLOSE_ABNORMAL_CODE,
)
from tabrelay.protocol.frames import frame_kind, encode_frame, build_heartbeat_frame, build_register_frame

from .heartbeat import HeartbeatTimer

logger = logging.getLogger(__name__)

TransportFactory = Callable[..., Awaitable[Any]]


def _default_connect(url: str, **options: Any) -> Awaitable[Any]:
    return websockets.connect(url, **options)


class ConnectionManager:
    """Owns the single transport to the server.

    At most one transport is live at a time. ``connect()`` and ``send()`` never raise;
    failures are reported through return values and the ``failed`` event.
    """

    def __init__(
        self,
        settings: ConnectionSettings,
        *,
        client_id: str,
        connect_fn: TransportFactory | None = None,
    ) -> None:
        self._settings = settings
        self._client_id = client_id
        self._connect_fn = connect_fn or _default_connect
        self._events = Subscribers("connection", kinds=[e.value for e in ConnectionEvent])

        self._state = ConnectionState.DISCONNECTED
        self._transport: Any = None
        self._reconnect_attempts = 0
        self._pending: asyncio.Task[ConnectOutcome] | None = None
        self._last_outcome: ConnectOutcome | None = None
        self._recv_task: asyncio.Task | None = None
        self._reconnect_task: asyncio.Task | None = None
        self._closing_intentionally = False

        self._heartbeat = HeartbeatTimer(
            interval_s=settings.heartbeat_interval_s,
            beat_fn=self._send_heartbeat,
            is_alive_fn=lambda: self.is_connected,
        )

    @property
    def state(self) -> ConnectionState:
        return self._state

    @property
    def is_connected(self) -> bool:
        return self._state is ConnectionState.CONNECTED and self._transport is not None

    @property
    def reconnect_attempts(self) -> int:
        return self._reconnect_attempts

    @property
    def endpoint_url(self) -> str:
        return self._settings.endpoint_url

    def status(self) -> ConnectionStatus:
        return ConnectionStatus(
            state=self._state,
            connected=self.is_connected,
            client_id=self._client_id,
            endpoint_url=self.endpoint_url,
            reconnect_attempts=self._reconnect_attempts,
        )

    # Subscriptions

    def on(self, event: ConnectionEvent | str, handler: Handler) -> Callable[[], None]:
        return self._events.on(event, handler)

    def off(self, event: ConnectionEvent | str, handler: Handler) -> None:
        self._events.off(event, handler)

    # Lifecycle

    async def connect(self) -> ConnectOutcome:
        if self.is_connected:
            logger.warning("Already connected to %s", self.endpoint_url)
            return self._last_outcome or ConnectOutcome.ok()

        if self._pending is not None:
            logger.info("Connection already in progress")
            return await asyncio.shield(self._pending)

        if self._state is ConnectionState.CLOSING:
            return ConnectOutcome.failed("connection is closing")

        self._pending = asyncio.create_task(self._attempt_connection())
        return await asyncio.shield(self._pending)

    async def disconnect(self) -> None:
        transport = self._transport
        if self._state is not ConnectionState.CONNECTED or transport is None:
            logger.warning("Not connected; disconnect ignored")
            return

        logger.info("Disconnecting from %s", self.endpoint_url)
        self._closing_intentionally = True
        self._state = ConnectionState.CLOSING
        self._heartbeat.stop()

        try:
            await transport.close(code=WS_CLOSE_CLEAN_CODE, reason=WS_CLOSE_CLEAN_REASON)
        except Exception:
            logger.debug("transport close failed", exc_info=True)

        recv_task = self._recv_task
        if recv_task is not None and recv_task is not asyncio.current_task():
            with contextlib.suppress(asyncio.CancelledError, Exception):
                await recv_task

        # The receive loop normally observes the close; cover transports that never report it.
        if self._transport is transport:
            await self._on_transport_closed(transport)

    async def shutdown(self) -> None:
        """Disconnect and stop every background task, including a scheduled reconnect."""
        self._closing_intentionally = True
        reconnect_task, self._reconnect_task = self._reconnect_task, None
        if reconnect_task is not None:
            reconnect_task.cancel()
            with contextlib.suppress(asyncio.CancelledError, Exception):
                await reconnect_task

        if self._pending is not None:
            with contextlib.suppress(asyncio.CancelledError, Exception):
                await self._pending

        if self.is_connected:
            await self.disconnect()
        await self._heartbeat.aclose()
        self._closing_intentionally = False

    # Outbound

    async def send(self, message: Mapping[str, Any]) -> bool:
        kind = frame_kind(message)
        transport = self._transport
        if self._state is not ConnectionState.CONNECTED or transport is None:
            logger.error("Cannot send %s frame: not connected", kind)
            return False

        try:
            text = encode_frame(message)
        except TypeError as exc:
            logger.error("Cannot serialize %s frame: %s", kind, exc)
            return False

        try:
            await transport.send(text)
        except ConnectionClosed:
            logger.warning("Cannot send %s frame: connection closed", kind)
            return False
        except Exception:
            logger.error("Error sending %s frame", kind, exc_info=True)
            return False

        logger.debug("Frame sent kind=%s", kind)
        return True

    async def _register(self) -> None:
        await self.send(build_register_frame(self._client_id))

    async def _send_heartbeat(self) -> None:
        await self.send(build_heartbeat_frame(self._client_id))

    # Internals

    def _transport_options(self) -> dict[str, Any]:
        return {
            "max_size": self._settings.max_message_bytes,
            "open_timeout": None,
        }

    async def _attempt_connection(self) -> ConnectOutcome:
        url = self.endpoint_url
        self._state = ConnectionState.CONNECTING
        self._closing_intentionally = False
        timeout_s = self._settings.connect_timeout_s if self._settings.connect_timeout_s > 0 else None
        logger.info("Connecting to %s", url)

        try:
            transport = await asyncio.wait_for(self._connect_fn(url, **self._transport_options()), timeout=timeout_s)
        except TimeoutError:
            logger.error("Connection timeout after %.1fs", timeout_s or 0.0)
            return await self._fail_attempt(RelayConnectionError("Connection timeout", code=WS_CLOSE_ABNORMAL_CODE))
        except asyncio.CancelledError:
            self._pending = None
            self._state = ConnectionState.DISCONNECTED
            raise
        except Exception as exc:
            logger.error("Failed to open connection to %s: %s", url, exc)
            return await self._fail_attempt(
                RelayConnectionError(f"Connection failed: {exc}", code=WS_CLOSE_ABNORMAL_CODE)
            )

        return await self._on_open(transport)

    async def _on_open(self, transport: Any) -> ConnectOutcome:
        self._transport = transport
        self._state = ConnectionState.CONNECTED
        self._reconnect_attempts = 0
        self._pending = None
        outcome = ConnectOutcome.ok()
        self._last_outcome = outcome
        logger.info("Connected to %s", self.endpoint_url)

        self._recv_task = asyncio.create_task(self._recv_loop(transport))

        # Fire-and-forget: later sends never wait for the server's acknowledgment.
        await self._register()

        if self._transport is transport and self._state is ConnectionState.CONNECTED:
            self._heartbeat.start()
            await self._events.emit(ConnectionEvent.OPENED, self.status())
        return outcome

    async def _fail_attempt(self, error: RelayConnectionError) -> ConnectOutcome:
        self._pending = None
        self._transport = None
        self._state = ConnectionState.DISCONNECTED
        outcome = ConnectOutcome.failed(error.message)
        self._last_outcome = outcome
        await self._events.emit(ConnectionEvent.FAILED, error)
        await self._after_close(
            CloseInfo(code=error.code or WS_CLOSE_ABNORMAL_CODE, reason=error.message, clean=False)
        )
        return outcome

    async def _recv_loop(self, transport: Any) -> None:
        try:
            async for raw in transport:
                await self._events.emit(ConnectionEvent.MESSAGE_RECEIVED, raw)
        except ConnectionClosed:
            pass
        except asyncio.CancelledError:
            raise
        except Exception:
            logger.exception("receive loop failed")
        finally:
            await self._on_transport_closed(transport)

    async def _on_transport_closed(self, transport: Any) -> None:
        if transport is not self._transport:
            return

        code = getattr(transport, "close_code", None)
        if code is None:
            code = WS_CLOSE_ABNORMAL_CODE
        reason = getattr(transport, "close_reason", None) or ""

        self._transport = None
        self._recv_task = None
        self._state = ConnectionState.DISCONNECTED
        self._heartbeat.stop()

        logger.info("Connection closed code=%s reason=%s", code, reason)
        await self._after_close(CloseInfo(code=int(code), reason=str(reason), clean=code == WS_CLOSE_CLEAN_CODE))

    async def _after_close(self, info: CloseInfo) -> None:
        await self._events.emit(ConnectionEvent.CLOSED, info)
        if self._closing_intentionally:
            self._closing_intentionally = False
            return
        if info.clean:
            return
        await self._schedule_reconnect()

    async def _schedule_reconnect(self) -> None:
        max_attempts = self._settings.max_reconnect_attempts
        if self._reconnect_attempts >= max_attempts:
            logger.error("Max reconnection attempts reached (%s)", max_attempts)
            await self._events.emit(
                ConnectionEvent.FAILED,
                RelayConnectionError(
                    f"Max reconnection attempts reached ({max_attempts})",
                    code=WS_CLOSE_ABNORMAL_CODE,
                    terminal=True,
                ),
            )
            return

        self._reconnect_attempts += 1
        logger.info("Attempting reconnection (%s/%s)", self._reconnect_attempts, max_attempts)
        self._reconnect_task = asyncio.create_task(self._reconnect_after_delay())

    async def _reconnect_after_delay(self) -> None:
        try:
            await asyncio.sleep(self._settings.reconnect_delay_s)
        except asyncio.CancelledError:
            return
        if self._state is not ConnectionState.DISCONNECTED:
            return
        outcome = await self.connect()
        if not outcome.connected:
            logger.error("Reconnection failed: %s", outcome.reason)


__all__ = ["ConnectionManager", "TransportFactory"]
