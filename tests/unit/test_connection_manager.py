from __future__ import annotations

import asyncio
from typing import Any
from collections.abc import Callable, AsyncIterator

import pytest
import pytest_asyncio

from tabrelay.errors import RelayConnectionError
from tabrelay.state.connection import CloseInfo, ConnectionEvent, ConnectionState
from tabrelay.connection.manager import ConnectionManager

from tests.unit.fakes import FakeConnector, wait_until, fast_settings


ManagerFactory = Callable[..., ConnectionManager]


@pytest_asyncio.fixture
async def make_manager() -> AsyncIterator[ManagerFactory]:
    created: list[ConnectionManager] = []

    def _make(connector: FakeConnector, **overrides: Any) -> ConnectionManager:
        manager = ConnectionManager(fast_settings(**overrides), client_id="client-1", connect_fn=connector)
        created.append(manager)
        return manager

    yield _make
    for manager in created:
        await manager.shutdown()


def _record(manager: ConnectionManager) -> dict[str, list[Any]]:
    events: dict[str, list[Any]] = {e.value: [] for e in ConnectionEvent}
    for event in ConnectionEvent:
        manager.on(event, events[event.value].append)
    return events


@pytest.mark.asyncio
async def test_connect_opens_one_transport_and_registers_first(make_manager: ManagerFactory) -> None:
    connector = FakeConnector()
    manager = make_manager(connector)
    events = _record(manager)

    outcome = await manager.connect()

    assert outcome.connected
    assert manager.state is ConnectionState.CONNECTED
    assert connector.calls[0][0] == "ws://relay.test/ws"
    assert connector.calls[0][1]["max_size"] == 1024 * 1024
    frames = connector.last.frames
    assert frames[0]["kind"] == "register"
    assert frames[0]["id"] == "client-1"
    assert len(events["opened"]) == 1


@pytest.mark.asyncio
async def test_connect_when_connected_is_idempotent(make_manager: ManagerFactory) -> None:
    connector = FakeConnector()
    manager = make_manager(connector)

    await manager.connect()
    again = await manager.connect()

    assert again.connected
    assert len(connector.calls) == 1


@pytest.mark.asyncio
async def test_concurrent_connects_share_one_attempt(make_manager: ManagerFactory) -> None:
    connector = FakeConnector()
    manager = make_manager(connector)

    first, second = await asyncio.gather(manager.connect(), manager.connect())

    assert first.connected and second.connected
    assert len(connector.calls) == 1
    assert len(connector.transports) == 1


@pytest.mark.asyncio
async def test_send_when_disconnected_returns_false(make_manager: ManagerFactory) -> None:
    manager = make_manager(FakeConnector())
    assert await manager.send({"kind": "heartbeat"}) is False


@pytest.mark.asyncio
async def test_send_failures_return_false(make_manager: ManagerFactory) -> None:
    connector = FakeConnector()
    manager = make_manager(connector)
    await manager.connect()

    assert await manager.send({"kind": "extractionResult", "correlationId": "r1"}) is True
    connector.last.fail_sends = True
    assert await manager.send({"kind": "extractionResult", "correlationId": "r2"}) is False
    assert await manager.send("not a frame") is False  # type: ignore[arg-type]


@pytest.mark.asyncio
async def test_disconnect_when_not_connected_is_a_noop(make_manager: ManagerFactory) -> None:
    manager = make_manager(FakeConnector())
    events = _record(manager)

    await manager.disconnect()

    assert manager.state is ConnectionState.DISCONNECTED
    assert events["closed"] == []


@pytest.mark.asyncio
async def test_intentional_disconnect_does_not_reconnect(make_manager: ManagerFactory) -> None:
    connector = FakeConnector()
    manager = make_manager(connector)
    events = _record(manager)
    await manager.connect()
    transport = connector.last

    await manager.disconnect()
    await asyncio.sleep(0.05)

    assert transport.close_code == 1000
    assert manager.state is ConnectionState.DISCONNECTED
    assert not manager.is_connected
    assert len(connector.calls) == 1
    assert events["closed"] == [CloseInfo(code=1000, reason="User requested disconnect", clean=True)]
    assert await manager.send({"kind": "heartbeat"}) is False


@pytest.mark.asyncio
async def test_server_clean_close_does_not_reconnect(make_manager: ManagerFactory) -> None:
    connector = FakeConnector()
    manager = make_manager(connector)
    await manager.connect()

    connector.last.drop(code=1000)
    await wait_until(lambda: manager.state is ConnectionState.DISCONNECTED)
    await asyncio.sleep(0.05)

    assert len(connector.calls) == 1


@pytest.mark.asyncio
async def test_abnormal_close_reconnects_and_resets_attempts(make_manager: ManagerFactory) -> None:
    connector = FakeConnector()
    manager = make_manager(connector)
    events = _record(manager)
    await manager.connect()

    connector.last.drop()
    await wait_until(lambda: len(connector.calls) == 2 and manager.is_connected)

    assert events["closed"][0].clean is False
    assert events["closed"][0].code == 1006
    assert manager.reconnect_attempts == 0
    assert len(events["opened"]) == 2
    assert connector.last.frames[0]["kind"] == "register"


@pytest.mark.asyncio
async def test_reconnect_attempts_are_bounded(make_manager: ManagerFactory) -> None:
    connector = FakeConnector(*(OSError("refused") for _ in range(10)))
    manager = make_manager(connector)
    events = _record(manager)

    outcome = await manager.connect()
    assert not outcome.connected
    assert outcome.reason == "Connection failed: refused"

    await wait_until(lambda: any(getattr(e, "terminal", False) for e in events["failed"]))
    await asyncio.sleep(0.05)

    assert len(connector.calls) == 1 + 3
    terminal = [e for e in events["failed"] if e.terminal]
    assert len(terminal) == 1
    assert isinstance(terminal[0], RelayConnectionError)
    assert "Max reconnection attempts reached" in str(terminal[0])
    assert manager.state is ConnectionState.DISCONNECTED


@pytest.mark.asyncio
async def test_zero_max_attempts_fails_terminally_on_first_drop(make_manager: ManagerFactory) -> None:
    connector = FakeConnector()
    manager = make_manager(connector, max_reconnect_attempts=0)
    events = _record(manager)
    await manager.connect()

    connector.last.drop()
    await wait_until(lambda: bool(events["failed"]))
    await asyncio.sleep(0.03)

    assert events["failed"][0].terminal is True
    assert len(connector.calls) == 1


@pytest.mark.asyncio
async def test_connect_timeout_fails_and_retries(make_manager: ManagerFactory) -> None:
    connector = FakeConnector("hang", "ok")
    manager = make_manager(connector, connect_timeout_s=0.05)
    events = _record(manager)

    outcome = await manager.connect()

    assert not outcome.connected
    assert outcome.reason == "Connection timeout"
    assert events["failed"][0].message == "Connection timeout"
    await wait_until(lambda: manager.is_connected)
    assert len(connector.calls) == 2


@pytest.mark.asyncio
async def test_shutdown_cancels_scheduled_reconnect(make_manager: ManagerFactory) -> None:
    connector = FakeConnector(OSError("refused"))
    manager = make_manager(connector, reconnect_delay_s=0.5)

    await manager.connect()
    await manager.shutdown()
    await asyncio.sleep(0.05)

    assert len(connector.calls) == 1
    assert manager.state is ConnectionState.DISCONNECTED


@pytest.mark.asyncio
async def test_heartbeat_frames_sent_while_connected(make_manager: ManagerFactory) -> None:
    connector = FakeConnector()
    manager = make_manager(connector, heartbeat_interval_s=0.01)
    await manager.connect()

    await wait_until(lambda: len(connector.last.frames_of("heartbeat")) >= 2)

    beats = connector.last.frames_of("heartbeat")
    assert all(frame["id"] == "client-1" and frame["timestamp"] for frame in beats)
    assert connector.last.frames[0]["kind"] == "register"

    await manager.disconnect()
    count = len(connector.last.frames_of("heartbeat"))
    await asyncio.sleep(0.03)
    assert len(connector.last.frames_of("heartbeat")) == count


@pytest.mark.asyncio
async def test_inbound_messages_are_emitted_in_order(make_manager: ManagerFactory) -> None:
    connector = FakeConnector()
    manager = make_manager(connector)
    received: list[Any] = []
    manager.on(ConnectionEvent.MESSAGE_RECEIVED, received.append)
    await manager.connect()

    for raw in ("one", "two", "three"):
        connector.last.feed(raw)
    await wait_until(lambda: len(received) == 3)

    assert received == ["one", "two", "three"]


@pytest.mark.asyncio
async def test_handler_errors_do_not_break_the_connection(make_manager: ManagerFactory) -> None:
    connector = FakeConnector()
    manager = make_manager(connector)
    received: list[Any] = []

    def broken(_data: Any) -> None:
        raise RuntimeError("handler bug")

    manager.on(ConnectionEvent.OPENED, broken)
    manager.on(ConnectionEvent.MESSAGE_RECEIVED, broken)
    manager.on(ConnectionEvent.MESSAGE_RECEIVED, received.append)

    outcome = await manager.connect()
    connector.last.feed("frame")
    await wait_until(lambda: received == ["frame"])

    assert outcome.connected
    assert manager.is_connected


@pytest.mark.asyncio
async def test_status_snapshot(make_manager: ManagerFactory) -> None:
    connector = FakeConnector()
    manager = make_manager(connector)

    before = manager.status()
    await manager.connect()
    after = manager.status()

    assert before.state is ConnectionState.DISCONNECTED and not before.connected
    assert after.state is ConnectionState.CONNECTED and after.connected
    assert after.client_id == "client-1"
    assert after.endpoint_url == "ws://relay.test/ws"
