from __future__ import annotations

import asyncio
from typing import Any

import pytest

from tabrelay.state.settings import TargetSettings
from tabrelay.routing.router import RequestRouter
from tabrelay.protocol.dispatch import MessageDispatcher
from tabrelay.protocol.messages import ExtractionRequest
from tabrelay.config.targets import DEFAULT_ORIGIN_PATTERNS

from tests.unit.fakes import READY_TARGET, StaticLocator, RecordingSender, ScriptedSandbox, wait_until


def _request(correlation_id: Any, payload: Any = None) -> ExtractionRequest:
    return ExtractionRequest(correlation_id=correlation_id, payload=payload, received_at=0.0)


def _router(
    *,
    sender: Any = None,
    locator: Any = None,
    sandbox: Any = None,
    client_id: str | None = "client-1",
) -> RequestRouter:
    return RequestRouter(
        sender=sender or RecordingSender(),
        locator=locator or StaticLocator([READY_TARGET]),
        sandbox=sandbox or ScriptedSandbox(),
        settings=TargetSettings(origin_patterns=DEFAULT_ORIGIN_PATTERNS),
        client_id=client_id,
    )


@pytest.mark.asyncio
async def test_success_result_carries_correlation_id_and_data() -> None:
    sender = RecordingSender()
    sandbox = ScriptedSandbox()
    router = _router(sender=sender, sandbox=sandbox)

    frame = await router.handle_request(_request("r1", "payload-1"))

    assert frame["kind"] == "extractionResult"
    assert frame["correlationId"] == "r1"
    assert frame["success"] is True
    assert frame["data"] == {"echo": "payload-1"}
    assert frame["id"] == "client-1"
    assert frame["capturedAt"]
    assert sender.frames == [frame]
    assert sandbox.calls == [(7, "payload-1")]
    assert router.stats.succeeded == 1


@pytest.mark.asyncio
async def test_no_targets_yields_failure_result() -> None:
    sender = RecordingSender()
    router = _router(sender=sender, locator=StaticLocator([]))

    frame = await router.handle_request(_request("r1"))

    assert sender.frames == [frame]
    assert frame["correlationId"] == "r1"
    assert frame["success"] is False
    assert frame["error"] == "No execution targets found"
    assert router.stats.failed == 1


@pytest.mark.asyncio
async def test_no_loaded_targets_yields_failure_result() -> None:
    router = _router(locator=StaticLocator([{"id": 1, "ready": False, "originMatches": True}]))

    frame = await router.handle_request(_request("r1"))

    assert frame["error"] == "No loaded execution targets found - please refresh the page"


@pytest.mark.asyncio
async def test_sandbox_rejection_yields_failure_result() -> None:
    sandbox = ScriptedSandbox({"bad": {"success": False, "error": "element missing"}})
    router = _router(sandbox=sandbox)

    frame = await router.handle_request(_request("r1", "bad"))

    assert frame["success"] is False
    assert frame["error"] == "Extraction failed: element missing"
    assert "data" not in frame


@pytest.mark.asyncio
async def test_unexpected_errors_still_produce_a_result() -> None:
    sender = RecordingSender()
    router = _router(sender=sender, locator=StaticLocator([42]))

    frame = await router.handle_request(_request("r1"))

    assert sender.frames == [frame]
    assert frame["success"] is False
    assert frame["error"]
    assert router.stats.failed == 1


@pytest.mark.asyncio
async def test_concurrent_requests_complete_out_of_order() -> None:
    sender = RecordingSender()
    sandbox = ScriptedSandbox()
    gates = [sandbox.gate(f"p{i}") for i in range(3)]
    router = _router(sender=sender, sandbox=sandbox)

    for i in range(3):
        router.on_extraction_request(_request(f"r{i}", f"p{i}"))
    await wait_until(lambda: len(sandbox.calls) == 3)
    assert sorted(router.in_flight_ids()) == ["r0", "r1", "r2"]

    for gate in reversed(gates):
        gate.set()
        await wait_until(lambda: len(sender.frames) == 3 - gates.index(gate))
    await router.drain()

    assert [f["correlationId"] for f in sender.frames] == ["r2", "r1", "r0"]
    assert {f["correlationId"]: f["data"]["echo"] for f in sender.frames} == {"r0": "p0", "r1": "p1", "r2": "p2"}
    assert router.in_flight == 0


@pytest.mark.asyncio
async def test_result_dropped_when_sender_is_disconnected() -> None:
    sender = RecordingSender(connected=False)
    router = _router(sender=sender)

    await router.handle_request(_request("r1", "x"))
    await router.handle_request(_request("r2", "y"))

    assert sender.frames == []
    assert [f["correlationId"] for f in sender.rejected] == ["r1", "r2"]
    assert router.stats.dropped == 2
    assert router.in_flight == 0


@pytest.mark.asyncio
async def test_sender_exception_counts_as_dropped() -> None:
    class ExplodingSender:
        def __init__(self) -> None:
            self.calls = 0

        async def send(self, message: Any) -> bool:
            self.calls += 1
            raise RuntimeError("socket gone")

    sender = ExplodingSender()
    router = _router(sender=sender)

    await router.handle_request(_request("r1"))

    assert sender.calls == 1
    assert router.stats.dropped == 1


@pytest.mark.asyncio
async def test_duplicate_correlation_ids_are_independent() -> None:
    sender = RecordingSender()
    sandbox = ScriptedSandbox()
    gate = sandbox.gate("first")
    router = _router(sender=sender, sandbox=sandbox)

    router.on_extraction_request(_request("dup", "first"))
    second = await router.handle_request(_request("dup", "second"))
    assert router.in_flight_ids() == ["dup"]

    gate.set()
    await router.drain()

    assert len(sender.frames) == 2
    assert sender.frames[0] == second
    assert sender.frames[1]["data"] == {"echo": "first"}
    assert router.stats.received == 2
    assert router.in_flight == 0


@pytest.mark.asyncio
async def test_attach_routes_dispatched_requests() -> None:
    sender = RecordingSender()
    router = _router(sender=sender)
    dispatcher = MessageDispatcher()
    router.attach(dispatcher)

    await dispatcher.dispatch('{"kind": "extractionRequest", "correlationId": "r9", "payload": "z"}')
    await router.drain()

    assert [f["correlationId"] for f in sender.frames] == ["r9"]


@pytest.mark.asyncio
async def test_dispatch_returns_before_the_flow_completes() -> None:
    sender = RecordingSender()
    sandbox = ScriptedSandbox()
    gate = sandbox.gate("slow")
    router = _router(sender=sender, sandbox=sandbox)
    dispatcher = MessageDispatcher()
    router.attach(dispatcher)

    try:
        raw = '{"kind": "extractionRequest", "correlationId": "r1", "payload": "slow"}'
        event = await asyncio.wait_for(dispatcher.dispatch(raw), timeout=0.5)
        assert event is not None
        assert router.on_extraction_request(_request("r2", "slow")) is None
        await wait_until(lambda: len(sandbox.calls) == 2)
        assert sender.frames == []
        assert sorted(router.in_flight_ids()) == ["r1", "r2"]
    finally:
        gate.set()

    await router.drain()
    assert sorted(f["correlationId"] for f in sender.frames) == ["r1", "r2"]
