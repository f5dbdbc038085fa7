"""
OneSim Backend: Notification Broadcaster Unit Tests
===================================================

What:  Fan-out rules of NotificationBroadcaster with fake WebSockets.
How:   The fakes expose the two Starlette state attributes the broadcaster
       checks and record what was sent to them.

Test Strategy:
    ✅ Open connections get the serialized event once
    ✅ Connecting / closing / closed connections are skipped
    ✅ A failed send drops that client and the rest still receive
    ✅ Registration happens before the handshake completes
    ✅ A failed handshake leaves the registry unchanged
    ✅ A client that does not drain in time is dropped; others still receive
"""

import asyncio
import json
from typing import List

import pytest
from starlette.websockets import WebSocketState

from onesim.schemas.case import ActivityEvent
from onesim.services.broadcaster import NotificationBroadcaster


class FakeWebSocket:
    def __init__(
        self,
        application_state: WebSocketState = WebSocketState.CONNECTED,
        client_state: WebSocketState = WebSocketState.CONNECTED,
        fail: bool = False,
        delay: float = 0.0,
    ):
        self.application_state = application_state
        self.client_state = client_state
        self.fail = fail
        self.delay = delay
        self.sent: List[str] = []
        self.closed_with = None

    async def accept(self):
        self.application_state = WebSocketState.CONNECTED

    async def send_text(self, data: str):
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.fail:
            raise RuntimeError("peer went away")
        self.sent.append(data)

    async def close(self, code: int = 1000):
        self.closed_with = code
        self.application_state = WebSocketState.DISCONNECTED


def _event() -> ActivityEvent:
    return ActivityEvent(
        case_key="CASE-7",
        title="Acute chest pain",
        assigned_students=["alice"],
        timestamp="2026-01-01T09:00:00+00:00",
    )


async def _register(broadcaster: NotificationBroadcaster, *sockets: FakeWebSocket) -> None:
    for ws in sockets:
        states = (ws.application_state, ws.client_state)
        await broadcaster.connect(ws)
        # connect() accepts; restore the state the test asked for
        ws.application_state, ws.client_state = states


class TestBroadcast:

    @pytest.mark.asyncio
    async def test_open_connections_receive_once(self):
        broadcaster = NotificationBroadcaster()
        first, second = FakeWebSocket(), FakeWebSocket()
        await _register(broadcaster, first, second)

        delivered = await broadcaster.broadcast(_event())

        assert delivered == 2
        for ws in (first, second):
            assert len(ws.sent) == 1
            assert json.loads(ws.sent[0]) == {
                "type": "assignment",
                "caseKey": "CASE-7",
                "title": "Acute chest pain",
                "assignedStudents": ["alice"],
                "timestamp": "2026-01-01T09:00:00+00:00",
            }

    @pytest.mark.asyncio
    async def test_non_open_connections_skipped(self):
        broadcaster = NotificationBroadcaster()
        open_ws = FakeWebSocket()
        connecting = FakeWebSocket(application_state=WebSocketState.CONNECTING)
        closing = FakeWebSocket(client_state=WebSocketState.DISCONNECTED)
        await _register(broadcaster, open_ws, connecting, closing)

        delivered = await broadcaster.broadcast(_event())

        assert delivered == 1
        assert len(open_ws.sent) == 1
        assert connecting.sent == []
        assert closing.sent == []
        # Skipped, not dropped
        assert broadcaster.connection_count == 3

    @pytest.mark.asyncio
    async def test_failed_send_drops_client_and_continues(self):
        broadcaster = NotificationBroadcaster()
        broken, healthy = FakeWebSocket(fail=True), FakeWebSocket()
        await _register(broadcaster, broken, healthy)

        delivered = await broadcaster.broadcast(_event())

        assert delivered == 1
        assert len(healthy.sent) == 1
        assert broadcaster.connection_count == 1

    @pytest.mark.asyncio
    async def test_slow_client_dropped_after_timeout(self):
        broadcaster = NotificationBroadcaster(send_timeout=0.05)
        slow, healthy = FakeWebSocket(delay=5.0), FakeWebSocket()
        await _register(broadcaster, slow, healthy)

        delivered = await asyncio.wait_for(broadcaster.broadcast(_event()), timeout=2.0)

        assert delivered == 1
        assert len(healthy.sent) == 1
        assert slow.sent == []
        assert broadcaster.connection_count == 1

    @pytest.mark.asyncio
    async def test_sends_run_concurrently(self):
        broadcaster = NotificationBroadcaster(send_timeout=2.0)
        sockets = [FakeWebSocket(delay=0.2) for _ in range(5)]
        await _register(broadcaster, *sockets)

        loop = asyncio.get_running_loop()
        started = loop.time()
        delivered = await broadcaster.broadcast(_event())

        assert delivered == 5
        # Five sequential sends would take a full second
        assert loop.time() - started < 0.8

    @pytest.mark.asyncio
    async def test_no_clients(self):
        assert await NotificationBroadcaster().broadcast(_event()) == 0

    @pytest.mark.asyncio
    async def test_disconnected_client_not_sent_to(self):
        broadcaster = NotificationBroadcaster()
        ws = FakeWebSocket()
        await _register(broadcaster, ws)
        broadcaster.disconnect(ws)

        assert await broadcaster.broadcast(_event()) == 0
        assert ws.sent == []


class TestLifecycle:

    @pytest.mark.asyncio
    async def test_registered_before_accept(self):
        broadcaster = NotificationBroadcaster()
        ws = FakeWebSocket(application_state=WebSocketState.CONNECTING)
        counts = []

        async def accept():
            counts.append(broadcaster.connection_count)
            ws.application_state = WebSocketState.CONNECTED

        ws.accept = accept
        await broadcaster.connect(ws)

        assert counts == [1]

    @pytest.mark.asyncio
    async def test_failed_handshake_not_registered(self):
        broadcaster = NotificationBroadcaster()

        async def accept():
            raise RuntimeError("client went away during handshake")

        for _ in range(3):
            ws = FakeWebSocket(application_state=WebSocketState.CONNECTING)
            ws.accept = accept
            with pytest.raises(RuntimeError):
                await broadcaster.connect(ws)

        assert broadcaster.connection_count == 0

    @pytest.mark.asyncio
    async def test_close_all(self):
        broadcaster = NotificationBroadcaster()
        first, second = FakeWebSocket(), FakeWebSocket()
        await _register(broadcaster, first, second)

        await broadcaster.close_all()

        assert first.closed_with == 1001
        assert second.closed_with == 1001
        assert broadcaster.connection_count == 0

    def test_event_requires_students(self):
        with pytest.raises(ValueError):
            ActivityEvent(
                case_key="CASE-7",
                title="x",
                assigned_students=[],
                timestamp="2026-01-01T09:00:00+00:00",
            )
