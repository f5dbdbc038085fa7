"""
OneSim Backend: Notification Broadcaster
========================================

What:  Keeps the set of connected real-time clients and fans Activity
       Events out to them.
How:   A process-scoped registry of Starlette WebSockets. `broadcast()`
       serializes the event once, snapshots the registry, and sends to every
       connection that is open on both sides. Connections in any other
       state are skipped. A failed send drops that connection and the fan-out
       continues.
Who:   Built in the lifespan (app.state.broadcaster); the WebSocket route
       registers clients, the assign-case route publishes events.
When:  Once per successful case assignment.

Delivery contract:
    - best-effort, at-most-once per client connected at broadcast time
    - no acknowledgement, retry, or replay for clients that were offline
    - the caller's result never depends on how many clients received it

Concurrency:
    The registry is only touched from event-loop coroutines. Broadcasts
    iterate a snapshot, so connects/disconnects during a send are safe.
    Sends run concurrently, each bounded by `send_timeout`; a client that
    does not drain in time is dropped like one whose send failed.
"""

import asyncio
import logging
from typing import Set

from starlette.websockets import WebSocket, WebSocketState

from onesim.schemas.case import ActivityEvent

logger = logging.getLogger(__name__)


def _is_open(websocket: WebSocket) -> bool:
    return (
        websocket.application_state == WebSocketState.CONNECTED
        and websocket.client_state == WebSocketState.CONNECTED
    )


class NotificationBroadcaster:
    """Fire-and-forget publisher over the current subscriber snapshot."""

    def __init__(self, send_timeout: float = 5.0) -> None:
        self.send_timeout = send_timeout
        self._connections: Set[WebSocket] = set()

    @property
    def connection_count(self) -> int:
        return len(self._connections)

    async def connect(self, websocket: WebSocket) -> None:
        """
        Register a client, then complete the WebSocket handshake.

        The socket is registered before `accept()`; until the handshake
        completes it is not open, so a concurrent broadcast skips it. A
        handshake that fails leaves nothing behind in the registry.
        """
        self._connections.add(websocket)
        try:
            await websocket.accept()
        except BaseException:
            self._connections.discard(websocket)
            raise
        logger.info("Real-time client connected (%d open)", len(self._connections))

    def disconnect(self, websocket: WebSocket) -> None:
        self._connections.discard(websocket)
        logger.info("Real-time client disconnected (%d open)", len(self._connections))

    async def _send(self, websocket: WebSocket, payload: str) -> bool:
        try:
            await asyncio.wait_for(websocket.send_text(payload), timeout=self.send_timeout)
            return True
        except asyncio.TimeoutError:
            logger.warning("Dropping real-time client: send timed out after %.1fs", self.send_timeout)
        except Exception as e:
            # The peer went away mid-send; it will not get this event
            logger.warning("Dropping real-time client after failed send: %s", str(e))
        self._connections.discard(websocket)
        return False

    async def broadcast(self, event: ActivityEvent) -> int:
        """
        Push one event to every open connection.

        Returns:
            Number of clients the event was sent to.
        """
        payload = event.model_dump_json(by_alias=True)
        recipients = list(self._connections)

        results = await asyncio.gather(
            *(self._send(websocket, payload) for websocket in recipients if _is_open(websocket))
        )
        delivered = sum(results)

        logger.info(
            "Broadcast %s for case %s to %d/%d clients",
            event.type,
            event.case_key,
            delivered,
            len(recipients),
        )
        return delivered

    async def close_all(self) -> None:
        """Close every open connection (application shutdown)."""
        for websocket in list(self._connections):
            if _is_open(websocket):
                try:
                    await websocket.close(code=1001)
                except Exception as e:
                    logger.debug("Error closing real-time client: %s", str(e))
        self._connections.clear()
