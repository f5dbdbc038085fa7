"""
OneSim Backend: Real-Time Channel
=================================

What:  WebSocket endpoint that streams Activity Events to connected clients.
How:   Each connection is registered with the NotificationBroadcaster and
       kept open until the client leaves. The channel is server → client;
       inbound frames are read only to notice the disconnect.
Who:   Teacher and student dashboards.

Paths:
    /ws   canonical
    /     the original root-mounted socket path, kept for existing clients
"""

from fastapi import APIRouter, Depends, WebSocket

from onesim.dependencies import get_broadcaster
from onesim.services.broadcaster import NotificationBroadcaster

router = APIRouter(tags=["Realtime"])


@router.websocket("/ws")
@router.websocket("/")
async def activity_stream(
    websocket: WebSocket,
    broadcaster: NotificationBroadcaster = Depends(get_broadcaster),
) -> None:
    await broadcaster.connect(websocket)
    try:
        while True:
            message = await websocket.receive()
            if message["type"] == "websocket.disconnect":
                break
    finally:
        broadcaster.disconnect(websocket)
