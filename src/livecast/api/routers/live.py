"""
Observer-facing routes.

Endpoints
---------
- `WS /ws`: the push channel. Outbound ``snapshot``/``prompt`` envelopes,
  inbound ``promptAnswer``/``getLastSnapshot`` envelopes.
- `GET /screenshot/{index}`: the JPEG of a retained screenshot artifact.

Each WebSocket gets two flows: the receive loop below feeds inbound frames to
the live core, and a sender task drains the observer's queue to the socket.
"""

from __future__ import annotations

import asyncio
from typing import TYPE_CHECKING

from fastapi import APIRouter, HTTPException, Request, WebSocket, WebSocketDisconnect
from fastapi.responses import FileResponse

from livecast.core.settings import get_logger

if TYPE_CHECKING:
    from livecast.live.registry import Observer

router = APIRouter(tags=["Live view"])

logger = get_logger("livecast.api.live")


async def _pump(websocket: WebSocket, observer: Observer) -> None:
    """Forward queued envelopes to the socket until it goes away."""
    while True:
        envelope = await observer.queue.get()
        try:
            await websocket.send_json(envelope)
        except (WebSocketDisconnect, RuntimeError) as exc:
            logger.debug("Stopped sending to client %s: %r", observer.id, exc)
            return


@router.websocket("/ws")
async def observer_socket(websocket: WebSocket) -> None:
    """Register the connection as an observer for its whole lifetime."""
    livecast = websocket.app.state.livecast
    await websocket.accept()
    observer = livecast.on_connect()
    sender = asyncio.create_task(_pump(websocket, observer), name=f"livecast-send-{observer.id}")
    reason: object = None
    try:
        while True:
            message = await websocket.receive()
            if message["type"] == "websocket.disconnect":
                reason = message.get("code")
                break
            frame = message.get("text") or message.get("bytes")
            if frame:
                livecast.on_inbound_frame(observer, frame)
    finally:
        livecast.on_disconnect(observer, reason)
        sender.cancel()
        try:
            await sender
        except asyncio.CancelledError:
            pass
        except Exception:
            logger.exception("Sender for client %s failed", observer.id)


@router.get("/screenshot/{index}", summary="Get a retained screenshot")
async def get_screenshot(index: int, request: Request) -> FileResponse:
    """Serve screenshot ``index`` as JPEG, or 404 once it has been retired."""
    path = request.app.state.livecast.screenshot_path(index)
    if index < 0 or not path.is_file():
        raise HTTPException(status_code=404, detail="Nothing here")
    return FileResponse(path, media_type="image/jpeg")


__all__ = ["router"]
