"""Log streaming endpoint."""

from __future__ import annotations

import asyncio

from fastapi import APIRouter, WebSocket, WebSocketDisconnect

from console_server.api.context import AppContext, get_app_context
from console_server.api.schemas import LogEventMessage

router = APIRouter(prefix="/ws", tags=["logs"])


async def _wait_for_disconnect(websocket: WebSocket) -> None:
    # Viewers never send anything meaningful; incoming frames are discarded.
    while True:
        message = await websocket.receive()
        if message["type"] == "websocket.disconnect":
            return


@router.websocket("/logs")
async def stream_logs(websocket: WebSocket) -> None:
    context: AppContext = get_app_context(websocket)
    await websocket.accept()
    queue, _, unsubscribe = context.broadcaster.subscribe()
    disconnect_task = asyncio.create_task(_wait_for_disconnect(websocket))
    try:
        while True:
            event_task = asyncio.create_task(queue.get())
            done, _ = await asyncio.wait(
                {event_task, disconnect_task}, return_when=asyncio.FIRST_COMPLETED
            )
            if disconnect_task in done:
                event_task.cancel()
                break
            event = event_task.result()
            if event is None:
                break
            await websocket.send_json(LogEventMessage.from_event(event).model_dump())
    except WebSocketDisconnect:
        pass
    finally:
        disconnect_task.cancel()
        unsubscribe()


__all__ = ["router"]
