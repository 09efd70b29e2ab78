from __future__ import annotations
import asyncio
import logging
import queue

from fastapi import APIRouter, WebSocket, WebSocketDisconnect

from app.services.progress import hub
from app.utils.auth import verify_access_token

logger = logging.getLogger(__name__)

router = APIRouter(tags=["progress"])

POLL_SECONDS = 0.25


@router.websocket("/ws/progress")
async def progress_stream(websocket: WebSocket):
    # browsers cannot set headers on a websocket, so the token comes as a query param
    if not verify_access_token(websocket.query_params.get("token") or ""):
        await websocket.close(code=1008)
        return

    await websocket.accept()
    subscription = hub.subscribe()
    try:
        while True:
            try:
                event = subscription.get_nowait()
            except queue.Empty:
                # client messages are ignored; receiving is how a disconnect is noticed
                try:
                    await asyncio.wait_for(websocket.receive_text(), timeout=POLL_SECONDS)
                except asyncio.TimeoutError:
                    pass
                continue
            await websocket.send_json(event)
    except WebSocketDisconnect:
        logger.debug("progress subscriber disconnected")
    finally:
        hub.unsubscribe(subscription)
