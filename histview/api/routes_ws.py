from __future__ import annotations

import asyncio
import logging
from fastapi import APIRouter, WebSocket, WebSocketDisconnect

from histview.api.routes_viewer import state_response
from histview.deps import get_settings, get_viewer

router = APIRouter()
logger = logging.getLogger(__name__)

@router.websocket("/ws/viewer")
async def ws_viewer(websocket: WebSocket):
    """
    WebSocket stream of the viewer state every push interval (1s by default).
    Same payload as GET /viewer/state so the frontend can switch easily.
    """
    await websocket.accept()
    viewer = get_viewer()
    interval = get_settings().ws_push_interval_s

    try:
        while True:
            await websocket.send_json(state_response(viewer).model_dump(mode="json"))
            await asyncio.sleep(interval)

    except WebSocketDisconnect:
        # normal disconnect
        return
    except Exception:
        logger.exception("Viewer websocket stream failed")
        try:
            await websocket.close()
        except Exception:
            logger.debug("Viewer websocket already closed")
