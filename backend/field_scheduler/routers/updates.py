"""WebSocket endpoint that streams change notifications to the UI."""
import logging

from fastapi import APIRouter, WebSocket, WebSocketDisconnect, status

from field_scheduler.core.errors import PermissionDeniedError
from field_scheduler.routers.deps import identity_from_headers
from field_scheduler.services.context import Context
from field_scheduler.services.notifier import WebSocketBroadcaster

logger = logging.getLogger(__name__)
router = APIRouter()


@router.websocket("/ws")
async def updates(websocket: WebSocket):
    state = websocket.app.state.scheduler
    try:
        await Context.create(
            state,
            identity_from_headers(websocket.headers),
            websocket.headers.get("user-agent", ""),
            websocket.client.host if websocket.client else "",
        )
    except PermissionDeniedError as exc:
        logger.info("Rejected WebSocket connection: %s", exc)
        await websocket.close(code=status.WS_1008_POLICY_VIOLATION, reason=str(exc))
        return

    broadcaster = state.notifier
    if not isinstance(broadcaster, WebSocketBroadcaster):
        await websocket.close(code=status.WS_1011_INTERNAL_ERROR, reason="Live updates unavailable")
        return

    await websocket.accept()
    broadcaster.connect(websocket)
    try:
        while True:
            await websocket.receive_text()
    except WebSocketDisconnect:
        pass
    finally:
        broadcaster.disconnect(websocket)
