"""WebSocket endpoints for real-time communication."""

import logging

from fastapi import APIRouter, Depends, Query, WebSocket, WebSocketDisconnect, status

from asthmacare.app.services.app_state import AppState, get_app_state

router = APIRouter(tags=["websocket"])
logger = logging.getLogger(__name__)


@router.websocket("/ws")
async def websocket_endpoint(
    websocket: WebSocket,
    token: str = Query(...),
    state: AppState = Depends(get_app_state),
):
    """
    WebSocket endpoint for real-time updates of the signed-in user.

    Events sent to clients:
    - report_added: Upload persisted, analysis started
    - report_updated: Analysis completed or failed, or re-analysis started
    - report_deleted: Report removed
    - upload_progress: Batch percentage after each file
    - notification: Transient message with level and dismiss_after seconds
    - session_changed: Signed in or signed out
    """
    ctx = await state.context_for_token(token)
    if ctx is None:
        await websocket.close(code=status.WS_1008_POLICY_VIOLATION)
        return

    user_id = ctx.user.id
    await state.connections.connect(websocket, user_id)

    try:
        # Keep connection alive and listen for client messages
        while True:
            data = await websocket.receive_text()

            # Heartbeat
            if data == "ping":
                await state.connections.send_personal_message({"type": "pong"}, websocket)

    except WebSocketDisconnect:
        state.connections.disconnect(websocket, user_id)
        logger.info(f"[WS] Disconnected user {user_id}")
