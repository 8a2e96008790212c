import logging

from fastapi import APIRouter, Depends, Query, WebSocket, WebSocketDisconnect, status
from sqlalchemy.orm import Session

from app.core.auth_dependency import get_db, user_from_token
from app.services.socket_manager import manager

logger = logging.getLogger(__name__)

router = APIRouter()


@router.websocket("/ws/payments")
async def payment_events(
    websocket: WebSocket,
    token: str = Query(None),
    db: Session = Depends(get_db)
):
    """
    Push channel for payment outcomes (``payment.succeeded`` /
    ``payment.failed``). Browsers authenticate with ``?token=<jwt>``; a
    ``ping`` text frame is answered with ``pong``.
    """
    user = user_from_token(token, db) if token else None
    if user is None:
        await websocket.close(code=status.WS_1008_POLICY_VIOLATION)
        return
    user_id = user.id
    db.close()

    await manager.connect(user_id, websocket)
    try:
        while True:
            data = await websocket.receive_text()
            if data == "ping":
                await websocket.send_text("pong")
    except WebSocketDisconnect:
        manager.disconnect(user_id, websocket)
