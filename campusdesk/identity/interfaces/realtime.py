"""
Real-time Endpoint
==================

``WS /ws?token=<access token>``. The token is verified before the
connection joins any room; an invalid token closes with code 4001.
"""

from typing import Optional

from fastapi import APIRouter, Query, WebSocket, WebSocketDisconnect

from campusdesk.core import AuthenticationError
from campusdesk.identity.interfaces.dependencies import token_service
from campusdesk.shared.infrastructure.logging import get_logger
from campusdesk.shared.infrastructure.realtime import ConnectionManager

logger = get_logger(__name__)

realtime_router = APIRouter(tags=["Realtime"])

WS_UNAUTHORIZED = 4001


@realtime_router.websocket("/ws")
async def realtime_socket(websocket: WebSocket, token: Optional[str] = Query(None)):
    manager: ConnectionManager = websocket.app.state.connection_manager

    try:
        if not token:
            raise AuthenticationError("Authentication required")
        claims = token_service.verify_access_token(token)
    except AuthenticationError as e:
        logger.info("Realtime connection rejected", extra={"reason": e.message})
        await websocket.accept()
        await websocket.close(code=WS_UNAUTHORIZED, reason=e.message)
        return

    connection = await manager.connect(websocket, str(claims.user_id), claims.role.value)
    try:
        while True:
            message = await websocket.receive_text()
            if message.strip().lower() == "ping":
                await websocket.send_text("pong")
    except WebSocketDisconnect:
        pass
    finally:
        await manager.disconnect(connection)
