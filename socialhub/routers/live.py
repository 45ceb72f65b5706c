import json
import logging
from typing import Any, Optional

import jwt
from fastapi import APIRouter, Depends, WebSocket, WebSocketDisconnect

from socialhub.utils.dependencies import get_live_channel
from socialhub.utils.live_channel import LiveChannel
from socialhub.utils.security import decode_access_token


logger = logging.getLogger(__name__)

router = APIRouter(tags=["live"])


@router.websocket("/ws")
async def live_socket(websocket: WebSocket, live: LiveChannel = Depends(get_live_channel)):
    # Connected: no user bound until a valid join arrives
    await websocket.accept()
    live.connect(websocket)
    try:
        while True:
            raw = await websocket.receive_text()
            try:
                msg = json.loads(raw)
            except json.JSONDecodeError:
                await live.send(websocket, "error", {"message": "Invalid JSON format"})
                continue
            if not isinstance(msg, dict):
                await live.send(websocket, "error", {"message": "Invalid event envelope"})
                continue

            event = msg.get("event")
            if event == "join":
                await _handle_join(websocket, live, msg.get("data"))
            elif event == "ping":
                await live.send(websocket, "pong", {})
            else:
                await live.send(websocket, "error", {"message": f"Unknown event: {event}"})
    except WebSocketDisconnect:
        pass
    finally:
        # Disconnected is terminal; the registry entry goes only if this socket still owns it
        user_id = await live.disconnect(websocket)
        if user_id:
            logger.info("User %s went offline", user_id)


async def _handle_join(websocket: WebSocket, live: LiveChannel, data: Any) -> None:
    token: Optional[str] = websocket.query_params.get("token")
    if isinstance(data, dict):
        user_id = data.get("userId")
        token = data.get("token") or token
    else:
        user_id = data
    if not user_id or not isinstance(user_id, str):
        await live.send(websocket, "error", {"message": "userId required"})
        return
    if not token:
        await live.send(websocket, "error", {"message": "Not authenticated"})
        return
    try:
        payload = decode_access_token(token)
    except jwt.InvalidTokenError:
        await live.send(websocket, "error", {"message": "Invalid token"})
        return
    if str(payload.get("sub")) != user_id:
        await live.send(websocket, "error", {"message": "Token does not match userId"})
        return

    await live.join(user_id, websocket)
    await live.send(websocket, "joined", {"userId": user_id})
    logger.info("User %s joined the live channel", user_id)
