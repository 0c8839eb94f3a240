"""
Realtime websocket endpoint.

An authenticated student or recruiter connects to /ws with the session
cookie and is subscribed to its own `{role}-{id}` channel. Students may also
join `field-{field}` channels to receive job-updated hints. The channel is
best effort: clients re-fetch state through the HTTP API.
"""
import logging
from typing import Optional
from uuid import UUID

from fastapi import APIRouter, Depends, WebSocket, WebSocketDisconnect, status
from sqlalchemy.ext.asyncio import AsyncSession

from jobboard.api.auth import AUTH_COOKIE
from jobboard.database import get_db
from jobboard.models.job import JobField
from jobboard.models.user import User
from jobboard.services.notifications import connection_manager, field_channel, user_channel
from jobboard.services.security import decode_session_token

logger = logging.getLogger(__name__)
router = APIRouter()

FIELD_VALUES = {field.value for field in JobField}


async def _session_user(token: str, db: AsyncSession) -> Optional[User]:
    """The active user behind a session token, or None."""
    payload = decode_session_token(token)
    if payload is None:
        return None

    try:
        user_id = UUID(payload["sub"])
    except ValueError:
        return None

    user = await db.get(User, user_id)
    if user is None or user.role.value != payload["role"] or not user.is_active:
        return None
    return user


@router.websocket("/ws")
async def realtime(websocket: WebSocket, db: AsyncSession = Depends(get_db)):
    user = await _session_user(websocket.cookies.get(AUTH_COOKIE) or "", db)
    # Release the pooled connection before the long-lived socket loop
    await db.close()
    if user is None:
        await websocket.close(code=status.WS_1008_POLICY_VIOLATION)
        return

    role, user_id = user.role.value, user.id
    await websocket.accept()
    channels = {user_channel(role, user_id)}
    for channel_key in channels:
        connection_manager.join(websocket, channel_key)
    await websocket.send_json({"event": "connected", "data": {"channels": sorted(channels)}})
    logger.info(f"Realtime connection opened for {role} {user_id}")

    try:
        while True:
            try:
                message = await websocket.receive_json()
            except ValueError:
                await websocket.send_json({"event": "error", "data": {"message": "Invalid JSON"}})
                continue
            action = message.get("action") if isinstance(message, dict) else None

            if action in ("join-field", "leave-field"):
                field_name = message.get("field")
                if field_name not in FIELD_VALUES:
                    await websocket.send_json({"event": "error", "data": {"message": "Unknown field"}})
                    continue

                channel_key = field_channel(field_name)
                if action == "join-field":
                    connection_manager.join(websocket, channel_key)
                    channels.add(channel_key)
                else:
                    connection_manager.leave(websocket, channel_key)
                    channels.discard(channel_key)
                await websocket.send_json({"event": action, "data": {"channel": channel_key}})
            else:
                await websocket.send_json({"event": "error", "data": {"message": "Unknown action"}})
    except WebSocketDisconnect:
        logger.info(f"Realtime connection closed for {role} {user_id}")
    finally:
        connection_manager.disconnect(websocket)
