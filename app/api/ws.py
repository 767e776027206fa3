"""
WebSocket endpoint for live notification updates
"""

import asyncio
import json
import logging
from typing import Optional
from fastapi import APIRouter, HTTPException, Query, WebSocket, WebSocketDisconnect

from app.core.db import SessionLocal
from app.services.notification_service import NotificationService
from app.services.realtime import ChangeEvent, ChangeFilter, Subscription, INSERT, change_feed
from app.utils.security import open_session

logger = logging.getLogger(__name__)

# Router for WebSocket endpoints
router = APIRouter()

async def send_message(websocket: WebSocket, message: dict):
    """Send one JSON message to a socket"""
    await websocket.send_text(json.dumps(message, default=str))

def unread_count_for(user_id: str) -> int:
    db = SessionLocal()
    try:
        return NotificationService.unread_count(db, user_id)
    finally:
        db.close()

def notification_message(event: ChangeEvent, user_id: str) -> dict:
    """Payload pushed to the client for one change on its notifications"""
    return {
        "type": "notification_inserted" if event.kind == INSERT else "notification_updated",
        "notification": event.record,
        "unread_count": unread_count_for(user_id),
    }

async def forward_changes(websocket: WebSocket, subscription: Subscription, user_id: str):
    """Push every change of the subscription to the socket until it closes"""
    async for event in subscription:
        await send_message(websocket, notification_message(event, user_id))

@router.websocket("/notifications")
async def notifications_socket(
    websocket: WebSocket,
    token: Optional[str] = Query(None)
):
    """Live feed of the caller's notifications; the token comes as a query parameter"""
    db = SessionLocal()
    try:
        session = open_session(token or "", db)
    except HTTPException as e:
        await websocket.close(code=4401, reason=e.detail)
        return
    finally:
        db.close()

    user_id = session.user_id
    await websocket.accept()
    logger.info(f"WebSocket connected for user {user_id}")
    subscription = change_feed.subscribe(ChangeFilter("notifications", "user_id", user_id))
    forwarder = asyncio.create_task(forward_changes(websocket, subscription, user_id))

    try:
        welcome_message = {
            "type": "connection",
            "message": "Subscribed to notifications",
            "user_id": user_id,
            "unread_count": unread_count_for(user_id),
        }
        await send_message(websocket, welcome_message)

        # Handle client messages (heartbeat) until the socket goes away
        while True:
            data = await websocket.receive_text()
            try:
                client_message = json.loads(data)
            except json.JSONDecodeError:
                logger.warning(f"Invalid JSON received from WebSocket: {data}")
                continue

            if client_message.get("type") == "ping":
                pong_message = {
                    "type": "pong",
                    "timestamp": client_message.get("timestamp")
                }
                await send_message(websocket, pong_message)

    except WebSocketDisconnect:
        pass
    finally:
        forwarder.cancel()
        subscription.close()
        try:
            await forwarder
        except asyncio.CancelledError:
            pass
        except Exception as e:
            logger.warning(f"Notification push to user {user_id} failed: {e}")
        session.close()
        logger.info(f"WebSocket disconnected for user {user_id}")
