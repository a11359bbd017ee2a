import asyncio
import logging
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, WebSocket, WebSocketDisconnect
from sqlalchemy.orm import Session
from starlette.concurrency import run_in_threadpool

from config import AUTH_TRUST_USER_HEADER, OPERATION_TIMEOUT_SECONDS
from database import get_db
from schemas import NotificationFeed
from services import notification_service
from utils.auth import get_current_user_id, verify_id_token

router = APIRouter(prefix="/notifications", tags=["Notifications"])

logger = logging.getLogger("together.api")


@router.get("/", response_model=NotificationFeed)
def list_notifications(
    limit: int = 50,
    before_id: Optional[int] = None,
    user_id: str = Depends(get_current_user_id),
    db: Session = Depends(get_db)
):
    """
    Newest-first page of the current user's notifications. Pass the last
    `id` seen as `before_id` to get the next page.
    """
    notifications, unread_count = notification_service.get_notifications(
        db, user_id, limit=limit, before_id=before_id
    )
    return NotificationFeed(notifications=notifications, unread_count=unread_count)


@router.post("/{notification_id}/read")
def mark_notification_as_read(
    notification_id: int,
    user_id: str = Depends(get_current_user_id),
    db: Session = Depends(get_db)
):
    unread_count = notification_service.mark_notification_as_read(
        db, user_id, notification_id, timeout=OPERATION_TIMEOUT_SECONDS
    )
    return {"unread_count": unread_count}


@router.post("/read-all")
def mark_all_notifications_as_read(
    user_id: str = Depends(get_current_user_id),
    db: Session = Depends(get_db)
):
    unread_count = notification_service.mark_all_notifications_as_read(
        db, user_id, timeout=OPERATION_TIMEOUT_SECONDS
    )
    return {"unread_count": unread_count}


@router.websocket("/ws/{user_id}")
async def notifications_socket(
    websocket: WebSocket,
    user_id: str,
    token: Optional[str] = None,
    db: Session = Depends(get_db),
):
    """
    Push the current notifications on connect and again on every change.
    Browsers cannot set headers on a WebSocket handshake, so the ID token
    travels as the `token` query parameter.
    """
    if token:
        try:
            user_id = verify_id_token(token)
        except HTTPException:
            await websocket.close(code=4401)
            return
    elif not AUTH_TRUST_USER_HEADER:
        await websocket.close(code=4401)
        return
    await websocket.accept()

    loop = asyncio.get_running_loop()
    updates: asyncio.Queue = asyncio.Queue()

    def on_change(notifications, unread_count):
        feed = NotificationFeed(notifications=notifications, unread_count=unread_count)
        loop.call_soon_threadsafe(updates.put_nowait, feed.model_dump(mode="json"))

    unsubscribe = await run_in_threadpool(
        notification_service.subscribe_to_notifications, db, user_id, on_change
    )
    await run_in_threadpool(db.close)

    async def forward():
        while True:
            await websocket.send_json(await updates.get())

    sender = asyncio.create_task(forward())
    try:
        # Client messages are ignored; receiving only detects the disconnect
        while True:
            await websocket.receive_text()
    except WebSocketDisconnect:
        logger.info("Notification socket closed for %s", user_id)
    finally:
        sender.cancel()
        unsubscribe()
