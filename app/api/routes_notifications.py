"""
Notification feed routes - shared by both roles
"""

from typing import Optional
from fastapi import APIRouter, Depends, Query
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.core.db import get_db
from app.schemas.notification import NotificationRead
from app.services.errors import WorkflowError
from app.services.notification_service import NotificationService
from app.services.realtime import change_feed
from app.services.session import SessionContext
from app.utils.security import get_session
from app.utils.responses import success_response, workflow_error_response, backend_error_response

router = APIRouter()

# Notification service instance publishing to the live feed
notification_service = NotificationService(change_feed)

@router.get("")
async def list_notifications(
    limit: Optional[int] = Query(None, ge=1, le=100),
    db: Session = Depends(get_db),
    session: SessionContext = Depends(get_session)
):
    """Latest notifications of the caller, newest first"""
    notifications = NotificationService.list_for_user(db, session.user_id, limit)
    return success_response(
        message="Notifications retrieved successfully",
        data={
            "notifications": [NotificationRead.model_validate(n) for n in notifications],
            "unread_count": NotificationService.unread_count(db, session.user_id),
        }
    )

@router.get("/unread-count")
async def unread_count(
    db: Session = Depends(get_db),
    session: SessionContext = Depends(get_session)
):
    return success_response(
        message="Unread count retrieved",
        data={"unread_count": NotificationService.unread_count(db, session.user_id)}
    )

@router.post("/read-all")
async def mark_all_as_read(
    db: Session = Depends(get_db),
    session: SessionContext = Depends(get_session)
):
    """Mark every notification of the caller as read"""
    try:
        count = notification_service.mark_all_as_read(db, session.user_id)
    except SQLAlchemyError as e:
        return backend_error_response(db, "mark the notifications as read", e)

    return success_response(
        message=f"{count} notifications marked as read",
        data={"updated": count, "unread_count": 0}
    )

@router.post("/{notification_id}/read")
async def mark_as_read(
    notification_id: int,
    db: Session = Depends(get_db),
    session: SessionContext = Depends(get_session)
):
    try:
        notification = notification_service.mark_as_read(db, session.user_id, notification_id)
    except WorkflowError as e:
        return workflow_error_response(e)
    except SQLAlchemyError as e:
        return backend_error_response(db, "mark the notification as read", e)

    return success_response(
        message="Notification marked as read",
        data={
            "notification": NotificationRead.model_validate(notification),
            "unread_count": NotificationService.unread_count(db, session.user_id),
        }
    )
