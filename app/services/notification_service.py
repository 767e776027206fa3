"""
Notification fan-out with live change publishing
"""

import logging
from typing import Any, Dict, List, Optional

from sqlalchemy.orm import Session

from app.core.config import settings
from app.models import Notification
from app.services.errors import NotFound, PermissionDenied
from app.services.realtime import ChangeEvent, ChangeFeed, INSERT, UPDATE
from app.services.repositories import NotificationRepo

logger = logging.getLogger(__name__)

TABLE = "notifications"


def serialize_notification(notification: Notification) -> Dict[str, Any]:
    return {
        "id": notification.id,
        "user_id": notification.user_id,
        "type": notification.type,
        "content": notification.content,
        "related_event_id": notification.related_event_id,
        "related_request_id": notification.related_request_id,
        "is_read": notification.is_read,
        "created_at": notification.created_at.isoformat() if notification.created_at else None,
    }


class NotificationService:
    """Service for creating and reading notifications"""

    def __init__(self, feed: ChangeFeed):
        self.feed = feed

    def create(
        self,
        db: Session,
        user_id: str,
        notification_type: str,
        content: str,
        related_event_id: Optional[int] = None,
        related_request_id: Optional[int] = None,
    ) -> Notification:
        """Write one notification row and publish it to live subscribers"""
        notification = NotificationRepo.insert(
            db,
            user_id=user_id,
            type=notification_type,
            content=content,
            related_event_id=related_event_id,
            related_request_id=related_request_id,
            is_read=False,
        )
        self.feed.publish(ChangeEvent(TABLE, INSERT, serialize_notification(notification)))
        logger.info(f"Notification {notification.id} ({notification_type}) created for user {user_id}")
        return notification

    @staticmethod
    def list_for_user(db: Session, user_id: str, limit: Optional[int] = None) -> List[Notification]:
        return NotificationRepo.list_for_user(db, user_id, settings.NOTIFICATION_PAGE_SIZE if limit is None else limit)

    @staticmethod
    def unread_count(db: Session, user_id: str) -> int:
        return NotificationRepo.count_unread(db, user_id)

    def mark_as_read(self, db: Session, user_id: str, notification_id: int) -> Notification:
        """Flag one notification read. Already-read rows are written again unchanged."""
        notification = NotificationRepo.get(db, notification_id)
        if not notification:
            raise NotFound("Notification")
        if notification.user_id != user_id:
            raise PermissionDenied("This notification belongs to another user")

        NotificationRepo.set_read(db, notification)
        self.feed.publish(ChangeEvent(TABLE, UPDATE, serialize_notification(notification)))
        return notification

    def mark_all_as_read(self, db: Session, user_id: str) -> int:
        count = NotificationRepo.set_all_read(db, user_id)
        if count:
            self.feed.publish(ChangeEvent(TABLE, UPDATE, {"user_id": user_id, "is_read": True, "count": count}))
        logger.info(f"Marked {count} notifications read for user {user_id}")
        return count
