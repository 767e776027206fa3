"""
Notification schemas
"""

from datetime import datetime
from typing import Optional
from pydantic import BaseModel

class NotificationRead(BaseModel):
    id: int
    user_id: str
    type: str
    content: str
    related_event_id: Optional[int] = None
    related_request_id: Optional[int] = None
    is_read: bool
    created_at: datetime

    class Config:
        from_attributes = True
