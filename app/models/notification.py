"""
Notification model
"""

from datetime import datetime
from sqlalchemy import Column, Integer, String, Boolean, DateTime, Text, ForeignKey

from app.core.db import Base

class Notification(Base):
    __tablename__ = "notifications"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(String(128), nullable=False, index=True)
    type = Column(String(40), nullable=False)
    content = Column(Text, nullable=False)
    related_event_id = Column(Integer, ForeignKey("events.id"), nullable=True)
    related_request_id = Column(Integer, ForeignKey("replacement_requests.id"), nullable=True)
    is_read = Column(Boolean, nullable=False, default=False)
    created_at = Column(DateTime, default=datetime.utcnow, index=True)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)
