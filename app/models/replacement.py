"""
Replacement request model
"""

from datetime import datetime
from sqlalchemy import Column, Integer, String, DateTime, Text, JSON, ForeignKey
from sqlalchemy.orm import relationship

from app.core.db import Base
from app.models.enums import ReplacementStatus

class ReplacementRequest(Base):
    __tablename__ = "replacement_requests"

    id = Column(Integer, primary_key=True, index=True)
    event_assignment_id = Column(Integer, ForeignKey("event_intermittent_assignments.id"), nullable=False, index=True)
    requester_intermittent_profile_id = Column(Integer, ForeignKey("intermittent_profiles.id"), nullable=False)
    regisseur_id = Column(String(128), nullable=False, index=True)
    request_type = Column(String(20), nullable=False)  # urgent, souhaite
    comment = Column(Text, nullable=False)
    suggested_intermittent_profile_ids = Column(JSON, nullable=True)
    status = Column(String(40), nullable=False, default=ReplacementStatus.PENDING_APPROVAL.value)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    assignment = relationship("EventIntermittentAssignment")
    requester = relationship("IntermittentProfile")
