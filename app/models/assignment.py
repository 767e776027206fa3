"""
Assignment ledger and response history models
"""

from datetime import datetime
from sqlalchemy import Column, Integer, String, DateTime, Text, JSON, ForeignKey
from sqlalchemy.orm import relationship

from app.core.db import Base
from app.models.enums import AssignmentStatus

class EventIntermittentAssignment(Base):
    __tablename__ = "event_intermittent_assignments"

    id = Column(Integer, primary_key=True, index=True)
    event_id = Column(Integer, ForeignKey("events.id"), nullable=False, index=True)
    intermittent_profile_id = Column(Integer, ForeignKey("intermittent_profiles.id"), nullable=False, index=True)
    statut_disponibilite = Column(String(20), nullable=False, default=AssignmentStatus.PROPOSE.value)
    date_reponse = Column(DateTime, nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    event = relationship("Event", back_populates="assignments")
    intermittent = relationship("IntermittentProfile")
    responses = relationship(
        "EventIntermittentResponse",
        back_populates="assignment",
        order_by="EventIntermittentResponse.created_at",
        passive_deletes=True,
    )

class EventIntermittentResponse(Base):
    """Append-only reply history; rows are never updated"""
    __tablename__ = "event_intermittent_responses"

    id = Column(Integer, primary_key=True, index=True)
    event_assignment_id = Column(Integer, ForeignKey("event_intermittent_assignments.id"), nullable=False, index=True)
    response_type = Column(String(30), nullable=False)  # accept, refuse, propose_alternative
    comment = Column(Text, nullable=True)
    alternative_dates = Column(JSON, nullable=True)  # list of ISO datetimes
    created_at = Column(DateTime, default=datetime.utcnow)

    assignment = relationship("EventIntermittentAssignment", back_populates="responses")
