"""
Assignment and reply schemas
"""

from datetime import datetime
from typing import Optional, List, Dict
from pydantic import BaseModel

from app.models.enums import ResponseType, SelectionState

class AssignmentOffer(BaseModel):
    """Profiles to propose for an event"""
    intermittent_ids: List[int]

class ReplySubmit(BaseModel):
    """Staff reply to an assignment offer.

    ``alternative_dates`` keeps the raw form values; blanks are dropped by the
    service before validation.
    """
    response_type: ResponseType
    comment: Optional[str] = None
    alternative_dates: List[str] = []

class TeamValidationRequest(BaseModel):
    """Toggle state per assignment id"""
    selections: Dict[int, SelectionState]

class AssignmentRead(BaseModel):
    id: int
    event_id: int
    intermittent_profile_id: int
    statut_disponibilite: str
    date_reponse: Optional[datetime] = None

    class Config:
        from_attributes = True

class ReplyRead(BaseModel):
    id: int
    event_assignment_id: int
    response_type: str
    comment: Optional[str] = None
    alternative_dates: Optional[List[str]] = None
    created_at: datetime

    class Config:
        from_attributes = True
