"""
Replacement request schemas
"""

from datetime import datetime
from typing import Optional, List
from pydantic import BaseModel

from app.models.enums import RequestType, ReplacementStatus

class ReplacementRequestCreate(BaseModel):
    """Schema for a staff member asking to be released"""
    request_type: RequestType = RequestType.SOUHAITE
    comment: str = ""
    suggested_intermittent_profile_ids: List[int] = []

class ReplacementDecision(BaseModel):
    """Régisseur decision; the approved variant is picked explicitly"""
    outcome: ReplacementStatus

class ReplacementRead(BaseModel):
    id: int
    event_assignment_id: int
    requester_intermittent_profile_id: int
    regisseur_id: str
    request_type: str
    comment: str
    suggested_intermittent_profile_ids: Optional[List[int]] = None
    status: str
    created_at: datetime

    class Config:
        from_attributes = True
