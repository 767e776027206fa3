"""
Database models package
"""

from .profile import RegisseurProfile, IntermittentProfile
from .event import Event, EventPlanningItem, EventInformationField
from .assignment import EventIntermittentAssignment, EventIntermittentResponse
from .replacement import ReplacementRequest
from .notification import Notification

__all__ = [
    "RegisseurProfile",
    "IntermittentProfile",
    "Event",
    "EventPlanningItem",
    "EventInformationField",
    "EventIntermittentAssignment",
    "EventIntermittentResponse",
    "ReplacementRequest",
    "Notification",
]
