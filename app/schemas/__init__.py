"""
Pydantic schemas package
"""

from .common import *
from .event import *
from .assignment import *
from .replacement import *
from .notification import *
from .profile import *

__all__ = [
    "StandardResponse",
    "ErrorResponse",
    "PlanningItemIn",
    "InformationFieldIn",
    "EventCreate",
    "EventDuplicate",
    "PlanningItemRead",
    "InformationFieldRead",
    "EventSummary",
    "EventDetail",
    "AssignmentOffer",
    "ReplySubmit",
    "TeamValidationRequest",
    "AssignmentRead",
    "ReplyRead",
    "ReplacementRequestCreate",
    "ReplacementDecision",
    "ReplacementRead",
    "NotificationRead",
    "ProfileUpdate",
    "IntermittentRead",
    "ProfileRead",
]
