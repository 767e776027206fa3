"""
String enumerations stored in the status/type columns
"""

import enum


class UserRole(str, enum.Enum):
    REGISSEUR = "regisseur"
    INTERMITTENT = "intermittent"


class EventStatus(str, enum.Enum):
    DRAFT = "brouillon"
    PUBLISHED = "publie"
    # Never written by any operation; kept so existing rows still parse
    CANCELLED = "annule"
    COMPLETED = "termine"


class PlanningGroup(str, enum.Enum):
    ARTISTES = "artistes"
    TECHNIQUES = "techniques"


class InfoFieldType(str, enum.Enum):
    SON = "son"
    LUMIERE = "lumiere"
    PLATEAU = "plateau"
    GENERAL = "general"


class AssignmentStatus(str, enum.Enum):
    PROPOSE = "propose"
    DISPONIBLE = "disponible"
    INCERTAIN = "incertain"
    NON_DISPONIBLE = "non_disponible"
    VALIDE = "valide"
    NON_RETENU = "non_retenu"


class ResponseType(str, enum.Enum):
    ACCEPT = "accept"
    REFUSE = "refuse"
    PROPOSE_ALTERNATIVE = "propose_alternative"


class RequestType(str, enum.Enum):
    URGENT = "urgent"
    SOUHAITE = "souhaite"


class ReplacementStatus(str, enum.Enum):
    PENDING_APPROVAL = "pending_approval"
    APPROVED_AWAITING_REPLACEMENT = "approved_awaiting_replacement"
    APPROVED_REPLACEMENT_FOUND = "approved_replacement_found"
    REJECTED_BY_REGISSEUR = "rejected_by_regisseur"
    CANCELLED_BY_INTERMITTENT = "cancelled_by_intermittent"


class NotificationType(str, enum.Enum):
    REPLACEMENT_REQUEST = "replacement_request"
    EVENT_UPDATE = "event_update"
    EVENT_CANCELLED = "event_cancelled"
    TEAM_VALIDATED = "team_validated"
    REQUEST_APPROVED = "request_approved"
    REQUEST_REJECTED = "request_rejected"


class SelectionState(str, enum.Enum):
    """Team-validation toggle; cycles pending -> selected -> not_selected -> pending"""
    PENDING = "pending"
    SELECTED = "selected"
    NOT_SELECTED = "not_selected"

    def next(self) -> "SelectionState":
        order = list(SelectionState)
        return order[(order.index(self) + 1) % len(order)]
