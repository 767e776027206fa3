"""
Replacement requests raised by staff on a validated assignment
"""

import logging
from typing import Iterable, List, Optional, Tuple

from sqlalchemy.orm import Session

from app.core.config import settings
from app.models import IntermittentProfile, Notification, ReplacementRequest
from app.models.enums import AssignmentStatus, NotificationType, ReplacementStatus, RequestType
from app.services.errors import InvalidTransition, NotFound, PermissionDenied, SelectionLimitReached, ValidationFailed
from app.services.notification_service import NotificationService
from app.services.repositories import AssignmentRepo, EventRepo, ProfileRepo, ReplacementRepo

logger = logging.getLogger(__name__)

ACTIVE_STATUSES = {ReplacementStatus.PENDING_APPROVAL, ReplacementStatus.APPROVED_AWAITING_REPLACEMENT}

# The régisseur picks the approved variant explicitly; nothing infers it
DECISION_OUTCOMES = {
    ReplacementStatus.APPROVED_AWAITING_REPLACEMENT,
    ReplacementStatus.APPROVED_REPLACEMENT_FOUND,
    ReplacementStatus.REJECTED_BY_REGISSEUR,
}


class CandidateSelection:
    """Suggested substitutes, capped at a fixed number and kept in pick order"""

    def __init__(self, selected: Iterable[int] = (), limit: Optional[int] = None):
        self.limit = settings.MAX_REPLACEMENT_SUGGESTIONS if limit is None else limit
        self._ids: List[int] = []
        for profile_id in selected:
            self.add(profile_id)

    def add(self, profile_id: int) -> None:
        if profile_id in self._ids:
            return
        if len(self._ids) >= self.limit:
            raise SelectionLimitReached(f"You can suggest at most {self.limit} intermittents")
        self._ids.append(profile_id)

    def remove(self, profile_id: int) -> None:
        if profile_id in self._ids:
            self._ids.remove(profile_id)

    def toggle(self, profile_id: int) -> bool:
        """Flip one candidate; returns whether it is selected afterwards"""
        if profile_id in self._ids:
            self.remove(profile_id)
            return False
        self.add(profile_id)
        return True

    @property
    def ids(self) -> List[int]:
        return list(self._ids)

    def __len__(self) -> int:
        return len(self._ids)

    def __contains__(self, profile_id: int) -> bool:
        return profile_id in self._ids


class ReplacementService:
    """Service for the replacement request lifecycle"""

    def __init__(self, notification_service: NotificationService):
        self.notification_service = notification_service

    @staticmethod
    def list_candidates(db: Session, event_id: int, search: Optional[str] = None) -> List[IntermittentProfile]:
        """Intermittents not already assigned to the event.

        Calendar conflicts with the candidates' other events are not checked.
        """
        assigned = AssignmentRepo.assigned_profile_ids(db, event_id)
        return ProfileRepo.list_intermittents(db, exclude_ids=assigned, search=(search or "").strip() or None)

    @staticmethod
    def active_request_for(db: Session, assignment_id: int) -> Optional[ReplacementRequest]:
        for request in ReplacementRepo.list_for_assignment(db, assignment_id):
            if ReplacementStatus(request.status) in ACTIVE_STATUSES:
                return request
        return None

    def submit_request(
        self,
        db: Session,
        profile: IntermittentProfile,
        assignment_id: int,
        request_type: str,
        comment: str,
        suggested_ids: Iterable[int] = (),
    ) -> Tuple[ReplacementRequest, Notification]:
        """Create a pending request, then notify the event's régisseur.

        The two rows are written one after the other; if the notification
        write fails the request stays.
        """
        assignment = AssignmentRepo.get(db, assignment_id)
        if not assignment:
            raise NotFound("Assignment")
        if assignment.intermittent_profile_id != profile.id:
            raise PermissionDenied("This assignment belongs to another intermittent")
        if assignment.statut_disponibilite != AssignmentStatus.VALIDE.value:
            raise ValidationFailed("Only a validated assignment can be handed over")

        reason = (comment or "").strip()
        if not reason:
            raise ValidationFailed("Please give a reason for your replacement request")

        try:
            request_type = RequestType(request_type)
        except ValueError:
            raise ValidationFailed(f"Unknown request type '{request_type}'")

        selection = CandidateSelection(suggested_ids)
        if selection.ids:
            candidate_ids = {c.id for c in ReplacementService.list_candidates(db, assignment.event_id)}
            invalid = [profile_id for profile_id in selection.ids if profile_id not in candidate_ids]
            if invalid:
                raise ValidationFailed(
                    "Suggested intermittents must not already be assigned to this event",
                    details=[str(profile_id) for profile_id in invalid],
                )

        if ReplacementService.active_request_for(db, assignment.id):
            raise ValidationFailed("A replacement request is already open for this assignment")

        event = EventRepo.get(db, assignment.event_id)

        request = ReplacementRepo.insert(
            db,
            event_assignment_id=assignment.id,
            requester_intermittent_profile_id=profile.id,
            regisseur_id=event.regisseur_id,
            request_type=request_type.value,
            comment=reason,
            suggested_intermittent_profile_ids=selection.ids or None,
            status=ReplacementStatus.PENDING_APPROVAL.value,
        )
        logger.info(f"Replacement request {request.id} created for assignment {assignment.id}")

        notification = self.notification_service.create(
            db,
            user_id=event.regisseur_id,
            notification_type=NotificationType.REPLACEMENT_REQUEST.value,
            content=f'Demande de remplacement pour "{event.nom_evenement}"',
            related_event_id=event.id,
            related_request_id=request.id,
        )
        return request, notification

    @staticmethod
    def decide(db: Session, regisseur_id: str, request_id: int, outcome: str) -> ReplacementRequest:
        """Approve or reject a pending request"""
        request = ReplacementRepo.get(db, request_id)
        if not request:
            raise NotFound("Replacement request")
        if request.regisseur_id != regisseur_id:
            raise PermissionDenied("This request is addressed to another régisseur")

        outcome = ReplacementStatus(outcome)
        if outcome not in DECISION_OUTCOMES:
            raise ValidationFailed(f"'{outcome.value}' is not a régisseur decision")
        if request.status != ReplacementStatus.PENDING_APPROVAL.value:
            raise InvalidTransition(request.status, outcome.value)

        ReplacementRepo.set_status(db, request, outcome.value)
        logger.info(f"Replacement request {request.id} -> {outcome.value}")
        return request

    @staticmethod
    def cancel(db: Session, profile: IntermittentProfile, request_id: int) -> ReplacementRequest:
        """Withdraw one's own active request"""
        request = ReplacementRepo.get(db, request_id)
        if not request:
            raise NotFound("Replacement request")
        if request.requester_intermittent_profile_id != profile.id:
            raise PermissionDenied("This request was made by another intermittent")
        if ReplacementStatus(request.status) not in ACTIVE_STATUSES:
            raise InvalidTransition(request.status, ReplacementStatus.CANCELLED_BY_INTERMITTENT.value)

        ReplacementRepo.set_status(db, request, ReplacementStatus.CANCELLED_BY_INTERMITTENT.value)
        logger.info(f"Replacement request {request.id} cancelled by intermittent {profile.id}")
        return request

    @staticmethod
    def list_for_regisseur(db: Session, regisseur_id: str, status: Optional[str] = None) -> List[ReplacementRequest]:
        if status:
            status = ReplacementStatus(status).value
        return ReplacementRepo.list_for_regisseur(db, regisseur_id, status)
