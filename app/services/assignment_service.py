"""
Assignment status lifecycle.

Statuses move along a fixed graph::

    propose -> disponible | incertain | non_disponible      (staff reply)
    propose | disponible | incertain -> valide | non_retenu  (régisseur validation)

``valide``, ``non_disponible`` and ``non_retenu`` end a staffing cycle. Rows
are never expired or deleted by the lifecycle itself.
"""

import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Dict, Iterable, List, Optional, Tuple

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.models import Event, EventIntermittentAssignment, EventIntermittentResponse, IntermittentProfile
from app.models.enums import AssignmentStatus, ResponseType, SelectionState, UserRole
from app.services.errors import InvalidTransition, NotFound, PermissionDenied, ValidationFailed
from app.services.repositories import AssignmentRepo, EventRepo, ProfileRepo, ResponseRepo

logger = logging.getLogger(__name__)

TRANSITIONS = {
    AssignmentStatus.PROPOSE: {
        AssignmentStatus.DISPONIBLE,
        AssignmentStatus.INCERTAIN,
        AssignmentStatus.NON_DISPONIBLE,
        AssignmentStatus.VALIDE,
        AssignmentStatus.NON_RETENU,
    },
    AssignmentStatus.DISPONIBLE: {AssignmentStatus.VALIDE, AssignmentStatus.NON_RETENU},
    AssignmentStatus.INCERTAIN: {AssignmentStatus.VALIDE, AssignmentStatus.NON_RETENU},
}

# Which role may move a row into each target status
TARGET_ROLE = {
    AssignmentStatus.DISPONIBLE: UserRole.INTERMITTENT,
    AssignmentStatus.INCERTAIN: UserRole.INTERMITTENT,
    AssignmentStatus.NON_DISPONIBLE: UserRole.INTERMITTENT,
    AssignmentStatus.VALIDE: UserRole.REGISSEUR,
    AssignmentStatus.NON_RETENU: UserRole.REGISSEUR,
}

REPLY_STATUS = {
    ResponseType.ACCEPT: AssignmentStatus.DISPONIBLE,
    ResponseType.PROPOSE_ALTERNATIVE: AssignmentStatus.INCERTAIN,
    ResponseType.REFUSE: AssignmentStatus.NON_DISPONIBLE,
}

VALIDATABLE = {AssignmentStatus.PROPOSE, AssignmentStatus.DISPONIBLE, AssignmentStatus.INCERTAIN}


def can_transition(current: str, target: str) -> bool:
    return AssignmentStatus(target) in TRANSITIONS.get(AssignmentStatus(current), set())


def check_transition(current: str, target: str, role: UserRole) -> AssignmentStatus:
    """Raise unless ``role`` may move a row from ``current`` to ``target``"""
    target = AssignmentStatus(target)
    if not can_transition(current, target):
        raise InvalidTransition(AssignmentStatus(current).value, target.value)
    if TARGET_ROLE[target] != role:
        raise PermissionDenied(f"Only a {TARGET_ROLE[target].value} can set status {target.value}")
    return target


def clean_alternative_dates(raw_dates: Iterable[Optional[str]]) -> List[str]:
    """Drop blank entries and normalise the rest to ISO-8601 strings"""
    cleaned = []
    for raw in raw_dates:
        value = (raw or "").strip()
        if not value:
            continue
        try:
            cleaned.append(datetime.fromisoformat(value.replace("Z", "+00:00")).isoformat())
        except ValueError:
            raise ValidationFailed(f"Invalid alternative date '{value}'")
    return cleaned


@dataclass
class ValidationReport:
    """Outcome of a team-validation batch"""
    updated: Dict[int, str] = field(default_factory=dict)
    pending: List[int] = field(default_factory=list)
    skipped: List[int] = field(default_factory=list)
    failed_id: Optional[int] = None
    error: Optional[str] = None

    @property
    def interrupted(self) -> bool:
        return self.failed_id is not None

    def as_dict(self) -> Dict:
        return {
            "updated": self.updated,
            "pending": self.pending,
            "skipped": self.skipped,
            "failed_id": self.failed_id,
            "error": self.error,
        }


class AssignmentService:
    """Service for offers, staff replies and team validation"""

    @staticmethod
    def get_owned_event(db: Session, event_id: int, regisseur_id: str) -> Event:
        event = EventRepo.get(db, event_id)
        if not event:
            raise NotFound("Event")
        if event.regisseur_id != regisseur_id:
            raise PermissionDenied("You do not manage this event")
        return event

    @staticmethod
    def offer(
        db: Session,
        regisseur_id: str,
        event_id: int,
        profile_ids: Iterable[int],
    ) -> List[EventIntermittentAssignment]:
        """Propose the event to each profile not already on it"""
        event = AssignmentService.get_owned_event(db, event_id, regisseur_id)

        already = set(AssignmentRepo.assigned_profile_ids(db, event.id))
        to_create = []
        for profile_id in profile_ids:
            if profile_id in already or profile_id in to_create:
                continue
            if not ProfileRepo.get_intermittent(db, profile_id):
                raise ValidationFailed(f"Unknown intermittent profile {profile_id}")
            to_create.append(profile_id)

        if not to_create:
            return []

        created = AssignmentRepo.insert_many(db, event.id, to_create, AssignmentStatus.PROPOSE.value)
        logger.info(f"Proposed event {event.id} to {len(created)} intermittents")
        return created

    @staticmethod
    def respond(
        db: Session,
        profile: IntermittentProfile,
        assignment_id: int,
        response_type: str,
        comment: Optional[str] = None,
        alternative_dates: Iterable[Optional[str]] = (),
        now: Optional[datetime] = None,
    ) -> Tuple[EventIntermittentAssignment, EventIntermittentResponse]:
        """Record a staff reply and move the assignment out of ``propose``"""
        assignment = AssignmentRepo.get(db, assignment_id)
        if not assignment:
            raise NotFound("Assignment")
        if assignment.intermittent_profile_id != profile.id:
            raise PermissionDenied("This assignment belongs to another intermittent")

        try:
            response_type = ResponseType(response_type)
        except ValueError:
            raise ValidationFailed(f"Unknown response type '{response_type}'")

        dates: List[str] = []
        if response_type == ResponseType.PROPOSE_ALTERNATIVE:
            dates = clean_alternative_dates(alternative_dates)
            if not dates:
                raise ValidationFailed("Please propose at least one alternative date")

        target = check_transition(assignment.statut_disponibilite, REPLY_STATUS[response_type], UserRole.INTERMITTENT)

        comment = (comment or "").strip() or None
        response = ResponseRepo.append(db, assignment.id, response_type.value, comment, dates or None)
        AssignmentRepo.set_status(db, assignment, target.value, responded_at=now or datetime.utcnow())

        logger.info(f"Assignment {assignment.id} answered {response_type.value} -> {target.value}")
        return assignment, response

    @staticmethod
    def validate_team(
        db: Session,
        regisseur_id: str,
        event_id: int,
        selections: Dict[int, SelectionState],
    ) -> ValidationReport:
        """Commit selected rows as ``valide`` and not-selected rows as ``non_retenu``.

        Each row is written separately. The batch stops at the first failed
        write; rows written before it keep their new status.
        """
        event = AssignmentService.get_owned_event(db, event_id, regisseur_id)
        assignments = AssignmentRepo.list_for_event(db, event.id)

        known = {a.id for a in assignments}
        unknown = sorted(set(selections) - known)
        if unknown:
            raise ValidationFailed(
                "Some assignments do not belong to this event",
                details=[str(assignment_id) for assignment_id in unknown],
            )

        report = ValidationReport()
        for assignment in assignments:
            state = SelectionState(selections.get(assignment.id, SelectionState.PENDING))
            if state == SelectionState.PENDING:
                report.pending.append(assignment.id)
                continue
            if AssignmentStatus(assignment.statut_disponibilite) not in VALIDATABLE:
                report.skipped.append(assignment.id)
                continue

            target = AssignmentStatus.VALIDE if state == SelectionState.SELECTED else AssignmentStatus.NON_RETENU
            check_transition(assignment.statut_disponibilite, target, UserRole.REGISSEUR)
            try:
                AssignmentRepo.set_status(db, assignment, target.value)
            except SQLAlchemyError as e:
                db.rollback()
                logger.error(f"Team validation for event {event.id} stopped at assignment {assignment.id}: {e}")
                report.failed_id = assignment.id
                report.error = str(e)
                break
            report.updated[assignment.id] = target.value

        logger.info(f"Team validation for event {event.id}: {len(report.updated)} updated, {len(report.pending)} pending")
        return report

    @staticmethod
    def status_counts(assignments: Iterable[EventIntermittentAssignment]) -> Dict[str, int]:
        counts = {status.value: 0 for status in AssignmentStatus}
        for assignment in assignments:
            counts[assignment.statut_disponibilite] = counts.get(assignment.statut_disponibilite, 0) + 1
        return counts
