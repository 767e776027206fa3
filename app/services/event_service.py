"""
Event record service: save, read, duplicate and delete events with their children.

Saving, duplicating and deleting are sequences of independent writes. When a
step fails the error is raised for that step and the earlier steps stay
committed.
"""

import logging
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from sqlalchemy.orm import Session

from app.models import Event, IntermittentProfile
from app.models.enums import AssignmentStatus, EventStatus
from app.services.assignment_service import AssignmentService
from app.services.errors import NotFound, PermissionDenied, ValidationFailed
from app.services.planning_service import PlanningService
from app.services.replacement_service import ReplacementService
from app.services.repositories import (
    AssignmentRepo,
    EventRepo,
    InformationRepo,
    NotificationRepo,
    PlanningRepo,
    ProfileRepo,
    ReplacementRepo,
    ResponseRepo,
)

logger = logging.getLogger(__name__)


def to_naive_utc(value: Optional[datetime]) -> Optional[datetime]:
    """Timestamps are stored as naive UTC"""
    if value is None or value.tzinfo is None:
        return value
    return value.astimezone(timezone.utc).replace(tzinfo=None)


class EventService:
    """Service for event CRUD"""

    @staticmethod
    def get_owned(db: Session, event_id: int, regisseur_id: str) -> Event:
        event = EventRepo.get(db, event_id)
        if not event:
            raise NotFound("Event")
        if event.regisseur_id != regisseur_id:
            raise PermissionDenied("You do not manage this event")
        return event

    @staticmethod
    def validate_payload(payload: Dict[str, Any]) -> Dict[str, Any]:
        """Check the form and build the rows to write; nothing is written here"""
        errors = []
        name = (payload.get("nom_evenement") or "").strip()
        start = to_naive_utc(payload.get("date_debut"))
        end = to_naive_utc(payload.get("date_fin"))
        if not name:
            errors.append("nom_evenement is required")
        if not start:
            errors.append("date_debut is required")
        if not end:
            errors.append("date_fin is required")
        if start and end and end < start:
            errors.append("date_fin must not be before date_debut")
        if errors:
            raise ValidationFailed("Please fill in all required fields", details=errors)

        specialties: List[str] = []
        for tag in payload.get("specialites_requises") or []:
            tag = tag.strip()
            if tag and tag not in specialties:
                specialties.append(tag)

        lieu = (payload.get("lieu") or "").strip() or None
        description = (payload.get("description") or "").strip() or None
        return {
            "fields": {
                "nom_evenement": name,
                "date_debut": start,
                "date_fin": end,
                "lieu": lieu,
                "description": description,
                "specialites_requises": specialties,
                "statut_evenement": (EventStatus.PUBLISHED if payload.get("publish") else EventStatus.DRAFT).value,
            },
            "planning": PlanningService.normalize_items(payload.get("planning") or []),
            "information": PlanningService.normalize_information(payload.get("information") or []),
            "intermittent_ids": list(dict.fromkeys(payload.get("intermittent_ids") or [])),
        }

    @staticmethod
    def save_event(
        db: Session,
        regisseur_id: str,
        payload: Dict[str, Any],
        event_id: Optional[int] = None,
    ) -> Event:
        """Create an event, or replace the content of an existing one.

        In edit mode the planning and information rows are deleted and written
        again. Assignments of profiles still selected keep their status; new
        profiles get a ``propose`` row and deselected ones are removed.
        """
        prepared = EventService.validate_payload(payload)
        for profile_id in prepared["intermittent_ids"]:
            if not ProfileRepo.get_intermittent(db, profile_id):
                raise ValidationFailed(f"Unknown intermittent profile {profile_id}")

        if event_id is not None:
            event = EventService.get_owned(db, event_id, regisseur_id)
            EventRepo.update(db, event, **prepared["fields"])
            PlanningRepo.delete_for_event(db, event.id)
            InformationRepo.delete_for_event(db, event.id)

            wanted = set(prepared["intermittent_ids"])
            removed = [a.id for a in AssignmentRepo.list_for_event(db, event.id) if a.intermittent_profile_id not in wanted]
            EventService.purge_assignments(db, removed)
        else:
            event = EventRepo.insert(db, regisseur_id=regisseur_id, **prepared["fields"])

        if prepared["planning"]:
            PlanningRepo.insert_many(db, event.id, prepared["planning"])
        if prepared["information"]:
            InformationRepo.insert_many(db, event.id, prepared["information"])
        if prepared["intermittent_ids"]:
            AssignmentService.offer(db, regisseur_id, event.id, prepared["intermittent_ids"])

        db.refresh(event)
        logger.info(f"Event {event.id} {'updated' if event_id is not None else 'created'} ({event.statut_evenement})")
        return event

    @staticmethod
    def purge_assignments(db: Session, assignment_ids: List[int]) -> None:
        """Delete assignments together with their reply history and replacement requests"""
        if not assignment_ids:
            return
        ResponseRepo.delete_for_assignments(db, assignment_ids)
        request_ids = ReplacementRepo.ids_for_assignments(db, assignment_ids)
        if request_ids:
            NotificationRepo.detach(db, request_ids=request_ids)
            ReplacementRepo.delete_ids(db, request_ids)
        AssignmentRepo.delete_ids(db, assignment_ids)

    @staticmethod
    def delete_event(db: Session, regisseur_id: str, event_id: int) -> None:
        """Delete an event and its children, one table at a time"""
        event = EventService.get_owned(db, event_id, regisseur_id)
        assignment_ids = [a.id for a in AssignmentRepo.list_for_event(db, event.id)]

        EventService.purge_assignments(db, assignment_ids)
        PlanningRepo.delete_for_event(db, event.id)
        InformationRepo.delete_for_event(db, event.id)
        NotificationRepo.detach(db, event_id=event.id)
        EventRepo.delete(db, event.id)
        logger.info(f"Event {event_id} deleted with {len(assignment_ids)} assignments")

    @staticmethod
    def duplicate_event(db: Session, regisseur_id: str, event_id: int, new_start: datetime) -> Event:
        """Copy an event to a new start date with the same duration.

        Planning and information rows are copied; staffing is not.
        """
        source = EventService.get_owned(db, event_id, regisseur_id)
        shift = to_naive_utc(new_start) - source.date_debut
        planning = [
            {"heure": item.heure, "intitule": item.intitule, "ordre": item.ordre, "groupe": item.groupe}
            for item in PlanningRepo.list_for_event(db, source.id)
        ]
        information = [
            {
                "type_champ": field.type_champ,
                "contenu_texte": field.contenu_texte,
                "chemin_fichier_supabase_storage": field.chemin_fichier_supabase_storage,
            }
            for field in InformationRepo.list_for_event(db, source.id)
        ]

        copy = EventRepo.insert(
            db,
            regisseur_id=regisseur_id,
            nom_evenement=source.nom_evenement,
            date_debut=source.date_debut + shift,
            date_fin=source.date_fin + shift,
            lieu=source.lieu,
            description=source.description,
            specialites_requises=list(source.specialites_requises or []),
            statut_evenement=EventStatus.DRAFT.value,
        )
        if planning:
            PlanningRepo.insert_many(db, copy.id, planning)
        if information:
            InformationRepo.insert_many(db, copy.id, information)

        db.refresh(copy)
        logger.info(f"Event {source.id} duplicated as {copy.id} starting {copy.date_debut.isoformat()}")
        return copy

    @staticmethod
    def list_for_regisseur(
        db: Session,
        regisseur_id: str,
        start: Optional[datetime] = None,
        end: Optional[datetime] = None,
    ) -> List[Event]:
        return EventRepo.list_for_regisseur(db, regisseur_id, to_naive_utc(start), to_naive_utc(end))

    @staticmethod
    def get_detail(db: Session, regisseur_id: str, event_id: int) -> Dict[str, Any]:
        """Event, run-of-show, information blocks and the staffing ledger"""
        event = EventService.get_owned(db, event_id, regisseur_id)
        assignments = AssignmentRepo.list_for_event(db, event.id)

        return {
            "event": event,
            "planning_items": PlanningRepo.list_for_event(db, event.id),
            "information_fields": InformationRepo.list_for_event(db, event.id),
            "assignments": [
                {
                    "id": a.id,
                    "intermittent_profile_id": a.intermittent_profile_id,
                    "nom": a.intermittent.nom if a.intermittent else None,
                    "prenom": a.intermittent.prenom if a.intermittent else None,
                    "specialite": a.intermittent.specialite if a.intermittent else None,
                    "statut_disponibilite": a.statut_disponibilite,
                    "date_reponse": a.date_reponse,
                }
                for a in assignments
            ],
            "total_assignments": len(assignments),
            "confirmed_count": sum(
                1 for a in assignments
                if a.statut_disponibilite in (AssignmentStatus.DISPONIBLE.value, AssignmentStatus.VALIDE.value)
            ),
            "pending_count": sum(1 for a in assignments if a.statut_disponibilite == AssignmentStatus.PROPOSE.value),
        }

    @staticmethod
    def get_for_viewer(db: Session, event_id: int, user_id: str, profile: Optional[Any]) -> Event:
        """Event readable by its régisseur or by an intermittent assigned to it"""
        event = EventRepo.get(db, event_id)
        if not event:
            raise NotFound("Event")
        if event.regisseur_id == user_id:
            return event
        if isinstance(profile, IntermittentProfile) and AssignmentRepo.find(db, event.id, profile.id):
            return event
        raise PermissionDenied("You are not part of this event")

    @staticmethod
    def get_intermittent_view(db: Session, profile: IntermittentProfile, event_id: int) -> Dict[str, Any]:
        """Everything an assigned intermittent sees on the event page"""
        event = EventRepo.get(db, event_id)
        if not event:
            raise NotFound("Event")
        assignment = AssignmentRepo.find(db, event.id, profile.id)
        if not assignment:
            raise PermissionDenied("You are not assigned to this event")

        return {
            "event": event,
            "assignment": assignment,
            "planning_items": PlanningRepo.list_for_event(db, event.id),
            "information_fields": InformationRepo.list_for_event(db, event.id),
            "replacement_request": ReplacementService.active_request_for(db, assignment.id),
            "responses": ResponseRepo.list_for_assignment(db, assignment.id),
        }

    @staticmethod
    def list_for_intermittent(db: Session, profile: IntermittentProfile, now: Optional[datetime] = None) -> Dict[str, Any]:
        """Dashboard rows for one intermittent, soonest first, with status counts"""
        now = now or datetime.utcnow()
        assignments = AssignmentRepo.list_for_intermittent(db, profile.id)

        rows = []
        for assignment in assignments:
            event = assignment.event
            rows.append({
                "assignment_id": assignment.id,
                "event_id": event.id,
                "nom_evenement": event.nom_evenement,
                "date_debut": event.date_debut,
                "date_fin": event.date_fin,
                "lieu": event.lieu,
                "statut_evenement": event.statut_evenement,
                "statut_disponibilite": assignment.statut_disponibilite,
                "has_active_request": ReplacementService.active_request_for(db, assignment.id) is not None,
            })
        rows.sort(key=lambda row: row["date_debut"])

        counts = AssignmentService.status_counts(assignments)
        return {
            "events": rows,
            "counts": counts,
            "stats": {
                "total": len(rows),
                "accepted": counts[AssignmentStatus.VALIDE.value],
                "pending": counts[AssignmentStatus.PROPOSE.value],
                "upcoming": sum(
                    1 for row in rows
                    if row["statut_disponibilite"] == AssignmentStatus.VALIDE.value and row["date_debut"] >= now
                ),
            },
        }
