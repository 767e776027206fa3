"""
Repository layer: the query/write calls issued against the backing store.

Every write helper commits on its own; callers chaining several helpers get
independent writes, not a transaction.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any, Dict, Iterable, List, Optional

from sqlalchemy import func, or_
from sqlalchemy.orm import Session

from app.models import (
    Event,
    EventPlanningItem,
    EventInformationField,
    EventIntermittentAssignment,
    EventIntermittentResponse,
    IntermittentProfile,
    Notification,
    RegisseurProfile,
    ReplacementRequest,
)


# -------- Profile repository --------

class ProfileRepo:
    @staticmethod
    def get_regisseur_by_user(db: Session, user_id: str) -> Optional[RegisseurProfile]:
        return db.query(RegisseurProfile).filter(RegisseurProfile.user_id == user_id).first()

    @staticmethod
    def get_intermittent_by_user(db: Session, user_id: str) -> Optional[IntermittentProfile]:
        return db.query(IntermittentProfile).filter(IntermittentProfile.user_id == user_id).first()

    @staticmethod
    def get_intermittent(db: Session, profile_id: int) -> Optional[IntermittentProfile]:
        return db.query(IntermittentProfile).filter(IntermittentProfile.id == profile_id).first()

    @staticmethod
    def list_intermittents(
        db: Session,
        exclude_ids: Iterable[int] = (),
        search: Optional[str] = None,
    ) -> List[IntermittentProfile]:
        query = db.query(IntermittentProfile)
        exclude_ids = list(exclude_ids)
        if exclude_ids:
            query = query.filter(IntermittentProfile.id.notin_(exclude_ids))
        if search:
            pattern = f"%{search.lower()}%"
            query = query.filter(or_(
                func.lower(IntermittentProfile.nom).like(pattern),
                func.lower(IntermittentProfile.prenom).like(pattern),
                func.lower(IntermittentProfile.specialite).like(pattern),
            ))
        return query.order_by(IntermittentProfile.nom).all()

    @staticmethod
    def save(db: Session, profile: Any) -> Any:
        db.add(profile)
        db.commit()
        db.refresh(profile)
        return profile


# -------- Event repository --------

class EventRepo:
    @staticmethod
    def get(db: Session, event_id: int) -> Optional[Event]:
        return db.query(Event).filter(Event.id == event_id).first()

    @staticmethod
    def list_for_regisseur(
        db: Session,
        regisseur_id: str,
        start: Optional[datetime] = None,
        end: Optional[datetime] = None,
    ) -> List[Event]:
        query = db.query(Event).filter(Event.regisseur_id == regisseur_id)
        if start:
            query = query.filter(Event.date_fin >= start)
        if end:
            query = query.filter(Event.date_debut <= end)
        return query.order_by(Event.date_debut).all()

    @staticmethod
    def insert(db: Session, **fields) -> Event:
        event = Event(**fields)
        db.add(event)
        db.commit()
        db.refresh(event)
        return event

    @staticmethod
    def update(db: Session, event: Event, **fields) -> Event:
        for key, value in fields.items():
            setattr(event, key, value)
        db.commit()
        db.refresh(event)
        return event

    @staticmethod
    def delete(db: Session, event_id: int) -> int:
        count = db.query(Event).filter(Event.id == event_id).delete(synchronize_session=False)
        db.commit()
        return count


# -------- Planning / information repositories --------

class PlanningRepo:
    @staticmethod
    def list_for_event(db: Session, event_id: int) -> List[EventPlanningItem]:
        return db.query(EventPlanningItem).filter(
            EventPlanningItem.event_id == event_id
        ).order_by(EventPlanningItem.ordre).all()

    @staticmethod
    def insert_many(db: Session, event_id: int, rows: List[Dict[str, Any]]) -> None:
        for row in rows:
            db.add(EventPlanningItem(event_id=event_id, **row))
        db.commit()

    @staticmethod
    def delete_for_event(db: Session, event_id: int) -> int:
        count = db.query(EventPlanningItem).filter(
            EventPlanningItem.event_id == event_id
        ).delete(synchronize_session=False)
        db.commit()
        return count


class InformationRepo:
    @staticmethod
    def list_for_event(db: Session, event_id: int) -> List[EventInformationField]:
        return db.query(EventInformationField).filter(EventInformationField.event_id == event_id).all()

    @staticmethod
    def insert_many(db: Session, event_id: int, rows: List[Dict[str, Any]]) -> None:
        for row in rows:
            db.add(EventInformationField(event_id=event_id, **row))
        db.commit()

    @staticmethod
    def delete_for_event(db: Session, event_id: int) -> int:
        count = db.query(EventInformationField).filter(
            EventInformationField.event_id == event_id
        ).delete(synchronize_session=False)
        db.commit()
        return count


# -------- Assignment repository --------

class AssignmentRepo:
    @staticmethod
    def get(db: Session, assignment_id: int) -> Optional[EventIntermittentAssignment]:
        return db.query(EventIntermittentAssignment).filter(EventIntermittentAssignment.id == assignment_id).first()

    @staticmethod
    def list_for_event(db: Session, event_id: int) -> List[EventIntermittentAssignment]:
        return db.query(EventIntermittentAssignment).filter(
            EventIntermittentAssignment.event_id == event_id
        ).order_by(EventIntermittentAssignment.id).all()

    @staticmethod
    def list_for_intermittent(db: Session, profile_id: int) -> List[EventIntermittentAssignment]:
        return db.query(EventIntermittentAssignment).filter(
            EventIntermittentAssignment.intermittent_profile_id == profile_id
        ).all()

    @staticmethod
    def find(db: Session, event_id: int, profile_id: int) -> Optional[EventIntermittentAssignment]:
        return db.query(EventIntermittentAssignment).filter(
            EventIntermittentAssignment.event_id == event_id,
            EventIntermittentAssignment.intermittent_profile_id == profile_id,
        ).first()

    @staticmethod
    def assigned_profile_ids(db: Session, event_id: int) -> List[int]:
        rows = db.query(EventIntermittentAssignment.intermittent_profile_id).filter(
            EventIntermittentAssignment.event_id == event_id
        ).all()
        return [row[0] for row in rows]

    @staticmethod
    def insert_many(db: Session, event_id: int, profile_ids: List[int], status: str) -> List[EventIntermittentAssignment]:
        created = [
            EventIntermittentAssignment(
                event_id=event_id,
                intermittent_profile_id=profile_id,
                statut_disponibilite=status,
            )
            for profile_id in profile_ids
        ]
        db.add_all(created)
        db.commit()
        for assignment in created:
            db.refresh(assignment)
        return created

    @staticmethod
    def set_status(
        db: Session,
        assignment: EventIntermittentAssignment,
        status: str,
        responded_at: Optional[datetime] = None,
    ) -> EventIntermittentAssignment:
        assignment.statut_disponibilite = status
        if responded_at is not None:
            assignment.date_reponse = responded_at
        assignment.updated_at = datetime.utcnow()
        db.commit()
        db.refresh(assignment)
        return assignment

    @staticmethod
    def delete_ids(db: Session, assignment_ids: List[int]) -> int:
        if not assignment_ids:
            return 0
        count = db.query(EventIntermittentAssignment).filter(
            EventIntermittentAssignment.id.in_(assignment_ids)
        ).delete(synchronize_session=False)
        db.commit()
        return count


class ResponseRepo:
    @staticmethod
    def append(db: Session, assignment_id: int, response_type: str, comment: Optional[str], alternative_dates: Optional[List[str]]) -> EventIntermittentResponse:
        response = EventIntermittentResponse(
            event_assignment_id=assignment_id,
            response_type=response_type,
            comment=comment,
            alternative_dates=alternative_dates,
        )
        db.add(response)
        db.commit()
        db.refresh(response)
        return response

    @staticmethod
    def list_for_assignment(db: Session, assignment_id: int) -> List[EventIntermittentResponse]:
        return db.query(EventIntermittentResponse).filter(
            EventIntermittentResponse.event_assignment_id == assignment_id
        ).order_by(EventIntermittentResponse.created_at.desc(), EventIntermittentResponse.id.desc()).all()

    @staticmethod
    def delete_for_assignments(db: Session, assignment_ids: List[int]) -> int:
        if not assignment_ids:
            return 0
        count = db.query(EventIntermittentResponse).filter(
            EventIntermittentResponse.event_assignment_id.in_(assignment_ids)
        ).delete(synchronize_session=False)
        db.commit()
        return count


# -------- Replacement repository --------

class ReplacementRepo:
    @staticmethod
    def get(db: Session, request_id: int) -> Optional[ReplacementRequest]:
        return db.query(ReplacementRequest).filter(ReplacementRequest.id == request_id).first()

    @staticmethod
    def insert(db: Session, **fields) -> ReplacementRequest:
        request = ReplacementRequest(**fields)
        db.add(request)
        db.commit()
        db.refresh(request)
        return request

    @staticmethod
    def set_status(db: Session, request: ReplacementRequest, status: str) -> ReplacementRequest:
        request.status = status
        request.updated_at = datetime.utcnow()
        db.commit()
        db.refresh(request)
        return request

    @staticmethod
    def list_for_assignment(db: Session, assignment_id: int) -> List[ReplacementRequest]:
        return db.query(ReplacementRequest).filter(
            ReplacementRequest.event_assignment_id == assignment_id
        ).order_by(ReplacementRequest.created_at.desc(), ReplacementRequest.id.desc()).all()

    @staticmethod
    def list_for_regisseur(db: Session, regisseur_id: str, status: Optional[str] = None) -> List[ReplacementRequest]:
        query = db.query(ReplacementRequest).filter(ReplacementRequest.regisseur_id == regisseur_id)
        if status:
            query = query.filter(ReplacementRequest.status == status)
        return query.order_by(ReplacementRequest.created_at.desc()).all()

    @staticmethod
    def ids_for_assignments(db: Session, assignment_ids: List[int]) -> List[int]:
        if not assignment_ids:
            return []
        rows = db.query(ReplacementRequest.id).filter(
            ReplacementRequest.event_assignment_id.in_(assignment_ids)
        ).all()
        return [row[0] for row in rows]

    @staticmethod
    def delete_ids(db: Session, request_ids: List[int]) -> int:
        if not request_ids:
            return 0
        count = db.query(ReplacementRequest).filter(
            ReplacementRequest.id.in_(request_ids)
        ).delete(synchronize_session=False)
        db.commit()
        return count


# -------- Notification repository --------

class NotificationRepo:
    @staticmethod
    def get(db: Session, notification_id: int) -> Optional[Notification]:
        return db.query(Notification).filter(Notification.id == notification_id).first()

    @staticmethod
    def insert(db: Session, **fields) -> Notification:
        notification = Notification(**fields)
        db.add(notification)
        db.commit()
        db.refresh(notification)
        return notification

    @staticmethod
    def list_for_user(db: Session, user_id: str, limit: int) -> List[Notification]:
        return db.query(Notification).filter(
            Notification.user_id == user_id
        ).order_by(Notification.created_at.desc(), Notification.id.desc()).limit(limit).all()

    @staticmethod
    def count_unread(db: Session, user_id: str) -> int:
        return db.query(func.count(Notification.id)).filter(
            Notification.user_id == user_id,
            Notification.is_read == False,
        ).scalar()

    @staticmethod
    def set_read(db: Session, notification: Notification) -> Notification:
        notification.is_read = True
        notification.updated_at = datetime.utcnow()
        db.commit()
        db.refresh(notification)
        return notification

    @staticmethod
    def set_all_read(db: Session, user_id: str) -> int:
        count = db.query(Notification).filter(
            Notification.user_id == user_id,
            Notification.is_read == False,
        ).update({"is_read": True, "updated_at": datetime.utcnow()}, synchronize_session=False)
        db.commit()
        return count

    @staticmethod
    def detach(db: Session, event_id: Optional[int] = None, request_ids: Optional[List[int]] = None) -> None:
        """Clear back-references to rows about to be deleted; the notifications stay"""
        if request_ids:
            db.query(Notification).filter(
                Notification.related_request_id.in_(request_ids)
            ).update({"related_request_id": None}, synchronize_session=False)
        if event_id is not None:
            db.query(Notification).filter(
                Notification.related_event_id == event_id
            ).update({"related_event_id": None}, synchronize_session=False)
        db.commit()
