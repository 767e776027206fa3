"""
Régisseur API routes - event management, staffing and replacement decisions
"""

from datetime import datetime
from typing import Any, Dict, Optional
from fastapi import APIRouter, Depends, Query
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.core.db import get_db
from app.schemas.event import (
    EventCreate,
    EventDuplicate,
    EventSummary,
    EventDetail,
    PlanningItemRead,
    InformationFieldRead,
)
from app.schemas.assignment import AssignmentOffer, AssignmentRead, TeamValidationRequest
from app.schemas.replacement import ReplacementDecision, ReplacementRead
from app.schemas.profile import IntermittentRead
from app.services.assignment_service import AssignmentService
from app.services.errors import WorkflowError
from app.services.event_service import EventService
from app.services.replacement_service import ReplacementService
from app.services.repositories import ProfileRepo
from app.services.session import SessionContext
from app.utils.security import require_regisseur
from app.utils.responses import (
    success_response,
    error_response,
    workflow_error_response,
    backend_error_response,
)

router = APIRouter()

def event_detail_payload(detail: Dict[str, Any]) -> Dict[str, Any]:
    """Shape EventService.get_detail output for the response body"""
    summary = EventSummary.model_validate(detail["event"])
    event = EventDetail(
        **summary.model_dump(),
        planning_items=[PlanningItemRead.model_validate(item) for item in detail["planning_items"]],
        information_fields=[InformationFieldRead.model_validate(field) for field in detail["information_fields"]],
        total_assignments=detail["total_assignments"],
        confirmed_count=detail["confirmed_count"],
        pending_count=detail["pending_count"],
    )
    return {"event": event, "assignments": detail["assignments"]}

@router.post("/events")
async def create_event(
    event_data: EventCreate,
    db: Session = Depends(get_db),
    session: SessionContext = Depends(require_regisseur)
):
    """Create an event with its planning, information blocks and proposed staff"""
    try:
        event = EventService.save_event(db, session.user_id, event_data.model_dump())
    except WorkflowError as e:
        return workflow_error_response(e)
    except SQLAlchemyError as e:
        return backend_error_response(db, "save the event", e)

    return success_response(
        message="Event created successfully",
        data=EventSummary.model_validate(event),
        status_code=201
    )

@router.put("/events/{event_id}")
async def update_event(
    event_id: int,
    event_data: EventCreate,
    db: Session = Depends(get_db),
    session: SessionContext = Depends(require_regisseur)
):
    """Edit an event; planning and information blocks are rewritten"""
    try:
        event = EventService.save_event(db, session.user_id, event_data.model_dump(), event_id=event_id)
    except WorkflowError as e:
        return workflow_error_response(e)
    except SQLAlchemyError as e:
        return backend_error_response(db, "update the event", e)

    return success_response(
        message="Event updated successfully",
        data=EventSummary.model_validate(event)
    )

@router.get("/events")
async def list_events(
    start: Optional[datetime] = Query(None),
    end: Optional[datetime] = Query(None),
    db: Session = Depends(get_db),
    session: SessionContext = Depends(require_regisseur)
):
    """List the caller's events, optionally within a calendar window"""
    events = EventService.list_for_regisseur(db, session.user_id, start, end)
    return success_response(
        message="Events retrieved successfully",
        data=[EventSummary.model_validate(event) for event in events]
    )

@router.get("/events/{event_id}")
async def get_event_details(
    event_id: int,
    db: Session = Depends(get_db),
    session: SessionContext = Depends(require_regisseur)
):
    """Get detailed event information"""
    try:
        detail = EventService.get_detail(db, session.user_id, event_id)
    except WorkflowError as e:
        return workflow_error_response(e)

    return success_response(
        message="Event details retrieved",
        data=event_detail_payload(detail)
    )

@router.delete("/events/{event_id}")
async def delete_event(
    event_id: int,
    db: Session = Depends(get_db),
    session: SessionContext = Depends(require_regisseur)
):
    """Delete an event with its assignments, planning and information rows"""
    try:
        EventService.delete_event(db, session.user_id, event_id)
    except WorkflowError as e:
        return workflow_error_response(e)
    except SQLAlchemyError as e:
        return backend_error_response(db, "delete the event", e)

    return success_response(
        message="Event deleted successfully",
        data={"deleted_event_id": event_id}
    )

@router.post("/events/{event_id}/duplicate")
async def duplicate_event(
    event_id: int,
    duplicate_data: EventDuplicate,
    db: Session = Depends(get_db),
    session: SessionContext = Depends(require_regisseur)
):
    """Copy an event to another date"""
    try:
        event = EventService.duplicate_event(db, session.user_id, event_id, duplicate_data.date_debut)
    except WorkflowError as e:
        return workflow_error_response(e)
    except SQLAlchemyError as e:
        return backend_error_response(db, "duplicate the event", e)

    return success_response(
        message=f"Event duplicated for {event.date_debut.strftime('%d/%m/%Y')}",
        data=EventSummary.model_validate(event),
        status_code=201
    )

@router.post("/events/{event_id}/assignments")
async def offer_event(
    event_id: int,
    offer: AssignmentOffer,
    db: Session = Depends(get_db),
    session: SessionContext = Depends(require_regisseur)
):
    """Propose the event to more intermittents"""
    try:
        created = AssignmentService.offer(db, session.user_id, event_id, offer.intermittent_ids)
    except WorkflowError as e:
        return workflow_error_response(e)
    except SQLAlchemyError as e:
        return backend_error_response(db, "assign the intermittents", e)

    return success_response(
        message=f"{len(created)} intermittents proposed",
        data=[AssignmentRead.model_validate(assignment) for assignment in created],
        status_code=201
    )

@router.post("/events/{event_id}/team-validation")
async def validate_team(
    event_id: int,
    validation: TeamValidationRequest,
    db: Session = Depends(get_db),
    session: SessionContext = Depends(require_regisseur)
):
    """Commit the selected / not-selected toggles of the team validation screen"""
    try:
        report = AssignmentService.validate_team(db, session.user_id, event_id, validation.selections)
    except WorkflowError as e:
        return workflow_error_response(e)

    if report.interrupted:
        return error_response(
            message="Team validation was interrupted. Some assignments may not have been updated.",
            error_code="batch_interrupted",
            details=report.as_dict(),
            status_code=500
        )

    return success_response(
        message="Team validated successfully",
        data=report.as_dict()
    )

@router.get("/intermittents")
async def list_intermittents(
    search: Optional[str] = Query(None),
    db: Session = Depends(get_db),
    session: SessionContext = Depends(require_regisseur)
):
    """Intermittent directory for the assignment picker"""
    profiles = ProfileRepo.list_intermittents(db, search=search)
    return success_response(
        message="Intermittents retrieved successfully",
        data=[IntermittentRead.model_validate(profile) for profile in profiles]
    )

@router.get("/replacements")
async def list_replacements(
    status: Optional[str] = Query(None),
    db: Session = Depends(get_db),
    session: SessionContext = Depends(require_regisseur)
):
    """Replacement requests addressed to the caller"""
    try:
        requests = ReplacementService.list_for_regisseur(db, session.user_id, status)
    except ValueError:
        return error_response(message=f"Unknown status '{status}'", status_code=422)

    return success_response(
        message="Replacement requests retrieved successfully",
        data=[ReplacementRead.model_validate(request) for request in requests]
    )

@router.post("/replacements/{request_id}/decision")
async def decide_replacement(
    request_id: int,
    decision: ReplacementDecision,
    db: Session = Depends(get_db),
    session: SessionContext = Depends(require_regisseur)
):
    """Approve or reject a replacement request"""
    try:
        request = ReplacementService.decide(db, session.user_id, request_id, decision.outcome)
    except WorkflowError as e:
        return workflow_error_response(e)
    except SQLAlchemyError as e:
        return backend_error_response(db, "record the decision", e)

    return success_response(
        message="Decision recorded",
        data=ReplacementRead.model_validate(request)
    )
