"""
Intermittent API routes - offers, replies and replacement requests
"""

from typing import Optional
from fastapi import APIRouter, Depends, Query
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.api.routes_notifications import notification_service
from app.core.db import get_db
from app.schemas.event import EventSummary, PlanningItemRead, InformationFieldRead
from app.schemas.assignment import AssignmentRead, ReplyRead, ReplySubmit
from app.schemas.replacement import ReplacementRequestCreate, ReplacementRead
from app.schemas.notification import NotificationRead
from app.schemas.profile import IntermittentRead
from app.services.assignment_service import AssignmentService
from app.services.errors import WorkflowError
from app.services.event_service import EventService
from app.services.replacement_service import ReplacementService
from app.services.session import SessionContext
from app.utils.security import require_intermittent
from app.utils.responses import success_response, workflow_error_response, backend_error_response

router = APIRouter()

# Replacement service instance sharing the notification fan-out
replacement_service = ReplacementService(notification_service)

@router.get("/assignments")
async def my_assignments(
    db: Session = Depends(get_db),
    session: SessionContext = Depends(require_intermittent)
):
    """Dashboard: the caller's events with status counts"""
    dashboard = EventService.list_for_intermittent(db, session.profile)
    return success_response(
        message="Assignments retrieved successfully",
        data=dashboard
    )

@router.get("/events/{event_id}")
async def get_event(
    event_id: int,
    db: Session = Depends(get_db),
    session: SessionContext = Depends(require_intermittent)
):
    """Event page for an assigned intermittent"""
    try:
        view = EventService.get_intermittent_view(db, session.profile, event_id)
    except WorkflowError as e:
        return workflow_error_response(e)

    request = view["replacement_request"]
    return success_response(
        message="Event retrieved successfully",
        data={
            "event": EventSummary.model_validate(view["event"]),
            "assignment": AssignmentRead.model_validate(view["assignment"]),
            "planning_items": [PlanningItemRead.model_validate(item) for item in view["planning_items"]],
            "information_fields": [InformationFieldRead.model_validate(field) for field in view["information_fields"]],
            "replacement_request": ReplacementRead.model_validate(request) if request else None,
            "responses": [ReplyRead.model_validate(response) for response in view["responses"]],
        }
    )

@router.post("/assignments/{assignment_id}/response")
async def respond_to_offer(
    assignment_id: int,
    reply: ReplySubmit,
    db: Session = Depends(get_db),
    session: SessionContext = Depends(require_intermittent)
):
    """Accept, refuse or propose alternative dates"""
    try:
        assignment, response = AssignmentService.respond(
            db,
            session.profile,
            assignment_id,
            reply.response_type,
            comment=reply.comment,
            alternative_dates=reply.alternative_dates,
        )
    except WorkflowError as e:
        return workflow_error_response(e)
    except SQLAlchemyError as e:
        return backend_error_response(db, "send your response", e)

    return success_response(
        message="Response recorded",
        data={
            "assignment": AssignmentRead.model_validate(assignment),
            "response": ReplyRead.model_validate(response),
        }
    )

@router.get("/events/{event_id}/replacement-candidates")
async def replacement_candidates(
    event_id: int,
    search: Optional[str] = Query(None),
    db: Session = Depends(get_db),
    session: SessionContext = Depends(require_intermittent)
):
    """Colleagues not yet on the event, for the substitute picker"""
    try:
        EventService.get_for_viewer(db, event_id, session.user_id, session.profile)
    except WorkflowError as e:
        return workflow_error_response(e)

    candidates = ReplacementService.list_candidates(db, event_id, search)
    return success_response(
        message="Candidates retrieved successfully",
        data=[IntermittentRead.model_validate(profile) for profile in candidates]
    )

@router.post("/assignments/{assignment_id}/replacement-request")
async def request_replacement(
    assignment_id: int,
    request_data: ReplacementRequestCreate,
    db: Session = Depends(get_db),
    session: SessionContext = Depends(require_intermittent)
):
    """Ask the régisseur to be released from a validated assignment"""
    try:
        request, notification = replacement_service.submit_request(
            db,
            session.profile,
            assignment_id,
            request_data.request_type,
            request_data.comment,
            request_data.suggested_intermittent_profile_ids,
        )
    except WorkflowError as e:
        return workflow_error_response(e)
    except SQLAlchemyError as e:
        return backend_error_response(db, "send your replacement request", e)

    return success_response(
        message="Replacement request sent",
        data={
            "request": ReplacementRead.model_validate(request),
            "notification": NotificationRead.model_validate(notification),
        },
        status_code=201
    )

@router.post("/replacements/{request_id}/cancel")
async def cancel_replacement(
    request_id: int,
    db: Session = Depends(get_db),
    session: SessionContext = Depends(require_intermittent)
):
    try:
        request = ReplacementService.cancel(db, session.profile, request_id)
    except WorkflowError as e:
        return workflow_error_response(e)
    except SQLAlchemyError as e:
        return backend_error_response(db, "cancel the request", e)

    return success_response(
        message="Replacement request cancelled",
        data=ReplacementRead.model_validate(request)
    )
