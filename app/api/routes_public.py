"""
Common API routes - health, the caller's profile and the feuille de route
"""

from typing import Optional
from fastapi import APIRouter, Depends, Query
from fastapi.responses import Response
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.core.db import get_db
from app.models.enums import PlanningGroup
from app.schemas.event import EventSummary, PlanningItemRead
from app.schemas.profile import ProfileRead, ProfileUpdate
from app.services.errors import WorkflowError
from app.services.event_service import EventService
from app.services.excel_service import ExcelService
from app.services.planning_service import PlanningService
from app.services.profile_service import ProfileService
from app.services.repositories import InformationRepo, PlanningRepo
from app.services.session import SessionContext
from app.utils.security import get_session
from app.utils.responses import success_response, workflow_error_response, backend_error_response

router = APIRouter()

@router.get("/health")
async def health_check():
    """Health check endpoint"""
    return {"status": "ok"}

@router.get("/me")
async def who_am_i(session: SessionContext = Depends(get_session)):
    """Role and profile of the signed-in user"""
    profile = session.profile
    return success_response(
        message="Session resolved",
        data={
            "user_id": session.user_id,
            "email": session.user.email,
            "role": session.role,
            "session_status": session.status,
            "profile": ProfileRead.model_validate(profile) if profile is not None else None,
        }
    )

@router.put("/me/profile")
async def save_profile(
    profile_data: ProfileUpdate,
    db: Session = Depends(get_db),
    session: SessionContext = Depends(get_session)
):
    """Create the caller's profile on first call, update it afterwards"""
    try:
        resolved = ProfileService.save_profile(
            db, session.user_id, profile_data.model_dump(exclude_unset=True), session.user.claims
        )
    except SQLAlchemyError as e:
        return backend_error_response(db, "save your profile", e)

    return success_response(
        message="Profile saved",
        data={"role": resolved.role, "profile": ProfileRead.model_validate(resolved.profile)}
    )

@router.get("/events/{event_id}/feuille-de-route")
async def get_feuille_de_route(
    event_id: int,
    groupe: Optional[PlanningGroup] = Query(None),
    db: Session = Depends(get_db),
    session: SessionContext = Depends(get_session)
):
    """Sorted run of show plus the department notes"""
    try:
        event = EventService.get_for_viewer(db, event_id, session.user_id, session.profile)
    except WorkflowError as e:
        return workflow_error_response(e)

    items = PlanningService.feuille_de_route(
        PlanningRepo.list_for_event(db, event.id),
        groupe.value if groupe else None
    )
    return success_response(
        message="Feuille de route retrieved",
        data={
            "event": EventSummary.model_validate(event),
            "planning_items": [PlanningItemRead.model_validate(item) for item in items],
            "information": PlanningService.information_by_section(InformationRepo.list_for_event(db, event.id)),
        }
    )

@router.get("/events/{event_id}/feuille-de-route.xlsx")
async def download_feuille_de_route(
    event_id: int,
    groupe: Optional[PlanningGroup] = Query(None),
    db: Session = Depends(get_db),
    session: SessionContext = Depends(get_session)
):
    """Excel export of the feuille de route"""
    try:
        event = EventService.get_for_viewer(db, event_id, session.user_id, session.profile)
    except WorkflowError as e:
        return workflow_error_response(e)

    workbook = ExcelService.export_feuille_de_route(
        event,
        PlanningRepo.list_for_event(db, event.id),
        InformationRepo.list_for_event(db, event.id),
        groupe.value if groupe else None
    )

    return Response(
        content=workbook,
        media_type="application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
        headers={"Content-Disposition": f"attachment; filename=feuille_de_route_{event.id}.xlsx"}
    )
