"""
Tests for the assignment lifecycle: offers, staff replies and team validation
"""

import pytest
from datetime import datetime
from sqlalchemy import create_engine
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import sessionmaker

from app.core.db import Base
from app.models import RegisseurProfile, IntermittentProfile, EventIntermittentResponse
from app.models.enums import AssignmentStatus, ResponseType, SelectionState, UserRole
from app.services.assignment_service import AssignmentService, can_transition, check_transition
from app.services.errors import InvalidTransition, PermissionDenied, ValidationFailed
from app.services.event_service import EventService
from app.services.repositories import AssignmentRepo

# Test database setup
SQLALCHEMY_DATABASE_URL = "sqlite:///./test_assignments.db"
engine = create_engine(SQLALCHEMY_DATABASE_URL, connect_args={"check_same_thread": False})
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

@pytest.fixture
def db_session():
    """Create test database session"""
    Base.metadata.create_all(bind=engine)
    db = TestingSessionLocal()
    try:
        yield db
    finally:
        db.close()
        Base.metadata.drop_all(bind=engine)

@pytest.fixture
def staffed_event(db_session):
    """An event proposed to four intermittents"""
    regisseur = RegisseurProfile(user_id="reg-1", nom="Martin", prenom="Claire", email="claire@theatre.fr")
    db_session.add(regisseur)

    crew = [
        IntermittentProfile(user_id=f"int-{i}", nom=nom, prenom="X", email=f"{nom.lower()}@crew.fr", specialite=specialite)
        for i, (nom, specialite) in enumerate([("Bernard", "son"), ("Petit", "lumiere"), ("Durand", "plateau"), ("Leroy", "son")], 1)
    ]
    db_session.add_all(crew)
    db_session.commit()

    event = EventService.save_event(db_session, "reg-1", {
        "nom_evenement": "Festival d'été",
        "date_debut": datetime(2025, 7, 14, 18, 0),
        "date_fin": datetime(2025, 7, 14, 23, 30),
        "lieu": "Arènes",
        "intermittent_ids": [profile.id for profile in crew],
    })
    assignments = AssignmentRepo.list_for_event(db_session, event.id)
    return event, crew, assignments

def test_transition_graph():
    """Only the documented edges are allowed"""
    assert can_transition("propose", "disponible")
    assert can_transition("propose", "valide")
    assert can_transition("incertain", "non_retenu")
    assert not can_transition("disponible", "non_disponible")
    assert not can_transition("valide", "propose")
    assert not can_transition("non_retenu", "valide")
    assert not can_transition("non_disponible", "valide")

def test_check_transition_enforces_role():
    with pytest.raises(PermissionDenied):
        check_transition("propose", "valide", UserRole.INTERMITTENT)

    with pytest.raises(PermissionDenied):
        check_transition("propose", "disponible", UserRole.REGISSEUR)

    with pytest.raises(InvalidTransition):
        check_transition("valide", "disponible", UserRole.INTERMITTENT)

def test_offer_creates_proposed_rows(db_session, staffed_event):
    event, crew, assignments = staffed_event

    assert len(assignments) == 4
    assert all(a.statut_disponibilite == AssignmentStatus.PROPOSE.value for a in assignments)
    assert all(a.date_reponse is None for a in assignments)

def test_offer_skips_profiles_already_on_event(db_session, staffed_event):
    event, crew, assignments = staffed_event

    assert AssignmentService.offer(db_session, "reg-1", event.id, [crew[0].id, crew[1].id]) == []

    newcomer = IntermittentProfile(user_id="int-9", nom="Moreau", prenom="Luc", email="luc@crew.fr")
    db_session.add(newcomer)
    db_session.commit()

    created = AssignmentService.offer(db_session, "reg-1", event.id, [crew[0].id, newcomer.id, newcomer.id])
    assert [a.intermittent_profile_id for a in created] == [newcomer.id]

def test_offer_by_other_regisseur_forbidden(db_session, staffed_event):
    event, crew, assignments = staffed_event

    with pytest.raises(PermissionDenied):
        AssignmentService.offer(db_session, "reg-2", event.id, [crew[0].id])

def test_respond_accept(db_session, staffed_event):
    event, crew, assignments = staffed_event
    answered_at = datetime(2025, 6, 1, 10, 0)

    assignment, response = AssignmentService.respond(
        db_session, crew[0], assignments[0].id, ResponseType.ACCEPT, comment="  Avec plaisir  ", now=answered_at
    )

    assert assignment.statut_disponibilite == AssignmentStatus.DISPONIBLE.value
    assert assignment.date_reponse == answered_at
    assert response.response_type == "accept"
    assert response.comment == "Avec plaisir"
    assert response.alternative_dates is None

def test_respond_refuse(db_session, staffed_event):
    event, crew, assignments = staffed_event

    assignment, response = AssignmentService.respond(db_session, crew[1], assignments[1].id, "refuse")

    assert assignment.statut_disponibilite == AssignmentStatus.NON_DISPONIBLE.value
    assert response.comment is None

def test_respond_alternative_requires_a_date(db_session, staffed_event):
    """Blank alternative dates are dropped; with none left nothing is written"""
    event, crew, assignments = staffed_event

    with pytest.raises(ValidationFailed):
        AssignmentService.respond(
            db_session, crew[2], assignments[2].id, ResponseType.PROPOSE_ALTERNATIVE, alternative_dates=["", "   ", None]
        )

    db_session.refresh(assignments[2])
    assert assignments[2].statut_disponibilite == AssignmentStatus.PROPOSE.value
    assert db_session.query(EventIntermittentResponse).count() == 0

def test_respond_alternative_keeps_filled_dates(db_session, staffed_event):
    event, crew, assignments = staffed_event

    assignment, response = AssignmentService.respond(
        db_session,
        crew[2],
        assignments[2].id,
        ResponseType.PROPOSE_ALTERNATIVE,
        alternative_dates=["2025-07-15T18:00:00", ""],
    )

    assert assignment.statut_disponibilite == AssignmentStatus.INCERTAIN.value
    assert response.alternative_dates == ["2025-07-15T18:00:00"]

def test_respond_rejects_invalid_date(db_session, staffed_event):
    event, crew, assignments = staffed_event

    with pytest.raises(ValidationFailed):
        AssignmentService.respond(
            db_session, crew[2], assignments[2].id, ResponseType.PROPOSE_ALTERNATIVE, alternative_dates=["demain"]
        )

def test_respond_twice_is_invalid(db_session, staffed_event):
    event, crew, assignments = staffed_event

    AssignmentService.respond(db_session, crew[0], assignments[0].id, ResponseType.ACCEPT)
    with pytest.raises(InvalidTransition):
        AssignmentService.respond(db_session, crew[0], assignments[0].id, ResponseType.REFUSE)

def test_respond_on_someone_elses_assignment(db_session, staffed_event):
    event, crew, assignments = staffed_event

    with pytest.raises(PermissionDenied):
        AssignmentService.respond(db_session, crew[1], assignments[0].id, ResponseType.ACCEPT)

def test_validate_team(db_session, staffed_event):
    event, crew, assignments = staffed_event
    a1, a2, a3, a4 = assignments

    AssignmentService.respond(db_session, crew[0], a1.id, ResponseType.ACCEPT)
    AssignmentService.respond(db_session, crew[2], a3.id, ResponseType.REFUSE)

    report = AssignmentService.validate_team(db_session, "reg-1", event.id, {
        a1.id: SelectionState.SELECTED,
        a2.id: SelectionState.NOT_SELECTED,
        a3.id: SelectionState.SELECTED,
    })

    assert not report.interrupted
    assert report.updated == {a1.id: "valide", a2.id: "non_retenu"}
    assert report.skipped == [a3.id]
    assert report.pending == [a4.id]

    statuses = {a.id: a.statut_disponibilite for a in AssignmentRepo.list_for_event(db_session, event.id)}
    assert statuses == {a1.id: "valide", a2.id: "non_retenu", a3.id: "non_disponible", a4.id: "propose"}

def test_validate_team_rejects_foreign_ids(db_session, staffed_event):
    event, crew, assignments = staffed_event

    with pytest.raises(ValidationFailed):
        AssignmentService.validate_team(db_session, "reg-1", event.id, {
            assignments[0].id: SelectionState.SELECTED,
            9999: SelectionState.SELECTED,
        })

    db_session.refresh(assignments[0])
    assert assignments[0].statut_disponibilite == AssignmentStatus.PROPOSE.value

def test_validate_team_stops_at_first_failed_write(db_session, staffed_event, monkeypatch):
    """Rows before the failure keep their new status, rows after are untouched"""
    event, crew, assignments = staffed_event
    original = AssignmentRepo.set_status
    calls = []

    def flaky_set_status(db, assignment, status, responded_at=None):
        calls.append(assignment.id)
        if len(calls) == 2:
            raise SQLAlchemyError("connection lost")
        return original(db, assignment, status, responded_at)

    monkeypatch.setattr(AssignmentRepo, "set_status", staticmethod(flaky_set_status))

    report = AssignmentService.validate_team(
        db_session, "reg-1", event.id, {a.id: SelectionState.SELECTED for a in assignments}
    )

    assert report.interrupted
    assert report.failed_id == assignments[1].id
    assert report.updated == {assignments[0].id: "valide"}
    assert "connection lost" in report.error

    monkeypatch.undo()
    statuses = [a.statut_disponibilite for a in AssignmentRepo.list_for_event(db_session, event.id)]
    assert statuses == ["valide", "propose", "propose", "propose"]

def test_selection_state_cycles():
    assert SelectionState.PENDING.next() == SelectionState.SELECTED
    assert SelectionState.SELECTED.next() == SelectionState.NOT_SELECTED
    assert SelectionState.NOT_SELECTED.next() == SelectionState.PENDING

def test_intermittent_dashboard_counts(db_session, staffed_event):
    event, crew, assignments = staffed_event

    AssignmentService.respond(db_session, crew[0], assignments[0].id, ResponseType.ACCEPT)
    AssignmentService.validate_team(db_session, "reg-1", event.id, {assignments[0].id: SelectionState.SELECTED})

    dashboard = EventService.list_for_intermittent(db_session, crew[0], now=datetime(2025, 6, 1))
    assert dashboard["stats"] == {"total": 1, "accepted": 1, "pending": 0, "upcoming": 1}
    assert dashboard["events"][0]["statut_disponibilite"] == "valide"
    assert dashboard["events"][0]["has_active_request"] is False

    later = EventService.list_for_intermittent(db_session, crew[0], now=datetime(2025, 8, 1))
    assert later["stats"]["upcoming"] == 0

    other = EventService.list_for_intermittent(db_session, crew[1])
    assert other["counts"]["propose"] == 1
    assert other["stats"]["pending"] == 1
