"""
Tests for replacement requests, the notification feed and the change feed
"""

import asyncio
import pytest
from datetime import datetime
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

from app.core.db import Base
from app.models import IntermittentProfile, Notification, ReplacementRequest
from app.models.enums import ResponseType, SelectionState
from app.services.assignment_service import AssignmentService
from app.services.errors import (
    InvalidTransition,
    NotFound,
    PermissionDenied,
    SelectionLimitReached,
    ValidationFailed,
)
from app.services.event_service import EventService
from app.services.notification_service import NotificationService
from app.services.realtime import ChangeEvent, ChangeFeed, ChangeFilter, INSERT, UPDATE
from app.services.replacement_service import CandidateSelection, ReplacementService
from app.services.repositories import AssignmentRepo

# Test database setup
SQLALCHEMY_DATABASE_URL = "sqlite:///./test_replacements.db"
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
def feed():
    return ChangeFeed()

@pytest.fixture
def notifications(feed):
    return NotificationService(feed)

@pytest.fixture
def replacements(notifications):
    return ReplacementService(notifications)

@pytest.fixture
def validated_assignment(db_session):
    """Festival with Paul validated, Julie proposed and three free colleagues"""
    names = ["Bernard", "Petit", "Durand", "Leroy", "Moreau"]
    crew = [
        IntermittentProfile(user_id=f"int-{i}", nom=nom, prenom="X", email=f"{nom.lower()}@crew.fr")
        for i, nom in enumerate(names, 1)
    ]
    db_session.add_all(crew)
    db_session.commit()

    event = EventService.save_event(db_session, "reg-1", {
        "nom_evenement": "Festival",
        "date_debut": datetime(2025, 7, 14, 18, 0),
        "date_fin": datetime(2025, 7, 14, 23, 30),
        "intermittent_ids": [crew[0].id, crew[1].id],
    })
    assignment = AssignmentRepo.find(db_session, event.id, crew[0].id)
    AssignmentService.respond(db_session, crew[0], assignment.id, ResponseType.ACCEPT)
    AssignmentService.validate_team(db_session, "reg-1", event.id, {assignment.id: SelectionState.SELECTED})
    db_session.refresh(assignment)
    return event, crew, assignment

def test_candidate_selection_limit():
    selection = CandidateSelection([1, 2])
    selection.add(3)

    with pytest.raises(SelectionLimitReached):
        selection.add(4)
    assert selection.ids == [1, 2, 3]

    selection.add(2)
    assert len(selection) == 3

def test_candidate_selection_zero_limit():
    selection = CandidateSelection(limit=0)

    assert selection.limit == 0
    with pytest.raises(SelectionLimitReached):
        selection.add(1)

def test_candidate_selection_toggle():
    selection = CandidateSelection(limit=2)

    assert selection.toggle(5) is True
    assert selection.toggle(6) is True
    assert selection.toggle(5) is False
    assert selection.ids == [6]
    assert 6 in selection
    assert 5 not in selection

def test_candidates_exclude_assigned(db_session, validated_assignment):
    event, crew, assignment = validated_assignment

    candidates = ReplacementService.list_candidates(db_session, event.id)
    assert [c.nom for c in candidates] == ["Durand", "Leroy", "Moreau"]

    assert [c.nom for c in ReplacementService.list_candidates(db_session, event.id, "ler")] == ["Leroy"]

def test_submit_request_creates_request_and_notification(db_session, validated_assignment, replacements, feed):
    event, crew, assignment = validated_assignment
    subscription = feed.subscribe(ChangeFilter("notifications", "user_id", "reg-1"))

    request, notification = replacements.submit_request(
        db_session, crew[0], assignment.id, "urgent", "  Malade  ", [crew[2].id, crew[3].id]
    )

    assert request.status == "pending_approval"
    assert request.request_type == "urgent"
    assert request.comment == "Malade"
    assert request.regisseur_id == "reg-1"
    assert request.suggested_intermittent_profile_ids == [crew[2].id, crew[3].id]

    assert notification.user_id == "reg-1"
    assert notification.type == "replacement_request"
    assert notification.content == 'Demande de remplacement pour "Festival"'
    assert notification.related_event_id == event.id
    assert notification.related_request_id == request.id
    assert notification.is_read is False

    change = subscription.queue.get_nowait()
    assert change.kind == INSERT
    assert change.record["id"] == notification.id
    subscription.close()

def test_submit_request_requires_reason(db_session, validated_assignment, replacements):
    event, crew, assignment = validated_assignment

    with pytest.raises(ValidationFailed):
        replacements.submit_request(db_session, crew[0], assignment.id, "souhaite", "   ")

    assert db_session.query(ReplacementRequest).count() == 0
    assert db_session.query(Notification).count() == 0

def test_submit_request_rejects_fourth_suggestion(db_session, validated_assignment, replacements):
    event, crew, assignment = validated_assignment

    with pytest.raises(SelectionLimitReached):
        replacements.submit_request(db_session, crew[0], assignment.id, "souhaite", "Tournée", [11, 12, 13, 14])

    assert db_session.query(ReplacementRequest).count() == 0

def test_submit_request_rejects_assigned_suggestion(db_session, validated_assignment, replacements):
    event, crew, assignment = validated_assignment

    with pytest.raises(ValidationFailed):
        replacements.submit_request(db_session, crew[0], assignment.id, "souhaite", "Tournée", [crew[1].id])

def test_submit_request_only_for_validated(db_session, validated_assignment, replacements):
    event, crew, assignment = validated_assignment
    proposed = AssignmentRepo.find(db_session, event.id, crew[1].id)

    with pytest.raises(ValidationFailed):
        replacements.submit_request(db_session, crew[1], proposed.id, "souhaite", "Indisponible")

def test_submit_request_for_someone_else(db_session, validated_assignment, replacements):
    event, crew, assignment = validated_assignment

    with pytest.raises(PermissionDenied):
        replacements.submit_request(db_session, crew[1], assignment.id, "souhaite", "Je le remplace")

def test_one_active_request_per_assignment(db_session, validated_assignment, replacements):
    event, crew, assignment = validated_assignment
    request, _ = replacements.submit_request(db_session, crew[0], assignment.id, "souhaite", "Tournée")

    with pytest.raises(ValidationFailed):
        replacements.submit_request(db_session, crew[0], assignment.id, "urgent", "Encore")

    ReplacementService.cancel(db_session, crew[0], request.id)
    again, _ = replacements.submit_request(db_session, crew[0], assignment.id, "urgent", "Encore")
    assert ReplacementService.active_request_for(db_session, assignment.id).id == again.id

def test_regisseur_decision(db_session, validated_assignment, replacements):
    event, crew, assignment = validated_assignment
    request, _ = replacements.submit_request(db_session, crew[0], assignment.id, "souhaite", "Tournée")

    with pytest.raises(PermissionDenied):
        ReplacementService.decide(db_session, "reg-2", request.id, "rejected_by_regisseur")

    with pytest.raises(ValidationFailed):
        ReplacementService.decide(db_session, "reg-1", request.id, "cancelled_by_intermittent")

    decided = ReplacementService.decide(db_session, "reg-1", request.id, "approved_awaiting_replacement")
    assert decided.status == "approved_awaiting_replacement"

    with pytest.raises(InvalidTransition):
        ReplacementService.decide(db_session, "reg-1", request.id, "rejected_by_regisseur")

    assert [r.id for r in ReplacementService.list_for_regisseur(db_session, "reg-1", "approved_awaiting_replacement")] == [request.id]
    assert ReplacementService.list_for_regisseur(db_session, "reg-1", "pending_approval") == []

def test_cancel_rejected_request(db_session, validated_assignment, replacements):
    event, crew, assignment = validated_assignment
    request, _ = replacements.submit_request(db_session, crew[0], assignment.id, "souhaite", "Tournée")
    ReplacementService.decide(db_session, "reg-1", request.id, "rejected_by_regisseur")

    with pytest.raises(InvalidTransition):
        ReplacementService.cancel(db_session, crew[0], request.id)

def test_notification_feed_and_mark_read(db_session, notifications, feed):
    for i in range(3):
        notifications.create(db_session, "reg-1", "replacement_request", f"Demande {i}")
    notifications.create(db_session, "reg-2", "replacement_request", "Pour quelqu'un d'autre")

    listed = NotificationService.list_for_user(db_session, "reg-1")
    assert [n.content for n in listed] == ["Demande 2", "Demande 1", "Demande 0"]
    assert NotificationService.unread_count(db_session, "reg-1") == 3
    assert len(NotificationService.list_for_user(db_session, "reg-1", limit=2)) == 2

    subscription = feed.subscribe(ChangeFilter("notifications", "user_id", "reg-1"))
    notifications.mark_as_read(db_session, "reg-1", listed[0].id)
    assert NotificationService.unread_count(db_session, "reg-1") == 2

    # Marking an already-read notification still issues the write
    notifications.mark_as_read(db_session, "reg-1", listed[0].id)
    assert NotificationService.unread_count(db_session, "reg-1") == 2
    assert subscription.queue.qsize() == 2
    assert subscription.queue.get_nowait().kind == UPDATE

    with pytest.raises(PermissionDenied):
        notifications.mark_as_read(db_session, "reg-2", listed[1].id)
    with pytest.raises(NotFound):
        notifications.mark_as_read(db_session, "reg-1", 999)

    assert notifications.mark_all_as_read(db_session, "reg-1") == 2
    assert NotificationService.unread_count(db_session, "reg-1") == 0
    assert NotificationService.unread_count(db_session, "reg-2") == 1
    subscription.close()

def test_change_feed_filters_and_unsubscribes():
    feed = ChangeFeed()
    mine = feed.subscribe(ChangeFilter("notifications", "user_id", "reg-1"))
    everything = feed.subscribe(ChangeFilter("notifications"))

    assert feed.publish(ChangeEvent("notifications", INSERT, {"user_id": "reg-1"})) == 2
    assert feed.publish(ChangeEvent("notifications", INSERT, {"user_id": "reg-2"})) == 1
    assert feed.publish(ChangeEvent("events", INSERT, {"user_id": "reg-1"})) == 0

    mine.close()
    assert feed.subscription_count() == 1
    assert feed.publish(ChangeEvent("notifications", UPDATE, {"user_id": "reg-1"})) == 1
    assert mine.queue.qsize() == 1
    everything.close()
    assert feed.subscription_count() == 0

def test_subscription_async_iteration():
    async def scenario():
        feed = ChangeFeed()
        async with feed.subscribe(ChangeFilter("notifications", "user_id", "int-1")) as subscription:
            feed.publish(ChangeEvent("notifications", INSERT, {"user_id": "int-1", "id": 7}))
            event = await subscription.get(timeout=1)
            assert event.record["id"] == 7
            with pytest.raises(asyncio.TimeoutError):
                await subscription.get(timeout=0.01)
        return feed.subscription_count()

    assert asyncio.run(scenario()) == 0
