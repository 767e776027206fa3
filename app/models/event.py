"""
Event model and its planning / information children
"""

from datetime import datetime
from sqlalchemy import Column, Integer, String, DateTime, Text, JSON, ForeignKey
from sqlalchemy.orm import relationship

from app.core.db import Base
from app.models.enums import EventStatus

class Event(Base):
    __tablename__ = "events"

    id = Column(Integer, primary_key=True, index=True)
    # Auth user id of the owning régisseur
    regisseur_id = Column(String(128), nullable=False, index=True)
    nom_evenement = Column(String(255), nullable=False)
    date_debut = Column(DateTime, nullable=False)
    date_fin = Column(DateTime, nullable=False)
    lieu = Column(String(255), nullable=True)
    description = Column(Text, nullable=True)
    statut_evenement = Column(String(20), nullable=False, default=EventStatus.DRAFT.value)
    specialites_requises = Column(JSON, nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    # Children are removed explicitly by EventService.delete_event, not by ORM cascade
    planning_items = relationship(
        "EventPlanningItem",
        back_populates="event",
        order_by="EventPlanningItem.ordre",
        passive_deletes=True,
    )
    information_fields = relationship("EventInformationField", back_populates="event", passive_deletes=True)
    assignments = relationship("EventIntermittentAssignment", back_populates="event", passive_deletes=True)

class EventPlanningItem(Base):
    __tablename__ = "event_planning_items"

    id = Column(Integer, primary_key=True, index=True)
    event_id = Column(Integer, ForeignKey("events.id"), nullable=False, index=True)
    heure = Column(String(10), nullable=False)  # "HH:MM"
    intitule = Column(String(255), nullable=False)
    ordre = Column(Integer, nullable=False, default=0)
    groupe = Column(String(20), nullable=False)  # artistes, techniques

    event = relationship("Event", back_populates="planning_items")

class EventInformationField(Base):
    __tablename__ = "event_information_fields"

    id = Column(Integer, primary_key=True, index=True)
    event_id = Column(Integer, ForeignKey("events.id"), nullable=False, index=True)
    type_champ = Column(String(20), nullable=False)  # son, lumiere, plateau, general
    contenu_texte = Column(Text, nullable=True)
    chemin_fichier_supabase_storage = Column(String(1024), nullable=True)

    event = relationship("Event", back_populates="information_fields")

