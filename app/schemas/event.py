"""
Event-related Pydantic schemas
"""

from datetime import datetime
from typing import Optional, List
from pydantic import BaseModel

from app.models.enums import PlanningGroup, InfoFieldType

class PlanningItemIn(BaseModel):
    """One run-of-show line as typed in the event form"""
    heure: str
    intitule: str
    groupe: PlanningGroup = PlanningGroup.TECHNIQUES

class InformationFieldIn(BaseModel):
    """Department briefing block"""
    type_champ: InfoFieldType
    contenu_texte: Optional[str] = None
    lien: Optional[str] = None

class EventCreate(BaseModel):
    """Schema for creating or editing an event"""
    nom_evenement: str
    date_debut: Optional[datetime] = None
    date_fin: Optional[datetime] = None
    lieu: Optional[str] = None
    description: Optional[str] = None
    specialites_requises: List[str] = []
    planning: List[PlanningItemIn] = []
    information: List[InformationFieldIn] = []
    intermittent_ids: List[int] = []
    publish: bool = False

class EventDuplicate(BaseModel):
    """New start for a duplicated event; the duration is preserved"""
    date_debut: datetime

class PlanningItemRead(BaseModel):
    id: int
    heure: str
    intitule: str
    ordre: int
    groupe: str

    class Config:
        from_attributes = True

class InformationFieldRead(BaseModel):
    id: int
    type_champ: str
    contenu_texte: Optional[str] = None
    chemin_fichier_supabase_storage: Optional[str] = None

    class Config:
        from_attributes = True

class EventSummary(BaseModel):
    """Basic event response"""
    id: int
    regisseur_id: str
    nom_evenement: str
    date_debut: datetime
    date_fin: datetime
    lieu: Optional[str] = None
    description: Optional[str] = None
    statut_evenement: str
    specialites_requises: Optional[List[str]] = None
    created_at: datetime

    class Config:
        from_attributes = True

class EventDetail(EventSummary):
    """Event with its planning, information fields and staffing counts"""
    planning_items: List[PlanningItemRead] = []
    information_fields: List[InformationFieldRead] = []
    total_assignments: int = 0
    confirmed_count: int = 0
    pending_count: int = 0
