"""
Profile schemas
"""

from typing import Optional
from pydantic import BaseModel

from app.models.enums import UserRole

class ProfileUpdate(BaseModel):
    """Self-service profile form; ``role`` is only read when no profile exists yet"""
    role: Optional[UserRole] = None
    nom: Optional[str] = None
    prenom: Optional[str] = None
    email: Optional[str] = None
    telephone: Optional[str] = None
    organisation: Optional[str] = None
    specialite: Optional[str] = None
    bio: Optional[str] = None

class IntermittentRead(BaseModel):
    id: int
    nom: str
    prenom: str
    email: str
    specialite: Optional[str] = None

    class Config:
        from_attributes = True

class ProfileRead(BaseModel):
    """Either profile kind; fields the kind lacks stay empty"""
    id: int
    user_id: Optional[str] = None
    nom: str
    prenom: str
    email: str
    telephone: Optional[str] = None
    organisation: Optional[str] = None
    specialite: Optional[str] = None
    bio: Optional[str] = None
    profil_complete: bool = False

    class Config:
        from_attributes = True
