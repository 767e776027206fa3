"""
Régisseur and intermittent profile models
"""

from datetime import datetime
from sqlalchemy import Column, Integer, String, Boolean, DateTime, Text

from app.core.db import Base

class RegisseurProfile(Base):
    __tablename__ = "regisseur_profiles"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(String(128), unique=True, nullable=False, index=True)
    nom = Column(String(255), nullable=False, default="")
    prenom = Column(String(255), nullable=False, default="")
    email = Column(String(255), nullable=False, default="")
    telephone = Column(String(50), nullable=True)
    organisation = Column(String(255), nullable=True)
    profil_complete = Column(Boolean, default=False)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

class IntermittentProfile(Base):
    __tablename__ = "intermittent_profiles"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(String(128), unique=True, nullable=True, index=True)
    nom = Column(String(255), nullable=False, default="")
    prenom = Column(String(255), nullable=False, default="")
    email = Column(String(255), nullable=False, default="")
    telephone = Column(String(50), nullable=True)
    specialite = Column(String(100), nullable=True)  # son, lumiere, plateau, ...
    bio = Column(Text, nullable=True)
    profil_complete = Column(Boolean, default=False)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)
