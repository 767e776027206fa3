"""
Profile resolution: which role a user plays and which profile row backs it
"""

import logging
from dataclasses import dataclass
from typing import Any, Dict, Optional, Union

from sqlalchemy.orm import Session

from app.models import RegisseurProfile, IntermittentProfile
from app.models.enums import UserRole
from app.services.repositories import ProfileRepo

logger = logging.getLogger(__name__)

REGISSEUR_FIELDS = ("nom", "prenom", "email", "telephone", "organisation")
INTERMITTENT_FIELDS = ("nom", "prenom", "email", "telephone", "specialite", "bio")


@dataclass
class ResolvedProfile:
    role: UserRole
    profile: Optional[Union[RegisseurProfile, IntermittentProfile]] = None


def role_from_claims(claims: Optional[Dict[str, Any]]) -> UserRole:
    """Role carried by the identity token, defaulting to intermittent"""
    raw = (claims or {}).get("role")
    try:
        return UserRole(raw)
    except ValueError:
        return UserRole.INTERMITTENT


class ProfileService:
    """Service for loading and maintaining user profiles"""

    @staticmethod
    def resolve(db: Session, user_id: str, claims: Optional[Dict[str, Any]] = None) -> ResolvedProfile:
        """Régisseur profile wins over intermittent; with neither, fall back to the token role"""
        regisseur = ProfileRepo.get_regisseur_by_user(db, user_id)
        if regisseur:
            return ResolvedProfile(UserRole.REGISSEUR, regisseur)

        intermittent = ProfileRepo.get_intermittent_by_user(db, user_id)
        if intermittent:
            return ResolvedProfile(UserRole.INTERMITTENT, intermittent)

        role = role_from_claims(claims)
        logger.info(f"No profile found for user {user_id}, using role {role.value}")
        return ResolvedProfile(role, None)

    @staticmethod
    def save_profile(
        db: Session,
        user_id: str,
        data: Dict[str, Any],
        claims: Optional[Dict[str, Any]] = None,
    ) -> ResolvedProfile:
        """Create the caller's profile on first save, update it afterwards"""
        resolved = ProfileService.resolve(db, user_id, claims)
        profile = resolved.profile
        role = resolved.role

        if profile is None:
            role = UserRole(data.get("role") or role)
            profile = RegisseurProfile(user_id=user_id) if role == UserRole.REGISSEUR else IntermittentProfile(user_id=user_id)

        fields = REGISSEUR_FIELDS if role == UserRole.REGISSEUR else INTERMITTENT_FIELDS
        for name in fields:
            value = data.get(name)
            if value is not None:
                setattr(profile, name, value.strip() if isinstance(value, str) else value)

        profile.profil_complete = bool(profile.nom and profile.prenom and profile.email)
        ProfileRepo.save(db, profile)
        logger.info(f"Saved {role.value} profile {profile.id} for user {user_id}")
        return ResolvedProfile(role, profile)
