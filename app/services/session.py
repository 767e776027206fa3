"""
Per-request session context.

A ``SessionContext`` holds the authenticated user and the resolved profile for
the lifetime of one request or one WebSocket connection. It is opened by the
auth dependency, handed to the routes explicitly and closed when the request
ends.
"""

import enum
import logging
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Optional

from sqlalchemy.orm import Session

from app.core.config import settings
from app.models.enums import UserRole
from app.services.errors import PermissionDenied
from app.services.profile_service import ProfileService, ResolvedProfile

logger = logging.getLogger(__name__)


class SessionStatus(str, enum.Enum):
    ACTIVE = "active"
    EXPIRED = "expired"
    REFRESHING = "refreshing"
    UNKNOWN = "unknown"


@dataclass
class AuthenticatedUser:
    user_id: str
    email: Optional[str] = None
    claims: Dict[str, Any] = field(default_factory=dict)
    issued_at: Optional[datetime] = None
    expires_at: Optional[datetime] = None

    @classmethod
    def from_claims(cls, claims: Dict[str, Any]) -> "AuthenticatedUser":
        """Build a user from decoded identity-token claims"""
        issued_at = claims.get("iat")
        expires_at = claims.get("exp")
        return cls(
            user_id=claims.get("uid") or claims["sub"],
            email=claims.get("email"),
            claims=claims,
            issued_at=datetime.fromtimestamp(issued_at, timezone.utc).replace(tzinfo=None) if issued_at else None,
            expires_at=datetime.fromtimestamp(expires_at, timezone.utc).replace(tzinfo=None) if expires_at else None,
        )


class SessionContext:
    """Authenticated user plus resolved profile, with an explicit open/close lifecycle"""

    def __init__(self, user: AuthenticatedUser, max_age_seconds: int = None):
        self.user: Optional[AuthenticatedUser] = user
        self.resolved: Optional[ResolvedProfile] = None
        self.status = SessionStatus.UNKNOWN
        self.max_age = timedelta(seconds=max_age_seconds or settings.SESSION_MAX_AGE_SECONDS)

    def open(self, db: Session, now: Optional[datetime] = None) -> "SessionContext":
        self.resolved = ProfileService.resolve(db, self.user.user_id, self.user.claims)
        self.refresh(now)
        return self

    def refresh(self, now: Optional[datetime] = None) -> bool:
        """Recompute the freshness flag; returns True while the session is usable"""
        if self.user is None:
            self.status = SessionStatus.UNKNOWN
            return False

        self.status = SessionStatus.REFRESHING
        now = now or datetime.utcnow()
        expired = False
        if self.user.expires_at and now >= self.user.expires_at:
            expired = True
        elif self.user.issued_at and now - self.user.issued_at > self.max_age:
            expired = True

        self.status = SessionStatus.EXPIRED if expired else SessionStatus.ACTIVE
        return not expired

    def close(self) -> None:
        self.user = None
        self.resolved = None
        self.status = SessionStatus.UNKNOWN

    @property
    def is_active(self) -> bool:
        return self.status == SessionStatus.ACTIVE

    @property
    def user_id(self) -> Optional[str]:
        return self.user.user_id if self.user else None

    @property
    def role(self) -> Optional[UserRole]:
        return self.resolved.role if self.resolved else None

    @property
    def profile(self):
        return self.resolved.profile if self.resolved else None

    def require_role(self, role: UserRole) -> None:
        """Role string comparison; a missing profile row is also refused"""
        if self.role != role:
            raise PermissionDenied(f"This action requires the {role.value} role")
        if self.profile is None:
            raise PermissionDenied("Complete your profile before using this feature")
