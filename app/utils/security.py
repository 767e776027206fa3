"""
Security utilities and authentication
"""

import logging
from fastapi import Depends
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from firebase_admin import auth
from sqlalchemy.orm import Session

from app.core.config import settings
from app.core.db import get_db
from app.models.enums import UserRole
from app.services.errors import PermissionDenied
from app.services.firebase_client import verify_id_token
from app.services.session import AuthenticatedUser, SessionContext
from app.utils.responses import unauthorized_error, forbidden_error

logger = logging.getLogger(__name__)

security = HTTPBearer()

def authenticate_token(token: str) -> AuthenticatedUser:
    """Turn a bearer token into a user.

    With Firebase enabled the token must be a valid ID token. Otherwise
    (local development) the token itself is taken as the user id.
    """
    if not token:
        unauthorized_error("Missing token")

    if not settings.USE_FIREBASE:
        return AuthenticatedUser(user_id=token)

    try:
        claims = verify_id_token(token)
    except (ValueError, auth.InvalidIdTokenError, auth.CertificateFetchError) as e:
        logger.warning(f"Rejected identity token: {e}")
        unauthorized_error("Invalid or expired token")
    return AuthenticatedUser.from_claims(claims)

def open_session(token: str, db: Session) -> SessionContext:
    """Authenticate and build the session context; callers must close it"""
    context = SessionContext(authenticate_token(token)).open(db)
    if not context.is_active:
        context.close()
        unauthorized_error("Session expired, please sign in again")
    return context

def get_session(
    credentials: HTTPAuthorizationCredentials = Depends(security),
    db: Session = Depends(get_db)
):
    """Per-request session context, torn down when the request ends"""
    context = open_session(credentials.credentials, db)
    try:
        yield context
    finally:
        context.close()

def require_role(session: SessionContext, role: UserRole) -> SessionContext:
    try:
        session.require_role(role)
    except PermissionDenied as e:
        forbidden_error(e.message)
    return session

def require_regisseur(session: SessionContext = Depends(get_session)) -> SessionContext:
    """Only régisseurs with a profile"""
    return require_role(session, UserRole.REGISSEUR)

def require_intermittent(session: SessionContext = Depends(get_session)) -> SessionContext:
    """Only intermittents with a profile"""
    return require_role(session, UserRole.INTERMITTENT)
