"""
Identity provider client: Firebase Admin app and ID-token verification
"""

import base64
import json
import logging
from functools import lru_cache
from pathlib import Path
from typing import Any, Dict, Optional

import firebase_admin
from firebase_admin import auth, credentials

from app.core.config import settings

logger = logging.getLogger(__name__)


def load_service_account() -> Optional[Dict[str, Any]]:
    """Service-account JSON from the first configured source (inline, base64, then file)"""
    if settings.FIREBASE_CREDENTIALS_JSON:
        return json.loads(settings.FIREBASE_CREDENTIALS_JSON)
    if settings.FIREBASE_CREDENTIALS_B64:
        return json.loads(base64.b64decode(settings.FIREBASE_CREDENTIALS_B64).decode("utf-8"))
    if settings.FIREBASE_CREDENTIALS_FILE:
        path = Path(settings.FIREBASE_CREDENTIALS_FILE)
        if path.exists():
            return json.loads(path.read_text(encoding="utf-8"))
        logger.warning(f"Firebase credentials file {path} does not exist")
    return None


@lru_cache(maxsize=1)
def get_firebase_app() -> firebase_admin.App:
    """Initialise the Admin SDK once and return its default app"""
    if firebase_admin._apps:
        return firebase_admin.get_app()

    info = load_service_account()
    if not info:
        raise RuntimeError(
            "USE_FIREBASE is set but no credentials were provided. "
            "Set FIREBASE_CREDENTIALS_JSON, FIREBASE_CREDENTIALS_B64 or FIREBASE_CREDENTIALS_FILE"
        )

    app = firebase_admin.initialize_app(credentials.Certificate(info))
    logger.info(f"Firebase Admin initialised for project {info.get('project_id')}")
    return app


def verify_id_token(token: str) -> Dict[str, Any]:
    """Decoded claims of a valid ID token.

    Raises ``firebase_admin.auth`` errors (InvalidIdTokenError, ExpiredIdTokenError, ...)
    when the token is rejected. Expired tokens are reported by the SDK, so the
    caller's own freshness check only sees live tokens.
    """
    return auth.verify_id_token(token, app=get_firebase_app())
