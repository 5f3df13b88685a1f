"""
Firebase Authentication
Verifies Firebase ID tokens and resolves the caller's Session
"""

import logging

import firebase_admin
from fastapi import Depends, Header
from firebase_admin import auth, credentials
from firebase_admin.exceptions import FirebaseError
from starlette.concurrency import run_in_threadpool

from elearn.auth.session import Session, SessionManager, get_session_manager
from elearn.core.config import firebase_credentials_dict
from elearn.core.database import get_store
from elearn.core.errors import AuthenticationFailed, PermissionDenied
from elearn.users.user_models import Role

logger = logging.getLogger(__name__)


def init_firebase() -> None:
    """
    Initialize Firebase Admin SDK at app startup

    Raises:
        RuntimeError: If configuration invalid or Firebase init fails
    """
    if firebase_admin._apps:
        return
    try:
        cred = credentials.Certificate(firebase_credentials_dict())
        firebase_admin.initialize_app(cred)
    except (ValueError, OSError) as e:
        raise RuntimeError(f"Firebase initialization failed: {e}") from e
    logger.info("Firebase Admin SDK initialized")


def verify_firebase_token(firebase_token: str) -> dict:
    """
    Verify a Firebase ID token

    Returns:
        dict: Decoded token claims, `uid` included

    Raises:
        AuthenticationFailed: invalid, expired or revoked token
    """
    try:
        decoded = auth.verify_id_token(firebase_token, check_revoked=True)
    except (ValueError, FirebaseError) as e:
        logger.warning(f"Token verification failed: {e}")
        raise AuthenticationFailed("Invalid or expired authentication token") from e

    if not decoded.get("uid"):
        raise AuthenticationFailed("Token has no subject")
    return decoded


def _bearer_token(authorization: str) -> str:
    if not authorization:
        raise AuthenticationFailed("Missing Authorization header")
    scheme, _, token = authorization.partition(" ")
    if scheme.lower() != "bearer" or not token.strip():
        raise AuthenticationFailed("Authorization header must be 'Bearer <token>'")
    return token.strip()


async def get_verified_claims(authorization: str = Header(None)) -> dict:
    """Dependency: decoded claims of the caller's ID token"""
    token = _bearer_token(authorization)
    return await run_in_threadpool(verify_firebase_token, token)


async def get_current_session(
    claims: dict = Depends(get_verified_claims),
    store=Depends(get_store),
    sessions: SessionManager = Depends(get_session_manager),
) -> Session:
    """Dependency: the caller's live session, opened on first use"""
    return await sessions.auth_state_changed(store, claims["uid"], True, claims)


def require_role(*roles: Role):
    """Dependency factory: the session must hold one of `roles`"""

    async def checker(session: Session = Depends(get_current_session)) -> Session:
        if session.role not in roles:
            allowed = ", ".join(r.value for r in roles)
            raise PermissionDenied(f"Access denied. Requires role: {allowed}")
        return session

    return checker


require_author = require_role(Role.TEACHER, Role.ADMIN)
require_admin = require_role(Role.ADMIN)
