"""
Explicit user sessions.

A Session is created when the auth provider reports a sign-in and destroyed
on sign-out. It carries the user's id, role and navigation state, and is
passed to every operation that needs them.
"""

import logging
from datetime import datetime, timedelta
from typing import Dict, Optional

from elearn.core.config import settings
from elearn.core.database import utcnow
from elearn.courses.navigation import Navigator
from elearn.users.user_models import Role, UserProfile
from elearn.users.user_service import create_user_profile, find_user, update_last_login

logger = logging.getLogger(__name__)


class Session:
    """Validated user plus per-session navigation"""

    def __init__(self, profile: UserProfile, store):
        self.user_id = profile.id
        self.role = profile.role
        self.profile = profile
        self.navigator = Navigator(store, profile.id)
        self.started_at: datetime = utcnow()
        self.last_seen: datetime = self.started_at

    def refresh(self, profile: UserProfile):
        """Adopt the stored profile; name and role edits apply to the live session"""
        self.role = profile.role
        self.profile = profile
        self.last_seen = utcnow()

    @property
    def can_author(self) -> bool:
        return self.role.can_author

    @property
    def is_admin(self) -> bool:
        return self.role == Role.ADMIN

    def close(self):
        self.navigator.reset()


class SessionManager:
    """
    Owns the live sessions, keyed by user id.

    sign_in/sign_out are the auth-state notifications: each fires once per
    transition, and a repeated sign_in returns the live session with its
    profile reloaded from the store. Sessions idle for longer than
    idle_timeout are closed on the next sign_in.
    """

    def __init__(self, idle_timeout: Optional[timedelta] = None):
        self._sessions: Dict[str, Session] = {}
        self.idle_timeout = idle_timeout or timedelta(minutes=settings.SESSION_IDLE_MINUTES)

    def get(self, user_id: str) -> Optional[Session]:
        return self._sessions.get(user_id)

    def __len__(self) -> int:
        return len(self._sessions)

    async def sign_in(self, store, user_id: str, claims: Optional[dict] = None) -> Session:
        """
        Open a session for an authenticated user, creating a student profile
        on first sign-in.
        """
        self.prune_idle()

        existing = self._sessions.get(user_id)
        if existing is not None:
            profile = await find_user(store, user_id)
            if profile is not None:
                existing.refresh(profile)
                return existing
            # profile removed behind the live session
            self.sign_out(user_id)

        claims = claims or {}
        profile = await find_user(store, user_id)
        if profile is None:
            email = claims.get("email") or ""
            profile = await create_user_profile(store, user_id, {
                "name": claims.get("name") or email.split("@")[0] or user_id,
                "email": email,
                "photo_url": claims.get("picture"),
                "phone_number": claims.get("phone_number"),
            })
        else:
            await update_last_login(store, user_id)

        session = Session(profile, store)
        self._sessions[user_id] = session
        logger.info(f"Session opened for {user_id} as {profile.role.value}")
        return session

    def sign_out(self, user_id: str) -> bool:
        session = self._sessions.pop(user_id, None)
        if session is None:
            return False
        session.close()
        logger.info(f"Session closed for {user_id}")
        return True

    async def auth_state_changed(
        self, store, user_id: str, signed_in: bool, claims: Optional[dict] = None
    ) -> Optional[Session]:
        """Single entry point for auth provider notifications"""
        if signed_in:
            return await self.sign_in(store, user_id, claims)
        self.sign_out(user_id)
        return None

    def prune_idle(self, now: Optional[datetime] = None) -> int:
        """Close sessions not seen within idle_timeout; returns how many closed"""
        cutoff = (now or utcnow()) - self.idle_timeout
        idle = [uid for uid, session in self._sessions.items() if session.last_seen < cutoff]
        for user_id in idle:
            self.sign_out(user_id)
        if idle:
            logger.info(f"Closed {len(idle)} idle session(s)")
        return len(idle)

    def clear(self):
        for user_id in list(self._sessions):
            self.sign_out(user_id)


session_manager = SessionManager()


def get_session_manager() -> SessionManager:
    return session_manager
