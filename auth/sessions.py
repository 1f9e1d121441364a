"""
auth/sessions.py -- Refresh-session lifecycle: creation, expiry, validation.

A refresh session is a random token stored on the user's record with an
absolute expiry. It is the stateful half of the auth scheme: access tokens are
proven by signature, refresh sessions by a store lookup.

Design notes:
  - Tokens are secrets.token_hex(refresh_token_bytes): 64 random bytes by
    default, hex encoded. Only the raw token goes back to the client, and it
    is stored as-is (no hashing at rest, no rotation on use).
  - Expired sessions are never pruned on the hot path, so an id+token match
    alone proves nothing. validate() re-checks the matched session's expiry
    on every call.
  - There is no revoke/logout path; expiry is the only way a session ends.
  - The clock is injectable (seconds since epoch) so callers can simulate
    the passage of days.

Layer rule: no imports from api/.
"""

from __future__ import annotations

import logging
import secrets
import time
from collections.abc import Callable

from auth.errors import SessionExpired, SessionNotFound
from auth.models import Session, User
from auth.store import UserStore
from core.config import Settings

logger = logging.getLogger("markstash.auth")

DEFAULT_TTL_SECONDS = 10 * 24 * 60 * 60
DEFAULT_TOKEN_BYTES = 64


class SessionManager:
    """Create and validate refresh sessions backed by a UserStore."""

    def __init__(
        self,
        store: UserStore,
        ttl_seconds: int = DEFAULT_TTL_SECONDS,
        token_bytes: int = DEFAULT_TOKEN_BYTES,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self.store = store
        self.ttl_seconds = ttl_seconds
        self.token_bytes = token_bytes
        self._clock = clock

    @classmethod
    def from_settings(
        cls, settings: Settings, store: UserStore, clock: Callable[[], float] = time.time
    ) -> SessionManager:
        return cls(
            store,
            ttl_seconds=settings.refresh_token_ttl_seconds,
            token_bytes=settings.refresh_token_bytes,
            clock=clock,
        )

    def now(self) -> float:
        return self._clock()

    def create_session(self, user: User) -> str:
        """Mint a refresh token, append it to the user's sessions, return it.

        Raises SessionNotFound if the user no longer exists in the store.
        """
        token = secrets.token_hex(self.token_bytes)
        session = Session(token=token, expires_at=self.now() + self.ttl_seconds)
        if not self.store.append_session(user.id, session):
            raise SessionNotFound()
        user.sessions.append(session)
        logger.info("Session created for user %s (expires_at=%.0f)", user.id, session.expires_at)
        return token

    def is_expired(self, expires_at: float) -> bool:
        """True once expires_at is no longer strictly in the future."""
        return expires_at <= self.now()

    def validate(self, user_id: str, token: str) -> User:
        """Return the owning user if (user_id, token) names a live session.

        Raises SessionNotFound when no such pair exists and SessionExpired
        when the matched session is past its expiry.
        """
        user = self.store.get_by_id_and_session_token(user_id, token)
        if user is None:
            logger.info("Refresh rejected: no session for user %r", user_id)
            raise SessionNotFound()
        matched = next((s for s in user.sessions if s.token == token), None)
        if matched is None:
            raise SessionNotFound()
        if self.is_expired(matched.expires_at):
            logger.info("Refresh rejected: session expired for user %r", user_id)
            raise SessionExpired()
        return user

    def purge_expired(self) -> int:
        """Drop expired sessions from the store. Optional housekeeping."""
        return self.store.purge_expired_sessions(self.now())
