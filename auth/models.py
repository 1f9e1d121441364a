"""
auth/models.py -- Domain dataclasses for authentication entities.

Pattern: Data class (pure data container, zero logic). Dataclasses own domain
shape; the store, the session manager and the routes do the work.

Layer rule: no imports from api/.
"""

from __future__ import annotations

from dataclasses import dataclass, field

# Informational tag only -- OAuth/social login itself is not implemented.
SIGNUP_TYPES: tuple[str, ...] = ("normal", "facebook", "google")
DEFAULT_SIGNUP_TYPE = "normal"


@dataclass
class Session:
    """A long-lived refresh session owned by exactly one User.

    token is the raw refresh token handed to the client. It is stored as-is;
    there is no hashing at rest. expires_at is seconds since the epoch and the
    session is usable only while expires_at is strictly in the future.
    """

    token: str
    expires_at: float
    user_id: str | None = None  # set by the store on append
    id: int | None = None
    created_at: str | None = None


@dataclass
class User:
    """A registered account.

    id is an opaque hex identifier assigned by UserStore.create_user().
    email is unique and case-sensitive as stored.
    password_hash is the bcrypt hash; the plaintext is never kept.

    sessions is populated by the store on reads, ordered oldest first. The
    store attaches all of the user's sessions, expired ones included --
    nothing prunes them proactively, so callers must check expiry.
    """

    email: str
    password_hash: str
    id: str | None = None
    signup_type: str = DEFAULT_SIGNUP_TYPE
    username: str | None = None
    image: str | None = None
    social_id: str | None = None  # provider user id for facebook/google signups
    created_at: str | None = None
    updated_at: str | None = None
    sessions: list[Session] = field(default_factory=list)


@dataclass(frozen=True)
class TokenPair:
    """The two credentials returned after a successful signup or login."""

    access_token: str
    refresh_token: str
