"""
auth/store.py -- SQLAlchemy Core persistence layer for users and their sessions.

Pattern: Repository + Data Mapper.
UserStore is the repository; _row_to_user / _row_to_session are the mappers.
Services, dependencies and routes never touch SQL directly.

Schema:
  users          -- one row per account. UNIQUE(email) is the only guard
                    against duplicate signups: two concurrent inserts with the
                    same address end with exactly one row and one
                    IntegrityError, which create_user() turns into
                    DuplicateEmail. There is no check-then-insert.
  user_sessions  -- refresh sessions, child rows of users with
                    ON DELETE CASCADE. Reads attach them to the User, so
                    callers see a user with an embedded, ordered session list.

Concurrency:
  append_session() is a single INSERT, never a read-modify-write of the
  user's session list. Two simultaneous logins for the same user each add
  their own row; neither can overwrite the other.

Security:
  All queries use bound parameters. No f-strings in SQL.
  Refresh tokens are stored as issued (no hashing at rest).

Layer rule: no imports from api/.
"""

from __future__ import annotations

import logging
import uuid
from datetime import datetime, timezone

from sqlalchemy import (
    Column,
    Float,
    ForeignKey,
    Integer,
    MetaData,
    String,
    Table,
    Text,
    create_engine,
    event,
    select,
    text,
)
from sqlalchemy.engine import Connection, Engine
from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from auth.errors import DuplicateEmail
from auth.models import DEFAULT_SIGNUP_TYPE, Session, User

logger = logging.getLogger("markstash.auth")

# ---------------------------------------------------------------------------
# Schema
# ---------------------------------------------------------------------------

_metadata = MetaData()

_users = Table(
    "users",
    _metadata,
    Column("id", String(32), primary_key=True),
    Column("email", String(255), nullable=False, unique=True),
    Column("password_hash", Text, nullable=False),
    Column("signup_type", String(16), nullable=False, server_default=DEFAULT_SIGNUP_TYPE),
    Column("username", String(255)),
    Column("image", Text),
    Column("social_id", String(255)),
    Column("created_at", String(32), nullable=False),
    Column("updated_at", String(32), nullable=False),
)

_sessions = Table(
    "user_sessions",
    _metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("user_id", String(32), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True),
    Column("token", String(255), nullable=False, unique=True),
    Column("expires_at", Float, nullable=False, index=True),  # seconds since epoch
    Column("created_at", String(32), nullable=False),
)


# ---------------------------------------------------------------------------
# SQLite connection setup
# ---------------------------------------------------------------------------


def _configure_sqlite(dbapi_conn, connection_record) -> None:
    """Enable WAL journal mode and foreign key enforcement.

    Set per-connection because SQLite PRAGMAs are not inherited by new
    connections from the pool. Foreign keys are off by default in SQLite;
    without them ON DELETE CASCADE and the session -> user reference are
    not enforced.
    """
    cursor = dbapi_conn.cursor()
    cursor.execute("PRAGMA journal_mode=WAL")
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


def _new_user_id() -> str:
    return uuid.uuid4().hex


# ---------------------------------------------------------------------------
# Repository
# ---------------------------------------------------------------------------


class UserStore:
    """Repository for User records and their embedded Session entries.

    Usage:
        store = UserStore("sqlite:///:memory:")
        user = store.create_user(User(email="a@x.com", password_hash=hasher.hash("secret123")))
        store.append_session(user.id, Session(token=..., expires_at=...))
        store.close()

    Constructing the store connects and creates the schema. A database that is
    unreachable raises here, before the app starts serving traffic.
    """

    def __init__(self, db_url: str) -> None:
        connect_args: dict = {}
        if db_url.startswith("sqlite"):
            connect_args["check_same_thread"] = False
        self.engine: Engine = create_engine(db_url, connect_args=connect_args)
        if db_url.startswith("sqlite"):
            event.listen(self.engine, "connect", _configure_sqlite)
        _metadata.create_all(self.engine)

    # ------------------------------------------------------------------
    # Users
    # ------------------------------------------------------------------

    def create_user(self, user: User) -> User:
        """Insert a new user and return it with id and timestamps assigned.

        Raises DuplicateEmail when the email is already registered. The UNIQUE
        constraint decides -- concurrent signups with the same email cannot
        both succeed.
        """
        user_id = _new_user_id()
        now = _now_iso()
        try:
            with self.engine.begin() as conn:
                conn.execute(
                    _users.insert().values(
                        id=user_id,
                        email=user.email,
                        password_hash=user.password_hash,
                        signup_type=user.signup_type,
                        username=user.username,
                        image=user.image,
                        social_id=user.social_id,
                        created_at=now,
                        updated_at=now,
                    )
                )
        except IntegrityError as exc:
            raise DuplicateEmail() from exc
        return User(
            id=user_id,
            email=user.email,
            password_hash=user.password_hash,
            signup_type=user.signup_type,
            username=user.username,
            image=user.image,
            social_id=user.social_id,
            created_at=now,
            updated_at=now,
            sessions=[],
        )

    def get_by_email(self, email: str) -> User | None:
        """Look up a user by exact email (case-sensitive). Returns None if not found."""
        with self.engine.connect() as conn:
            row = conn.execute(_users.select().where(_users.c.email == email)).fetchone()
            return self._hydrate(conn, row)

    def get_by_id(self, user_id: str) -> User | None:
        """Look up a user by id. Returns None if not found."""
        with self.engine.connect() as conn:
            row = conn.execute(_users.select().where(_users.c.id == user_id)).fetchone()
            return self._hydrate(conn, row)

    def get_by_id_and_session_token(self, user_id: str, token: str) -> User | None:
        """Return the user only if it owns a session with exactly this token.

        Expiry is NOT checked here -- the matched session may be stale.
        SessionManager.validate() re-checks it.
        """
        owns_session = (
            select(_sessions.c.id)
            .where((_sessions.c.user_id == _users.c.id) & (_sessions.c.token == token))
            .exists()
        )
        with self.engine.connect() as conn:
            row = conn.execute(_users.select().where((_users.c.id == user_id) & owns_session)).fetchone()
            return self._hydrate(conn, row)

    def _hydrate(self, conn: Connection, row) -> User | None:
        if row is None:
            return None
        user = _row_to_user(row)
        user.sessions = self._load_sessions(conn, user.id)
        return user

    # ------------------------------------------------------------------
    # Sessions
    # ------------------------------------------------------------------

    def append_session(self, user_id: str, session: Session) -> bool:
        """Atomically add a session to the user's session list.

        One INSERT per call: concurrent appends for the same user all survive.
        Fills in session.id, session.user_id and session.created_at.

        Returns True if appended, False if user_id was not found.
        """
        now = _now_iso()
        try:
            with self.engine.begin() as conn:
                result = conn.execute(
                    _sessions.insert().values(
                        user_id=user_id,
                        token=session.token,
                        expires_at=session.expires_at,
                        created_at=now,
                    )
                )
                conn.execute(_users.update().where(_users.c.id == user_id).values(updated_at=now))
        except IntegrityError:
            # A foreign-key failure means the owner is gone; anything else
            # (e.g. a token collision) is a real error for the caller.
            if self.get_by_id(user_id) is None:
                return False
            raise
        session.id = result.inserted_primary_key[0]
        session.user_id = user_id
        session.created_at = now
        return True

    def list_sessions(self, user_id: str) -> list[Session]:
        """Return all of the user's sessions, expired ones included, oldest first."""
        with self.engine.connect() as conn:
            return self._load_sessions(conn, user_id)

    def _load_sessions(self, conn: Connection, user_id: str) -> list[Session]:
        rows = conn.execute(
            _sessions.select().where(_sessions.c.user_id == user_id).order_by(_sessions.c.id)
        ).fetchall()
        return [_row_to_session(r) for r in rows]

    def purge_expired_sessions(self, now: float) -> int:
        """Delete sessions whose expires_at <= now. Returns the number removed.

        Optional housekeeping: validation already rejects expired sessions,
        this only bounds table growth.
        """
        with self.engine.begin() as conn:
            result = conn.execute(_sessions.delete().where(_sessions.c.expires_at <= now))
        if result.rowcount:
            logger.info("Purged %d expired sessions", result.rowcount)
        return result.rowcount

    # ------------------------------------------------------------------
    # Health
    # ------------------------------------------------------------------

    def ping(self) -> bool:
        """Return True if the database answers a trivial query."""
        try:
            with self.engine.connect() as conn:
                conn.execute(text("SELECT 1"))
        except SQLAlchemyError:
            logger.exception("Database ping failed")
            return False
        return True

    def close(self) -> None:
        self.engine.dispose()


# ---------------------------------------------------------------------------
# Row mappers (Data Mapper pattern)
# ---------------------------------------------------------------------------


def _row_to_user(row) -> User:
    return User(
        id=row.id,
        email=row.email,
        password_hash=row.password_hash,
        signup_type=row.signup_type,
        username=row.username,
        image=row.image,
        social_id=row.social_id,
        created_at=row.created_at,
        updated_at=row.updated_at,
    )


def _row_to_session(row) -> Session:
    return Session(
        id=row.id,
        user_id=row.user_id,
        token=row.token,
        expires_at=row.expires_at,
        created_at=row.created_at,
    )
