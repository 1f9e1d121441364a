"""
auth/service.py -- Signup, login and token issuance orchestration.

AuthService is the single entry point the HTTP layer uses for the password
flows. It composes the leaf components:

  signup / authenticate -> PasswordHasher confirms identity
                        -> SessionManager mints and persists a refresh session
                        -> TokenIssuer mints an access token

Security:
  authenticate() always runs bcrypt, whether or not the email exists. Unknown
  email and wrong password both raise the same InvalidCredentials with the
  same message, and take the same time. Do not inline get_by_email() +
  verify() elsewhere -- that re-introduces the enumeration leak.

Layer rule: no imports from api/.
"""

from __future__ import annotations

import logging
import time
from collections.abc import Callable

from auth.errors import InvalidCredentials
from auth.models import DEFAULT_SIGNUP_TYPE, TokenPair, User
from auth.passwords import PasswordHasher
from auth.sessions import SessionManager
from auth.store import UserStore
from auth.tokens import TokenIssuer
from core.config import Settings

logger = logging.getLogger("markstash.auth")


class AuthService:
    """Password signup/login plus issuance of the access + refresh token pair."""

    def __init__(
        self,
        store: UserStore,
        hasher: PasswordHasher,
        issuer: TokenIssuer,
        sessions: SessionManager,
    ) -> None:
        self.store = store
        self.hasher = hasher
        self.issuer = issuer
        self.sessions = sessions

    @classmethod
    def from_settings(
        cls, settings: Settings, store: UserStore, clock: Callable[[], float] = time.time
    ) -> AuthService:
        """Wire every component from configuration.

        Raises ValueError for a bad bcrypt work factor or signing key -- call
        this during startup so configuration errors stop the process.
        """
        return cls(
            store=store,
            hasher=PasswordHasher(rounds=settings.bcrypt_rounds),
            issuer=TokenIssuer.from_settings(settings),
            sessions=SessionManager.from_settings(settings, store, clock=clock),
        )

    def signup(
        self,
        email: str,
        password: str,
        signup_type: str = DEFAULT_SIGNUP_TYPE,
        username: str | None = None,
        image: str | None = None,
    ) -> User:
        """Create a user. Raises DuplicateEmail if the email is taken."""
        user = self.store.create_user(
            User(
                email=email,
                password_hash=self.hasher.hash(password),
                signup_type=signup_type,
                username=username,
                image=image,
            )
        )
        logger.info("User %s signed up (signup_type=%s)", user.id, user.signup_type)
        return user

    def authenticate(self, email: str, password: str) -> User:
        """Return the user for a correct email/password pair.

        Raises InvalidCredentials for an unknown email or a wrong password,
        indistinguishably.
        """
        user = self.store.get_by_email(email)
        if user is None:
            # Equalize timing -- do NOT return early before running bcrypt.
            self.hasher.verify_dummy(password)
            logger.info("Login failed: bad credentials")
            raise InvalidCredentials()
        if not self.hasher.verify(password, user.password_hash):
            logger.info("Login failed: bad credentials")
            raise InvalidCredentials()
        return user

    def issue_tokens(self, user: User) -> TokenPair:
        """Create a refresh session and an access token for the user."""
        refresh_token = self.sessions.create_session(user)
        access_token = self.issuer.issue_access_token(user.id)
        return TokenPair(access_token=access_token, refresh_token=refresh_token)

    def renew_access_token(self, user: User) -> str:
        """Mint a fresh access token for a user the Refresh-guard already verified.

        The refresh token is not rotated.
        """
        return self.issuer.issue_access_token(user.id)
