"""
auth/tokens.py -- Stateless access-token signing and verification.

Security design decisions:
  JWT: python-jose with HS256. Tokens carry user_id, jti, iat and exp and are
       signed with a single process-wide SECRET_KEY. Verification is pure CPU
       work -- it never touches the store -- and raises InvalidToken on any
       failure (malformed, bad signature, expired, missing claim). The
       Access-guard turns that into a 401.

  SECRET_KEY: the issuer is constructed explicitly at startup from
       core.config.get_settings() and injected where needed (app.state),
       rather than read from module-level state.

  Rotation: rotate_secret() swaps the signing key in place. Every access
       token signed with the old key fails verification from then on. That is
       acceptable because access tokens are short-lived; refresh sessions are
       validated against the store, not a signature, so they keep working and
       clients simply renew. Procedure:
         1. set the new SECRET_KEY in the environment / .env
         2. call issuer.reload_from_settings() (clears the settings cache and
            rotates), or restart the process.

Layer rule: no imports from api/. Import from core/ is allowed.
"""

from __future__ import annotations

import logging
import secrets
from collections.abc import Callable
from datetime import datetime, timedelta, timezone

from jose import JWTError, jwt

from auth.errors import InvalidToken
from core.config import MIN_SECRET_KEY_LENGTH, Settings, get_settings

logger = logging.getLogger("markstash.auth")

ALGORITHM = "HS256"


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class TokenIssuer:
    """Issue and verify short-lived access tokens bound to a user id.

    Usage:
        issuer = TokenIssuer.from_settings(get_settings())
        token = issuer.issue_access_token(user.id)
        issuer.verify_access_token(token)   # -> user.id
    """

    def __init__(
        self,
        secret_key: str,
        expire_seconds: int = 3600,
        algorithm: str = ALGORITHM,
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        _check_secret(secret_key)
        self._secret_key = secret_key
        self.expire_seconds = expire_seconds
        self.algorithm = algorithm
        self._clock = clock

    @classmethod
    def from_settings(cls, settings: Settings) -> TokenIssuer:
        return cls(secret_key=settings.secret_key, expire_seconds=settings.access_token_expire_seconds)

    def issue_access_token(self, user_id: str) -> str:
        """Encode a signed JWT for user_id that expires after expire_seconds."""
        now = self._clock()
        payload = {
            "user_id": user_id,
            # jti keeps two tokens issued in the same second distinct.
            "jti": secrets.token_hex(16),
            "iat": now,
            "exp": now + timedelta(seconds=self.expire_seconds),
        }
        return jwt.encode(payload, self._secret_key, algorithm=self.algorithm)

    def verify_access_token(self, token: str) -> str:
        """Return the user id carried by a valid token, or raise InvalidToken."""
        try:
            payload = jwt.decode(token, self._secret_key, algorithms=[self.algorithm])
        except JWTError as exc:
            raise InvalidToken() from exc
        user_id = payload.get("user_id")
        if not isinstance(user_id, str) or not user_id:
            raise InvalidToken()
        return user_id

    def rotate_secret(self, new_secret: str) -> None:
        """Replace the signing key. Outstanding access tokens stop verifying."""
        _check_secret(new_secret)
        if new_secret == self._secret_key:
            return
        self._secret_key = new_secret
        logger.warning("Access-token signing key rotated; previously issued access tokens are now invalid")

    def reload_from_settings(self) -> None:
        """Re-read SECRET_KEY from the environment and rotate to it."""
        get_settings.cache_clear()
        self.rotate_secret(get_settings().secret_key)


def _check_secret(secret_key: str) -> None:
    if len(secret_key) < MIN_SECRET_KEY_LENGTH:
        raise ValueError(f"Signing key must be at least {MIN_SECRET_KEY_LENGTH} characters.")
