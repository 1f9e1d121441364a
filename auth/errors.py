"""
auth/errors.py -- Per-request authentication error taxonomy.

Every error here is recoverable at the request boundary: api/main.py registers
one exception handler for AuthError that renders the standard error envelope
with the class's status_code. Nothing in this module should ever reach the
process level.

Storage connectivity failures are deliberately NOT part of this taxonomy --
they surface at startup when UserStore creates its schema.

InvalidCredentials covers both "no such email" and "wrong password" with the
same code and message so clients cannot enumerate registered emails.
"""

from __future__ import annotations


class AuthError(Exception):
    """Base class for client-facing authentication failures."""

    status_code: int = 401
    code: str = "unauthorized"
    message: str = "Authentication required."

    def __init__(self, message: str | None = None, detail: str | None = None) -> None:
        self.message = message or self.message
        self.detail = detail
        super().__init__(self.message)


class DuplicateEmail(AuthError):
    status_code = 409
    code = "duplicate_email"
    message = "Email already used."


class InvalidCredentials(AuthError):
    code = "invalid_credentials"
    message = "Invalid email or password."


class MissingToken(AuthError):
    code = "missing_token"
    message = "Access token is required."


class InvalidToken(AuthError):
    code = "invalid_token"
    message = "Access token is invalid or has expired."


class SessionNotFound(AuthError):
    code = "session_not_found"
    message = "Session not found. Make sure that the refresh token and user id are correct."


class SessionExpired(AuthError):
    code = "session_expired"
    message = "Refresh token has expired."


__all__ = [
    "AuthError",
    "DuplicateEmail",
    "InvalidCredentials",
    "InvalidToken",
    "MissingToken",
    "SessionExpired",
    "SessionNotFound",
]
