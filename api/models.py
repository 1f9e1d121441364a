"""
API request and response models for MarkStash auth endpoints.

These Pydantic v2 models define the HTTP transport contract for the API layer.
They are intentionally separate from the dataclasses in auth/models.py, which
own the internal domain representation. Route handlers map between the two.

Separation of concerns: auth/ models = domain truth; api/ models = API contract.
UserResponse is the sanitized user: it has no password_hash and no sessions
field, so neither can leak through a response body.
"""

from enum import Enum
from typing import Annotated, Optional

from pydantic import BaseModel, ConfigDict, Field, StringConstraints, field_validator

from auth.models import User
from auth.passwords import MAX_PASSWORD_BYTES

# ---------------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------------

# Deliberately loose: one "@" with something on both sides. The address is
# stored exactly as given (case-sensitive) after whitespace trimming.
EMAIL_PATTERN = r"^[^@\s]+@[^@\s]+$"


# ---------------------------------------------------------------------------
# Enums
# ---------------------------------------------------------------------------


class SignupTypeEnum(str, Enum):
    normal = "normal"
    facebook = "facebook"
    google = "google"


# ---------------------------------------------------------------------------
# Request models
# ---------------------------------------------------------------------------


class _Credentials(BaseModel):
    # Only the email is trimmed; the password is hashed and checked exactly as sent.
    email: Annotated[
        str,
        StringConstraints(strip_whitespace=True, min_length=3, max_length=255, pattern=EMAIL_PATTERN),
    ]
    password: str = Field(min_length=1, max_length=MAX_PASSWORD_BYTES)

    @field_validator("password")
    @classmethod
    def password_fits_bcrypt(cls, value: str) -> str:
        """Reject passwords bcrypt cannot hash whole (multi-byte characters count per byte)."""
        if len(value.encode("utf-8")) > MAX_PASSWORD_BYTES:
            raise ValueError(f"password must be at most {MAX_PASSWORD_BYTES} bytes")
        return value


class SignupRequest(_Credentials):
    """Request body for POST /v1/user/signup."""

    password: str = Field(min_length=8, max_length=MAX_PASSWORD_BYTES)
    signup_type: SignupTypeEnum = SignupTypeEnum.normal
    username: Optional[str] = Field(default=None, max_length=255)
    image: Optional[str] = Field(default=None, max_length=2048)


class LoginRequest(_Credentials):
    """Request body for POST /v1/user/login.

    No minimum password length here: a short password is simply wrong, and
    must produce the same invalid_credentials error as any other mismatch.
    """


# ---------------------------------------------------------------------------
# Response models
# ---------------------------------------------------------------------------


class UserResponse(BaseModel):
    """Sanitized user returned by signup, login and /me."""

    model_config = ConfigDict(frozen=True)

    id: str
    email: str
    signup_type: str
    username: Optional[str] = None
    image: Optional[str] = None
    created_at: str
    updated_at: str

    @classmethod
    def from_user(cls, user: User) -> "UserResponse":
        """Build the public view of a domain User, dropping credentials."""
        return cls(
            id=user.id,
            email=user.email,
            signup_type=user.signup_type,
            username=user.username,
            image=user.image,
            created_at=user.created_at or "",
            updated_at=user.updated_at or "",
        )


class AccessTokenResponse(BaseModel):
    """Response for GET /v1/user/access-token.

    The token is also sent in the access-token response header, and clients
    send it back in that header (not as an Authorization bearer token).
    """

    model_config = ConfigDict(frozen=True)

    access_token: str
    expires_in: int


class ErrorDetail(BaseModel):
    """Machine-readable error payload."""

    model_config = ConfigDict(frozen=True)

    code: str
    message: str
    detail: Optional[str] = None


class ErrorResponse(BaseModel):
    """Top-level error envelope returned on 4xx/5xx responses."""

    model_config = ConfigDict(frozen=True)

    error: ErrorDetail


class HealthResponse(BaseModel):
    """Response for GET /v1/health."""

    model_config = ConfigDict(frozen=True)

    status: str = "healthy"
    version: str
    components: dict[str, str]
