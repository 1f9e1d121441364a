"""
api/routes/v1/users.py -- Signup, login and token-renewal REST endpoints.

Routes:
  POST /v1/user/signup        -- create account; 201 + both tokens in headers
  POST /v1/user/login         -- password login; 200 + both tokens in headers
  GET  /v1/user/access-token  -- Refresh-guard; 200 + fresh access token
  GET  /v1/user/me            -- Access-guard; sanitized current user

Token transport:
  Tokens travel in response headers ("access-token", "refresh-token"), not
  cookies. The body of signup/login is the sanitized user (UserResponse): no
  password hash, no sessions. CORS in api/main.py exposes both headers.

Security:
  POST /signup and POST /login are rate-limited per IP (LOGIN_RATE_LIMIT).
  AuthService.authenticate() provides timing equalization -- use it, never inline.
  Cache-Control: no-store on every response that carries a token.
  Renewal does not rotate the refresh token.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse

from api.limiter import limiter, login_rate_limit
from api.models import AccessTokenResponse, LoginRequest, SignupRequest, UserResponse
from auth.dependencies import (
    ACCESS_TOKEN_HEADER,
    REFRESH_TOKEN_HEADER,
    get_auth_service,
    require_access_token,
    require_refresh_session,
)
from auth.errors import InvalidToken
from auth.models import User
from auth.service import AuthService

# Auth policy:
# - POST /v1/user/signup:        public, rate limited
# - POST /v1/user/login:         public, rate limited
# - GET  /v1/user/access-token:  requires refresh session (require_refresh_session)
# - GET  /v1/user/me:            requires access token (require_access_token)
router = APIRouter()


# ---------------------------------------------------------------------------
# Public endpoints
# ---------------------------------------------------------------------------


@router.post("/user/signup", response_model=UserResponse, status_code=201)
@limiter.limit(login_rate_limit)
def signup(request: Request, body: SignupRequest) -> JSONResponse:
    """Register a new account and log it in.

    A taken email yields 409 duplicate_email (raised by the store's UNIQUE
    constraint, so concurrent signups cannot both win).
    """
    auth: AuthService = get_auth_service(request)
    user = auth.signup(
        email=body.email,
        password=body.password,
        signup_type=body.signup_type.value,
        username=body.username,
        image=body.image,
    )
    return _user_and_tokens(auth, user, status_code=201)


@router.post("/user/login", response_model=UserResponse)
@limiter.limit(login_rate_limit)
def login(request: Request, body: LoginRequest) -> JSONResponse:
    """Authenticate with email and password; return a new token pair.

    Every successful login opens a new refresh session; earlier sessions stay
    valid until they expire. Unknown email and wrong password return the same
    401 invalid_credentials.
    """
    auth: AuthService = get_auth_service(request)
    user = auth.authenticate(body.email, body.password)
    return _user_and_tokens(auth, user, status_code=200)


# ---------------------------------------------------------------------------
# Guarded endpoints
# ---------------------------------------------------------------------------


@router.get("/user/access-token", response_model=AccessTokenResponse)
def renew_access_token(request: Request, user: User = Depends(require_refresh_session)) -> JSONResponse:
    """Mint a new access token for the user behind a live refresh session."""
    auth: AuthService = get_auth_service(request)
    token = auth.renew_access_token(user)
    resp = JSONResponse(
        content=AccessTokenResponse(access_token=token, expires_in=auth.issuer.expire_seconds).model_dump(),
    )
    resp.headers[ACCESS_TOKEN_HEADER] = token
    resp.headers["Cache-Control"] = "no-store"
    return resp


@router.get("/user/me", response_model=UserResponse)
def me(request: Request, user_id: str = Depends(require_access_token)) -> UserResponse:
    """Return the sanitized record of the access token's owner."""
    user = get_auth_service(request).store.get_by_id(user_id)
    if user is None:
        # Correctly signed token for a user that no longer exists.
        raise InvalidToken()
    return UserResponse.from_user(user)


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _user_and_tokens(auth: AuthService, user: User, status_code: int) -> JSONResponse:
    tokens = auth.issue_tokens(user)
    resp = JSONResponse(status_code=status_code, content=UserResponse.from_user(user).model_dump())
    resp.headers[REFRESH_TOKEN_HEADER] = tokens.refresh_token
    resp.headers[ACCESS_TOKEN_HEADER] = tokens.access_token
    resp.headers["Cache-Control"] = "no-store"
    return resp
