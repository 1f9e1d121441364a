"""
auth/dependencies.py -- FastAPI Depends() guards for authentication.

Two independent single-step gates, neither holding state of its own:

  require_access_token()    -- Access-guard. Protects ordinary endpoints.
      Reads the "access-token" header and verifies it with the TokenIssuer.
      Stateless: no store access.
        missing header      -> MissingToken
        verification fails  -> InvalidToken
        success             -> request.state.user_id bound, user id returned

  require_refresh_session() -- Refresh-guard. Protects only the renewal endpoint.
      Reads the "refresh-token" and "_id" headers and validates the pair
      against the store through the SessionManager.
        pair not found      -> SessionNotFound
        matched but expired -> SessionExpired
        success             -> request.state.user_id bound, User returned

Both raise AuthError subclasses; api/main.py renders them as 401 responses,
so a rejected request never reaches the downstream handler.

Header names are a stable wire contract shared with existing clients. Note
that some reverse proxies drop headers containing underscores by default
(nginx: underscores_in_headers on) -- the "_id" header needs that enabled.

Layer rule: may import from fastapi because this module is part of the
FastAPI dependency injection system. No imports from api/.
"""

from __future__ import annotations

from fastapi import Request

from auth.errors import MissingToken, SessionNotFound
from auth.models import User
from auth.service import AuthService

ACCESS_TOKEN_HEADER = "access-token"
REFRESH_TOKEN_HEADER = "refresh-token"
USER_ID_HEADER = "_id"


def get_auth_service(request: Request) -> AuthService:
    """Return the AuthService wired into app.state at startup."""
    return request.app.state.auth_service


def require_access_token(request: Request) -> str:
    """Require a valid access token. Returns the authenticated user id.

    Use as a FastAPI dependency:
        @router.get("/bookmarks")
        def route(user_id: str = Depends(require_access_token)): ...
    """
    token = request.headers.get(ACCESS_TOKEN_HEADER, "").strip()
    if not token:
        raise MissingToken()
    # Raises InvalidToken for malformed, forged or expired tokens.
    user_id = get_auth_service(request).issuer.verify_access_token(token)
    request.state.user_id = user_id
    return user_id


def require_refresh_session(request: Request) -> User:
    """Require a live refresh session for the (refresh-token, _id) header pair.

    Use as a FastAPI dependency on the token-renewal endpoint only.
    """
    refresh_token = request.headers.get(REFRESH_TOKEN_HEADER, "").strip()
    user_id = request.headers.get(USER_ID_HEADER, "").strip()
    if not refresh_token or not user_id:
        raise SessionNotFound()
    user = get_auth_service(request).sessions.validate(user_id, refresh_token)
    request.state.user_id = user.id
    return user
