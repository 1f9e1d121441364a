"""Unit tests for auth/tokens.py -- access-token issue/verify and key rotation.

Covers:
- a token minted for user X verifies back to X
- tokens are distinct per issue, even within the same second
- expired, forged, malformed and claim-less tokens raise InvalidToken
- rotate_secret() invalidates outstanding tokens; short keys are refused
"""

from datetime import datetime, timedelta, timezone

import pytest
from jose import jwt

from auth.errors import InvalidToken
from auth.tokens import ALGORITHM, TokenIssuer

OTHER_SECRET = "another-secret-key-fedcba9876543210fedcba98765432"


def test_round_trip_yields_same_user_id(issuer: TokenIssuer) -> None:
    token = issuer.issue_access_token("user-x")
    assert issuer.verify_access_token(token) == "user-x"


def test_tokens_are_distinct_per_issue(issuer: TokenIssuer) -> None:
    first = issuer.issue_access_token("user-x")
    second = issuer.issue_access_token("user-x")
    assert first != second
    assert issuer.verify_access_token(first) == issuer.verify_access_token(second) == "user-x"


def test_expiry_claim_matches_lifetime(secret_key: str) -> None:
    fixed = datetime(2030, 1, 1, tzinfo=timezone.utc)
    issuer = TokenIssuer(secret_key, expire_seconds=3600, clock=lambda: fixed)
    claims = jwt.get_unverified_claims(issuer.issue_access_token("u1"))
    assert claims["exp"] - claims["iat"] == 3600


def test_expired_token_is_rejected(secret_key: str) -> None:
    two_hours_ago = datetime.now(timezone.utc) - timedelta(hours=2)
    issuer = TokenIssuer(secret_key, expire_seconds=3600, clock=lambda: two_hours_ago)
    token = issuer.issue_access_token("user-x")
    with pytest.raises(InvalidToken):
        issuer.verify_access_token(token)


def test_token_from_other_key_is_rejected(issuer: TokenIssuer) -> None:
    forged = TokenIssuer(OTHER_SECRET).issue_access_token("user-x")
    with pytest.raises(InvalidToken):
        issuer.verify_access_token(forged)


@pytest.mark.parametrize("garbage", ["", "abc", "a.b.c", "Bearer xyz"])
def test_malformed_token_is_rejected(issuer: TokenIssuer, garbage: str) -> None:
    with pytest.raises(InvalidToken):
        issuer.verify_access_token(garbage)


def test_token_without_user_id_is_rejected(issuer: TokenIssuer, secret_key: str) -> None:
    exp = datetime.now(timezone.utc) + timedelta(hours=1)
    token = jwt.encode({"sub": "someone", "exp": exp}, secret_key, algorithm=ALGORITHM)
    with pytest.raises(InvalidToken):
        issuer.verify_access_token(token)


def test_rotation_invalidates_outstanding_tokens(issuer: TokenIssuer) -> None:
    old = issuer.issue_access_token("user-x")
    issuer.rotate_secret(OTHER_SECRET)
    with pytest.raises(InvalidToken):
        issuer.verify_access_token(old)
    assert issuer.verify_access_token(issuer.issue_access_token("user-x")) == "user-x"


def test_rotation_refuses_short_key(issuer: TokenIssuer) -> None:
    token = issuer.issue_access_token("user-x")
    with pytest.raises(ValueError):
        issuer.rotate_secret("short")
    # Key unchanged after a refused rotation.
    assert issuer.verify_access_token(token) == "user-x"


def test_constructor_refuses_short_key() -> None:
    with pytest.raises(ValueError):
        TokenIssuer("too-short")


def test_reload_from_settings_rotates_to_environment_key(issuer: TokenIssuer, monkeypatch) -> None:
    from core.config import get_settings

    old = issuer.issue_access_token("user-x")
    monkeypatch.setenv("SECRET_KEY", OTHER_SECRET)
    try:
        issuer.reload_from_settings()
        with pytest.raises(InvalidToken):
            issuer.verify_access_token(old)
    finally:
        monkeypatch.undo()
        get_settings.cache_clear()
