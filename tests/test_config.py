"""Unit tests for core/config.py -- Settings validation.

Covers:
- defaults: 1 hour access tokens, 10 day refresh sessions, 64-byte tokens
- SECRET_KEY policy: generated in DEBUG, required otherwise, >= 32 chars
- BCRYPT_ROUNDS outside 4..31 is rejected at load time
"""

import pytest
from pydantic import ValidationError

from core.config import Settings


def test_defaults() -> None:
    s = Settings(secret_key="k" * 32, bcrypt_rounds=12)
    assert s.access_token_expire_seconds == 3600
    assert s.refresh_token_ttl_seconds == 10 * 24 * 60 * 60
    assert s.refresh_token_bytes == 64
    assert s.login_rate_limit == "10/minute"


def test_debug_generates_secret_key(monkeypatch) -> None:
    monkeypatch.delenv("SECRET_KEY", raising=False)
    s = Settings(debug=True)
    assert len(s.secret_key) >= 32


def test_production_requires_secret_key(monkeypatch) -> None:
    monkeypatch.delenv("SECRET_KEY", raising=False)
    with pytest.raises(ValidationError, match="SECRET_KEY is required"):
        Settings(debug=False, _env_file=None)


def test_short_secret_key_rejected() -> None:
    with pytest.raises(ValidationError, match="at least 32"):
        Settings(secret_key="short")


@pytest.mark.parametrize("rounds", [3, 32])
def test_bcrypt_rounds_bounds(rounds: int) -> None:
    with pytest.raises(ValidationError, match="BCRYPT_ROUNDS"):
        Settings(secret_key="k" * 32, bcrypt_rounds=rounds)


def test_env_vars_are_read(monkeypatch) -> None:
    monkeypatch.setenv("ACCESS_TOKEN_EXPIRE_SECONDS", "600")
    monkeypatch.setenv("REFRESH_TOKEN_TTL_SECONDS", "86400")
    s = Settings(secret_key="k" * 32)
    assert s.access_token_expire_seconds == 600
    assert s.refresh_token_ttl_seconds == 86400
