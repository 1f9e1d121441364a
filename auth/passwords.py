"""
auth/passwords.py -- bcrypt password hashing and verification.

Security design decisions:
  bcrypt is used directly (no passlib wrapper). Its salted, tunable work
  factor is the right tool for low-entropy secrets like passwords.

  The work factor is configuration (BCRYPT_ROUNDS), injected at construction.
  PasswordHasher.__init__ computes a dummy hash with that factor, so an invalid
  value fails at startup with ValueError instead of on the first signup.

  bcrypt.checkpw() compares in constant time. verify_dummy() runs the same
  bcrypt work against a precomputed hash so a login for an unknown email costs
  as much as one with a wrong password -- response time does not reveal which
  emails are registered.

  bcrypt only looks at the first 72 bytes of input (bcrypt 5 rejects longer
  inputs outright). The API layer caps passwords at MAX_PASSWORD_BYTES.

Layer rule: no imports from api/.
"""

from __future__ import annotations

import bcrypt

MAX_PASSWORD_BYTES = 72

_DUMMY_PASSWORD = "markstash_timing_dummy"


class PasswordHasher:
    """Salted one-way hashing with a configurable bcrypt cost factor.

    Usage:
        hasher = PasswordHasher(rounds=12)
        stored = hasher.hash("secret123")
        hasher.verify("secret123", stored)   # True
    """

    def __init__(self, rounds: int = 12) -> None:
        self.rounds = rounds
        # gensalt() raises ValueError for rounds outside 4..31 -- surfacing
        # here makes a bad work factor a startup failure.
        self._dummy_hash = self.hash(_DUMMY_PASSWORD)

    def hash(self, plain: str) -> str:
        """Return a bcrypt hash of the plaintext. Output differs on every call."""
        return bcrypt.hashpw(plain.encode("utf-8"), bcrypt.gensalt(rounds=self.rounds)).decode("utf-8")

    def verify(self, plain: str, hashed: str) -> bool:
        """Return True if the plaintext matches the hash.

        A malformed stored hash or an over-long password is a negative result,
        not an exception -- callers turn False into InvalidCredentials.
        """
        try:
            return bcrypt.checkpw(plain.encode("utf-8"), hashed.encode("utf-8"))
        except ValueError:
            return False

    def verify_dummy(self, plain: str) -> None:
        """Spend one bcrypt verification without a real hash to compare against."""
        self.verify(plain, self._dummy_hash)
