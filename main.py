#!/usr/bin/env python3
"""
MarkStash auth -- admin command line.

Usage:
  python main.py create-user a@x.com
  python main.py sessions a@x.com
  python main.py purge-sessions

Reads the same configuration as the API (SECRET_KEY, DATABASE_URL,
BCRYPT_ROUNDS, ... from the environment or .env). Passwords are prompted
with getpass and never accepted on the command line.
"""

import argparse
import getpass
import sys
from datetime import datetime, timezone
from typing import Optional

from auth.errors import DuplicateEmail
from auth.models import SIGNUP_TYPES
from auth.passwords import MAX_PASSWORD_BYTES
from auth.service import AuthService
from auth.store import UserStore
from core.config import get_settings


def _format_ts(seconds: float) -> str:
    return datetime.fromtimestamp(seconds, tz=timezone.utc).strftime("%Y-%m-%d %H:%M:%S UTC")


def cmd_create_user(auth: AuthService, email: str, signup_type: str, password: Optional[str] = None) -> int:
    if password is None:
        password = getpass.getpass("Password: ")
        if password != getpass.getpass("Repeat password: "):
            print("  [!] Passwords do not match.")
            return 1
    if len(password) < 8:
        print("  [!] Password must be at least 8 characters.")
        return 1
    if len(password.encode("utf-8")) > MAX_PASSWORD_BYTES:
        print(f"  [!] Password must be at most {MAX_PASSWORD_BYTES} bytes.")
        return 1
    try:
        user = auth.signup(email=email, password=password, signup_type=signup_type)
    except DuplicateEmail:
        print(f"  [!] '{email}' is already registered.")
        return 1
    print(f"Created user {user.id} ({user.email})")
    return 0


def cmd_sessions(auth: AuthService, email: str) -> int:
    user = auth.store.get_by_email(email)
    if user is None:
        print(f"  [!] No user with email '{email}'.")
        return 1
    print(f"{user.email} ({user.id}) -- {len(user.sessions)} session(s)")
    for session in user.sessions:
        state = "expired" if auth.sessions.is_expired(session.expires_at) else "active"
        # Only a prefix: the full token is a live credential.
        print(f"  {session.token[:12]}...  expires {_format_ts(session.expires_at)}  [{state}]")
    return 0


def cmd_purge_sessions(auth: AuthService) -> int:
    removed = auth.sessions.purge_expired()
    print(f"Removed {removed} expired session(s).")
    return 0


def main(argv: Optional[list[str]] = None) -> int:
    parser = argparse.ArgumentParser(
        prog="markstash-auth",
        description="Administer MarkStash users and refresh sessions.",
    )
    sub = parser.add_subparsers(dest="command", required=True)

    p_create = sub.add_parser("create-user", help="Create a user (password prompted)")
    p_create.add_argument("email")
    p_create.add_argument(
        "--signup-type",
        choices=SIGNUP_TYPES,
        default="normal",
        help="Informational signup tag (default: normal)",
    )

    p_sessions = sub.add_parser("sessions", help="List a user's refresh sessions")
    p_sessions.add_argument("email")

    sub.add_parser("purge-sessions", help="Delete expired refresh sessions")

    args = parser.parse_args(argv)

    settings = get_settings()
    store = UserStore(settings.database_url)
    try:
        auth = AuthService.from_settings(settings, store)
        if args.command == "create-user":
            return cmd_create_user(auth, args.email, args.signup_type)
        if args.command == "sessions":
            return cmd_sessions(auth, args.email)
        return cmd_purge_sessions(auth)
    finally:
        store.close()


if __name__ == "__main__":
    sys.exit(main())
