"""
asgi.py -- Application assembly for MarkStash auth.

Bookmark and tag routers mount here, next to the auth API, and protect their
endpoints with auth.dependencies.require_access_token. api/main.py knows
nothing about them.

Run with:  uvicorn asgi:app --reload
"""

from api.main import app

__all__ = ["app"]
