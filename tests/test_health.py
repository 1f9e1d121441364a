"""
tests/test_health.py -- Integration tests for GET /v1/health.

Covers:
  - 200 response with status, version, and components fields
  - components.database reports 'ok' against a live store
  - No authentication required
"""

from __future__ import annotations


def test_health_returns_200_with_components(api):
    resp = api.client.get("/v1/health")
    assert resp.status_code == 200
    data = resp.json()
    assert data["status"] == "healthy"
    assert "version" in data
    assert data["components"] == {"app": "ok", "database": "ok"}


def test_health_reports_degraded_database(api, monkeypatch):
    monkeypatch.setattr(api.store, "ping", lambda: False)
    data = api.client.get("/v1/health").json()
    assert data["status"] == "degraded"
    assert data["components"]["database"] == "error"


def test_health_no_auth_required(api):
    resp = api.client.get("/v1/health", headers={})
    assert resp.status_code == 200
