"""Tests covering HTTP hardening: CORS, rate limits and the JSON error shape."""

from __future__ import annotations

from pathlib import Path

import pytest
from flask import Flask
from sqlalchemy.exc import OperationalError

from app import create_app
from config import Config
from models import db
from services.errors import StaleWrite, UnknownStatus


@pytest.fixture()
def build_app(tmp_path: Path):
    """Return a factory for apps with per-test configuration overrides."""

    def _build(**overrides) -> Flask:
        settings = {
            "TESTING": True,
            "SQLALCHEMY_DATABASE_URI": "sqlite:///:memory:",
            "UPLOAD_DIR": str(tmp_path / "uploads"),
            **overrides,
        }
        app = create_app(type("HardeningConfig", (Config,), settings))
        with app.app_context():
            db.create_all()
        return app

    return _build


def test_cors_echoes_allowed_origin(build_app):
    client = build_app(CORS_ORIGINS=["https://agency.example"]).test_client()

    response = client.get("/catalog/countries", headers={"Origin": "https://agency.example"})

    assert response.status_code == 200
    assert response.headers["Access-Control-Allow-Origin"] == "https://agency.example"
    assert response.headers.get("X-Request-ID")


def test_cors_ignores_unknown_origin(build_app):
    client = build_app(CORS_ORIGINS=["https://agency.example"]).test_client()

    response = client.get("/health", headers={"Origin": "https://evil.example"})

    assert "Access-Control-Allow-Origin" not in response.headers


def test_rate_limit_uses_json_error_shape(build_app):
    client = build_app(RATE_LIMIT="2 per minute").test_client()

    statuses = [client.get("/catalog/countries").status_code for _ in range(3)]

    assert statuses == [200, 200, 429]
    payload = client.get("/catalog/countries").get_json()
    assert payload["error"] == "Too Many Requests"
    assert payload["request_id"]


def test_non_json_body_is_a_bad_request(build_app):
    response = build_app().test_client().post(
        "/auth/login", data="email=a@b.c", content_type="application/x-www-form-urlencoded"
    )

    assert response.status_code == 400
    payload = response.get_json()
    assert payload["error"] == "Bad Request"
    assert "Request content type" in payload["detail"]


def test_workflow_error_carries_extra_fields_and_retryable(build_app):
    app = build_app()

    @app.route("/_stale")
    def _stale():
        raise StaleWrite("Application moved on.", current_version=4)

    response = app.test_client().get("/_stale", headers={"X-Request-ID": "req-1"})

    assert response.status_code == 409
    assert response.get_json() == {
        "error": "StaleWrite",
        "detail": "Application moved on.",
        "request_id": "req-1",
        "current_version": 4,
        "retryable": True,
    }
    assert response.headers["X-Request-ID"] == "req-1"


def test_database_outage_is_reported_as_retryable_503(build_app):
    app = build_app()

    @app.route("/_db_down")
    def _db_down():
        raise OperationalError("SELECT 1", {}, Exception("database is locked"))

    response = app.test_client().get("/_db_down")

    assert response.status_code == 503
    payload = response.get_json()
    assert payload["retryable"] is True
    assert "database is locked" not in payload["detail"]


def test_missing_token_uses_json_error_shape(build_app):
    response = build_app().test_client().get("/applications")

    assert response.status_code == 401
    payload = response.get_json()
    assert payload["error"] == "Unauthorized"
    assert payload["request_id"]


def test_error_extras_cannot_replace_core_fields(build_app):
    app = build_app()

    @app.route("/_unknown")
    def _unknown():
        raise UnknownStatus("No such status.", status="warp_speed", error="spoofed", detail="x")

    response = app.test_client().get("/_unknown", headers={"X-Request-ID": "req-2"})

    assert response.status_code == 422
    payload = response.get_json()
    assert payload["status"] == "warp_speed"
    assert payload["error"] == "UnknownStatus"
    assert payload["detail"] == "No such status."
    assert payload["request_id"] == "req-2"
