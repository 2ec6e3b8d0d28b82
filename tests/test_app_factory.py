"""Tests for the Flask application factory."""

from __future__ import annotations

from storage import LocalStorage


def test_health_reports_ok_and_upload_dir_exists(client, tmp_path):
    response = client.get("/health")

    assert response.status_code == 200
    assert response.get_json() == {"status": "ok"}
    assert (tmp_path / "uploads").is_dir()


def test_every_area_is_mounted(app):
    prefixes = {rule.rule.split("/")[1] for rule in app.url_map.iter_rules()}

    assert {"auth", "catalog", "applications", "notifications", "admin", "billing"} <= prefixes


def test_document_storage_is_bound_to_upload_dir(app, tmp_path):
    storage = app.extensions["document_storage"]

    assert isinstance(storage, LocalStorage)
    assert storage.base_directory == tmp_path / "uploads"


def test_sqlite_engine_gets_busy_timeout(app):
    options = app.config["SQLALCHEMY_ENGINE_OPTIONS"]

    assert options["connect_args"]["timeout"] == app.config["DB_TIMEOUT_SECONDS"]
    assert options["connect_args"]["check_same_thread"] is False
