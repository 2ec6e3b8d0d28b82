"""Tests for the application wizard submission endpoint."""

from __future__ import annotations

import json

from conftest import APPLICANT
from models import Application, Document, Notification, StatusLog, VisaType, db
from storage import LocalStorage, StorageError


def _form(catalog, applicant_data=None, **files) -> dict:
    data = {
        "country_id": str(catalog.country_id),
        "visa_type_id": str(catalog.visa_type_id),
        "applicant_data": json.dumps(applicant_data or APPLICANT),
    }
    data.update(files)
    return data


def test_submission_creates_application_documents_and_log(
    app, client, catalog, applicant, auth_headers, upload, tmp_path
):
    response = client.post(
        "/applications",
        data=_form(
            catalog,
            **{
                f"document_{catalog.passport_id}": upload("passport.pdf"),
                f"document_{catalog.photo_id}": upload("photo.PNG", b"\x89PNG data"),
            },
        ),
        headers=auth_headers(applicant),
        content_type="multipart/form-data",
    )

    assert response.status_code == 201
    payload = response.get_json()
    assert payload["status"] == "submitted"
    assert payload["application_number"].startswith("VF")
    assert len(payload["application_number"]) == 10
    assert payload["applicant_data"] == {"schema": "applicant.v1", "data": APPLICANT}
    assert payload["readiness"] == {"ready": True, "missing_requirement_ids": []}
    assert {doc["document_requirement_id"] for doc in payload["documents"]} == {
        catalog.passport_id,
        catalog.photo_id,
    }
    assert all("file_path" not in doc for doc in payload["documents"])

    with app.app_context():
        application = db.session.get(Application, payload["id"])
        logs = StatusLog.query.filter_by(application_id=application.id).all()
        assert [(log.old_status, log.new_status) for log in logs] == [(None, "submitted")]
        assert logs[0].notes == "Application submitted by user"
        photo = Document.query.filter_by(document_requirement_id=catalog.photo_id).one()
        assert photo.file_path == f"applications/{application.id}/{catalog.photo_id}.png"
        assert photo.status == "pending"
        assert Notification.query.filter_by(user_id=applicant).count() == 1

    stored = tmp_path / "uploads" / "applications" / str(payload["id"])
    assert sorted(path.name for path in stored.iterdir()) == [
        f"{catalog.passport_id}.pdf",
        f"{catalog.photo_id}.png",
    ]


def test_field_errors_are_reported_per_field(client, catalog, applicant, auth_headers, upload):
    bad = dict(APPLICANT, email="not-an-email", returnDate="2026-11-30")
    del bad["address"]

    response = client.post(
        "/applications",
        data=_form(catalog, bad, **{f"document_{catalog.passport_id}": upload()}),
        headers=auth_headers(applicant),
        content_type="multipart/form-data",
    )

    assert response.status_code == 400
    fields = response.get_json()["fields"]
    assert fields == {
        "address": "Required",
        "email": "Invalid email",
        "returnDate": "Must be after travel date",
    }


def test_missing_required_document_is_rejected_before_any_write(
    app, client, catalog, applicant, auth_headers, upload
):
    response = client.post(
        "/applications",
        data=_form(catalog, **{f"document_{catalog.passport_id}": upload()}),
        headers=auth_headers(applicant),
        content_type="multipart/form-data",
    )

    assert response.status_code == 422
    payload = response.get_json()
    assert payload["error"] == "DocumentsIncomplete"
    assert payload["missing_requirement_ids"] == [catalog.photo_id]
    with app.app_context():
        assert Application.query.count() == 0


def test_disallowed_file_type_is_rejected(client, catalog, applicant, auth_headers, upload):
    response = client.post(
        "/applications",
        data=_form(
            catalog,
            **{
                f"document_{catalog.passport_id}": upload("passport.exe"),
                f"document_{catalog.photo_id}": upload("photo.jpg"),
            },
        ),
        headers=auth_headers(applicant),
        content_type="multipart/form-data",
    )

    assert response.status_code == 400
    assert "File type not allowed" in response.get_json()["detail"]


def test_file_for_unknown_requirement_is_rejected(client, catalog, applicant, auth_headers, upload):
    response = client.post(
        "/applications",
        data=_form(
            catalog,
            **{
                f"document_{catalog.passport_id}": upload(),
                f"document_{catalog.photo_id}": upload("photo.jpg"),
                "document_9999": upload("extra.pdf"),
            },
        ),
        headers=auth_headers(applicant),
        content_type="multipart/form-data",
    )

    assert response.status_code == 400


class _FlakyStorage(LocalStorage):
    """Stores the first file, then fails."""

    def __init__(self, upload_dir):
        super().__init__(upload_dir)
        self.saved = 0

    def save(self, file_obj, path):
        if self.saved >= 1:
            raise StorageError("disk full")
        self.saved += 1
        return super().save(file_obj, path)


def test_storage_failure_removes_stored_files_and_rolls_back(
    app, client, catalog, applicant, auth_headers, upload, tmp_path
):
    app.extensions["document_storage"] = _FlakyStorage(str(tmp_path / "uploads"))

    response = client.post(
        "/applications",
        data=_form(
            catalog,
            **{
                f"document_{catalog.passport_id}": upload("passport.pdf"),
                f"document_{catalog.photo_id}": upload("photo.jpg"),
            },
        ),
        headers=auth_headers(applicant),
        content_type="multipart/form-data",
    )

    assert response.status_code == 502
    payload = response.get_json()
    assert payload["error"] == "UploadFailure"
    assert payload["retryable"] is True

    with app.app_context():
        assert Application.query.count() == 0
        assert Document.query.count() == 0
        assert StatusLog.query.count() == 0
    assert list((tmp_path / "uploads").rglob("*.*")) == []


def test_inactive_visa_type_cannot_be_applied_for(
    app, client, catalog, applicant, auth_headers, upload
):
    with app.app_context():
        db.session.get(VisaType, catalog.visa_type_id).is_active = False
        db.session.commit()

    response = client.post(
        "/applications",
        data=_form(
            catalog,
            **{
                f"document_{catalog.passport_id}": upload(),
                f"document_{catalog.photo_id}": upload("photo.jpg"),
            },
        ),
        headers=auth_headers(applicant),
        content_type="multipart/form-data",
    )

    assert response.status_code == 404


def test_applicant_sees_only_own_applications(
    client, make_application, make_user, applicant, catalog, auth_headers
):
    own = make_application(applicant, catalog.visa_type_id)
    other_user = make_user("other@example.com")
    other = make_application(other_user, catalog.visa_type_id)

    response = client.get("/applications", headers=auth_headers(applicant))
    assert response.status_code == 200
    assert [item["id"] for item in response.get_json()] == [own]

    assert client.get(f"/applications/{other}", headers=auth_headers(applicant)).status_code == 404
    detail = client.get(f"/applications/{own}", headers=auth_headers(applicant)).get_json()
    assert "admin_notes" not in detail
    assert "payments" not in detail
    assert detail["status_logs"][0]["new_status"] == "submitted"
