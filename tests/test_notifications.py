"""Tests for in-app notifications."""

from __future__ import annotations

import pytest

from models import Notification, db


@pytest.fixture()
def notifications(app, applicant, make_user) -> dict[str, int]:
    other = make_user("other@example.com")
    with app.app_context():
        rows = {
            "old": Notification(
                user_id=applicant,
                title_en="Application submitted",
                message_en="We received your application.",
                type="status_change",
                is_read=True,
            ),
            "new": Notification(
                user_id=applicant,
                title_en="Payment confirmed",
                message_en="Your payment was confirmed.",
                type="status_change",
            ),
            "foreign": Notification(
                user_id=other,
                title_en="Application submitted",
                message_en="We received your application.",
                type="status_change",
            ),
        }
        db.session.add_all(rows.values())
        db.session.commit()
        return {name: row.id for name, row in rows.items()}


def test_lists_only_own_notifications_newest_first(
    client, applicant, auth_headers, notifications
):
    response = client.get("/notifications", headers=auth_headers(applicant))

    assert response.status_code == 200
    assert [item["id"] for item in response.get_json()] == [
        notifications["new"],
        notifications["old"],
    ]


def test_unread_filter(client, applicant, auth_headers, notifications):
    response = client.get("/notifications?unread=true", headers=auth_headers(applicant))

    assert [item["id"] for item in response.get_json()] == [notifications["new"]]


def test_mark_read(app, client, applicant, auth_headers, notifications):
    response = client.post(
        f"/notifications/{notifications['new']}/read", headers=auth_headers(applicant)
    )

    assert response.status_code == 200
    assert response.get_json()["is_read"] is True
    with app.app_context():
        assert db.session.get(Notification, notifications["new"]).is_read is True


def test_cannot_read_someone_elses_notification(
    client, applicant, auth_headers, notifications
):
    response = client.post(
        f"/notifications/{notifications['foreign']}/read", headers=auth_headers(applicant)
    )

    assert response.status_code == 404


def test_status_change_notification_is_localized(
    client, make_application, applicant, admin, catalog, auth_headers
):
    application_id = make_application(applicant, catalog.visa_type_id)

    client.post(
        f"/admin/applications/{application_id}/status",
        json={"status": "awaiting_payment"},
        headers=auth_headers(admin),
    )

    (notification,) = client.get("/notifications", headers=auth_headers(applicant)).get_json()
    assert notification["related_application_id"] == application_id
    assert notification["type"] == "status_change"
    assert notification["title_en"]
    assert notification["title_fr"]
    assert notification["title_ar"]
    assert "Awaiting Payment" in notification["message_en"]
