"""Tests for payment confirmation."""

from __future__ import annotations

import pytest

import services.payments as payments
from models import Application, Payment, StatusLog, db
from services.errors import InvalidTransition, PaymentAlreadyConfirmed, PaymentAmountMismatch


@pytest.fixture()
def awaiting_payment(make_application, applicant, catalog) -> int:
    return make_application(applicant, catalog.visa_type_id, status="awaiting_payment")


def test_confirmation_records_payment_and_advances(app, awaiting_payment, admin):
    with app.app_context():
        application = db.session.get(Application, awaiting_payment)
        payment = payments.confirm_payment(
            application, admin, amount=8000, payment_method="cash", payment_reference="R-1"
        )

        assert payment.status == "confirmed"
        assert payment.amount == 8000
        assert payment.currency == "DZD"
        assert payment.confirmed_by == admin
        assert payment.confirmed_at is not None
        assert application.status == "payment_confirmed"
        assert application.payment_confirmed_at is not None
        latest = StatusLog.query.filter_by(application_id=awaiting_payment).order_by(
            StatusLog.id.desc()
        ).first()
        assert latest.new_status == "payment_confirmed"


def test_amount_must_match_base_fee(app, awaiting_payment, admin):
    with app.app_context():
        application = db.session.get(Application, awaiting_payment)
        with pytest.raises(PaymentAmountMismatch) as excinfo:
            payments.confirm_payment(application, admin, amount=7999)
        assert excinfo.value.extra == {"expected_amount": 8000, "amount": 7999}
        assert Payment.query.count() == 0


def test_failure_after_payment_insert_rolls_back_both(app, awaiting_payment, admin, monkeypatch):
    def _explode(*args, **kwargs):
        raise RuntimeError("status store unavailable")

    monkeypatch.setattr(payments, "apply_transition", _explode)

    with app.app_context():
        application = db.session.get(Application, awaiting_payment)
        with pytest.raises(RuntimeError):
            payments.confirm_payment(application, admin)

        assert Payment.query.count() == 0
        application = db.session.get(Application, awaiting_payment)
        assert application.status == "awaiting_payment"
        assert application.payment_confirmed_at is None
        assert StatusLog.query.filter_by(application_id=awaiting_payment).count() == 1


def test_invalid_transition_discards_payment(app, make_application, applicant, catalog, admin):
    application_id = make_application(applicant, catalog.visa_type_id, status="cancelled")

    with app.app_context():
        application = db.session.get(Application, application_id)
        with pytest.raises(InvalidTransition):
            payments.confirm_payment(application, admin)
        assert Payment.query.count() == 0


def test_confirm_payment_endpoint(client, awaiting_payment, admin, auth_headers):
    response = client.post(
        f"/admin/applications/{awaiting_payment}/confirm-payment",
        json={"amount": 8000, "payment_reference": "BANK-42"},
        headers=auth_headers(admin),
    )

    assert response.status_code == 200
    payload = response.get_json()
    assert payload["application"]["status"] == "payment_confirmed"
    assert payload["payment"]["payment_method"] == "manual"
    assert payload["payment"]["payment_reference"] == "BANK-42"

    response = client.post(
        f"/admin/applications/{awaiting_payment}/confirm-payment",
        json={"amount": 100},
        headers=auth_headers(admin),
    )
    assert response.status_code == 422
    assert response.get_json()["error"] == "PaymentAmountMismatch"


def test_second_confirmation_is_refused(app, awaiting_payment, admin):
    with app.app_context():
        application = db.session.get(Application, awaiting_payment)
        payments.confirm_payment(application, admin)

        with pytest.raises(PaymentAlreadyConfirmed):
            payments.confirm_payment(application, admin)

        assert Payment.query.filter_by(application_id=awaiting_payment).count() == 1
        logs = StatusLog.query.filter_by(application_id=awaiting_payment).order_by(StatusLog.id)
        assert [(log.old_status, log.new_status) for log in logs] == [
            (None, "awaiting_payment"),
            ("awaiting_payment", "payment_confirmed"),
        ]


def test_confirmation_after_payment_stage_is_refused(
    app, make_application, applicant, catalog, admin
):
    application_id = make_application(
        applicant,
        catalog.visa_type_id,
        status="processing",
        documents={catalog.passport_id: "approved", catalog.photo_id: "approved"},
    )

    with app.app_context():
        application = db.session.get(Application, application_id)
        with pytest.raises(PaymentAlreadyConfirmed):
            payments.confirm_payment(application, admin)
        assert Payment.query.count() == 0
        assert db.session.get(Application, application_id).status == "processing"


def test_double_submit_of_confirm_endpoint_records_one_payment(
    app, client, awaiting_payment, admin, auth_headers
):
    url = f"/admin/applications/{awaiting_payment}/confirm-payment"

    assert client.post(url, json={}, headers=auth_headers(admin)).status_code == 200
    response = client.post(url, json={}, headers=auth_headers(admin))

    assert response.status_code == 409
    assert response.get_json()["error"] == "PaymentAlreadyConfirmed"
    assert response.get_json()["current_status"] == "payment_confirmed"
    with app.app_context():
        assert Payment.query.filter_by(application_id=awaiting_payment).count() == 1
