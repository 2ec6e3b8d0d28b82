"""Payment confirmation: the payment record and the status advance commit together."""

from __future__ import annotations

from flask import current_app

from models import Application, Payment, db, utcnow

from .errors import PaymentAlreadyConfirmed, PaymentAmountMismatch
from .status_flow import PAYMENT_CONFIRMED_STATUS, flow_orders
from .workflow import apply_transition, unit_of_work


def find_confirmed_payment(reference: str) -> Payment | None:
    return Payment.query.filter_by(payment_reference=reference, status="confirmed").first()


def _ensure_not_paid(application: Application) -> None:
    """Refuse a confirmation once the application has reached payment_confirmed."""

    orders = flow_orders(application.visa_type.status_flow or [])
    current = orders.get(application.status)
    paid_order = orders.get(PAYMENT_CONFIRMED_STATUS)
    already_paid = (
        Payment.query.filter_by(application_id=application.id, status="confirmed").first()
        is not None
    )
    if already_paid or (
        current is not None and paid_order is not None and current >= paid_order
    ):
        raise PaymentAlreadyConfirmed(
            f"Application {application.application_number} is already paid.",
            current_status=application.status,
        )


def confirm_payment(
    application: Application,
    actor_id: int | None,
    *,
    amount: int | None = None,
    payment_method: str | None = None,
    payment_reference: str | None = None,
    notes: str | None = None,
    expected_version: int | None = None,
) -> Payment:
    """Record a confirmed payment of the base fee and move to payment_confirmed."""

    base_fee = application.visa_type.base_fee
    if amount is not None and amount != base_fee:
        raise PaymentAmountMismatch(
            f"Payment amount {amount} does not match the base fee {base_fee}.",
            expected_amount=base_fee,
            amount=amount,
        )

    with unit_of_work(f"Payment confirmation for application {application.id}"):
        _ensure_not_paid(application)
        now = utcnow()
        payment = Payment(
            application_id=application.id,
            amount=base_fee,
            currency=current_app.config.get("PAYMENT_CURRENCY", "DZD"),
            payment_method=payment_method,
            payment_reference=payment_reference,
            status="confirmed",
            confirmed_by=actor_id,
            confirmed_at=now,
            notes=notes or "Payment confirmed by admin",
        )
        db.session.add(payment)
        db.session.flush()
        apply_transition(
            application,
            PAYMENT_CONFIRMED_STATUS,
            actor_id,
            notes=notes or "Payment confirmed",
            expected_version=expected_version,
        )

    current_app.logger.info(
        "Payment %s of %s %s confirmed for application %s",
        payment.id,
        payment.amount,
        payment.currency,
        application.application_number,
    )
    return payment
