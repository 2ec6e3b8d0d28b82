"""Card payments for application fees through Stripe Checkout."""

from __future__ import annotations

from flask import Blueprint, current_app, jsonify, request
from flask_jwt_extended import jwt_required
from werkzeug.exceptions import BadGateway, BadRequest, Conflict, InternalServerError, NotFound
import stripe

from models import Application, db
from services.errors import PaymentAmountMismatch, WorkflowError
from services.payments import confirm_payment, find_confirmed_payment
from utils.auth import require_user
from utils.request_validation import parse_json_request

billing_bp = Blueprint("billing", __name__)

AWAITING_PAYMENT_STATUS = "awaiting_payment"


def _init_stripe() -> str:
    """Configure Stripe with the API key from configuration."""

    api_key = current_app.config.get("STRIPE_SECRET_KEY")
    if not api_key:
        raise InternalServerError("Stripe secret key is not configured.")
    stripe.api_key = api_key
    return api_key


def _minor_units() -> int:
    return int(current_app.config.get("STRIPE_MINOR_UNITS", 100))


@billing_bp.route("/applications/<int:application_id>/checkout-session", methods=["POST"])
@jwt_required()
def create_checkout_session(application_id: int):
    """Create a Stripe Checkout session for an application awaiting payment."""

    _init_stripe()
    user = require_user()
    application = db.session.get(Application, application_id)
    if application is None or application.user_id != user.id:
        raise NotFound("Application not found.")
    if application.status != AWAITING_PAYMENT_STATUS:
        raise Conflict("This application is not awaiting payment.")

    data = parse_json_request(request, allow_empty=True) if request.is_json else {}
    success_url = data.get("success_url") or current_app.config.get("BILLING_SUCCESS_URL")
    cancel_url = data.get("cancel_url") or current_app.config.get("BILLING_CANCEL_URL")
    if not success_url or not cancel_url:
        raise BadRequest("Billing success and cancel URLs must be configured.")

    visa_type = application.visa_type
    try:
        session = stripe.checkout.Session.create(
            mode="payment",
            line_items=[
                {
                    "price_data": {
                        "currency": current_app.config.get("PAYMENT_CURRENCY", "DZD").lower(),
                        "unit_amount": visa_type.base_fee * _minor_units(),
                        "product_data": {
                            "name": f"{visa_type.name_en} ({application.application_number})"
                        },
                    },
                    "quantity": 1,
                }
            ],
            success_url=success_url,
            cancel_url=cancel_url,
            client_reference_id=application.application_number,
            metadata={
                "application_id": str(application.id),
                "user_id": str(user.id),
            },
        )
    except stripe.error.StripeError as exc:  # pragma: no cover - network error
        current_app.logger.warning(
            "Stripe checkout failed for application %s: %s", application.id, exc
        )
        raise BadGateway("Payment provider is unavailable.") from exc

    current_app.logger.info(
        "Checkout session %s opened for application %s",
        session.id,
        application.application_number,
    )
    return jsonify({"sessionId": session.id, "url": session.url})


def _handle_checkout_completed(session: dict) -> str:
    session_id = session.get("id")
    metadata = session.get("metadata") or {}
    try:
        application_id = int(metadata.get("application_id"))
    except (TypeError, ValueError):
        current_app.logger.warning("Checkout session %s has no application id", session_id)
        return "ignored"

    if find_confirmed_payment(session_id) is not None:
        return "duplicate"

    application = db.session.get(Application, application_id)
    if application is None:
        current_app.logger.warning(
            "Checkout session %s references missing application %s", session_id, application_id
        )
        return "ignored"

    amount = None
    try:
        amount_total = session.get("amount_total")
        if amount_total is not None:
            amount, fraction = divmod(int(amount_total), _minor_units())
            if fraction:
                raise PaymentAmountMismatch(
                    f"Stripe amount {amount_total} is not a whole number of fee units.",
                    expected_amount=application.visa_type.base_fee,
                    amount_total=amount_total,
                )
        confirm_payment(
            application,
            None,
            amount=amount,
            payment_method="stripe",
            payment_reference=session_id,
            notes="Paid by card through Stripe Checkout",
        )
    except WorkflowError as exc:
        if exc.retryable:
            raise
        # Stripe retries non-2xx replies; a rejected confirmation will not succeed later.
        current_app.logger.warning(
            "Stripe payment %s for application %s not applied: %s",
            session_id,
            application_id,
            exc.description,
        )
        return "rejected"
    return "confirmed"


@billing_bp.route("/webhook", methods=["POST"])
def billing_webhook():
    """Handle Stripe webhook events for application payments."""

    _init_stripe()
    webhook_secret = current_app.config.get("STRIPE_WEBHOOK_SECRET")
    if not webhook_secret:
        raise InternalServerError("Stripe webhook secret is not configured.")

    payload = request.get_data()
    sig_header = request.headers.get("Stripe-Signature")
    try:
        event = stripe.Webhook.construct_event(payload, sig_header, webhook_secret)
    except (ValueError, stripe.error.SignatureVerificationError) as exc:
        raise BadRequest("Invalid webhook signature.") from exc

    event_type = event.get("type")
    result = "ignored"
    if event_type == "checkout.session.completed":
        data_object = event.get("data", {}).get("object", {})
        result = _handle_checkout_completed(data_object)

    return jsonify({"status": "success", "result": result})
