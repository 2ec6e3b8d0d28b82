"""Administrator endpoints: application review, documents and reference data."""

from __future__ import annotations

from http import HTTPStatus

from flask import Blueprint, current_app, jsonify, request, send_file
from sqlalchemy import func, or_
from werkzeug.exceptions import BadRequest, Forbidden, NotFound

from models import (
    Application,
    Country,
    Document,
    DocumentRequirement,
    User,
    VisaType,
    db,
)
from routes.applications import serialize_application
from services.documents import review_document
from services.payments import confirm_payment
from services.reference_data import (
    delete_requirement,
    save_country,
    save_requirement,
    save_visa_type,
)
from services.workflow import change_status, update_admin_fields
from storage import get_storage
from utils.auth import admin_required, require_user
from utils.request_validation import optional_int, parse_bool, parse_json_request

admin_bp = Blueprint("admin", __name__)

STATS_GROUPS = {
    "pending": ("submitted",),
    "awaiting_payment": ("awaiting_payment",),
    "processing": ("processing", "documents_prepared", "submitted_to_embassy"),
    "completed": ("approved", "rejected", "cancelled"),
}


def _get_or_404(model, object_id: int, label: str):
    obj = db.session.get(model, object_id)
    if obj is None:
        raise NotFound(f"{label} not found.")
    return obj


def _optional_text(payload: dict, field: str) -> str | None:
    value = payload.get(field)
    if value is not None and not isinstance(value, str):
        raise BadRequest(f"{field} must be a string.")
    return value.strip() if value else None


def _review_notes() -> str | None:
    if not request.content_length:
        return None
    if request.mimetype != "application/json":
        raise BadRequest("Review notes must be submitted as JSON.")
    payload = parse_json_request(request, allow_empty=True)
    return _optional_text(payload, "notes") or _optional_text(payload, "admin_notes")


# Applications


@admin_bp.route("/applications", methods=["GET"])
@admin_required
def list_applications():
    """List applications, newest first, optionally filtered.

    Query parameters: ``status``, ``country_id``, ``visa_type_id``,
    ``is_urgent`` and ``q`` (application number, applicant name or email).
    """

    args = request.args
    query = Application.query.join(User, Application.user_id == User.id)
    if args.get("status"):
        query = query.filter(Application.status == args["status"])
    country_id = optional_int(args.get("country_id"), "country_id")
    if country_id is not None:
        query = query.filter(Application.country_id == country_id)
    visa_type_id = optional_int(args.get("visa_type_id"), "visa_type_id")
    if visa_type_id is not None:
        query = query.filter(Application.visa_type_id == visa_type_id)
    is_urgent = parse_bool(args.get("is_urgent"))
    if is_urgent is not None:
        query = query.filter(Application.is_urgent.is_(is_urgent))
    term = (args.get("q") or "").strip().lower()
    if term:
        pattern = f"%{term}%"
        query = query.filter(
            or_(
                func.lower(Application.application_number).like(pattern),
                func.lower(User.full_name).like(pattern),
                func.lower(User.email).like(pattern),
            )
        )

    applications = query.order_by(
        Application.is_urgent.desc(), Application.created_at.desc(), Application.id.desc()
    ).all()

    payload = []
    for application in applications:
        data = application.to_dict(include_admin=True)
        data["applicant_name"] = application.applicant.full_name
        data["applicant_email"] = application.applicant.email
        data["country_name_en"] = application.country.name_en
        data["visa_type_name_en"] = application.visa_type.name_en
        payload.append(data)
    return jsonify(payload)


@admin_bp.route("/applications/stats", methods=["GET"])
@admin_required
def application_stats():
    counts = dict(
        db.session.query(Application.status, func.count(Application.id))
        .group_by(Application.status)
        .all()
    )
    stats = {"total": sum(counts.values())}
    for key, statuses in STATS_GROUPS.items():
        stats[key] = sum(counts.get(status, 0) for status in statuses)
    return jsonify(stats)


@admin_bp.route("/applications/<int:application_id>", methods=["GET"])
@admin_required
def get_application(application_id: int):
    application = _get_or_404(Application, application_id, "Application")
    return jsonify(serialize_application(application, include_admin=True))


@admin_bp.route("/applications/<int:application_id>", methods=["PATCH"])
@admin_required
def update_application(application_id: int):
    application = _get_or_404(Application, application_id, "Application")
    payload = parse_json_request(request)

    is_urgent = None
    if "is_urgent" in payload:
        is_urgent = parse_bool(payload["is_urgent"])
        if is_urgent is None:
            raise BadRequest("is_urgent must be a boolean.")
    admin_notes = None
    if "admin_notes" in payload:
        admin_notes = _optional_text(payload, "admin_notes") or ""

    update_admin_fields(
        application,
        admin_notes=admin_notes,
        is_urgent=is_urgent,
        expected_version=optional_int(payload.get("expected_version"), "expected_version"),
    )
    return jsonify(application.to_dict(include_admin=True))


@admin_bp.route("/applications/<int:application_id>/status", methods=["POST"])
@admin_required
def update_status(application_id: int):
    """Move an application to another status.

    ``override`` allows backward moves and leaving terminal states and is
    reserved to super administrators.
    """

    actor = require_user()
    application = _get_or_404(Application, application_id, "Application")
    payload = parse_json_request(request, required_keys=("status",))

    new_status = payload["status"]
    if not isinstance(new_status, str):
        raise BadRequest("status must be a string.")
    override = bool(parse_bool(payload.get("override")))
    if override and actor.role != "super_admin":
        raise Forbidden("Only super administrators may override the status flow.")

    log = change_status(
        application,
        new_status.strip(),
        actor.id,
        notes=_optional_text(payload, "notes"),
        override=override,
        expected_version=optional_int(payload.get("expected_version"), "expected_version"),
    )
    return jsonify(
        {
            "application": application.to_dict(include_admin=True),
            "status_log": log.to_dict(),
        }
    )


@admin_bp.route("/applications/<int:application_id>/confirm-payment", methods=["POST"])
@admin_required
def confirm_application_payment(application_id: int):
    actor = require_user()
    application = _get_or_404(Application, application_id, "Application")
    payload = parse_json_request(request, allow_empty=True)

    payment = confirm_payment(
        application,
        actor.id,
        amount=optional_int(payload.get("amount"), "amount"),
        payment_method=_optional_text(payload, "payment_method") or "manual",
        payment_reference=_optional_text(payload, "payment_reference"),
        notes=_optional_text(payload, "notes"),
        expected_version=optional_int(payload.get("expected_version"), "expected_version"),
    )
    return jsonify(
        {
            "application": application.to_dict(include_admin=True),
            "payment": payment.to_dict(),
        }
    )


# Documents


def _review(document_id: int, status: str):
    reviewer = require_user()
    document = _get_or_404(Document, document_id, "Document")
    review_document(document, reviewer, status, _review_notes())
    return jsonify(document.to_dict())


@admin_bp.route("/documents/<int:document_id>/approve", methods=["POST"])
@admin_required
def approve_document(document_id: int):
    return _review(document_id, "approved")


@admin_bp.route("/documents/<int:document_id>/reject", methods=["POST"])
@admin_required
def reject_document(document_id: int):
    return _review(document_id, "rejected")


@admin_bp.route("/documents/<int:document_id>/request-reupload", methods=["POST"])
@admin_required
def request_reupload(document_id: int):
    return _review(document_id, "reupload_required")


@admin_bp.route("/documents/<int:document_id>/download", methods=["GET"])
@admin_required
def download_document(document_id: int):
    """Stream a stored document back to an administrator."""

    document = _get_or_404(Document, document_id, "Document")
    storage = get_storage()
    if not storage.exists(document.file_path):
        current_app.logger.warning(
            "Stored file for document %s is missing: %s", document.id, document.file_path
        )
        raise NotFound("Stored file could not be found.")

    return send_file(
        storage.open(document.file_path),
        mimetype=document.mime_type or "application/octet-stream",
        as_attachment=True,
        download_name=document.file_name,
    )


# Reference data


@admin_bp.route("/countries", methods=["GET"])
@admin_required
def list_countries():
    countries = Country.query.order_by(Country.name_en).all()
    return jsonify([country.to_dict(include_admin=True) for country in countries])


@admin_bp.route("/countries", methods=["POST"])
@admin_required
def create_country():
    country = save_country(parse_json_request(request))
    return jsonify(country.to_dict(include_admin=True)), HTTPStatus.CREATED


@admin_bp.route("/countries/<int:country_id>", methods=["PATCH"])
@admin_required
def update_country(country_id: int):
    country = _get_or_404(Country, country_id, "Country")
    country = save_country(parse_json_request(request), country)
    return jsonify(country.to_dict(include_admin=True))


@admin_bp.route("/visa-types", methods=["GET"])
@admin_required
def list_visa_types():
    query = VisaType.query
    country_id = optional_int(request.args.get("country_id"), "country_id")
    if country_id is not None:
        query = query.filter_by(country_id=country_id)
    visa_types = query.order_by(VisaType.country_id, VisaType.name_en).all()
    return jsonify([visa_type.to_dict(include_admin=True) for visa_type in visa_types])


@admin_bp.route("/visa-types", methods=["POST"])
@admin_required
def create_visa_type():
    visa_type = save_visa_type(parse_json_request(request))
    return jsonify(visa_type.to_dict(include_admin=True)), HTTPStatus.CREATED


@admin_bp.route("/visa-types/<int:visa_type_id>", methods=["PATCH"])
@admin_required
def update_visa_type(visa_type_id: int):
    visa_type = _get_or_404(VisaType, visa_type_id, "Visa type")
    visa_type = save_visa_type(parse_json_request(request), visa_type)
    return jsonify(visa_type.to_dict(include_admin=True))


@admin_bp.route("/visa-types/<int:visa_type_id>/requirements", methods=["GET"])
@admin_required
def list_requirements(visa_type_id: int):
    visa_type = _get_or_404(VisaType, visa_type_id, "Visa type")
    return jsonify([requirement.to_dict() for requirement in visa_type.document_requirements])


@admin_bp.route("/visa-types/<int:visa_type_id>/requirements", methods=["POST"])
@admin_required
def create_requirement(visa_type_id: int):
    visa_type = _get_or_404(VisaType, visa_type_id, "Visa type")
    requirement = save_requirement(parse_json_request(request), visa_type=visa_type)
    return jsonify(requirement.to_dict()), HTTPStatus.CREATED


@admin_bp.route("/requirements/<int:requirement_id>", methods=["PATCH"])
@admin_required
def update_requirement(requirement_id: int):
    requirement = _get_or_404(DocumentRequirement, requirement_id, "Requirement")
    requirement = save_requirement(parse_json_request(request), requirement=requirement)
    return jsonify(requirement.to_dict())


@admin_bp.route("/requirements/<int:requirement_id>", methods=["DELETE"])
@admin_required
def remove_requirement(requirement_id: int):
    requirement = _get_or_404(DocumentRequirement, requirement_id, "Requirement")
    delete_requirement(requirement)
    return "", HTTPStatus.NO_CONTENT
