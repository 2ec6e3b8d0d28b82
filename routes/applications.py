"""Applicant-facing application endpoints: submit, track and re-upload."""

from __future__ import annotations

from http import HTTPStatus

from flask import Blueprint, jsonify, request
from flask_jwt_extended import jwt_required
from werkzeug.datastructures import FileStorage
from werkzeug.exceptions import BadRequest, NotFound

from models import Application, DocumentRequirement, StatusLog, db
from services.readiness import check_readiness
from services.status_flow import allowed_next_statuses
from services.documents import replace_document
from services.submission import submit_application
from utils.applicant_validation import validate_applicant_data
from utils.auth import require_user
from utils.request_validation import parse_int, parse_json_field

applications_bp = Blueprint("applications", __name__)

FILE_FIELD_PREFIX = "document_"


def serialize_application(application: Application, include_admin: bool = False) -> dict:
    """Application with its catalog names, documents, readiness and history."""

    data = application.to_dict(include_admin=include_admin)
    data["country"] = application.country.to_dict()
    data["visa_type"] = application.visa_type.to_dict()

    documents = []
    for document in application.documents:
        entry = document.to_dict()
        entry["requirement"] = document.requirement.to_dict()
        if not include_admin:
            entry.pop("file_path", None)
        documents.append(entry)
    data["documents"] = documents

    data["readiness"] = check_readiness(application).to_dict()
    logs = (
        StatusLog.query.filter_by(application_id=application.id)
        .order_by(StatusLog.created_at.desc(), StatusLog.id.desc())
        .all()
    )
    data["status_logs"] = [log.to_dict() for log in logs]

    if include_admin:
        data["payments"] = [payment.to_dict() for payment in application.payments]
        data["allowed_next_statuses"] = allowed_next_statuses(
            application.status, application.visa_type.status_flow or []
        )
        data["applicant"] = application.applicant.to_dict()
    return data


def _own_application_or_404(application_id: int, user) -> Application:
    application = db.session.get(Application, application_id)
    # Other users' applications are reported as missing.
    if application is None or application.user_id != user.id:
        raise NotFound("Application not found.")
    return application


def _collect_files() -> dict[int, FileStorage]:
    files: dict[int, FileStorage] = {}
    for key, file in request.files.items():
        if not key.startswith(FILE_FIELD_PREFIX):
            raise BadRequest(f"Unexpected file field {key}.")
        requirement_id = parse_int(key[len(FILE_FIELD_PREFIX):], key)
        files[requirement_id] = file
    return files


@applications_bp.route("", methods=["POST"])
@jwt_required()
def create_application():
    """Submit the wizard: applicant fields plus one file per requirement.

    Expects ``multipart/form-data`` with ``country_id``, ``visa_type_id``,
    ``applicant_data`` (a JSON object) and files named
    ``document_<requirement_id>``.
    """

    user = require_user()
    form = request.form
    country_id = parse_int(form.get("country_id"), "country_id")
    visa_type_id = parse_int(form.get("visa_type_id"), "visa_type_id")
    applicant_data = validate_applicant_data(
        parse_json_field(form.get("applicant_data"), "applicant_data")
    )

    application = submit_application(
        user, country_id, visa_type_id, applicant_data, _collect_files()
    )
    return jsonify(serialize_application(application)), HTTPStatus.CREATED


@applications_bp.route("", methods=["GET"])
@jwt_required()
def list_applications():
    user = require_user()
    applications = (
        Application.query.filter_by(user_id=user.id)
        .order_by(Application.created_at.desc(), Application.id.desc())
        .all()
    )
    payload = []
    for application in applications:
        data = application.to_dict()
        data["country_name_en"] = application.country.name_en
        data["visa_type_name_en"] = application.visa_type.name_en
        payload.append(data)
    return jsonify(payload)


@applications_bp.route("/<int:application_id>", methods=["GET"])
@jwt_required()
def get_application(application_id: int):
    user = require_user()
    return jsonify(serialize_application(_own_application_or_404(application_id, user)))


@applications_bp.route(
    "/<int:application_id>/documents/<int:requirement_id>", methods=["POST"]
)
@jwt_required()
def reupload_document(application_id: int, requirement_id: int):
    """Replace the file for one requirement; the document returns to pending."""

    user = require_user()
    application = _own_application_or_404(application_id, user)
    requirement = db.session.get(DocumentRequirement, requirement_id)
    if requirement is None:
        raise NotFound("Requirement not found.")

    file = request.files.get("document")
    if not isinstance(file, FileStorage):
        raise BadRequest("A document file is required.")

    document = replace_document(application, requirement, file, user)
    data = document.to_dict()
    data.pop("file_path", None)
    return jsonify(data)
