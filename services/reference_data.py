"""Validation and persistence for countries, visa types and document requirements."""

from __future__ import annotations

from flask import current_app
from werkzeug.exceptions import BadRequest, Conflict

from models import Application, Country, Document, DocumentRequirement, VisaType, db
from utils.request_validation import parse_bool, parse_int

from .errors import InvalidStatusFlow
from .status_flow import EXIT_STATUSES, validate_status_flow, validate_submission_steps
from .workflow import unit_of_work

LOCALES = ("en", "fr", "ar")

COUNTRY_TEXT_FIELDS = (
    "flag_emoji",
    "portal_link",
    "admin_instructions_en",
    "admin_instructions_fr",
    "admin_instructions_ar",
)
VISA_TYPE_TEXT_FIELDS = (
    "description_en",
    "description_fr",
    "description_ar",
    "helper_notes_en",
    "helper_notes_fr",
    "helper_notes_ar",
)
REQUIREMENT_TEXT_FIELDS = ("description_en", "description_fr", "description_ar")


def _text(value: object, field: str) -> str | None:
    if value is None:
        return None
    if not isinstance(value, str):
        raise BadRequest(f"{field} must be a string.")
    return value.strip() or None


def _required_text(data: dict, field: str) -> str:
    value = _text(data.get(field), field)
    if not value:
        raise BadRequest(f"{field} is required.")
    return value


def _apply_names(obj, data: dict, partial: bool) -> None:
    for locale in LOCALES:
        field = f"name_{locale}"
        if field in data or not partial:
            setattr(obj, field, _required_text(data, field))


def _apply_text(obj, data: dict, fields: tuple[str, ...]) -> None:
    for field in fields:
        if field in data:
            setattr(obj, field, _text(data[field], field))


def _apply_flag(obj, data: dict, field: str) -> None:
    if field in data:
        value = parse_bool(data[field])
        if value is None:
            raise BadRequest(f"{field} must be a boolean.")
        setattr(obj, field, value)


def _json_object(value: object, field: str) -> dict:
    if value is None:
        return {}
    if not isinstance(value, dict):
        raise BadRequest(f"{field} must be an object.")
    return value


def _others(query, model, obj):
    """Restrict ``query`` to rows other than ``obj`` once it is persisted."""

    if obj.id is not None:
        query = query.filter(model.id != obj.id)
    return query


def _ensure_statuses_in_use_kept(visa_type: VisaType, flow: list[dict]) -> None:
    """Refuse a flow that drops a status some application of this type still holds."""

    declared = {step["status"] for step in flow}
    rows = (
        db.session.query(Application.status)
        .filter(Application.visa_type_id == visa_type.id)
        .distinct()
        .all()
    )
    missing = sorted(
        status
        for (status,) in rows
        if status not in declared and status not in EXIT_STATUSES
    )
    if missing:
        raise InvalidStatusFlow(
            "status_flow drops statuses still held by applications: {}.".format(
                ", ".join(missing)
            ),
            missing_statuses=missing,
        )


def save_country(data: dict, country: Country | None = None) -> Country:
    """Create a country, or update ``country``. Countries are never deleted."""

    partial = country is not None
    country = country or Country()

    with unit_of_work("Save country"):
        if "code" in data or not partial:
            code = _required_text(data, "code").upper()
            clash = _others(Country.query.filter(Country.code == code), Country, country)
            if clash.first() is not None:
                raise Conflict(f"A country with code {code} already exists.")
            country.code = code
        _apply_names(country, data, partial)
        _apply_text(country, data, COUNTRY_TEXT_FIELDS)
        _apply_flag(country, data, "is_active")
        if "processing_time_days" in data:
            country.processing_time_days = parse_int(
                data["processing_time_days"], "processing_time_days", minimum=0
            )
        db.session.add(country)

    current_app.logger.info("Country %s saved", country.code)
    return country


def save_visa_type(data: dict, visa_type: VisaType | None = None) -> VisaType:
    """Create or update a visa type after validating its steps and status flow."""

    partial = visa_type is not None
    visa_type = visa_type or VisaType()

    with unit_of_work("Save visa type"):
        if not partial:
            country_id = parse_int(data.get("country_id"), "country_id")
            if db.session.get(Country, country_id) is None:
                raise BadRequest("country_id does not reference a country.")
            visa_type.country_id = country_id

        if "code" in data or not partial:
            code = _required_text(data, "code").lower()
            clash = _others(
                VisaType.query.filter(
                    VisaType.country_id == visa_type.country_id, VisaType.code == code
                ),
                VisaType,
                visa_type,
            )
            if clash.first() is not None:
                raise Conflict(f"Visa type {code} already exists for this country.")
            visa_type.code = code

        _apply_names(visa_type, data, partial)
        _apply_text(visa_type, data, VISA_TYPE_TEXT_FIELDS)
        _apply_flag(visa_type, data, "is_active")
        if "base_fee" in data or not partial:
            visa_type.base_fee = parse_int(data.get("base_fee"), "base_fee", minimum=0)
        if "processing_time_days" in data:
            visa_type.processing_time_days = parse_int(
                data["processing_time_days"], "processing_time_days", minimum=0
            )
        if "status_flow" in data or not partial:
            flow = validate_status_flow(data.get("status_flow"))
            if visa_type.id is not None:
                _ensure_statuses_in_use_kept(visa_type, flow)
            visa_type.status_flow = flow
        if "submission_steps" in data:
            visa_type.submission_steps = validate_submission_steps(data["submission_steps"])
        for field in ("requirements", "validation_rules"):
            if field in data:
                setattr(visa_type, field, _json_object(data[field], field))
        db.session.add(visa_type)

    current_app.logger.info(
        "Visa type %s saved for country %s", visa_type.code, visa_type.country_id
    )
    return visa_type


def save_requirement(
    data: dict,
    visa_type: VisaType | None = None,
    requirement: DocumentRequirement | None = None,
) -> DocumentRequirement:
    partial = requirement is not None
    if requirement is None:
        requirement = DocumentRequirement(visa_type_id=visa_type.id)

    with unit_of_work("Save document requirement"):
        if "document_type" in data or not partial:
            requirement.document_type = _required_text(data, "document_type")
        _apply_names(requirement, data, partial)
        _apply_text(requirement, data, REQUIREMENT_TEXT_FIELDS)
        _apply_flag(requirement, data, "is_required")
        if "validation_rules" in data:
            requirement.validation_rules = _json_object(
                data["validation_rules"], "validation_rules"
            )

        if "order_index" in data or not partial:
            order_index = parse_int(data.get("order_index"), "order_index", minimum=0)
            clash = _others(
                DocumentRequirement.query.filter(
                    DocumentRequirement.visa_type_id == requirement.visa_type_id,
                    DocumentRequirement.order_index == order_index,
                ),
                DocumentRequirement,
                requirement,
            )
            if clash.first() is not None:
                raise Conflict(
                    f"order_index {order_index} is already used by this visa type."
                )
            requirement.order_index = order_index
        db.session.add(requirement)

    return requirement


def delete_requirement(requirement: DocumentRequirement) -> None:
    in_use = Document.query.filter_by(document_requirement_id=requirement.id).first()
    if in_use is not None:
        raise Conflict("Requirement has uploaded documents and cannot be deleted.")
    with unit_of_work(f"Delete requirement {requirement.id}"):
        db.session.delete(requirement)
