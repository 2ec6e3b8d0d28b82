"""Public catalog of destinations, visa types and their document checklists."""

from __future__ import annotations

from flask import Blueprint, jsonify, request
from flask_jwt_extended import verify_jwt_in_request
from werkzeug.exceptions import NotFound

from models import Country, VisaType, db
from models.user import LANGUAGES
from utils.auth import get_current_user

catalog_bp = Blueprint("catalog", __name__)


def _language() -> str:
    """Pick the response language from ``?lang=``, then the caller's profile."""

    requested = (request.args.get("lang") or "").strip().lower()
    if requested in LANGUAGES:
        return requested
    verify_jwt_in_request(optional=True)
    user = get_current_user()
    if user is not None and user.preferred_language in LANGUAGES:
        return user.preferred_language
    return "en"


def _localize(data: dict, language: str, *fields: str) -> dict:
    for field in fields:
        data[field] = data.get(f"{field}_{language}") or data.get(f"{field}_en")
    return data


def _active_country_or_404(country_id: int) -> Country:
    country = db.session.get(Country, country_id)
    if country is None or not country.is_active:
        raise NotFound("Country not found.")
    return country


def _active_visa_type_or_404(visa_type_id: int) -> VisaType:
    visa_type = db.session.get(VisaType, visa_type_id)
    if visa_type is None or not visa_type.is_active or not visa_type.country.is_active:
        raise NotFound("Visa type not found.")
    return visa_type


@catalog_bp.route("/countries", methods=["GET"])
def list_countries():
    language = _language()
    countries = Country.query.filter_by(is_active=True).order_by(Country.name_en).all()
    return jsonify([_localize(country.to_dict(), language, "name") for country in countries])


@catalog_bp.route("/countries/<int:country_id>/visa-types", methods=["GET"])
def list_visa_types(country_id: int):
    """Active visa types of a destination, with their submission steps."""

    language = _language()
    country = _active_country_or_404(country_id)
    visa_types = (
        country.visa_types.filter_by(is_active=True).order_by(VisaType.name_en).all()
    )

    payload = []
    for visa_type in visa_types:
        data = _localize(visa_type.to_dict(), language, "name", "description")
        data["submission_steps"] = [
            _localize(dict(step), language, "title", "description")
            for step in visa_type.submission_steps or []
        ]
        data["helper_notes"] = getattr(visa_type, f"helper_notes_{language}") or visa_type.helper_notes_en
        payload.append(data)
    return jsonify(payload)


@catalog_bp.route("/visa-types/<int:visa_type_id>/requirements", methods=["GET"])
def list_requirements(visa_type_id: int):
    language = _language()
    visa_type = _active_visa_type_or_404(visa_type_id)
    return jsonify(
        [
            _localize(requirement.to_dict(), language, "name", "description")
            for requirement in visa_type.document_requirements
        ]
    )
