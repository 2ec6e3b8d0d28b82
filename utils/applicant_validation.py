"""Field checks for the applicant step of the application wizard."""

from __future__ import annotations

import re
from datetime import date

from .request_validation import ValidationFailed

APPLICANT_FIELDS = (
    "firstName",
    "lastName",
    "passportNumber",
    "nationality",
    "dateOfBirth",
    "gender",
    "phone",
    "email",
    "travelDate",
    "returnDate",
    "address",
)
DATE_FIELDS = ("dateOfBirth", "travelDate", "returnDate")

EMAIL_PATTERN = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")


def _parse_date(value: str) -> date | None:
    try:
        return date.fromisoformat(value)
    except ValueError:
        return None


def validate_applicant_data(data: dict) -> dict:
    """Return the cleaned applicant fields or raise ``ValidationFailed``."""

    errors: dict[str, str] = {}
    cleaned: dict[str, str] = {}

    for field in APPLICANT_FIELDS:
        value = data.get(field)
        text = value.strip() if isinstance(value, str) else ""
        if not text:
            errors[field] = "Required"
            continue
        cleaned[field] = text

    email = cleaned.get("email")
    if email and not EMAIL_PATTERN.match(email):
        errors["email"] = "Invalid email"

    dates = {}
    for field in DATE_FIELDS:
        if field in cleaned:
            parsed = _parse_date(cleaned[field])
            if parsed is None:
                errors[field] = "Invalid date"
            else:
                dates[field] = parsed

    travel, back = dates.get("travelDate"), dates.get("returnDate")
    if travel and back and back <= travel:
        errors["returnDate"] = "Must be after travel date"

    if errors:
        raise ValidationFailed(errors)
    return cleaned
