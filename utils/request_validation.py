"""Utilities for validating incoming Flask requests."""

from __future__ import annotations

import json
from typing import Iterable

from flask import Request
from werkzeug.exceptions import BadRequest


class ValidationFailed(BadRequest):
    """Field-level validation errors, rendered with a ``fields`` map."""

    def __init__(self, fields: dict[str, str], description: str | None = None):
        super().__init__(description or "Some fields are invalid.")
        self.extra = {"fields": fields}


def parse_json_request(
    req: Request,
    *,
    required_keys: Iterable[str] | None = None,
    allow_empty: bool = False,
) -> dict:
    """Return the parsed JSON body or raise a 400 error."""

    if not req.is_json:
        raise BadRequest("Request content type must be application/json.")

    data = req.get_json(silent=False)
    if data is None:
        raise BadRequest("Request JSON body is required.")

    if not isinstance(data, dict):
        raise BadRequest("Request JSON payload must be an object.")

    if not data and not allow_empty:
        raise BadRequest("Request JSON body must not be empty.")

    if required_keys:
        missing = [key for key in required_keys if data.get(key) in (None, "")]
        if missing:
            raise BadRequest(
                "Missing required fields: {}.".format(
                    ", ".join(sorted(missing))
                )
            )

    return data


def parse_json_field(raw: str | None, field: str) -> dict:
    """Decode a JSON object sent as a multipart form field."""

    if not raw:
        raise BadRequest(f"{field} is required.")
    try:
        value = json.loads(raw)
    except ValueError as exc:
        raise BadRequest(f"{field} must be valid JSON.") from exc
    if not isinstance(value, dict):
        raise BadRequest(f"{field} must be a JSON object.")
    return value


def parse_bool(value: object) -> bool | None:
    if value is None:
        return None
    if isinstance(value, bool):
        return value
    text = str(value).strip().lower()
    if text in {"1", "true", "yes", "y"}:
        return True
    if text in {"0", "false", "no", "n"}:
        return False
    return None


def parse_int(value: object, field: str, *, minimum: int | None = None) -> int:
    if isinstance(value, bool):
        raise BadRequest(f"{field} must be an integer.")
    try:
        number = int(value)  # type: ignore[arg-type]
    except (TypeError, ValueError) as exc:
        raise BadRequest(f"{field} must be an integer.") from exc
    if minimum is not None and number < minimum:
        raise BadRequest(f"{field} must be at least {minimum}.")
    return number


def optional_int(value: object, field: str) -> int | None:
    if value in (None, ""):
        return None
    return parse_int(value, field)
