"""Authentication blueprint: accounts, sessions and the caller's profile."""

from __future__ import annotations
from http import HTTPStatus

from flask import Blueprint, jsonify, request
from flask_jwt_extended import create_access_token, get_jwt, jwt_required
from werkzeug.exceptions import BadRequest, Conflict, Unauthorized
from sqlalchemy import func

from models import db
from models.revoked_token import RevokedToken
from models.user import LANGUAGES, User
from utils.auth import require_user
from utils.request_validation import parse_json_request
from utils.applicant_validation import EMAIL_PATTERN

auth_bp = Blueprint("auth", __name__)

PROFILE_FIELDS = ("full_name", "phone", "nationality")


def _normalize_email(raw_email: str | None) -> str:
    """Normalize an email string by stripping whitespace and lowering case."""
    return (raw_email or "").strip().lower()


def _apply_profile(user: User, payload: dict) -> None:
    for field in PROFILE_FIELDS:
        if field in payload:
            value = payload.get(field)
            if value is not None and not isinstance(value, str):
                raise BadRequest(f"{field} must be a string.")
            setattr(user, field, (value or "").strip() or None)
    if "preferred_language" in payload:
        language = (payload.get("preferred_language") or "").strip().lower()
        if language not in LANGUAGES:
            raise BadRequest("preferred_language must be one of: en, fr, ar.")
        user.preferred_language = language


@auth_bp.route("/register", methods=["POST"])
def register() -> tuple:
    """Create an applicant account. Administrators are provisioned separately."""
    payload = parse_json_request(request)
    email = _normalize_email(payload.get("email"))
    password = (payload.get("password") or "").strip()
    full_name = (payload.get("full_name") or "").strip()

    if not email or not password:
        raise BadRequest("Email and password are required.")
    if not EMAIL_PATTERN.match(email):
        raise BadRequest("Email address is invalid.")
    if not full_name:
        raise BadRequest("full_name is required.")

    # Case-insensitive unique check
    existing = User.query.filter(func.lower(User.email) == email).first()
    if existing is not None:
        raise Conflict("A user with that email already exists.")

    user = User(email=email, full_name=full_name, role="user")
    user.set_password(password)
    _apply_profile(user, {k: v for k, v in payload.items() if k != "full_name"})

    db.session.add(user)
    db.session.commit()

    return (
        jsonify(
            {
                "message": "User registered successfully.",
                "user": user.to_dict(),
            }
        ),
        HTTPStatus.CREATED,
    )


@auth_bp.route("/login", methods=["POST"])
def login() -> tuple:
    """Authenticate a user and return a JWT access token."""
    payload = parse_json_request(request)
    email = _normalize_email(payload.get("email"))
    password = (payload.get("password") or "").strip()

    if not email or not password:
        raise BadRequest("Email and password are required.")

    # Case-insensitive lookup
    user = User.query.filter(func.lower(User.email) == email).first()
    if user is None or not user.check_password(password):
        raise Unauthorized("Invalid email or password.")
    if not user.is_active:
        raise Unauthorized("Account is disabled.")

    token = create_access_token(identity=str(user.id), additional_claims={"role": user.role})
    return (
        jsonify({"access_token": token, "user": user.to_dict()}),
        HTTPStatus.OK,
    )


@auth_bp.route("/me", methods=["GET"])
@jwt_required()
def current_user():
    return jsonify(require_user().to_dict())


@auth_bp.route("/me", methods=["PATCH"])
@jwt_required()
def update_profile():
    user = require_user()
    payload = parse_json_request(request)
    if "full_name" in payload and not (payload.get("full_name") or "").strip():
        raise BadRequest("full_name cannot be empty.")
    _apply_profile(user, payload)
    db.session.commit()
    return jsonify(user.to_dict())


@auth_bp.route("/logout", methods=["POST"])
@jwt_required()
def logout():
    """Revoke the presented token."""
    jti = get_jwt()["jti"]
    if not RevokedToken.is_revoked(jti):
        db.session.add(RevokedToken(jti=jti))
        db.session.commit()
    return jsonify({"message": "Signed out."})
