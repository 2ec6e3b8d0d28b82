"""Identity helpers and route guards."""

from __future__ import annotations

from functools import wraps

from flask_jwt_extended import get_jwt_identity, verify_jwt_in_request
from werkzeug.exceptions import Forbidden, Unauthorized

from models import db
from models.user import ADMIN_ROLES, User


def get_current_user() -> User | None:
    try:
        identity = get_jwt_identity()
    except RuntimeError:
        return None
    if identity is None:
        return None
    try:
        user_id = int(identity)
    except (TypeError, ValueError):
        return None
    return db.session.get(User, user_id)


def require_user() -> User:
    user = get_current_user()
    if user is None or not user.is_active:
        raise Unauthorized("Account not found or inactive.")
    return user


def roles_required(*roles: str):
    """Require a valid JWT whose user holds one of ``roles``."""

    allowed = set(roles)

    def decorator(view):
        @wraps(view)
        def wrapper(*args, **kwargs):
            verify_jwt_in_request()
            user = require_user()
            if allowed and user.role not in allowed:
                raise Forbidden("Admin privileges required.")
            return view(*args, **kwargs)

        return wrapper

    return decorator


admin_required = roles_required(*ADMIN_ROLES)
