"""Database initialization and model exports."""

from datetime import UTC, datetime

from flask_sqlalchemy import SQLAlchemy


db = SQLAlchemy()


def utcnow() -> datetime:
    """Return the current UTC time as a naive datetime."""

    return datetime.now(UTC).replace(tzinfo=None)


def isoformat(value: datetime | None) -> str | None:
    return value.isoformat() if value else None


# Import models to register them with SQLAlchemy metadata.
from .user import User  # noqa: E402,F401
from .revoked_token import RevokedToken  # noqa: E402,F401
from .country import Country  # noqa: E402,F401
from .visa_type import VisaType  # noqa: E402,F401
from .document_requirement import DocumentRequirement  # noqa: E402,F401
from .application import Application, ApplicationCounter  # noqa: E402,F401
from .document import Document  # noqa: E402,F401
from .payment import Payment  # noqa: E402,F401
from .status_log import StatusLog  # noqa: E402,F401
from .notification import Notification  # noqa: E402,F401

__all__ = [
    "db",
    "utcnow",
    "User",
    "RevokedToken",
    "Country",
    "VisaType",
    "DocumentRequirement",
    "Application",
    "ApplicationCounter",
    "Document",
    "Payment",
    "StatusLog",
    "Notification",
]
