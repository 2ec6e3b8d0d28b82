"""Shared pytest fixtures for the application tests."""

from __future__ import annotations

import sys
from io import BytesIO
from pathlib import Path
from types import SimpleNamespace

import pytest
from flask import Flask
from flask.testing import FlaskClient
from flask_jwt_extended import create_access_token

ROOT_DIR = Path(__file__).resolve().parent.parent
if str(ROOT_DIR) not in sys.path:
    sys.path.insert(0, str(ROOT_DIR))

from app import create_app  # noqa: E402
from config import Config  # noqa: E402
from models import (  # noqa: E402
    Application,
    Country,
    Document,
    DocumentRequirement,
    StatusLog,
    User,
    VisaType,
    db,
)
from services.numbering import reserve_application_number  # noqa: E402


def flow(*statuses: str) -> list[dict]:
    """Build a status flow with English names and orders 1..n."""

    return [
        {
            "status": status,
            "name_en": status.replace("_", " ").title(),
            "name_fr": status,
            "name_ar": status,
            "order": index,
        }
        for index, status in enumerate(statuses, start=1)
    ]


EVISA_FLOW = flow(
    "submitted",
    "awaiting_payment",
    "payment_confirmed",
    "processing",
    "documents_prepared",
    "submitted_to_embassy",
    "approved",
)

APPLICANT = {
    "firstName": "Amina",
    "lastName": "Benali",
    "passportNumber": "A1234567",
    "nationality": "DZ",
    "dateOfBirth": "1990-04-12",
    "gender": "female",
    "phone": "+213555000111",
    "email": "amina@example.com",
    "travelDate": "2026-12-01",
    "returnDate": "2026-12-15",
    "address": "12 Rue Didouche Mourad, Alger",
}


class _BaseTestConfig(Config):
    TESTING = True
    SQLALCHEMY_DATABASE_URI = "sqlite:///:memory:"
    SQLALCHEMY_TRACK_MODIFICATIONS = False
    RATE_LIMIT = "1000 per minute"
    STRIPE_SECRET_KEY = "sk_test"
    STRIPE_WEBHOOK_SECRET = "whsec_test"
    BILLING_SUCCESS_URL = "https://example.com/success"
    BILLING_CANCEL_URL = "https://example.com/cancel"


@pytest.fixture()
def app(tmp_path) -> Flask:
    """Create a Flask application instance for tests."""

    upload_dir = tmp_path / "uploads"

    class TestConfig(_BaseTestConfig):
        UPLOAD_DIR = str(upload_dir)

    application = create_app(TestConfig)

    with application.app_context():
        db.create_all()

    yield application

    with application.app_context():
        db.session.remove()
        db.drop_all()


@pytest.fixture()
def client(app: Flask) -> FlaskClient:
    """Return a test client for the Flask app."""

    return app.test_client()


@pytest.fixture()
def db_session(app: Flask):
    """Database session bound to an application context for the test body."""

    with app.app_context():
        yield db.session


@pytest.fixture()
def make_user(app: Flask):
    def _make_user(
        email: str,
        role: str = "user",
        password: str = "Passw0rd!",
        full_name: str = "Test User",
    ) -> int:
        with app.app_context():
            user = User(email=email, role=role, full_name=full_name)
            user.set_password(password)
            db.session.add(user)
            db.session.commit()
            return user.id

    return _make_user


@pytest.fixture()
def auth_headers(app: Flask):
    def _auth_headers(user_id: int) -> dict[str, str]:
        with app.app_context():
            token = create_access_token(identity=str(user_id))
        return {"Authorization": f"Bearer {token}"}

    return _auth_headers


@pytest.fixture()
def applicant(make_user) -> int:
    return make_user("applicant@example.com", full_name="Amina Benali")


@pytest.fixture()
def admin(make_user) -> int:
    return make_user("admin@example.com", role="admin", full_name="Desk Admin")


@pytest.fixture()
def super_admin(make_user) -> int:
    return make_user("root@example.com", role="super_admin", full_name="Root Admin")


@pytest.fixture()
def catalog(app: Flask) -> SimpleNamespace:
    """Indonesia with an eVisa: passport and photo required, flight optional."""

    with app.app_context():
        country = Country(
            code="ID", name_en="Indonesia", name_fr="Indonésie", name_ar="إندونيسيا"
        )
        visa_type = VisaType(
            country=country,
            code="evisa",
            name_en="eVisa",
            name_fr="eVisa",
            name_ar="تأشيرة إلكترونية",
            base_fee=8000,
            status_flow=EVISA_FLOW,
            submission_steps=[],
            requirements={},
            validation_rules={},
        )
        requirements = [
            DocumentRequirement(
                visa_type=visa_type,
                document_type=document_type,
                name_en=name,
                name_fr=name,
                name_ar=name,
                is_required=required,
                order_index=index,
                validation_rules={},
            )
            for index, (document_type, name, required) in enumerate(
                [
                    ("passport", "Passport Copy", True),
                    ("photo", "Personal Photo", True),
                    ("flight_booking", "Flight Tickets", False),
                ],
                start=1,
            )
        ]
        db.session.add_all([country, visa_type, *requirements])
        db.session.commit()
        return SimpleNamespace(
            country_id=country.id,
            visa_type_id=visa_type.id,
            passport_id=requirements[0].id,
            photo_id=requirements[1].id,
            flight_id=requirements[2].id,
        )


@pytest.fixture()
def make_application(app: Flask):
    """Insert an application directly, with optional documents.

    ``documents`` maps requirement ids to document statuses.
    """

    def _make_application(
        user_id: int,
        visa_type_id: int,
        status: str = "submitted",
        documents: dict[int, str] | None = None,
    ) -> int:
        with app.app_context():
            visa_type = db.session.get(VisaType, visa_type_id)
            application = Application(
                user_id=user_id,
                country_id=visa_type.country_id,
                visa_type_id=visa_type.id,
                application_number=reserve_application_number(),
                status=status,
                applicant_data=Application.wrap_applicant_data(APPLICANT),
            )
            db.session.add(application)
            db.session.flush()
            db.session.add(
                StatusLog(
                    application_id=application.id,
                    old_status=None,
                    new_status=status,
                    changed_by=user_id,
                    notes="Application submitted by user",
                )
            )
            for requirement_id, document_status in (documents or {}).items():
                db.session.add(
                    Document(
                        application_id=application.id,
                        document_requirement_id=requirement_id,
                        file_name=f"{requirement_id}.pdf",
                        file_path=f"applications/{application.id}/{requirement_id}.pdf",
                        file_size=10,
                        mime_type="application/pdf",
                        status=document_status,
                        uploaded_by=user_id,
                    )
                )
            db.session.commit()
            return application.id

    return _make_application


def pdf_upload(name: str = "document.pdf", content: bytes = b"%PDF-1.4 test") -> tuple:
    return (BytesIO(content), name)


@pytest.fixture()
def upload():
    """Return a factory for multipart file tuples."""

    return pdf_upload
