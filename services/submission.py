"""Final step of the application wizard: create the application and its documents."""

from __future__ import annotations

from flask import current_app
from sqlalchemy.exc import IntegrityError
from werkzeug.datastructures import FileStorage
from werkzeug.exceptions import BadRequest, NotFound

from models import Application, Country, Document, StatusLog, User, VisaType, db, utcnow
from storage import get_storage
from utils.uploads import document_path, validate_upload

from .documents import UploadBatch
from .errors import DocumentsIncomplete, DuplicateApplicationNumber
from .events import record_status_event
from .numbering import reserve_application_number
from .status_flow import INITIAL_STATUS
from .workflow import unit_of_work


def _load_catalog_entry(country_id: int, visa_type_id: int) -> tuple[Country, VisaType]:
    country = db.session.get(Country, country_id)
    if country is None or not country.is_active:
        raise NotFound("Country not found.")
    visa_type = db.session.get(VisaType, visa_type_id)
    if visa_type is None or not visa_type.is_active or visa_type.country_id != country.id:
        raise NotFound("Visa type not found for this country.")
    return country, visa_type


def submit_application(
    user: User,
    country_id: int,
    visa_type_id: int,
    applicant_data: dict,
    files: dict[int, FileStorage],
) -> Application:
    """Create an application in the initial status with all of its documents.

    ``applicant_data`` must already be field-validated. The number
    reservation, the application, its first log entry and the document rows
    commit together; stored files are removed if anything fails.
    """

    country, visa_type = _load_catalog_entry(country_id, visa_type_id)
    requirements = {requirement.id: requirement for requirement in visa_type.document_requirements}

    unknown = sorted(set(files) - set(requirements))
    if unknown:
        raise BadRequest(
            "Files were sent for unknown requirements: {}.".format(
                ", ".join(str(requirement_id) for requirement_id in unknown)
            )
        )
    missing = [
        requirement.id
        for requirement in visa_type.document_requirements
        if requirement.is_required and requirement.id not in files
    ]
    if missing:
        raise DocumentsIncomplete(missing_requirement_ids=missing)

    checked = {
        requirement_id: validate_upload(file) for requirement_id, file in files.items()
    }

    with UploadBatch(get_storage()) as batch, unit_of_work(
        f"Submission by user {user.id}"
    ):
        now = utcnow()
        application = Application(
            user_id=user.id,
            country_id=country.id,
            visa_type_id=visa_type.id,
            application_number=reserve_application_number(now),
            status=INITIAL_STATUS,
            applicant_data=Application.wrap_applicant_data(applicant_data),
            submitted_at=now,
        )
        db.session.add(application)
        try:
            db.session.flush()
        except IntegrityError as exc:
            raise DuplicateApplicationNumber(
                f"Application number {application.application_number} is already taken."
            ) from exc

        notes = "Application submitted by user"
        db.session.add(
            StatusLog(
                application_id=application.id,
                old_status=None,
                new_status=INITIAL_STATUS,
                changed_by=user.id,
                notes=notes,
                created_at=now,
            )
        )
        record_status_event(application, None, INITIAL_STATUS, user.id, notes)

        for requirement_id, file in files.items():
            extension, size = checked[requirement_id]
            stored = batch.store(
                file, document_path(application.id, requirement_id, extension)
            )
            db.session.add(
                Document(
                    application_id=application.id,
                    document_requirement_id=requirement_id,
                    file_name=file.filename or stored,
                    file_path=stored,
                    file_size=size,
                    mime_type=file.mimetype or "application/octet-stream",
                    status="pending",
                    uploaded_by=user.id,
                )
            )

    current_app.logger.info(
        "Application %s submitted by user %s with %d documents",
        application.application_number,
        user.id,
        len(files),
    )
    return application
