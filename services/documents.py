"""Document storage batches, re-uploads and administrative review."""

from __future__ import annotations

from flask import current_app
from werkzeug.datastructures import FileStorage
from werkzeug.exceptions import BadRequest, Conflict

from models import Application, Document, DocumentRequirement, User, db, utcnow
from storage import AbstractStorage, StorageError, get_storage
from utils.uploads import document_path, validate_upload

from .errors import UploadFailure
from .status_flow import terminal_statuses
from .workflow import unit_of_work

REVIEW_STATUSES = ("approved", "rejected", "reupload_required")


class UploadBatch:
    """Files stored through the batch are deleted again if the block fails."""

    def __init__(self, storage: AbstractStorage):
        self.storage = storage
        self.paths: list[str] = []

    def __enter__(self) -> "UploadBatch":
        return self

    def __exit__(self, exc_type, exc, tb) -> bool:
        if exc_type is not None:
            self.rollback()
        return False

    def store(self, file: FileStorage, path: str, *, track: bool = True) -> str:
        try:
            stored = self.storage.save(file, path)
        except (StorageError, OSError) as exc:
            raise UploadFailure(
                f"Could not store {file.filename or path}.", path=path
            ) from exc
        if track:
            self.paths.append(stored)
        return stored

    def rollback(self) -> None:
        while self.paths:
            path = self.paths.pop()
            try:
                self.storage.delete(path)
            except StorageError:
                current_app.logger.exception("Could not remove %s during rollback", path)


def replace_document(
    application: Application,
    requirement: DocumentRequirement,
    file: FileStorage,
    user: User,
) -> Document:
    """Store a new file for ``requirement`` and reset its review state."""

    if requirement.visa_type_id != application.visa_type_id:
        raise BadRequest("Requirement does not belong to this application's visa type.")
    if application.status in terminal_statuses(application.visa_type.status_flow or []):
        raise Conflict("Documents can no longer be changed for this application.")

    extension, size = validate_upload(file)
    path = document_path(application.id, requirement.id, extension)
    document = Document.query.filter_by(
        application_id=application.id, document_requirement_id=requirement.id
    ).first()
    old_path = document.file_path if document is not None else None

    storage = get_storage()
    with UploadBatch(storage) as batch, unit_of_work(
        f"Re-upload for application {application.id}"
    ):
        stored = batch.store(file, path, track=path != old_path)
        if document is None:
            document = Document(
                application_id=application.id,
                document_requirement_id=requirement.id,
                uploaded_by=user.id,
            )
            db.session.add(document)
        document.file_name = file.filename or path
        document.file_path = stored
        document.file_size = size
        document.mime_type = file.mimetype or "application/octet-stream"
        document.status = "pending"
        document.admin_notes = None
        document.uploaded_by = user.id
        document.verified_by = None
        document.verified_at = None

    if old_path and old_path != stored:
        try:
            storage.delete(old_path)
        except StorageError:
            current_app.logger.exception("Could not remove replaced file %s", old_path)

    current_app.logger.info(
        "Document for requirement %s of application %s replaced",
        requirement.id,
        application.application_number,
    )
    return document


def review_document(
    document: Document,
    reviewer: User,
    status: str,
    notes: str | None = None,
) -> Document:
    if status not in REVIEW_STATUSES:
        raise BadRequest(
            "status must be one of: {}.".format(", ".join(REVIEW_STATUSES))
        )

    with unit_of_work(f"Review of document {document.id}"):
        document.status = status
        document.admin_notes = notes
        document.verified_by = reviewer.id
        document.verified_at = utcnow()

    current_app.logger.info(
        "Document %s marked %s by %s", document.id, status, reviewer.id
    )
    return document
