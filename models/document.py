"""Document model definition."""

from . import db, isoformat, utcnow


DOCUMENT_STATUSES = ("pending", "approved", "rejected", "reupload_required")


class Document(db.Model):
    """An uploaded file satisfying one requirement of one application."""

    __tablename__ = "documents"
    __table_args__ = (
        db.UniqueConstraint(
            "application_id",
            "document_requirement_id",
            name="uq_documents_application_requirement",
        ),
    )

    id = db.Column(db.Integer, primary_key=True)
    application_id = db.Column(
        db.Integer, db.ForeignKey("applications.id"), nullable=False, index=True
    )
    document_requirement_id = db.Column(
        db.Integer, db.ForeignKey("document_requirements.id"), nullable=False
    )
    file_name = db.Column(db.String(255), nullable=False)
    file_path = db.Column(db.String(512), nullable=False)
    file_size = db.Column(db.Integer, nullable=False, default=0)
    mime_type = db.Column(db.String(128), nullable=False)
    status = db.Column(
        db.Enum(*DOCUMENT_STATUSES, name="document_status"),
        nullable=False,
        default="pending",
        server_default=db.text("'pending'"),
    )
    admin_notes = db.Column(db.Text, nullable=True)
    uploaded_by = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=False)
    verified_by = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=True)
    verified_at = db.Column(db.DateTime, nullable=True)
    created_at = db.Column(db.DateTime, nullable=False, default=utcnow)
    updated_at = db.Column(
        db.DateTime, nullable=False, default=utcnow, onupdate=utcnow
    )

    application = db.relationship("Application", back_populates="documents")
    requirement = db.relationship("DocumentRequirement")

    def __repr__(self) -> str:
        return (
            f"<Document id={self.id} application_id={self.application_id} "
            f"status={self.status}>"
        )

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "application_id": self.application_id,
            "document_requirement_id": self.document_requirement_id,
            "file_name": self.file_name,
            "file_path": self.file_path,
            "file_size": self.file_size,
            "mime_type": self.mime_type,
            "status": self.status,
            "admin_notes": self.admin_notes,
            "uploaded_by": self.uploaded_by,
            "verified_by": self.verified_by,
            "verified_at": isoformat(self.verified_at),
            "created_at": isoformat(self.created_at),
            "updated_at": isoformat(self.updated_at),
        }
