"""Application model and the per-year application number counter."""

from sqlalchemy.orm import validates

from . import db, isoformat, utcnow


APPLICANT_DATA_SCHEMA = "applicant.v1"


class Application(db.Model):
    """One user's visa request.

    ``version`` is bumped by SQLAlchemy on every UPDATE and checked in the
    WHERE clause, so concurrent writers surface as ``StaleDataError``.
    """

    __tablename__ = "applications"

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=False, index=True)
    country_id = db.Column(db.Integer, db.ForeignKey("countries.id"), nullable=False)
    visa_type_id = db.Column(
        db.Integer, db.ForeignKey("visa_types.id"), nullable=False, index=True
    )
    application_number = db.Column(db.String(32), unique=True, nullable=False)
    status = db.Column(db.String(64), nullable=False, default="submitted", index=True)
    is_urgent = db.Column(db.Boolean, nullable=False, default=False)
    admin_notes = db.Column(db.Text, nullable=True)
    rejection_reason = db.Column(db.Text, nullable=True)
    applicant_data = db.Column(db.JSON, nullable=False)
    submitted_at = db.Column(db.DateTime, nullable=True)
    payment_confirmed_at = db.Column(db.DateTime, nullable=True)
    completed_at = db.Column(db.DateTime, nullable=True)
    created_at = db.Column(db.DateTime, nullable=False, default=utcnow)
    updated_at = db.Column(
        db.DateTime, nullable=False, default=utcnow, onupdate=utcnow
    )
    version = db.Column(db.Integer, nullable=False, default=1)

    __mapper_args__ = {"version_id_col": version}

    applicant = db.relationship(
        "User", backref=db.backref("applications", lazy="dynamic")
    )
    country = db.relationship("Country")
    visa_type = db.relationship("VisaType")
    documents = db.relationship(
        "Document",
        back_populates="application",
        order_by="Document.id",
    )
    payments = db.relationship(
        "Payment",
        back_populates="application",
        order_by="Payment.id",
    )

    @validates("applicant_data")
    def _freeze_applicant_data(self, key, value):
        if self.applicant_data is not None and value != self.applicant_data:
            raise ValueError("Applicant data is immutable once submitted.")
        return value

    @staticmethod
    def wrap_applicant_data(data: dict) -> dict:
        """Tag a raw applicant payload with its schema version."""

        return {"schema": APPLICANT_DATA_SCHEMA, "data": dict(data)}

    def to_dict(self, include_admin: bool = False) -> dict:
        data = {
            "id": self.id,
            "user_id": self.user_id,
            "country_id": self.country_id,
            "visa_type_id": self.visa_type_id,
            "application_number": self.application_number,
            "status": self.status,
            "is_urgent": self.is_urgent,
            "rejection_reason": self.rejection_reason,
            "applicant_data": self.applicant_data,
            "submitted_at": isoformat(self.submitted_at),
            "payment_confirmed_at": isoformat(self.payment_confirmed_at),
            "completed_at": isoformat(self.completed_at),
            "created_at": isoformat(self.created_at),
            "updated_at": isoformat(self.updated_at),
            "version": self.version,
        }
        if include_admin:
            data["admin_notes"] = self.admin_notes
        return data

    def __repr__(self) -> str:
        return f"<Application {self.application_number} status={self.status}>"


class ApplicationCounter(db.Model):
    """Last issued application sequence value for a two-digit year."""

    __tablename__ = "application_counters"

    year = db.Column(db.String(2), primary_key=True)
    last_value = db.Column(db.Integer, nullable=False, default=0)
