"""VisaType model definition."""

from . import db, isoformat, utcnow


class VisaType(db.Model):
    """A country-scoped visa product with its checklist and status flow.

    ``submission_steps`` holds ``{step_number, title_*, description_*}``
    entries and ``status_flow`` holds ``{status, name_*, order}`` entries,
    both stored in declared order.
    """

    __tablename__ = "visa_types"
    __table_args__ = (
        db.UniqueConstraint("country_id", "code", name="uq_visa_types_country_code"),
    )

    id = db.Column(db.Integer, primary_key=True)
    country_id = db.Column(
        db.Integer, db.ForeignKey("countries.id"), nullable=False, index=True
    )
    code = db.Column(db.String(64), nullable=False)
    name_en = db.Column(db.String(120), nullable=False)
    name_fr = db.Column(db.String(120), nullable=False)
    name_ar = db.Column(db.String(120), nullable=False)
    description_en = db.Column(db.Text, nullable=True)
    description_fr = db.Column(db.Text, nullable=True)
    description_ar = db.Column(db.Text, nullable=True)
    base_fee = db.Column(db.Integer, nullable=False, default=0)
    processing_time_days = db.Column(db.Integer, nullable=False, default=0)
    is_active = db.Column(db.Boolean, nullable=False, default=True)
    requirements = db.Column(db.JSON, nullable=False, default=dict)
    submission_steps = db.Column(db.JSON, nullable=False, default=list)
    status_flow = db.Column(db.JSON, nullable=False, default=list)
    validation_rules = db.Column(db.JSON, nullable=False, default=dict)
    helper_notes_en = db.Column(db.Text, nullable=True)
    helper_notes_fr = db.Column(db.Text, nullable=True)
    helper_notes_ar = db.Column(db.Text, nullable=True)
    created_at = db.Column(db.DateTime, nullable=False, default=utcnow)
    updated_at = db.Column(
        db.DateTime, nullable=False, default=utcnow, onupdate=utcnow
    )

    country = db.relationship("Country", back_populates="visa_types")
    document_requirements = db.relationship(
        "DocumentRequirement",
        back_populates="visa_type",
        order_by="DocumentRequirement.order_index",
        cascade="all, delete-orphan",
    )

    def to_dict(self, include_admin: bool = False) -> dict:
        data = {
            "id": self.id,
            "country_id": self.country_id,
            "code": self.code,
            "name_en": self.name_en,
            "name_fr": self.name_fr,
            "name_ar": self.name_ar,
            "description_en": self.description_en,
            "description_fr": self.description_fr,
            "description_ar": self.description_ar,
            "base_fee": self.base_fee,
            "processing_time_days": self.processing_time_days,
            "is_active": self.is_active,
            "status_flow": list(self.status_flow or []),
            "created_at": isoformat(self.created_at),
            "updated_at": isoformat(self.updated_at),
        }
        if include_admin:
            data.update(
                {
                    "requirements": self.requirements or {},
                    "submission_steps": list(self.submission_steps or []),
                    "validation_rules": self.validation_rules or {},
                    "helper_notes_en": self.helper_notes_en,
                    "helper_notes_fr": self.helper_notes_fr,
                    "helper_notes_ar": self.helper_notes_ar,
                }
            )
        return data

    def __repr__(self) -> str:
        return f"<VisaType {self.code} country_id={self.country_id}>"
