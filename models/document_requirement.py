"""DocumentRequirement model definition."""

from . import db, isoformat, utcnow


class DocumentRequirement(db.Model):
    """A document that a visa type asks applicants to upload."""

    __tablename__ = "document_requirements"
    __table_args__ = (
        db.UniqueConstraint(
            "visa_type_id", "order_index", name="uq_document_requirements_order"
        ),
    )

    id = db.Column(db.Integer, primary_key=True)
    visa_type_id = db.Column(
        db.Integer, db.ForeignKey("visa_types.id"), nullable=False, index=True
    )
    document_type = db.Column(db.String(64), nullable=False)
    name_en = db.Column(db.String(160), nullable=False)
    name_fr = db.Column(db.String(160), nullable=False)
    name_ar = db.Column(db.String(160), nullable=False)
    description_en = db.Column(db.Text, nullable=True)
    description_fr = db.Column(db.Text, nullable=True)
    description_ar = db.Column(db.Text, nullable=True)
    is_required = db.Column(db.Boolean, nullable=False, default=True)
    validation_rules = db.Column(db.JSON, nullable=False, default=dict)
    order_index = db.Column(db.Integer, nullable=False)
    created_at = db.Column(db.DateTime, nullable=False, default=utcnow)
    updated_at = db.Column(
        db.DateTime, nullable=False, default=utcnow, onupdate=utcnow
    )

    visa_type = db.relationship("VisaType", back_populates="document_requirements")

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "visa_type_id": self.visa_type_id,
            "document_type": self.document_type,
            "name_en": self.name_en,
            "name_fr": self.name_fr,
            "name_ar": self.name_ar,
            "description_en": self.description_en,
            "description_fr": self.description_fr,
            "description_ar": self.description_ar,
            "is_required": self.is_required,
            "validation_rules": self.validation_rules or {},
            "order_index": self.order_index,
            "created_at": isoformat(self.created_at),
        }
