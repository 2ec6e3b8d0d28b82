"""Country model definition."""

from . import db, isoformat, utcnow


class Country(db.Model):
    """A visa destination. Countries are deactivated, never deleted."""

    __tablename__ = "countries"

    id = db.Column(db.Integer, primary_key=True)
    code = db.Column(db.String(8), unique=True, nullable=False)
    name_en = db.Column(db.String(120), nullable=False)
    name_fr = db.Column(db.String(120), nullable=False)
    name_ar = db.Column(db.String(120), nullable=False)
    flag_emoji = db.Column(db.String(16), nullable=True)
    is_active = db.Column(db.Boolean, nullable=False, default=True)
    processing_time_days = db.Column(db.Integer, nullable=False, default=0)
    portal_link = db.Column(db.String(512), nullable=True)
    admin_instructions_en = db.Column(db.Text, nullable=True)
    admin_instructions_fr = db.Column(db.Text, nullable=True)
    admin_instructions_ar = db.Column(db.Text, nullable=True)
    created_at = db.Column(db.DateTime, nullable=False, default=utcnow)
    updated_at = db.Column(
        db.DateTime, nullable=False, default=utcnow, onupdate=utcnow
    )

    visa_types = db.relationship(
        "VisaType",
        back_populates="country",
        lazy="dynamic",
    )

    def to_dict(self, include_admin: bool = False) -> dict:
        data = {
            "id": self.id,
            "code": self.code,
            "name_en": self.name_en,
            "name_fr": self.name_fr,
            "name_ar": self.name_ar,
            "flag_emoji": self.flag_emoji,
            "is_active": self.is_active,
            "processing_time_days": self.processing_time_days,
            "created_at": isoformat(self.created_at),
            "updated_at": isoformat(self.updated_at),
        }
        if include_admin:
            data.update(
                {
                    "portal_link": self.portal_link,
                    "admin_instructions_en": self.admin_instructions_en,
                    "admin_instructions_fr": self.admin_instructions_fr,
                    "admin_instructions_ar": self.admin_instructions_ar,
                }
            )
        return data

    def __repr__(self) -> str:
        return f"<Country {self.code}>"
