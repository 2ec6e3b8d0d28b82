"""In-app notification model."""

from . import db, isoformat, utcnow


class Notification(db.Model):
    __tablename__ = "notifications"

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=False, index=True)
    title_en = db.Column(db.String(255), nullable=False)
    title_fr = db.Column(db.String(255), nullable=True)
    title_ar = db.Column(db.String(255), nullable=True)
    message_en = db.Column(db.Text, nullable=False)
    message_fr = db.Column(db.Text, nullable=True)
    message_ar = db.Column(db.Text, nullable=True)
    type = db.Column(db.String(64), nullable=False)
    related_application_id = db.Column(
        db.Integer, db.ForeignKey("applications.id"), nullable=True
    )
    is_read = db.Column(db.Boolean, nullable=False, default=False)
    created_at = db.Column(db.DateTime, nullable=False, default=utcnow)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "user_id": self.user_id,
            "title_en": self.title_en,
            "title_fr": self.title_fr,
            "title_ar": self.title_ar,
            "message_en": self.message_en,
            "message_fr": self.message_fr,
            "message_ar": self.message_ar,
            "type": self.type,
            "related_application_id": self.related_application_id,
            "is_read": self.is_read,
            "created_at": isoformat(self.created_at),
        }
