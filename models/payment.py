"""Payment model definition."""

from . import db, isoformat, utcnow


PAYMENT_STATUSES = ("pending", "confirmed", "refunded")


class Payment(db.Model):
    __tablename__ = "payments"

    id = db.Column(db.Integer, primary_key=True)
    application_id = db.Column(
        db.Integer, db.ForeignKey("applications.id"), nullable=False, index=True
    )
    amount = db.Column(db.Integer, nullable=False)
    currency = db.Column(db.String(8), nullable=False)
    payment_method = db.Column(db.String(64), nullable=True)
    payment_reference = db.Column(db.String(255), nullable=True, index=True)
    status = db.Column(
        db.Enum(*PAYMENT_STATUSES, name="payment_status"),
        nullable=False,
        default="pending",
    )
    confirmed_by = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=True)
    confirmed_at = db.Column(db.DateTime, nullable=True)
    notes = db.Column(db.Text, nullable=True)
    created_at = db.Column(db.DateTime, nullable=False, default=utcnow)
    updated_at = db.Column(
        db.DateTime, nullable=False, default=utcnow, onupdate=utcnow
    )

    application = db.relationship("Application", back_populates="payments")

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "application_id": self.application_id,
            "amount": self.amount,
            "currency": self.currency,
            "payment_method": self.payment_method,
            "payment_reference": self.payment_reference,
            "status": self.status,
            "confirmed_by": self.confirmed_by,
            "confirmed_at": isoformat(self.confirmed_at),
            "notes": self.notes,
            "created_at": isoformat(self.created_at),
        }
