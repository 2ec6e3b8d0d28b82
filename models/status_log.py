"""Append-only status history for applications."""

from sqlalchemy import event

from . import db, isoformat, utcnow


class StatusLog(db.Model):
    """One status transition of one application.

    Rows are written once; the ORM refuses updates and deletes.
    """

    __tablename__ = "status_logs"

    id = db.Column(db.Integer, primary_key=True)
    application_id = db.Column(
        db.Integer, db.ForeignKey("applications.id"), nullable=False, index=True
    )
    old_status = db.Column(db.String(64), nullable=True)
    new_status = db.Column(db.String(64), nullable=False)
    changed_by = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=True)
    notes = db.Column(db.Text, nullable=True)
    created_at = db.Column(db.DateTime, nullable=False, default=utcnow)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "application_id": self.application_id,
            "old_status": self.old_status,
            "new_status": self.new_status,
            "changed_by": self.changed_by,
            "notes": self.notes,
            "created_at": isoformat(self.created_at),
        }


@event.listens_for(StatusLog, "before_update")
def _reject_update(mapper, connection, target):
    raise RuntimeError("Status log entries are append-only.")


@event.listens_for(StatusLog, "before_delete")
def _reject_delete(mapper, connection, target):
    raise RuntimeError("Status log entries are append-only.")
