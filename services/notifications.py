"""In-app notifier subscribed to workflow status changes."""

from __future__ import annotations

from flask import Flask, current_app
from sqlalchemy.exc import SQLAlchemyError

from models import Application, Notification, db

from .events import status_changed


def _status_names(application: Application, status: str) -> dict[str, str]:
    for step in application.visa_type.status_flow or []:
        if step.get("status") == status:
            return {locale: step.get(f"name_{locale}") or status for locale in ("en", "fr", "ar")}
    label = status.replace("_", " ")
    return {"en": label, "fr": label, "ar": label}


def build_status_notification(application: Application, new_status: str) -> Notification:
    names = _status_names(application, new_status)
    number = application.application_number
    return Notification(
        user_id=application.user_id,
        title_en="Application update",
        title_fr="Mise à jour de votre demande",
        title_ar="تحديث الطلب",
        message_en=f"Application {number} is now: {names['en']}.",
        message_fr=f"La demande {number} est maintenant : {names['fr']}.",
        message_ar=f"الطلب {number} الآن: {names['ar']}.",
        type="status_change",
        related_application_id=application.id,
    )


def notify_applicant(sender, application: Application, new_status: str, **extra) -> None:
    """Store a notification for the applicant; failures never reach the caller."""

    try:
        db.session.add(build_status_notification(application, new_status))
        db.session.commit()
    except SQLAlchemyError:
        db.session.rollback()
        current_app.logger.exception(
            "Could not store status notification for application %s", application.id
        )


def register_notifier(app: Flask) -> None:
    status_changed.connect(notify_applicant, sender=app)
