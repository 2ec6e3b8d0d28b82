"""Workflow engine: guarded status transitions with an atomic audit trail."""

from __future__ import annotations

from contextlib import contextmanager
from typing import Iterator

from flask import current_app
from sqlalchemy.orm.exc import StaleDataError
from werkzeug.exceptions import HTTPException

from models import Application, StatusLog, db, utcnow

from .errors import DocumentsIncomplete, StaleWrite
from .events import discard_pending_events, dispatch_pending_events, record_status_event
from .readiness import check_readiness
from .status_flow import (
    CHECKPOINT_STATUS,
    EXIT_STATUSES,
    PAYMENT_CONFIRMED_STATUS,
    check_transition,
    flow_orders,
    terminal_statuses,
)


@contextmanager
def unit_of_work(action: str) -> Iterator[None]:
    """Commit everything done inside the block, or roll all of it back."""

    try:
        yield
        db.session.commit()
    except StaleDataError as exc:
        db.session.rollback()
        discard_pending_events()
        current_app.logger.warning("%s rejected: concurrent modification", action)
        raise StaleWrite() from exc
    except HTTPException as exc:
        db.session.rollback()
        discard_pending_events()
        current_app.logger.warning("%s rejected: %s", action, exc.description)
        raise
    except Exception:
        db.session.rollback()
        discard_pending_events()
        current_app.logger.exception("%s failed; transaction rolled back", action)
        raise

    dispatch_pending_events()


def ensure_version(application: Application, expected_version: int | None) -> None:
    if expected_version is not None and expected_version != application.version:
        raise StaleWrite(
            f"Application {application.application_number} is at version "
            f"{application.version}, not {expected_version}.",
            current_version=application.version,
        )


def _requires_documents(new_status: str, flow: list[dict]) -> bool:
    if new_status in EXIT_STATUSES:
        return False
    orders = flow_orders(flow)
    checkpoint = orders.get(CHECKPOINT_STATUS)
    return checkpoint is not None and orders[new_status] >= checkpoint


def apply_transition(
    application: Application,
    new_status: str,
    actor_id: int | None,
    notes: str | None = None,
    override: bool = False,
    expected_version: int | None = None,
) -> StatusLog:
    """Move ``application`` to ``new_status`` and append its log entry.

    Does not commit; callers wrap this in ``unit_of_work`` so the status
    field and the log entry are written in the same transaction.
    """

    ensure_version(application, expected_version)

    flow = application.visa_type.status_flow or []
    old_status = application.status
    check_transition(old_status, new_status, flow, override=override)

    if new_status != old_status and _requires_documents(new_status, flow):
        readiness = check_readiness(application)
        if not readiness.ready:
            raise DocumentsIncomplete(
                "Required documents are missing for "
                f"application {application.application_number}.",
                missing_requirement_ids=readiness.unmet,
            )

    now = utcnow()
    application.status = new_status
    application.updated_at = now
    if new_status == PAYMENT_CONFIRMED_STATUS and application.payment_confirmed_at is None:
        application.payment_confirmed_at = now
    # Leaving a terminal status by override clears its outcome fields.
    application.completed_at = now if new_status in terminal_statuses(flow) else None
    application.rejection_reason = notes if new_status == "rejected" else None

    log = StatusLog(
        application_id=application.id,
        old_status=old_status,
        new_status=new_status,
        changed_by=actor_id,
        notes=notes or f"Status updated to {new_status}",
        created_at=now,
    )
    db.session.add(log)
    db.session.flush()

    record_status_event(application, old_status, new_status, actor_id, log.notes)
    current_app.logger.info(
        "Application %s: %s -> %s by %s",
        application.application_number,
        old_status,
        new_status,
        actor_id if actor_id is not None else "system",
    )
    return log


def change_status(
    application: Application,
    new_status: str,
    actor_id: int | None,
    notes: str | None = None,
    override: bool = False,
    expected_version: int | None = None,
) -> StatusLog:
    with unit_of_work(f"Status change for application {application.id}"):
        log = apply_transition(
            application,
            new_status,
            actor_id,
            notes=notes,
            override=override,
            expected_version=expected_version,
        )
    return log


def update_admin_fields(
    application: Application,
    *,
    admin_notes: str | None = None,
    is_urgent: bool | None = None,
    expected_version: int | None = None,
) -> Application:
    """Edit the notes and urgency flag under the same version check."""

    with unit_of_work(f"Admin edit of application {application.id}"):
        ensure_version(application, expected_version)
        if admin_notes is not None:
            application.admin_notes = admin_notes
        if is_urgent is not None:
            application.is_urgent = is_urgent
        application.updated_at = utcnow()
    return application
