"""Workflow signals.

Receivers are called after the transaction that produced the event has
committed; events of a rolled-back transaction are discarded.
"""

from __future__ import annotations

from blinker import Namespace
from flask import current_app

from models import db

_signals = Namespace()

status_changed = _signals.signal("status-changed")

_PENDING_KEY = "pending_status_events"


def record_status_event(application, old_status: str | None, new_status: str,
                        changed_by: int | None, notes: str | None) -> None:
    db.session.info.setdefault(_PENDING_KEY, []).append(
        {
            "application": application,
            "old_status": old_status,
            "new_status": new_status,
            "changed_by": changed_by,
            "notes": notes,
        }
    )


def discard_pending_events() -> None:
    db.session.info.pop(_PENDING_KEY, None)


def dispatch_pending_events() -> None:
    events = db.session.info.pop(_PENDING_KEY, [])
    sender = current_app._get_current_object()
    for payload in events:
        status_changed.send(sender, **payload)
