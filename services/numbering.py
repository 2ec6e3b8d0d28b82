"""Human-readable application numbers backed by an atomic per-year counter."""

from __future__ import annotations

from datetime import datetime

from flask import current_app
from sqlalchemy import select, update

from models import Application, ApplicationCounter, db, utcnow

from .errors import DuplicateApplicationNumber

SEQUENCE_WIDTH = 6


def _year_key(now: datetime | None = None) -> str:
    return (now or utcnow()).strftime("%y")


def _increment_counter(year: str) -> int:
    """Increment the counter row for ``year`` and return the new value.

    The increment is a single statement, so the row stays locked by this
    transaction until commit or rollback.
    """

    dialect = db.session.get_bind().dialect.name
    if dialect in ("sqlite", "postgresql"):
        if dialect == "sqlite":
            from sqlalchemy.dialects.sqlite import insert
        else:
            from sqlalchemy.dialects.postgresql import insert

        statement = insert(ApplicationCounter).values(year=year, last_value=1)
        statement = statement.on_conflict_do_update(
            index_elements=["year"],
            set_={"last_value": ApplicationCounter.last_value + 1},
        )
        db.session.execute(statement)
    else:
        row = db.session.execute(
            select(ApplicationCounter.year)
            .where(ApplicationCounter.year == year)
            .with_for_update()
        ).first()
        if row is None:
            db.session.add(ApplicationCounter(year=year, last_value=1))
            db.session.flush()
        else:
            db.session.execute(
                update(ApplicationCounter)
                .where(ApplicationCounter.year == year)
                .values(last_value=ApplicationCounter.last_value + 1)
                .execution_options(synchronize_session=False)
            )

    return db.session.execute(
        select(ApplicationCounter.last_value).where(ApplicationCounter.year == year)
    ).scalar_one()


def format_application_number(prefix: str, year: str, sequence: int) -> str:
    return f"{prefix}{year}{sequence:0{SEQUENCE_WIDTH}d}"


def reserve_application_number(now: datetime | None = None) -> str:
    """Reserve a number not used by any existing application.

    Runs inside the caller's transaction; the reservation becomes durable
    when the caller commits.
    """

    prefix = current_app.config.get("APPLICATION_NUMBER_PREFIX", "VF")
    attempts = int(current_app.config.get("APPLICATION_NUMBER_MAX_ATTEMPTS", 5))
    year = _year_key(now)

    for _ in range(attempts):
        number = format_application_number(prefix, year, _increment_counter(year))
        taken = db.session.execute(
            select(Application.id).where(Application.application_number == number)
        ).first()
        if taken is None:
            return number
        current_app.logger.warning(
            "Application number %s already exists; reserving another", number
        )

    raise DuplicateApplicationNumber(
        f"No free application number after {attempts} attempts.", year=year
    )
