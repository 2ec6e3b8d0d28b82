"""Tests for application number reservation."""

from __future__ import annotations

from concurrent.futures import ThreadPoolExecutor
from datetime import datetime

import pytest

from app import create_app
from conftest import _BaseTestConfig
from models import Application, ApplicationCounter, db
from services.errors import DuplicateApplicationNumber
from services.numbering import format_application_number, reserve_application_number


def test_number_format():
    assert format_application_number("VF", "26", 123) == "VF26000123"


def test_numbers_increase_within_a_year(app):
    now = datetime(2026, 3, 1)
    with app.app_context():
        first = reserve_application_number(now)
        second = reserve_application_number(now)
        db.session.commit()

        assert (first, second) == ("VF26000001", "VF26000002")
        assert db.session.get(ApplicationCounter, "26").last_value == 2


def test_counter_is_per_year(app):
    with app.app_context():
        assert reserve_application_number(datetime(2026, 12, 31)) == "VF26000001"
        assert reserve_application_number(datetime(2027, 1, 1)) == "VF27000001"


def test_existing_number_is_skipped(app, make_application, applicant, catalog):
    application_id = make_application(applicant, catalog.visa_type_id)

    with app.app_context():
        taken = db.session.get(Application, application_id).application_number
        year = taken[2:4]
        # Rewind the counter so the next value collides with the stored number.
        db.session.get(ApplicationCounter, year).last_value = 0
        db.session.commit()

        number = reserve_application_number()

        assert number != taken
        assert number.endswith("000002")


def test_gives_up_after_max_attempts(app, make_application, applicant, catalog):
    for _ in range(2):
        make_application(applicant, catalog.visa_type_id)
    app.config["APPLICATION_NUMBER_MAX_ATTEMPTS"] = 2

    with app.app_context():
        counter = ApplicationCounter.query.one()
        counter.last_value = 0
        db.session.commit()

        with pytest.raises(DuplicateApplicationNumber) as excinfo:
            reserve_application_number()
        assert excinfo.value.retryable is True


def test_concurrent_reservations_are_distinct(tmp_path):
    class FileConfig(_BaseTestConfig):
        SQLALCHEMY_DATABASE_URI = f"sqlite:///{tmp_path / 'numbers.db'}"
        UPLOAD_DIR = str(tmp_path / "uploads")

    app = create_app(FileConfig)
    with app.app_context():
        db.create_all()

    now = datetime(2026, 6, 1)

    def _reserve(_):
        with app.app_context():
            number = reserve_application_number(now)
            db.session.commit()
            return number

    with ThreadPoolExecutor(max_workers=8) as pool:
        numbers = list(pool.map(_reserve, range(100)))

    assert len(set(numbers)) == 100
    assert sorted(numbers) == [format_application_number("VF", "26", n) for n in range(1, 101)]

    with app.app_context():
        assert db.session.get(ApplicationCounter, "26").last_value == 100
        db.session.remove()
        db.drop_all()
