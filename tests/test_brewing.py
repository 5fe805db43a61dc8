import os
import sys
from datetime import date, timedelta
from pathlib import Path

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

os.environ.setdefault("DATA_DIR", str(ROOT / "data"))

from beanbook.db.session import Base
from beanbook.core.errors import InvalidTransitionError
from beanbook.crud.beans import create_bean
from beanbook.crud.brewing import (
    check_transition,
    create_schedule_entry,
    list_schedule,
    reopen_schedule_entry,
    schedule_stats,
    set_schedule_status,
    upcoming_schedule,
    update_schedule_entry,
)

# Ensure models are imported so metadata is populated
from beanbook import models as _models  # noqa: F401

TODAY = date(2024, 8, 1)


@pytest.fixture()
def db_session():
    engine = create_engine("sqlite://", connect_args={"check_same_thread": False})
    TestingSessionLocal = sessionmaker(bind=engine, autocommit=False, autoflush=False)
    Base.metadata.create_all(bind=engine)
    session = TestingSessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture()
def bean(db_session):
    return create_bean(db_session, {"name": "Gesha", "origin": "Panama"}, owner="default")


def _entry(db, bean, days=0, **extra):
    payload = {"coffee_bean_id": bean.id, "scheduled_date": TODAY + timedelta(days=days), **extra}
    return create_schedule_entry(db, payload)


def test_new_entries_start_planned(db_session, bean):
    entry = _entry(db_session, bean, scheduled_time="7:30", brew_method="Aeropress")

    assert entry.status == "planned"
    assert entry.completed_at is None
    assert entry.scheduled_time == "07:30"
    assert entry.coffee_bean_name == "Gesha"


def test_completing_stamps_completed_at_once(db_session, bean):
    entry = _entry(db_session, bean)

    set_schedule_status(db_session, entry, "completed")
    stamped = entry.completed_at
    assert entry.status == "completed"
    assert stamped is not None

    set_schedule_status(db_session, entry, "completed")
    assert entry.completed_at == stamped


def test_completed_is_terminal(db_session, bean):
    entry = _entry(db_session, bean)
    set_schedule_status(db_session, entry, "completed")

    for target in ("planned", "cancelled", "skipped"):
        with pytest.raises(InvalidTransitionError):
            set_schedule_status(db_session, entry, target)
    with pytest.raises(InvalidTransitionError):
        reopen_schedule_entry(db_session, entry)
    assert entry.status == "completed"


def test_cancelled_needs_reopen_to_be_planned_again(db_session, bean):
    entry = _entry(db_session, bean)
    set_schedule_status(db_session, entry, "cancelled")

    with pytest.raises(InvalidTransitionError):
        set_schedule_status(db_session, entry, "planned")
    with pytest.raises(InvalidTransitionError):
        set_schedule_status(db_session, entry, "completed")

    reopen_schedule_entry(db_session, entry)
    assert entry.status == "planned"

    set_schedule_status(db_session, entry, "skipped")
    reopen_schedule_entry(db_session, entry)
    set_schedule_status(db_session, entry, "completed")
    assert entry.status == "completed"


def test_reopen_rejects_planned_entries(db_session, bean):
    entry = _entry(db_session, bean)

    with pytest.raises(InvalidTransitionError):
        reopen_schedule_entry(db_session, entry)


def test_update_routes_status_through_transition_table(db_session, bean):
    entry = _entry(db_session, bean)

    update_schedule_entry(db_session, entry, {"notes": " finer grind ", "status": "completed"})
    assert entry.notes == "finer grind"
    assert entry.completed_at is not None

    with pytest.raises(InvalidTransitionError):
        update_schedule_entry(db_session, entry, {"status": "planned"})


def test_unknown_status_and_bad_fields_are_validation_errors(db_session, bean):
    with pytest.raises(ValueError):
        check_transition("planned", "brewing")
    with pytest.raises(ValueError):
        _entry(db_session, bean, scheduled_time="25:00")
    with pytest.raises(ValueError):
        _entry(db_session, bean, water_temp=250)
    with pytest.raises(ValueError):
        _entry(db_session, bean, status="done")


def test_listing_upcoming_and_stats(db_session, bean):
    past = _entry(db_session, bean, days=-1)
    later = _entry(db_session, bean, days=2, scheduled_time="09:00")
    early_today = _entry(db_session, bean, days=0, scheduled_time="06:15")
    late_today = _entry(db_session, bean, days=0, scheduled_time="18:00")
    skipped = _entry(db_session, bean, days=1)
    set_schedule_status(db_session, skipped, "skipped")
    set_schedule_status(db_session, past, "completed")

    listed = list_schedule(db_session)
    assert [entry.id for entry in listed] == [past.id, early_today.id, late_today.id, skipped.id, later.id]
    assert [entry.id for entry in list_schedule(db_session, on_date=TODAY)] == [early_today.id, late_today.id]
    assert [entry.id for entry in list_schedule(db_session, status="skipped")] == [skipped.id]

    upcoming = upcoming_schedule(db_session, TODAY, limit=2)
    assert [entry.id for entry in upcoming] == [early_today.id, late_today.id]

    stats = schedule_stats(db_session, TODAY)
    assert stats == {
        "total_schedules": 5,
        "planned_count": 3,
        "completed_count": 1,
        "cancelled_count": 0,
        "skipped_count": 1,
        "today_count": 2,
    }
