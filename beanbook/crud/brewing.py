"""Brewing schedule CRUD and the planned/completed/cancelled/skipped status flow."""

from __future__ import annotations

import logging
import re
from datetime import date
from typing import Any

from sqlalchemy import case, func, select
from sqlalchemy.orm import Session

from ..core.coffee_types import (
    REOPENABLE_STATUSES,
    SCHEDULE_STATUS_CHOICES,
    SCHEDULE_TRANSITIONS,
    STATUS_CANCELLED,
    STATUS_COMPLETED,
    STATUS_PLANNED,
    STATUS_SKIPPED,
    WATER_TEMP_MAX_F,
)
from ..core.errors import InvalidTransitionError
from ..models.bean import CoffeeBean
from ..models.brewing import BrewingScheduleEntry
from ..services.timecalc import utcnow_iso

logger = logging.getLogger("beanbook.brewing")

SCHEDULE_FIELDS = (
    "coffee_bean_id",
    "scheduled_date",
    "scheduled_time",
    "brew_method",
    "grind_size",
    "water_temp",
    "brew_time",
    "notes",
)
_TIME_RE = re.compile(r"^([01]?[0-9]|2[0-3]):[0-5][0-9]$")


def _owned(stmt, owner: str | None):
    if owner is None:
        return stmt
    return stmt.join(CoffeeBean, CoffeeBean.id == BrewingScheduleEntry.coffee_bean_id).where(
        CoffeeBean.owner == owner
    )


def _clean(payload: dict[str, Any]) -> dict[str, Any]:
    data = {key: value for key, value in payload.items() if key in SCHEDULE_FIELDS}
    for key in ("scheduled_time", "brew_method", "grind_size", "notes"):
        if isinstance(data.get(key), str):
            data[key] = data[key].strip() or None
    scheduled_time = data.get("scheduled_time")
    if scheduled_time is not None:
        if not _TIME_RE.match(scheduled_time):
            raise ValueError("scheduled_time must be HH:MM")
        hours, minutes = scheduled_time.split(":")
        data["scheduled_time"] = f"{int(hours):02d}:{minutes}"
    water_temp = data.get("water_temp")
    if water_temp is not None and not 1 <= float(water_temp) <= WATER_TEMP_MAX_F:
        raise ValueError(f"water_temp must be between 1 and {WATER_TEMP_MAX_F} F")
    return data


def _ordered(stmt):
    return stmt.order_by(
        BrewingScheduleEntry.scheduled_date.asc(),
        BrewingScheduleEntry.scheduled_time.asc().nulls_first(),
        BrewingScheduleEntry.id.asc(),
    )


def list_schedule(
    db: Session,
    *,
    owner: str | None = None,
    on_date: date | None = None,
    status: str | None = None,
    coffee_bean_id: int | None = None,
) -> list[BrewingScheduleEntry]:
    stmt = _owned(select(BrewingScheduleEntry), owner)
    if on_date is not None:
        stmt = stmt.where(BrewingScheduleEntry.scheduled_date == on_date)
    if status:
        stmt = stmt.where(BrewingScheduleEntry.status == status)
    if coffee_bean_id is not None:
        stmt = stmt.where(BrewingScheduleEntry.coffee_bean_id == coffee_bean_id)
    return list(db.execute(_ordered(stmt)).scalars().all())


def upcoming_schedule(db: Session, today: date, *, owner: str | None = None, limit: int = 5) -> list[BrewingScheduleEntry]:
    stmt = _owned(select(BrewingScheduleEntry), owner).where(
        BrewingScheduleEntry.scheduled_date >= today,
        BrewingScheduleEntry.status == STATUS_PLANNED,
    )
    return list(db.execute(_ordered(stmt).limit(limit)).scalars().all())


def get_schedule_entry(db: Session, entry_id: int, *, owner: str | None = None) -> BrewingScheduleEntry | None:
    entry = db.get(BrewingScheduleEntry, entry_id)
    if not entry or (owner is not None and entry.bean.owner != owner):
        return None
    return entry


def _apply_status(entry: BrewingScheduleEntry, status: str, now: str) -> None:
    entry.status = status
    if status == STATUS_COMPLETED and entry.completed_at is None:
        entry.completed_at = now


def check_transition(current: str, requested: str) -> None:
    """Raise InvalidTransitionError unless ``current -> requested`` is allowed.

    Re-asserting the current status is always accepted.
    """

    if requested not in SCHEDULE_STATUS_CHOICES:
        raise ValueError(f"status must be one of {', '.join(SCHEDULE_STATUS_CHOICES)}")
    if requested == current:
        return
    if requested not in SCHEDULE_TRANSITIONS.get(current, frozenset()):
        raise InvalidTransitionError(current, requested)


def create_schedule_entry(db: Session, payload: dict) -> BrewingScheduleEntry:
    data = _clean(payload)
    if not data.get("coffee_bean_id"):
        raise ValueError("coffee_bean_id is required")
    if not data.get("scheduled_date"):
        raise ValueError("scheduled_date is required")
    status = payload.get("status") or STATUS_PLANNED
    if status not in SCHEDULE_STATUS_CHOICES:
        raise ValueError(f"status must be one of {', '.join(SCHEDULE_STATUS_CHOICES)}")
    now = utcnow_iso()
    entry = BrewingScheduleEntry(created_at=now, updated_at=now, status=STATUS_PLANNED, **data)
    _apply_status(entry, status, now)
    db.add(entry)
    db.commit()
    db.refresh(entry)
    return entry


def update_schedule_entry(db: Session, entry: BrewingScheduleEntry, payload: dict) -> BrewingScheduleEntry:
    """Edit fields; a ``status`` key goes through the transition table."""

    data = _clean(payload)
    status = payload.get("status")
    if status is not None:
        check_transition(entry.status, status)
    now = utcnow_iso()
    for key, value in data.items():
        if key in ("coffee_bean_id", "scheduled_date") and value is None:
            continue
        setattr(entry, key, value)
    if status is not None:
        _apply_status(entry, status, now)
    entry.updated_at = now
    db.commit()
    db.refresh(entry)
    return entry


def set_schedule_status(db: Session, entry: BrewingScheduleEntry, status: str) -> BrewingScheduleEntry:
    check_transition(entry.status, status)
    previous = entry.status
    now = utcnow_iso()
    _apply_status(entry, status, now)
    entry.updated_at = now
    db.commit()
    db.refresh(entry)
    logger.info(
        "schedule.status_changed",
        extra={"extra_data": {"entry_id": entry.id, "from": previous, "to": status}},
    )
    return entry


def reopen_schedule_entry(db: Session, entry: BrewingScheduleEntry) -> BrewingScheduleEntry:
    """Move a cancelled or skipped entry back to planned."""

    if entry.status not in REOPENABLE_STATUSES:
        raise InvalidTransitionError(entry.status, STATUS_PLANNED)
    previous = entry.status
    entry.status = STATUS_PLANNED
    entry.updated_at = utcnow_iso()
    db.commit()
    db.refresh(entry)
    logger.info(
        "schedule.reopened",
        extra={"extra_data": {"entry_id": entry.id, "from": previous}},
    )
    return entry


def delete_schedule_entry(db: Session, entry: BrewingScheduleEntry) -> None:
    db.delete(entry)
    db.commit()


def schedule_stats(db: Session, today: date, *, owner: str | None = None) -> dict[str, int]:
    status = BrewingScheduleEntry.status

    def _count(condition):
        return func.coalesce(func.sum(case((condition, 1), else_=0)), 0)

    stmt = _owned(
        select(
            func.count(BrewingScheduleEntry.id).label("total_schedules"),
            _count(status == STATUS_PLANNED).label("planned_count"),
            _count(status == STATUS_COMPLETED).label("completed_count"),
            _count(status == STATUS_CANCELLED).label("cancelled_count"),
            _count(status == STATUS_SKIPPED).label("skipped_count"),
            _count(BrewingScheduleEntry.scheduled_date == today).label("today_count"),
        ).select_from(BrewingScheduleEntry),
        owner,
    )
    row = db.execute(stmt).mappings().one()
    return {key: int(value or 0) for key, value in row.items()}
