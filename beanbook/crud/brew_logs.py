"""Brewing log entries. Every write recomputes the bean's cups_brewed and cost_per_cup."""

from __future__ import annotations

import logging
from datetime import date
from typing import Any

from sqlalchemy import desc, func, select
from sqlalchemy.orm import Session

from ..models.bean import CoffeeBean
from ..models.brewing import BrewingLogEntry
from ..services.timecalc import utcnow_iso
from .beans import refresh_cost_counters

logger = logging.getLogger("beanbook.brew_logs")

LOG_FIELDS = ("coffee_bean_id", "brew_date", "brew_method", "grams_used", "cups_made", "notes")


def _owned(stmt, owner: str | None):
    if owner is None:
        return stmt
    return stmt.join(CoffeeBean, CoffeeBean.id == BrewingLogEntry.coffee_bean_id).where(CoffeeBean.owner == owner)


def _clean(payload: dict[str, Any]) -> dict[str, Any]:
    data = {key: value for key, value in payload.items() if key in LOG_FIELDS}
    for key in ("brew_method", "notes"):
        if isinstance(data.get(key), str):
            data[key] = data[key].strip() or None
    if data.get("grams_used") is None or int(data["grams_used"]) < 1:
        raise ValueError("grams_used must be at least 1")
    cups = data.get("cups_made")
    data["cups_made"] = 1 if cups is None else int(cups)
    if data["cups_made"] < 1:
        raise ValueError("cups_made must be at least 1")
    return data


def list_brew_logs(
    db: Session,
    *,
    owner: str | None = None,
    coffee_bean_id: int | None = None,
    start_date: date | None = None,
    end_date: date | None = None,
    limit: int | None = None,
) -> list[BrewingLogEntry]:
    stmt = _owned(select(BrewingLogEntry), owner)
    if coffee_bean_id is not None:
        stmt = stmt.where(BrewingLogEntry.coffee_bean_id == coffee_bean_id)
    if start_date is not None:
        stmt = stmt.where(BrewingLogEntry.brew_date >= start_date)
    if end_date is not None:
        stmt = stmt.where(BrewingLogEntry.brew_date <= end_date)
    stmt = stmt.order_by(desc(BrewingLogEntry.brew_date), desc(BrewingLogEntry.id))
    if limit is not None:
        stmt = stmt.limit(limit)
    return list(db.execute(stmt).scalars().all())


def get_brew_log(db: Session, log_id: int, *, owner: str | None = None) -> BrewingLogEntry | None:
    entry = db.get(BrewingLogEntry, log_id)
    if not entry or (owner is not None and entry.bean.owner != owner):
        return None
    return entry


def create_brew_log(db: Session, bean: CoffeeBean, payload: dict, *, today: date) -> BrewingLogEntry:
    data = _clean(payload)
    data["coffee_bean_id"] = bean.id
    if not data.get("brew_date"):
        data["brew_date"] = today
    entry = BrewingLogEntry(created_at=utcnow_iso(), **data)
    db.add(entry)
    db.flush()
    refresh_cost_counters(db, bean)
    db.commit()
    db.refresh(entry)
    logger.info(
        "brewing_log.created",
        extra={
            "extra_data": {
                "log_id": entry.id,
                "bean_id": bean.id,
                "cups_made": entry.cups_made,
                "cups_brewed": bean.cups_brewed,
            }
        },
    )
    return entry


def delete_brew_log(db: Session, entry: BrewingLogEntry) -> None:
    bean = entry.bean
    db.delete(entry)
    db.flush()
    refresh_cost_counters(db, bean)
    db.commit()


def brewing_stats(db: Session, *, owner: str | None = None) -> dict[str, Any]:
    stmt = _owned(
        select(
            func.count(BrewingLogEntry.id).label("total_brews"),
            func.coalesce(func.sum(BrewingLogEntry.cups_made), 0).label("total_cups"),
            func.coalesce(func.sum(BrewingLogEntry.grams_used), 0).label("total_grams"),
            func.avg(BrewingLogEntry.grams_used).label("avg_grams_per_brew"),
            func.avg(BrewingLogEntry.cups_made).label("avg_cups_per_brew"),
            func.count(func.distinct(BrewingLogEntry.coffee_bean_id)).label("unique_beans"),
            func.count(func.distinct(BrewingLogEntry.brew_method)).label("unique_methods"),
        ).select_from(BrewingLogEntry),
        owner,
    )
    row = db.execute(stmt).mappings().one()
    return {
        "total_brews": int(row["total_brews"] or 0),
        "total_cups": int(row["total_cups"] or 0),
        "total_grams": int(row["total_grams"] or 0),
        "avg_grams_per_brew": round(float(row["avg_grams_per_brew"]), 1) if row["avg_grams_per_brew"] is not None else 0.0,
        "avg_cups_per_brew": round(float(row["avg_cups_per_brew"]), 1) if row["avg_cups_per_brew"] is not None else 0.0,
        "unique_beans": int(row["unique_beans"] or 0),
        "unique_methods": int(row["unique_methods"] or 0),
    }


def brew_method_breakdown(db: Session, *, owner: str | None = None) -> list[dict[str, Any]]:
    """Per brew method: brews, cups and grams, most used first."""

    stmt = _owned(
        select(
            BrewingLogEntry.brew_method,
            func.count(BrewingLogEntry.id).label("brew_count"),
            func.coalesce(func.sum(BrewingLogEntry.cups_made), 0).label("total_cups"),
            func.coalesce(func.sum(BrewingLogEntry.grams_used), 0).label("total_grams"),
            func.avg(BrewingLogEntry.grams_used).label("avg_grams"),
        ).select_from(BrewingLogEntry),
        owner,
    )
    stmt = stmt.group_by(BrewingLogEntry.brew_method).order_by(desc("brew_count"), BrewingLogEntry.brew_method)
    return [
        {
            "brew_method": row["brew_method"],
            "brew_count": int(row["brew_count"]),
            "total_cups": int(row["total_cups"] or 0),
            "total_grams": int(row["total_grams"] or 0),
            "avg_grams": round(float(row["avg_grams"]), 1) if row["avg_grams"] is not None else 0.0,
        }
        for row in db.execute(stmt).mappings().all()
    ]
