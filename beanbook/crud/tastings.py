from __future__ import annotations

from datetime import date
from typing import Any

from sqlalchemy import case, desc, func, select
from sqlalchemy.orm import Session

from ..core.coffee_types import RATING_MAX, RATING_MIN, celsius_to_fahrenheit
from ..models.bean import CoffeeBean
from ..models.tasting import RATING_FIELDS, TastingNote
from ..services.timecalc import utcnow_iso

TASTING_FIELDS = (
    "coffee_bean_id",
    "brew_method",
    "grind_size",
    "water_temp",
    "brew_time",
    "notes",
    "tasting_date",
) + RATING_FIELDS


def _owned(stmt, owner: str | None):
    if owner is None:
        return stmt
    return stmt.join(CoffeeBean, CoffeeBean.id == TastingNote.coffee_bean_id).where(CoffeeBean.owner == owner)


def _ordered(stmt):
    return stmt.order_by(desc(TastingNote.tasting_date), desc(TastingNote.created_at), desc(TastingNote.id))


def _clean(payload: dict[str, Any]) -> dict[str, Any]:
    data = {key: value for key, value in payload.items() if key in TASTING_FIELDS}
    for key in ("brew_method", "grind_size", "notes"):
        if isinstance(data.get(key), str):
            data[key] = data[key].strip() or None
    for field in RATING_FIELDS:
        value = data.get(field)
        if value is not None and not RATING_MIN <= int(value) <= RATING_MAX:
            raise ValueError(f"{field} must be between {RATING_MIN} and {RATING_MAX}")
    unit = (payload.get("water_temp_unit") or "F").strip().upper()
    if data.get("water_temp") is not None and unit == "C":
        data["water_temp"] = round(celsius_to_fahrenheit(float(data["water_temp"])), 1)
    return data


def list_tastings(
    db: Session,
    *,
    owner: str | None = None,
    coffee_bean_id: int | None = None,
    start_date: date | None = None,
    end_date: date | None = None,
    limit: int | None = None,
) -> list[TastingNote]:
    stmt = _owned(select(TastingNote), owner)
    if coffee_bean_id is not None:
        stmt = stmt.where(TastingNote.coffee_bean_id == coffee_bean_id)
    if start_date is not None:
        stmt = stmt.where(TastingNote.tasting_date >= start_date)
    if end_date is not None:
        stmt = stmt.where(TastingNote.tasting_date <= end_date)
    stmt = _ordered(stmt)
    if limit is not None:
        stmt = stmt.limit(limit)
    return list(db.execute(stmt).scalars().all())


def top_rated(db: Session, *, owner: str | None = None, limit: int = 10) -> list[TastingNote]:
    stmt = (
        _owned(select(TastingNote), owner)
        .order_by(desc(TastingNote.overall_rating), desc(TastingNote.tasting_date), desc(TastingNote.id))
        .limit(limit)
    )
    return list(db.execute(stmt).scalars().all())


def get_tasting(db: Session, tasting_id: int, *, owner: str | None = None) -> TastingNote | None:
    tasting = db.get(TastingNote, tasting_id)
    if not tasting or (owner is not None and tasting.bean.owner != owner):
        return None
    return tasting


def create_tasting(db: Session, payload: dict, *, today: date) -> TastingNote:
    """Record a tasting. Missing tasting_date falls back to ``today``."""

    data = _clean(payload)
    if not data.get("coffee_bean_id"):
        raise ValueError("coffee_bean_id is required")
    if data.get("overall_rating") is None:
        raise ValueError("overall_rating is required")
    if not data.get("tasting_date"):
        data["tasting_date"] = today
    now = utcnow_iso()
    tasting = TastingNote(created_at=now, updated_at=now, **data)
    db.add(tasting)
    db.commit()
    db.refresh(tasting)
    return tasting


def update_tasting(db: Session, tasting: TastingNote, payload: dict) -> TastingNote:
    data = _clean(payload)
    if "overall_rating" in data and data["overall_rating"] is None:
        raise ValueError("overall_rating is required")
    if "tasting_date" in data and data["tasting_date"] is None:
        data.pop("tasting_date")
    for key, value in data.items():
        setattr(tasting, key, value)
    tasting.updated_at = utcnow_iso()
    db.commit()
    db.refresh(tasting)
    return tasting


def delete_tasting(db: Session, tasting: TastingNote) -> None:
    db.delete(tasting)
    db.commit()


def tasting_stats(db: Session, *, owner: str | None = None) -> dict[str, Any]:
    """Counts and rating averages over every tasting."""

    overall = TastingNote.overall_rating
    stmt = _owned(
        select(
            func.count(TastingNote.id).label("total_tastings"),
            func.count(func.distinct(TastingNote.coffee_bean_id)).label("unique_beans"),
            func.avg(overall).label("avg_overall_rating"),
            func.avg(TastingNote.aroma_rating).label("avg_aroma_rating"),
            func.avg(TastingNote.acidity_rating).label("avg_acidity_rating"),
            func.avg(TastingNote.body_rating).label("avg_body_rating"),
            func.avg(TastingNote.flavor_rating).label("avg_flavor_rating"),
            func.avg(TastingNote.aftertaste_rating).label("avg_aftertaste_rating"),
            func.coalesce(func.sum(case((overall >= 8, 1), else_=0)), 0).label("excellent_count"),
            func.coalesce(func.sum(case(((overall >= 6) & (overall < 8), 1), else_=0)), 0).label("good_count"),
            func.coalesce(func.sum(case((overall < 6, 1), else_=0)), 0).label("poor_count"),
        ).select_from(TastingNote),
        owner,
    )
    row = db.execute(stmt).mappings().one()
    stats = dict(row)
    for key, value in stats.items():
        if key.startswith("avg_"):
            stats[key] = round(float(value), 2) if value is not None else None
        else:
            stats[key] = int(value or 0)
    return stats
