"""Cost entries (purchases) and the monthly spending rollup."""

from __future__ import annotations

import logging
from datetime import date
from decimal import ROUND_HALF_UP
from typing import Any

from sqlalchemy import desc, func, select
from sqlalchemy.orm import Session

from ..models.bean import CoffeeBean
from ..models.cost import CostEntry
from ..services.costing import FOURPLACES, _quantize_currency, _to_decimal, cost_per_gram
from ..services.timecalc import month_bounds, utcnow_iso
from .beans import refresh_cost_counters

logger = logging.getLogger("beanbook.costs")

COST_FIELDS = ("coffee_bean_id", "purchase_date", "amount", "quantity_grams", "notes")


def _owned(stmt, owner: str | None):
    if owner is None:
        return stmt
    return stmt.join(CoffeeBean, CoffeeBean.id == CostEntry.coffee_bean_id).where(CoffeeBean.owner == owner)


def _clean(payload: dict[str, Any]) -> dict[str, Any]:
    data = {key: value for key, value in payload.items() if key in COST_FIELDS}
    if isinstance(data.get("notes"), str):
        data["notes"] = data["notes"].strip() or None
    if data.get("amount") is None or float(data["amount"]) < 0:
        raise ValueError("amount must be zero or more")
    if data.get("quantity_grams") is None or int(data["quantity_grams"]) < 1:
        raise ValueError("quantity_grams must be at least 1")
    data["amount"] = float(data["amount"])
    data["quantity_grams"] = int(data["quantity_grams"])
    return data


def list_cost_entries(
    db: Session,
    *,
    owner: str | None = None,
    coffee_bean_id: int | None = None,
    start_date: date | None = None,
    end_date: date | None = None,
) -> list[CostEntry]:
    stmt = _owned(select(CostEntry), owner)
    if coffee_bean_id is not None:
        stmt = stmt.where(CostEntry.coffee_bean_id == coffee_bean_id)
    if start_date is not None:
        stmt = stmt.where(CostEntry.purchase_date >= start_date)
    if end_date is not None:
        stmt = stmt.where(CostEntry.purchase_date <= end_date)
    stmt = stmt.order_by(desc(CostEntry.purchase_date), desc(CostEntry.id))
    return list(db.execute(stmt).scalars().all())


def get_cost_entry(db: Session, entry_id: int, *, owner: str | None = None) -> CostEntry | None:
    entry = db.get(CostEntry, entry_id)
    if not entry or (owner is not None and entry.bean.owner != owner):
        return None
    return entry


def create_cost_entry(db: Session, bean: CoffeeBean, payload: dict, *, today: date) -> CostEntry:
    """Record a purchase and fold it into the bean's total_cost in one commit."""

    data = _clean(payload)
    data["coffee_bean_id"] = bean.id
    if not data.get("purchase_date"):
        data["purchase_date"] = today
    data["cost_per_gram"] = float(cost_per_gram(data["amount"], data["quantity_grams"]))
    entry = CostEntry(created_at=utcnow_iso(), **data)
    db.add(entry)
    db.flush()
    refresh_cost_counters(db, bean)
    db.commit()
    db.refresh(entry)
    logger.info(
        "cost_entry.created",
        extra={
            "extra_data": {
                "cost_entry_id": entry.id,
                "bean_id": bean.id,
                "amount": entry.amount,
                "total_cost": bean.total_cost,
            }
        },
    )
    return entry


def delete_cost_entry(db: Session, entry: CostEntry) -> None:
    bean = entry.bean
    db.delete(entry)
    db.flush()
    refresh_cost_counters(db, bean)
    db.commit()


def monthly_spending(db: Session, year: int, month: int, *, owner: str | None = None) -> list[dict[str, Any]]:
    """Per-bean spend for purchases dated inside the given calendar month.

    ``avg_cost_per_gram`` is the plain mean of each purchase's own ratio,
    not total spend over total grams.
    """

    start, end = month_bounds(year, month)
    stmt = (
        select(
            CoffeeBean.id,
            CoffeeBean.name,
            CoffeeBean.origin,
            CoffeeBean.buying_price_currency,
            func.sum(CostEntry.amount).label("total_spent"),
            func.sum(CostEntry.quantity_grams).label("total_grams"),
            func.avg(CostEntry.cost_per_gram).label("avg_cost_per_gram"),
            func.count(CostEntry.id).label("purchases"),
        )
        .select_from(CostEntry)
        .join(CoffeeBean, CoffeeBean.id == CostEntry.coffee_bean_id)
        .where(CostEntry.purchase_date >= start, CostEntry.purchase_date < end)
        .group_by(CoffeeBean.id, CoffeeBean.name, CoffeeBean.origin, CoffeeBean.buying_price_currency)
        .order_by(desc("total_spent"), CoffeeBean.id)
    )
    if owner is not None:
        stmt = stmt.where(CoffeeBean.owner == owner)
    results = []
    for row in db.execute(stmt).mappings().all():
        total_spent = _to_decimal(row["total_spent"])
        total_grams = int(row["total_grams"] or 0)
        results.append(
            {
                "id": row["id"],
                "name": row["name"],
                "origin": row["origin"],
                "currency": row["buying_price_currency"],
                "total_spent": _quantize_currency(total_spent),
                "total_grams": total_grams,
                "avg_cost_per_gram": _to_decimal(row["avg_cost_per_gram"]).quantize(FOURPLACES, rounding=ROUND_HALF_UP),
                "purchases": int(row["purchases"]),
            }
        )
    return results
