"""CRUD helpers for coffee beans plus the aggregate annotations the listing needs."""

from __future__ import annotations

import logging
from typing import Any, Iterable

from sqlalchemy import desc, func, select
from sqlalchemy.orm import Session

from ..core.coffee_types import CURRENCY_CHOICES, ROAST_LEVEL_CHOICES, normalize_currency
from ..models.bean import CoffeeBean
from ..models.brewing import BrewingLogEntry
from ..models.cost import CostEntry
from ..models.inventory import InventoryLot
from ..models.tasting import TastingNote
from ..services.costing import cost_per_cup, price_per_gram
from ..services.timecalc import utcnow_iso

logger = logging.getLogger("beanbook.beans")

TEXT_FIELDS = (
    "name",
    "origin",
    "roast_level",
    "process_method",
    "altitude",
    "varietal",
    "description",
    "supplier",
    "photo_url",
    "buying_place",
)
EDITABLE_FIELDS = TEXT_FIELDS + (
    "buying_date",
    "buying_price",
    "buying_price_currency",
    "amount_grams",
    "roast_date",
    "best_by_date",
)


def _clean(data: dict[str, Any]) -> dict[str, Any]:
    cleaned: dict[str, Any] = {}
    for key, value in data.items():
        if key not in EDITABLE_FIELDS:
            continue
        if key in TEXT_FIELDS and isinstance(value, str):
            value = value.strip() or None
        cleaned[key] = value
    if "name" in cleaned and not cleaned["name"]:
        raise ValueError("name is required")
    roast_level = cleaned.get("roast_level")
    if roast_level is not None and roast_level not in ROAST_LEVEL_CHOICES:
        raise ValueError(f"roast_level must be one of {', '.join(ROAST_LEVEL_CHOICES)}")
    if "buying_price_currency" in cleaned:
        currency = normalize_currency(cleaned["buying_price_currency"])
        if currency not in CURRENCY_CHOICES:
            raise ValueError(f"buying_price_currency must be one of {', '.join(CURRENCY_CHOICES)}")
        cleaned["buying_price_currency"] = currency
    return cleaned


def _refresh_price_per_gram(bean: CoffeeBean) -> None:
    bean.price_per_gram = float(price_per_gram(bean.buying_price, bean.amount_grams))


def inventory_totals(db: Session, bean_ids: Iterable[int]) -> dict[int, float]:
    """Grams on hand per bean, summed over every lot. Beans without lots are absent."""

    ids = tuple(bean_ids)
    if not ids:
        return {}
    stmt = (
        select(
            InventoryLot.coffee_bean_id,
            func.coalesce(func.sum(InventoryLot.quantity_grams), 0).label("total"),
        )
        .where(InventoryLot.coffee_bean_id.in_(ids))
        .group_by(InventoryLot.coffee_bean_id)
    )
    return {bean_id: float(total or 0) for bean_id, total in db.execute(stmt).all()}


def total_inventory(db: Session, bean_id: int) -> float:
    return inventory_totals(db, [bean_id]).get(bean_id, 0.0)


def _attach_bean_metrics(db: Session, beans: list[CoffeeBean]) -> None:
    """Set total_inventory, tasting_count and avg_rating on each bean."""

    if not beans:
        return
    bean_map = {bean.id: bean for bean in beans}
    for bean in beans:
        setattr(bean, "total_inventory", 0.0)
        setattr(bean, "tasting_count", 0)
        setattr(bean, "avg_rating", None)

    ids = tuple(bean_map.keys())
    for bean_id, total in inventory_totals(db, ids).items():
        setattr(bean_map[bean_id], "total_inventory", total)

    tasting_stmt = (
        select(
            TastingNote.coffee_bean_id,
            func.count(TastingNote.id).label("tastings"),
            func.avg(TastingNote.overall_rating).label("avg_rating"),
        )
        .where(TastingNote.coffee_bean_id.in_(ids))
        .group_by(TastingNote.coffee_bean_id)
    )
    for bean_id, tastings, avg_rating in db.execute(tasting_stmt).all():
        bean = bean_map[bean_id]
        setattr(bean, "tasting_count", int(tastings or 0))
        setattr(bean, "avg_rating", float(avg_rating) if avg_rating is not None else None)


def _scoped(stmt, owner: str | None):
    return stmt.where(CoffeeBean.owner == owner) if owner is not None else stmt


def list_beans(
    db: Session,
    *,
    owner: str | None = None,
    roast_level: str | None = None,
    origin: str | None = None,
    limit: int | None = None,
    offset: int = 0,
) -> list[CoffeeBean]:
    """Beans newest first, each annotated with inventory and tasting aggregates."""

    stmt = _scoped(select(CoffeeBean), owner)
    if roast_level:
        stmt = stmt.where(CoffeeBean.roast_level == roast_level)
    if origin:
        stmt = stmt.where(func.lower(CoffeeBean.origin).contains(origin.strip().lower()))
    stmt = stmt.order_by(desc(CoffeeBean.created_at), desc(CoffeeBean.id)).offset(offset)
    if limit is not None:
        stmt = stmt.limit(limit)
    beans = list(db.execute(stmt).scalars().all())
    _attach_bean_metrics(db, beans)
    return beans


def get_bean(db: Session, bean_id: int, *, owner: str | None = None) -> CoffeeBean | None:
    bean = db.get(CoffeeBean, bean_id)
    if not bean or (owner is not None and bean.owner != owner):
        return None
    _attach_bean_metrics(db, [bean])
    return bean


def create_bean(db: Session, payload: dict, *, owner: str) -> CoffeeBean:
    data = _clean(payload)
    if not data.get("name"):
        raise ValueError("name is required")
    data.setdefault("buying_price_currency", normalize_currency(None))
    now = utcnow_iso()
    bean = CoffeeBean(
        owner=owner,
        total_cost=0.0,
        cups_brewed=0,
        cost_per_cup=0.0,
        created_at=now,
        updated_at=now,
        **data,
    )
    _refresh_price_per_gram(bean)
    db.add(bean)
    db.commit()
    db.refresh(bean)
    _attach_bean_metrics(db, [bean])
    logger.info("bean.created", extra={"extra_data": {"bean_id": bean.id, "owner": owner}})
    return bean


def update_bean(db: Session, bean: CoffeeBean, payload: dict) -> CoffeeBean:
    """Apply the given fields and recompute price_per_gram."""

    data = _clean(payload)
    for key, value in data.items():
        setattr(bean, key, value)
    _refresh_price_per_gram(bean)
    bean.updated_at = utcnow_iso()
    db.commit()
    db.refresh(bean)
    _attach_bean_metrics(db, [bean])
    return bean


def delete_bean(db: Session, bean: CoffeeBean) -> None:
    """Delete a bean together with every lot, tasting, schedule, cost and log row."""

    bean_id = bean.id
    db.delete(bean)
    db.commit()
    logger.info("bean.deleted", extra={"extra_data": {"bean_id": bean_id}})


def refresh_cost_counters(db: Session, bean: CoffeeBean) -> CoffeeBean:
    """Rewrite total_cost, cups_brewed and cost_per_cup from the source tables.

    Callers flush their pending change first and commit afterwards, so the
    counters move in the same transaction as the row that changed them.
    """

    total_cost = db.execute(
        select(func.coalesce(func.sum(CostEntry.amount), 0)).where(CostEntry.coffee_bean_id == bean.id)
    ).scalar_one()
    cups = db.execute(
        select(func.coalesce(func.sum(BrewingLogEntry.cups_made), 0)).where(BrewingLogEntry.coffee_bean_id == bean.id)
    ).scalar_one()
    bean.total_cost = float(total_cost or 0)
    bean.cups_brewed = int(cups or 0)
    bean.cost_per_cup = float(cost_per_cup(bean.total_cost, bean.cups_brewed))
    bean.updated_at = utcnow_iso()
    return bean


def beans_with_dates(db: Session, *, owner: str | None = None) -> list[CoffeeBean]:
    stmt = _scoped(select(CoffeeBean), owner).where(
        (CoffeeBean.roast_date.is_not(None)) | (CoffeeBean.best_by_date.is_not(None))
    )
    beans = list(db.execute(stmt.order_by(CoffeeBean.id)).scalars().all())
    _attach_bean_metrics(db, beans)
    return beans

