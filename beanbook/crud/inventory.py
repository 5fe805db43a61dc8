"""Inventory lot CRUD, atomic quantity adjustments and inventory rollups."""

from __future__ import annotations

import logging
from datetime import date
from typing import Any

from sqlalchemy import case, desc, func, select, update
from sqlalchemy.orm import Session

from ..models.bean import CoffeeBean
from ..models.inventory import InventoryAdjustment, InventoryLot
from ..services.inventory import is_low_stock, origin_rollup
from ..services.timecalc import utcnow_iso
from .beans import list_beans, total_inventory

logger = logging.getLogger("beanbook.inventory")

LOT_FIELDS = (
    "coffee_bean_id",
    "quantity_grams",
    "purchase_date",
    "roast_date",
    "expiry_date",
    "storage_location",
    "notes",
)


def _owned(stmt, owner: str | None):
    if owner is None:
        return stmt
    return stmt.join(CoffeeBean, CoffeeBean.id == InventoryLot.coffee_bean_id).where(CoffeeBean.owner == owner)


def _clean(payload: dict[str, Any]) -> dict[str, Any]:
    data = {key: value for key, value in payload.items() if key in LOT_FIELDS}
    for key in ("storage_location", "notes"):
        if isinstance(data.get(key), str):
            data[key] = data[key].strip() or None
    if "quantity_grams" in data:
        quantity = float(data["quantity_grams"] or 0)
        if quantity < 0:
            raise ValueError("quantity_grams must be zero or more")
        data["quantity_grams"] = quantity
    return data


def list_lots(
    db: Session,
    *,
    owner: str | None = None,
    coffee_bean_id: int | None = None,
    limit: int | None = 200,
    offset: int = 0,
) -> list[InventoryLot]:
    """Lots newest first; a bean filter orders them by purchase date instead."""

    stmt = _owned(select(InventoryLot), owner)
    if coffee_bean_id is not None:
        stmt = stmt.where(InventoryLot.coffee_bean_id == coffee_bean_id).order_by(
            desc(InventoryLot.purchase_date), desc(InventoryLot.id)
        )
    else:
        stmt = stmt.order_by(desc(InventoryLot.created_at), desc(InventoryLot.id))
    stmt = stmt.offset(offset)
    if limit is not None:
        stmt = stmt.limit(limit)
    return list(db.execute(stmt).scalars().all())


def get_lot(db: Session, lot_id: int, *, owner: str | None = None) -> InventoryLot | None:
    lot = db.get(InventoryLot, lot_id)
    if not lot or (owner is not None and lot.bean.owner != owner):
        return None
    return lot


def create_lot(db: Session, payload: dict) -> InventoryLot:
    data = _clean(payload)
    if not data.get("coffee_bean_id"):
        raise ValueError("coffee_bean_id is required")
    data.setdefault("quantity_grams", 0.0)
    now = utcnow_iso()
    lot = InventoryLot(created_at=now, updated_at=now, **data)
    db.add(lot)
    db.commit()
    db.refresh(lot)
    return lot


def update_lot(db: Session, lot: InventoryLot, payload: dict) -> InventoryLot:
    for key, value in _clean(payload).items():
        setattr(lot, key, value)
    lot.updated_at = utcnow_iso()
    db.commit()
    db.refresh(lot)
    return lot


def delete_lot(db: Session, lot: InventoryLot) -> None:
    db.delete(lot)
    db.commit()


def locked_quantity_stmt(lot_id: int):
    return select(InventoryLot.quantity_grams).where(InventoryLot.id == lot_id).with_for_update()


def adjust_lot_quantity(
    db: Session,
    lot: InventoryLot,
    delta: float,
    *,
    reason: str | None = None,
) -> InventoryAdjustment:
    """Apply a signed gram delta to a lot, flooring the result at zero.

    The row is read under ``FOR UPDATE`` and rewritten by one clamped UPDATE
    inside the same transaction, so the audit row's applied delta matches the
    quantity it moved from. SQLite ignores the lock clause; its write
    transactions are already serialized. Over-withdrawals are clamped, never
    rejected.
    """

    requested = float(delta)
    before = float(db.execute(locked_quantity_stmt(lot.id)).scalar_one() or 0)
    proposed = InventoryLot.quantity_grams + requested
    now = utcnow_iso()
    db.execute(
        update(InventoryLot)
        .where(InventoryLot.id == lot.id)
        .values(quantity_grams=case((proposed < 0, 0.0), else_=proposed), updated_at=now)
        .execution_options(synchronize_session=False)
    )
    db.flush()
    db.refresh(lot)
    quantity_after = float(lot.quantity_grams or 0)
    applied = quantity_after - before
    adjustment = InventoryAdjustment(
        lot_id=lot.id,
        requested_delta=requested,
        applied_delta=applied,
        quantity_after=quantity_after,
        reason=(reason or "").strip() or None,
        created_at=now,
    )
    db.add(adjustment)
    db.commit()
    db.refresh(adjustment)
    logger.info(
        "inventory.adjusted",
        extra={
            "extra_data": {
                "lot_id": lot.id,
                "requested_delta": requested,
                "applied_delta": applied,
                "quantity_after": quantity_after,
                "reason": adjustment.reason,
            }
        },
    )
    bean_total = total_inventory(db, lot.coffee_bean_id)
    if requested < 0 and is_low_stock(bean_total):
        logger.warning(
            "inventory.low_stock",
            extra={"extra_data": {"coffee_bean_id": lot.coffee_bean_id, "total_inventory": bean_total}},
        )
    return adjustment


def list_adjustments(db: Session, lot: InventoryLot) -> list[InventoryAdjustment]:
    stmt = (
        select(InventoryAdjustment)
        .where(InventoryAdjustment.lot_id == lot.id)
        .order_by(desc(InventoryAdjustment.id))
    )
    return list(db.execute(stmt).scalars().all())


def inventory_by_origin(db: Session, *, owner: str | None = None) -> list[dict[str, Any]]:
    beans = list_beans(db, owner=owner)
    lots = list_lots(db, owner=owner, limit=None)
    return origin_rollup(beans, lots)


def inventory_summary(db: Session, today: date, *, owner: str | None = None) -> dict[str, Any]:
    """Totals across every lot plus bean-level low stock."""

    lots = list_lots(db, owner=owner, limit=None)
    stocked_ids = {lot.coffee_bean_id for lot in lots}
    beans = [bean for bean in list_beans(db, owner=owner) if bean.id in stocked_ids]
    quantities = [float(lot.quantity_grams or 0) for lot in lots]
    total = sum(quantities)
    return {
        "total_beans": len(beans),
        "total_lots": len(lots),
        "total_quantity": total,
        "avg_quantity": total / len(lots) if lots else 0.0,
        "low_stock_count": sum(1 for bean in beans if is_low_stock(bean.total_inventory)),
        "expired_count": sum(1 for lot in lots if lot.expiry_date is not None and lot.expiry_date < today),
        "unique_origins": len({bean.origin for bean in beans if bean.origin}),
    }
