"""Pure inventory math: zero-floored adjustments, low-stock checks and origin rollups."""

from __future__ import annotations

from collections import defaultdict
from datetime import date
from typing import Any, Iterable, Mapping

from ..core.coffee_types import LOW_STOCK_THRESHOLD_GRAMS


def _get(row: Any, key: str, default: Any = None) -> Any:
    if isinstance(row, Mapping):
        return row.get(key, default)
    return getattr(row, key, default)


def clamp_quantity(current: float | None, delta: float) -> float:
    """Apply a signed delta without ever going below zero."""

    return max(0.0, float(current or 0) + float(delta))


def is_low_stock(total_inventory: float | None) -> bool:
    return float(total_inventory or 0) < LOW_STOCK_THRESHOLD_GRAMS


def low_stock_beans(beans: Iterable[Any]) -> list[Any]:
    """Beans under the threshold, emptiest first (listing order breaks ties)."""

    flagged = [bean for bean in beans if is_low_stock(_get(bean, "total_inventory"))]
    flagged.sort(key=lambda bean: float(_get(bean, "total_inventory") or 0))
    return flagged


def origin_rollup(beans: Iterable[Any], lots: Iterable[Any]) -> list[dict[str, Any]]:
    """Group beans by origin.

    For each origin: number of beans, number of lots, grams on hand, average
    lot size, how many of its beans are low on stock and the purchase window.
    """

    lots_by_bean: dict[Any, list[Any]] = defaultdict(list)
    for lot in lots:
        lots_by_bean[_get(lot, "coffee_bean_id")].append(lot)

    groups: dict[str | None, dict[str, Any]] = {}
    for bean in beans:
        origin = _get(bean, "origin") or None
        group = groups.setdefault(
            origin,
            {
                "origin": origin,
                "unique_beans": 0,
                "total_items": 0,
                "total_quantity": 0.0,
                "avg_quantity": 0.0,
                "low_stock_count": 0,
                "earliest_purchase": None,
                "latest_purchase": None,
            },
        )
        bean_lots = lots_by_bean.get(_get(bean, "id"), [])
        quantity = sum(float(_get(lot, "quantity_grams") or 0) for lot in bean_lots)
        group["unique_beans"] += 1
        group["total_items"] += len(bean_lots)
        group["total_quantity"] += quantity
        if is_low_stock(quantity):
            group["low_stock_count"] += 1
        for lot in bean_lots:
            purchased: date | None = _get(lot, "purchase_date")
            if purchased is None:
                continue
            if group["earliest_purchase"] is None or purchased < group["earliest_purchase"]:
                group["earliest_purchase"] = purchased
            if group["latest_purchase"] is None or purchased > group["latest_purchase"]:
                group["latest_purchase"] = purchased

    for group in groups.values():
        if group["total_items"]:
            group["avg_quantity"] = group["total_quantity"] / group["total_items"]
    return sorted(groups.values(), key=lambda group: group["total_quantity"], reverse=True)


__all__ = ["clamp_quantity", "is_low_stock", "low_stock_beans", "origin_rollup"]
