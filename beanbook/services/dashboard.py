from __future__ import annotations

from decimal import Decimal
from typing import Any, Callable, Iterable, Mapping

from .costing import CurrencyConverter, _to_decimal
from .inventory import is_low_stock


def _get(row: Any, key: str, default: Any = None) -> Any:
    if isinstance(row, Mapping):
        return row.get(key, default)
    return getattr(row, key, default)


def first_max(rows: Iterable[Any], key: Callable[[Any], Decimal]) -> Any | None:
    """Linear max-scan keeping the first row on ties."""

    best = None
    best_value: Decimal | None = None
    for row in rows:
        value = key(row)
        if best is None or value > best_value:
            best, best_value = row, value
    return best


def _pick(row: Any | None, *extra_fields: str) -> dict[str, Any] | None:
    if row is None:
        return None
    return {key: _get(row, key) for key in ("id", "name", "origin", *extra_fields)}


def dashboard_stats(beans: Iterable[Any], converter: CurrencyConverter) -> dict[str, Any]:
    """Landing-page rollup over the annotated bean listing.

    ``beans`` must already be in listing order; that order decides ties for
    the most-expensive and highest-rated picks. Beans without a rating count
    as 0 toward the average.
    """

    rows = list(beans)
    total_beans = len(rows)
    total_inventory = sum(float(_get(row, "total_inventory") or 0) for row in rows)
    total_tastings = sum(int(_get(row, "tasting_count") or 0) for row in rows)
    rating_sum = sum(float(_get(row, "avg_rating") or 0) for row in rows)
    avg_rating = rating_sum / total_beans if total_beans else 0.0
    origins = {_get(row, "origin") for row in rows if _get(row, "origin")}
    low_stock_count = sum(1 for row in rows if is_low_stock(_get(row, "total_inventory")))

    def price_in_base(row: Any) -> Decimal:
        return converter.to_base(_get(row, "price_per_gram") or 0, _get(row, "buying_price_currency"))

    most_expensive = first_max(rows, price_in_base)
    highest_rated = first_max(rows, lambda row: _to_decimal(_get(row, "avg_rating") or 0))

    return {
        "total_beans": total_beans,
        "total_inventory": round(total_inventory, 1),
        "total_tastings": total_tastings,
        "avg_rating": round(avg_rating, 1),
        "unique_origins": len(origins),
        "low_stock_count": low_stock_count,
        "most_expensive": _pick(most_expensive, "price_per_gram", "buying_price_currency"),
        "highest_rated": _pick(highest_rated, "avg_rating"),
    }


__all__ = ["dashboard_stats", "first_max"]
