"""Freshness classification for coffee beans.

Everything here is a pure function of the dates it is given; ``today`` is
always passed in by the caller so the same inputs yield the same state.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, timedelta
from typing import Any, Iterable, Mapping

EXPIRED = "expired"
EXPIRING_SOON = "expiring_soon"
EXPIRING_MONTH = "expiring_month"
FRESH = "fresh"
OLD_ROAST = "old_roast"
AGING_ROAST = "aging_roast"
FRESH_ROAST = "fresh_roast"
NO_DATE = "no_date"

FRESHNESS_STATES = (
    EXPIRED,
    EXPIRING_SOON,
    EXPIRING_MONTH,
    FRESH,
    OLD_ROAST,
    AGING_ROAST,
    FRESH_ROAST,
    NO_DATE,
)

EXPIRING_SOON_DAYS = 7
EXPIRING_MONTH_DAYS = 30
AGING_ROAST_DAYS = 60
OLD_ROAST_DAYS = 90

# Lower rank sorts first in the alert listing.
ALERT_PRIORITY = {
    EXPIRED: 0,
    EXPIRING_SOON: 1,
    OLD_ROAST: 2,
    EXPIRING_MONTH: 3,
    AGING_ROAST: 4,
}
_REMAINING_PRIORITY = 5


@dataclass(frozen=True)
class FreshnessReading:
    status: str
    days_until_expiry: int | None = None
    days_since_roast: int | None = None

    @property
    def priority(self) -> int:
        return ALERT_PRIORITY.get(self.status, _REMAINING_PRIORITY)


def classify_freshness(roast_date: date | None, best_by_date: date | None, today: date) -> FreshnessReading:
    """Map a bean's dates to exactly one freshness state.

    ``best_by_date`` wins over ``roast_date`` when both are present.
    """

    days_until_expiry = (best_by_date - today).days if best_by_date else None
    days_since_roast = max((today - roast_date).days, 0) if roast_date else None

    if best_by_date is not None:
        if best_by_date < today:
            status = EXPIRED
        elif best_by_date <= today + timedelta(days=EXPIRING_SOON_DAYS):
            status = EXPIRING_SOON
        elif best_by_date <= today + timedelta(days=EXPIRING_MONTH_DAYS):
            status = EXPIRING_MONTH
        else:
            status = FRESH
    elif roast_date is not None:
        age = (today - roast_date).days
        if age > OLD_ROAST_DAYS:
            status = OLD_ROAST
        elif age > AGING_ROAST_DAYS:
            status = AGING_ROAST
        else:
            status = FRESH_ROAST
    else:
        status = NO_DATE

    return FreshnessReading(
        status=status,
        days_until_expiry=days_until_expiry,
        days_since_roast=days_since_roast,
    )


def _get(row: Any, key: str, default: Any = None) -> Any:
    if isinstance(row, Mapping):
        return row.get(key, default)
    return getattr(row, key, default)


def _date_key(value: date | None) -> tuple[int, date]:
    # Missing dates sort after every real one.
    return (1, date.max) if value is None else (0, value)


def freshness_alerts(rows: Iterable[Any], today: date) -> list[dict[str, Any]]:
    """Build the ordered alert listing.

    ``rows`` are beans (objects or mappings) carrying ``total_inventory``.
    Beans without stock or without any date never appear.
    """

    alerts: list[dict[str, Any]] = []
    for row in rows:
        total = float(_get(row, "total_inventory", 0) or 0)
        if total <= 0:
            continue
        roast = _get(row, "roast_date")
        best_by = _get(row, "best_by_date")
        reading = classify_freshness(roast, best_by, today)
        if reading.status == NO_DATE:
            continue
        alerts.append(
            {
                "id": _get(row, "id"),
                "name": _get(row, "name"),
                "origin": _get(row, "origin"),
                "roast_date": roast,
                "best_by_date": best_by,
                "total_inventory": total,
                "freshness_status": reading.status,
                "days_until_expiry": reading.days_until_expiry,
                "days_since_roast": reading.days_since_roast,
                "_priority": reading.priority,
            }
        )
    alerts.sort(
        key=lambda alert: (
            alert["_priority"],
            _date_key(alert["best_by_date"]),
            _date_key(alert["roast_date"]),
        )
    )
    for alert in alerts:
        del alert["_priority"]
    return alerts


def freshness_summary(rows: Iterable[Any], today: date) -> dict[str, int]:
    """Count beans per freshness bucket across every bean that has a date.

    Best-by and roast buckets are counted independently, so a bean with an
    expired best-by and an old roast shows up in both. ``fresh_count`` covers
    beans that trip no alert on either date.
    """

    soon_limit = today + timedelta(days=EXPIRING_SOON_DAYS)
    month_limit = today + timedelta(days=EXPIRING_MONTH_DAYS)
    aging_limit = today - timedelta(days=AGING_ROAST_DAYS)
    old_limit = today - timedelta(days=OLD_ROAST_DAYS)

    summary = {
        "total_beans_with_dates": 0,
        "expired_count": 0,
        "expiring_soon_count": 0,
        "expiring_month_count": 0,
        "old_roast_count": 0,
        "aging_roast_count": 0,
        "fresh_count": 0,
    }
    for row in rows:
        roast = _get(row, "roast_date")
        best_by = _get(row, "best_by_date")
        if roast is None and best_by is None:
            continue
        summary["total_beans_with_dates"] += 1
        if best_by is not None:
            if best_by < today:
                summary["expired_count"] += 1
            elif best_by <= soon_limit:
                summary["expiring_soon_count"] += 1
            elif best_by <= month_limit:
                summary["expiring_month_count"] += 1
        if roast is not None:
            if roast < old_limit:
                summary["old_roast_count"] += 1
            elif roast < aging_limit:
                summary["aging_roast_count"] += 1
        best_by_ok = best_by is None or best_by > month_limit
        roast_ok = roast is None or roast >= aging_limit
        if best_by_ok and roast_ok:
            summary["fresh_count"] += 1
    return summary


__all__ = [
    "AGING_ROAST",
    "ALERT_PRIORITY",
    "EXPIRED",
    "EXPIRING_MONTH",
    "EXPIRING_SOON",
    "FRESH",
    "FRESHNESS_STATES",
    "FRESH_ROAST",
    "FreshnessReading",
    "NO_DATE",
    "OLD_ROAST",
    "classify_freshness",
    "freshness_alerts",
    "freshness_summary",
]
