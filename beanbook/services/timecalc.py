from __future__ import annotations

from datetime import date, datetime, timezone


def utcnow_iso() -> str:
    """UTC timestamp string used for created_at/updated_at columns."""
    return datetime.now(timezone.utc).replace(tzinfo=None).isoformat(timespec="seconds") + "Z"


def month_bounds(year: int, month: int) -> tuple[date, date]:
    """Return [first day of month, first day of next month).

    Raises ValueError for a month outside 1-12.
    """
    if not 1 <= month <= 12:
        raise ValueError("month must be between 1 and 12")
    start = date(year, month, 1)
    end = date(year + 1, 1, 1) if month == 12 else date(year, month + 1, 1)
    return start, end
