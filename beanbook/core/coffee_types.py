"""Shared domain constants: roast levels, currencies, schedule statuses and thresholds."""

ROAST_LIGHT = "Light"
ROAST_MEDIUM = "Medium"
ROAST_MEDIUM_DARK = "Medium-Dark"
ROAST_DARK = "Dark"

ROAST_LEVEL_CHOICES = (
    ROAST_LIGHT,
    ROAST_MEDIUM,
    ROAST_MEDIUM_DARK,
    ROAST_DARK,
)

CURRENCY_USD = "USD"
CURRENCY_HKD = "HKD"
CURRENCY_JPY = "JPY"

CURRENCY_CHOICES = (CURRENCY_USD, CURRENCY_HKD, CURRENCY_JPY)

STATUS_PLANNED = "planned"
STATUS_COMPLETED = "completed"
STATUS_CANCELLED = "cancelled"
STATUS_SKIPPED = "skipped"

SCHEDULE_STATUS_CHOICES = (
    STATUS_PLANNED,
    STATUS_COMPLETED,
    STATUS_CANCELLED,
    STATUS_SKIPPED,
)

# Allowed moves under normal flow. Leaving cancelled/skipped needs the explicit
# reopen action; completed never moves again.
SCHEDULE_TRANSITIONS: dict[str, frozenset[str]] = {
    STATUS_PLANNED: frozenset({STATUS_COMPLETED, STATUS_CANCELLED, STATUS_SKIPPED}),
    STATUS_COMPLETED: frozenset(),
    STATUS_CANCELLED: frozenset(),
    STATUS_SKIPPED: frozenset(),
}
REOPENABLE_STATUSES = frozenset({STATUS_CANCELLED, STATUS_SKIPPED})

LOW_STOCK_THRESHOLD_GRAMS = 500
REFERENCE_CUP_PRICE = 0.50
DAYS_PER_MONTH = 30

RATING_MIN = 1
RATING_MAX = 10
WATER_TEMP_MAX_F = 212


def normalize_currency(value: str | None) -> str:
    """Return an upper-case currency code with a USD default."""

    return (value or CURRENCY_USD).strip().upper()


def celsius_to_fahrenheit(value: float) -> float:
    return value * 9 / 5 + 32


__all__ = [
    "CURRENCY_CHOICES",
    "CURRENCY_HKD",
    "CURRENCY_JPY",
    "CURRENCY_USD",
    "DAYS_PER_MONTH",
    "LOW_STOCK_THRESHOLD_GRAMS",
    "RATING_MAX",
    "RATING_MIN",
    "REFERENCE_CUP_PRICE",
    "REOPENABLE_STATUSES",
    "ROAST_DARK",
    "ROAST_LEVEL_CHOICES",
    "ROAST_LIGHT",
    "ROAST_MEDIUM",
    "ROAST_MEDIUM_DARK",
    "SCHEDULE_STATUS_CHOICES",
    "SCHEDULE_TRANSITIONS",
    "STATUS_CANCELLED",
    "STATUS_COMPLETED",
    "STATUS_PLANNED",
    "STATUS_SKIPPED",
    "WATER_TEMP_MAX_F",
    "celsius_to_fahrenheit",
    "normalize_currency",
]
