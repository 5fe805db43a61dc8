from __future__ import annotations

from collections import defaultdict
from decimal import Decimal, InvalidOperation, ROUND_HALF_UP
from typing import Any, Iterable, Mapping

from ..core.coffee_types import DAYS_PER_MONTH, REFERENCE_CUP_PRICE, normalize_currency

TWOPLACES = Decimal("0.01")
FOURPLACES = Decimal("0.0001")
RATE_PLACES = Decimal("0.000001")
HUNDRED = Decimal("100")


def _to_decimal(value: Any) -> Decimal:
    """Best-effort conversion of stored numbers to Decimal for money math."""

    if isinstance(value, Decimal):
        return value
    if value is None:
        return Decimal("0")
    if isinstance(value, (int, float)):
        return Decimal(str(value))
    if isinstance(value, str):
        cleaned = value.strip().replace("$", "").replace(",", "")
        if not cleaned:
            return Decimal("0")
        try:
            return Decimal(cleaned)
        except InvalidOperation:
            return Decimal("0")
    return Decimal("0")


def _quantize_currency(value: Decimal) -> Decimal:
    return value.quantize(TWOPLACES, rounding=ROUND_HALF_UP) if value else Decimal("0.00")


def _get(row: Any, key: str, default: Any = None) -> Any:
    if isinstance(row, Mapping):
        return row.get(key, default)
    return getattr(row, key, default)


def safe_ratio(numerator: Any, denominator: Any) -> Decimal:
    """numerator / denominator, or 0 when the denominator is missing or not positive."""

    denom = _to_decimal(denominator)
    if denom <= 0:
        return Decimal("0")
    return _to_decimal(numerator) / denom


def cost_per_cup(total_cost: Any, cups_brewed: Any) -> Decimal:
    return safe_ratio(total_cost, cups_brewed)


def cost_per_gram(amount: Any, quantity_grams: Any) -> Decimal:
    return safe_ratio(amount, quantity_grams)


def price_per_gram(buying_price: Any, amount_grams: Any) -> Decimal:
    if buying_price is None or amount_grams is None:
        return Decimal("0")
    return safe_ratio(buying_price, amount_grams)


def monthly_cost_at_one_cup_per_day(total_cost: Any, cups_brewed: Any) -> Decimal:
    return cost_per_cup(total_cost, cups_brewed) * DAYS_PER_MONTH


def premium_over_standard_cup(total_cost: Any, cups_brewed: Any) -> Decimal:
    """Cost per cup as a percentage of the reference commodity cup price."""

    per_cup = cost_per_cup(total_cost, cups_brewed)
    return per_cup / _to_decimal(REFERENCE_CUP_PRICE) * HUNDRED


def cost_share_percent(total_cost: Any, cups_brewed: Any) -> Decimal:
    return cost_per_cup(total_cost, cups_brewed) * HUNDRED


def _cost_rows(beans: Iterable[Any]) -> list[Any]:
    rows = [bean for bean in beans if _to_decimal(_get(bean, "total_cost")) > 0]
    rows.sort(key=lambda bean: cost_per_cup(_get(bean, "total_cost"), _get(bean, "cups_brewed")), reverse=True)
    return rows


def cost_analysis(beans: Iterable[Any]) -> list[dict[str, Any]]:
    """Per-bean cost per cup and the monthly cost at one cup a day.

    Only beans with spend are listed, most expensive cup first.
    """

    results = []
    for bean in _cost_rows(beans):
        total = _get(bean, "total_cost")
        cups = _get(bean, "cups_brewed") or 0
        results.append(
            {
                "id": _get(bean, "id"),
                "name": _get(bean, "name"),
                "origin": _get(bean, "origin"),
                "currency": normalize_currency(_get(bean, "buying_price_currency")),
                "total_cost": _quantize_currency(_to_decimal(total)),
                "cups_brewed": int(cups),
                "cost_per_cup": _quantize_currency(cost_per_cup(total, cups)),
                "monthly_cost_at_1_cup_per_day": _quantize_currency(monthly_cost_at_one_cup_per_day(total, cups)),
            }
        )
    return results


def cost_roi(beans: Iterable[Any]) -> list[dict[str, Any]]:
    results = []
    for bean in _cost_rows(beans):
        total = _get(bean, "total_cost")
        cups = _get(bean, "cups_brewed") or 0
        results.append(
            {
                "id": _get(bean, "id"),
                "name": _get(bean, "name"),
                "origin": _get(bean, "origin"),
                "currency": normalize_currency(_get(bean, "buying_price_currency")),
                "total_cost": _quantize_currency(_to_decimal(total)),
                "cups_brewed": int(cups),
                "cost_per_cup": _quantize_currency(cost_per_cup(total, cups)),
                "cost_percentage_of_total": _quantize_currency(cost_share_percent(total, cups)),
                "premium_over_standard_cup": _quantize_currency(premium_over_standard_cup(total, cups)),
            }
        )
    return results


class CurrencyConverter:
    """Convert amounts into a single base currency using fixed rates.

    Amounts in a currency with no configured rate are rejected rather than
    silently summed at face value.
    """

    def __init__(self, base_currency: str, rates: Mapping[str, float]) -> None:
        self.base_currency = normalize_currency(base_currency)
        self.rates = {normalize_currency(code): _to_decimal(rate) for code, rate in rates.items()}
        self.rates.setdefault(self.base_currency, Decimal("1"))

    def rate_for(self, currency: str | None) -> Decimal:
        code = normalize_currency(currency)
        rate = self.rates.get(code)
        if rate is None or rate <= 0:
            raise ValueError(f"no exchange rate configured for {code}")
        return rate

    def to_base(self, amount: Any, currency: str | None) -> Decimal:
        return _to_decimal(amount) * self.rate_for(currency)


def portfolio_totals(beans: Iterable[Any], converter: CurrencyConverter) -> dict[str, Any]:
    """Spend and cups across every bean, per currency and converted to the base currency."""

    per_currency: dict[str, dict[str, Any]] = defaultdict(
        lambda: {"total_cost": Decimal("0"), "cups_brewed": 0, "beans": 0}
    )
    base_total = Decimal("0")
    cups_total = 0
    for bean in beans:
        total = _to_decimal(_get(bean, "total_cost"))
        cups = int(_get(bean, "cups_brewed") or 0)
        currency = normalize_currency(_get(bean, "buying_price_currency"))
        bucket = per_currency[currency]
        bucket["total_cost"] += total
        bucket["cups_brewed"] += cups
        bucket["beans"] += 1
        base_total += converter.to_base(total, currency)
        cups_total += cups

    by_currency = [
        {
            "currency": code,
            "total_cost": _quantize_currency(bucket["total_cost"]),
            "cups_brewed": bucket["cups_brewed"],
            "cost_per_cup": _quantize_currency(cost_per_cup(bucket["total_cost"], bucket["cups_brewed"])),
            "beans": bucket["beans"],
        }
        for code, bucket in sorted(per_currency.items())
    ]
    return {
        "base_currency": converter.base_currency,
        "total_cost": _quantize_currency(base_total),
        "cups_brewed": cups_total,
        "avg_cost_per_cup": _quantize_currency(cost_per_cup(base_total, cups_total)),
        "by_currency": by_currency,
    }


__all__ = [
    "CurrencyConverter",
    "cost_analysis",
    "cost_per_cup",
    "cost_per_gram",
    "cost_roi",
    "cost_share_percent",
    "monthly_cost_at_one_cup_per_day",
    "portfolio_totals",
    "premium_over_standard_cup",
    "price_per_gram",
    "safe_ratio",
]
