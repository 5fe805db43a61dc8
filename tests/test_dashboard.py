import os
import sys
from pathlib import Path

import pytest

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

os.environ.setdefault("DATA_DIR", str(ROOT / "data"))

from beanbook.services.costing import CurrencyConverter
from beanbook.services.dashboard import dashboard_stats, first_max

CONVERTER = CurrencyConverter("USD", {"USD": 1.0, "HKD": 0.128, "JPY": 0.0067})


def test_empty_dashboard():
    stats = dashboard_stats([], CONVERTER)

    assert stats == {
        "total_beans": 0,
        "total_inventory": 0,
        "total_tastings": 0,
        "avg_rating": 0,
        "unique_origins": 0,
        "low_stock_count": 0,
        "most_expensive": None,
        "highest_rated": None,
    }


def test_dashboard_rollup_over_listing():
    beans = [
        {
            "id": 1,
            "name": "Kona",
            "origin": "Hawaii",
            "total_inventory": 250.0,
            "tasting_count": 2,
            "avg_rating": 8.5,
            "price_per_gram": 0.2,
            "buying_price_currency": "USD",
        },
        {
            "id": 2,
            "name": "Hong Kong roast",
            "origin": "Hawaii",
            "total_inventory": 1000.04,
            "tasting_count": 1,
            "avg_rating": 6.0,
            "price_per_gram": 1.0,
            "buying_price_currency": "HKD",
        },
        {
            "id": 3,
            "name": "Unrated",
            "origin": None,
            "total_inventory": 600.0,
            "tasting_count": 0,
            "avg_rating": None,
            "price_per_gram": 0.0,
            "buying_price_currency": "USD",
        },
    ]

    stats = dashboard_stats(beans, CONVERTER)

    assert stats["total_beans"] == 3
    assert stats["total_inventory"] == pytest.approx(1850.0)
    assert stats["total_tastings"] == 3
    # The unrated bean still counts in the denominator.
    assert stats["avg_rating"] == pytest.approx(4.8)
    assert stats["unique_origins"] == 1
    assert stats["low_stock_count"] == 1
    assert stats["most_expensive"]["id"] == 1
    assert stats["most_expensive"]["buying_price_currency"] == "USD"
    assert stats["highest_rated"] == {"id": 1, "name": "Kona", "origin": "Hawaii", "avg_rating": 8.5}


def test_ties_keep_first_row():
    rows = [{"id": 1, "score": 5}, {"id": 2, "score": 7}, {"id": 3, "score": 7}]

    assert first_max(rows, key=lambda row: row["score"])["id"] == 2
    assert first_max([], key=lambda row: row["score"]) is None


def test_dashboard_rejects_unknown_currency():
    beans = [{"id": 1, "name": "Euro", "price_per_gram": 0.1, "buying_price_currency": "EUR"}]

    with pytest.raises(ValueError):
        dashboard_stats(beans, CONVERTER)
