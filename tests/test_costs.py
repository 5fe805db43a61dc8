import os
import sys
from datetime import date
from decimal import Decimal
from pathlib import Path

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

os.environ.setdefault("DATA_DIR", str(ROOT / "data"))

from beanbook.db.session import Base
from beanbook.crud.beans import create_bean, get_bean, list_beans
from beanbook.crud.brew_logs import (
    brew_method_breakdown,
    brewing_stats,
    create_brew_log,
    delete_brew_log,
    list_brew_logs,
)
from beanbook.crud.costs import create_cost_entry, delete_cost_entry, list_cost_entries, monthly_spending
from beanbook.services.costing import (
    CurrencyConverter,
    cost_analysis,
    cost_per_cup,
    cost_roi,
    monthly_cost_at_one_cup_per_day,
    portfolio_totals,
    premium_over_standard_cup,
)

# Ensure models are imported so metadata is populated
from beanbook import models as _models  # noqa: F401

TODAY = date(2024, 3, 20)


@pytest.fixture()
def db_session():
    engine = create_engine("sqlite://", connect_args={"check_same_thread": False})
    TestingSessionLocal = sessionmaker(bind=engine, autocommit=False, autoflush=False)
    Base.metadata.create_all(bind=engine)
    session = TestingSessionLocal()
    try:
        yield session
    finally:
        session.close()


def _bean(db, name="Yirgacheffe", **extra):
    payload = {"name": name, "origin": "Ethiopia", **extra}
    return create_bean(db, payload, owner="default")


def test_cost_entries_accumulate_total_cost(db_session):
    bean = _bean(db_session)

    first = create_cost_entry(db_session, bean, {"amount": 10.00, "quantity_grams": 100}, today=TODAY)
    second = create_cost_entry(db_session, bean, {"amount": 5.00, "quantity_grams": 50}, today=TODAY)

    assert first.cost_per_gram == pytest.approx(0.10)
    assert second.cost_per_gram == pytest.approx(0.10)
    assert first.purchase_date == TODAY
    assert bean.total_cost == pytest.approx(15.00)
    assert bean.cost_per_cup == 0


def test_brew_logs_drive_cups_and_cost_per_cup(db_session):
    bean = _bean(db_session)
    create_cost_entry(db_session, bean, {"amount": 9.00, "quantity_grams": 250}, today=TODAY)

    create_brew_log(db_session, bean, {"grams_used": 15, "cups_made": 1, "brew_method": "V60"}, today=TODAY)
    create_brew_log(db_session, bean, {"grams_used": 30, "cups_made": 2, "brew_method": "Chemex"}, today=TODAY)

    assert bean.cups_brewed == 3
    assert bean.cost_per_cup == pytest.approx(3.00)


def test_deleting_entries_recomputes_counters(db_session):
    bean = _bean(db_session)
    entry = create_cost_entry(db_session, bean, {"amount": 12.00, "quantity_grams": 200}, today=TODAY)
    create_cost_entry(db_session, bean, {"amount": 6.00, "quantity_grams": 100}, today=TODAY)
    log = create_brew_log(db_session, bean, {"grams_used": 18, "cups_made": 2}, today=TODAY)
    create_brew_log(db_session, bean, {"grams_used": 18, "cups_made": 1}, today=TODAY)

    delete_cost_entry(db_session, entry)
    delete_brew_log(db_session, log)

    refreshed = get_bean(db_session, bean.id)
    assert refreshed.total_cost == pytest.approx(6.00)
    assert refreshed.cups_brewed == 1
    assert refreshed.cost_per_cup == pytest.approx(6.00)
    assert len(list_cost_entries(db_session, coffee_bean_id=bean.id)) == 1
    assert len(list_brew_logs(db_session, coffee_bean_id=bean.id)) == 1


def test_invalid_entries_are_rejected(db_session):
    bean = _bean(db_session)

    with pytest.raises(ValueError):
        create_cost_entry(db_session, bean, {"amount": -1, "quantity_grams": 100}, today=TODAY)
    with pytest.raises(ValueError):
        create_cost_entry(db_session, bean, {"amount": 5, "quantity_grams": 0}, today=TODAY)
    with pytest.raises(ValueError):
        create_brew_log(db_session, bean, {"grams_used": 0}, today=TODAY)
    with pytest.raises(ValueError):
        create_brew_log(db_session, bean, {"grams_used": 15, "cups_made": 0}, today=TODAY)

    assert get_bean(db_session, bean.id).total_cost == 0


def test_monthly_spending_only_counts_that_month(db_session):
    kenya = _bean(db_session, name="Kenya AA", origin="Kenya")
    peru = _bean(db_session, name="Peru", origin="Peru")
    create_cost_entry(db_session, kenya, {"amount": 20, "quantity_grams": 250, "purchase_date": date(2024, 3, 1)}, today=TODAY)
    create_cost_entry(db_session, kenya, {"amount": 10, "quantity_grams": 250, "purchase_date": date(2024, 3, 31)}, today=TODAY)
    create_cost_entry(db_session, kenya, {"amount": 99, "quantity_grams": 250, "purchase_date": date(2024, 4, 1)}, today=TODAY)
    create_cost_entry(db_session, peru, {"amount": 8, "quantity_grams": 100, "purchase_date": date(2024, 3, 15)}, today=TODAY)
    create_cost_entry(db_session, peru, {"amount": 50, "quantity_grams": 100, "purchase_date": date(2024, 2, 29)}, today=TODAY)

    rows = monthly_spending(db_session, 2024, 3)

    assert [row["name"] for row in rows] == ["Kenya AA", "Peru"]
    assert rows[0]["total_spent"] == Decimal("30.00")
    assert rows[0]["total_grams"] == 500
    assert rows[0]["purchases"] == 2
    assert rows[0]["avg_cost_per_gram"] == Decimal("0.0600")
    assert rows[1]["total_spent"] == Decimal("8.00")


def test_monthly_average_is_mean_of_purchase_ratios(db_session):
    bean = _bean(db_session, name="Yirgacheffe")
    create_cost_entry(db_session, bean, {"amount": 10, "quantity_grams": 100, "purchase_date": date(2024, 3, 2)}, today=TODAY)
    create_cost_entry(db_session, bean, {"amount": 10, "quantity_grams": 400, "purchase_date": date(2024, 3, 20)}, today=TODAY)

    [row] = monthly_spending(db_session, 2024, 3)

    # (0.1 + 0.025) / 2, where 20 / 500 would give 0.0400.
    assert row["avg_cost_per_gram"] == Decimal("0.0625")
    assert row["total_spent"] == Decimal("20.00")
    assert row["total_grams"] == 500


def test_monthly_spending_rejects_bad_month(db_session):
    with pytest.raises(ValueError):
        monthly_spending(db_session, 2024, 13)


def test_brewing_stats_and_method_breakdown(db_session):
    bean = _bean(db_session)
    create_brew_log(db_session, bean, {"grams_used": 15, "cups_made": 1, "brew_method": "V60"}, today=TODAY)
    create_brew_log(db_session, bean, {"grams_used": 21, "cups_made": 1, "brew_method": "V60"}, today=TODAY)
    create_brew_log(db_session, bean, {"grams_used": 30, "cups_made": 2, "brew_method": "Chemex"}, today=TODAY)

    stats = brewing_stats(db_session)
    methods = brew_method_breakdown(db_session)

    assert stats["total_brews"] == 3
    assert stats["total_cups"] == 4
    assert stats["total_grams"] == 66
    assert stats["avg_grams_per_brew"] == pytest.approx(22.0)
    assert stats["unique_methods"] == 2
    assert [row["brew_method"] for row in methods] == ["V60", "Chemex"]
    assert methods[0]["brew_count"] == 2
    assert methods[0]["avg_grams"] == pytest.approx(18.0)


def test_cost_formulas():
    assert cost_per_cup(9, 3) == Decimal("3")
    assert cost_per_cup(9, 0) == Decimal("0")
    assert cost_per_cup(9, None) == Decimal("0")
    assert monthly_cost_at_one_cup_per_day(9, 3) == Decimal("90")
    assert premium_over_standard_cup(1.5, 1) == Decimal("300")


def test_cost_analysis_lists_spenders_by_cup_cost(db_session):
    cheap = _bean(db_session, name="Cheap")
    pricey = _bean(db_session, name="Pricey", buying_price_currency="HKD")
    _bean(db_session, name="Unpaid")
    create_cost_entry(db_session, cheap, {"amount": 10, "quantity_grams": 500}, today=TODAY)
    create_cost_entry(db_session, pricey, {"amount": 40, "quantity_grams": 250}, today=TODAY)
    for _ in range(4):
        create_brew_log(db_session, cheap, {"grams_used": 15}, today=TODAY)
    create_brew_log(db_session, pricey, {"grams_used": 15, "cups_made": 2}, today=TODAY)

    beans = list_beans(db_session)
    analysis = cost_analysis(beans)
    roi = cost_roi(beans)

    assert [row["name"] for row in analysis] == ["Pricey", "Cheap"]
    assert analysis[0]["cost_per_cup"] == Decimal("20.00")
    assert analysis[0]["currency"] == "HKD"
    assert analysis[1]["cost_per_cup"] == Decimal("2.50")
    assert analysis[1]["monthly_cost_at_1_cup_per_day"] == Decimal("75.00")
    assert roi[1]["premium_over_standard_cup"] == Decimal("500.00")
    assert roi[1]["cost_percentage_of_total"] == Decimal("250.00")


def test_portfolio_totals_convert_to_base_currency():
    converter = CurrencyConverter("USD", {"USD": 1.0, "HKD": 0.128})
    beans = [
        {"total_cost": 10, "cups_brewed": 4, "buying_price_currency": "USD"},
        {"total_cost": 100, "cups_brewed": 6, "buying_price_currency": "HKD"},
    ]

    totals = portfolio_totals(beans, converter)

    assert totals["base_currency"] == "USD"
    assert totals["total_cost"] == Decimal("22.80")
    assert totals["cups_brewed"] == 10
    assert totals["avg_cost_per_cup"] == Decimal("2.28")
    assert [row["currency"] for row in totals["by_currency"]] == ["HKD", "USD"]
    assert totals["by_currency"][0]["total_cost"] == Decimal("100.00")


def test_portfolio_totals_reject_unknown_currency():
    converter = CurrencyConverter("USD", {"USD": 1.0})

    with pytest.raises(ValueError):
        portfolio_totals([{"total_cost": 5, "cups_brewed": 1, "buying_price_currency": "EUR"}], converter)
