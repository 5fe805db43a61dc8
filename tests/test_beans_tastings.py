import os
import sys
from datetime import date
from pathlib import Path

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

os.environ.setdefault("DATA_DIR", str(ROOT / "data"))

from beanbook.db.session import Base
from beanbook.crud.beans import beans_with_dates, create_bean, delete_bean, get_bean, list_beans, update_bean
from beanbook.crud.tastings import (
    create_tasting,
    list_tastings,
    tasting_stats,
    top_rated,
    update_tasting,
)
from beanbook.models.tasting import TastingNote

# Ensure models are imported so metadata is populated
from beanbook import models as _models  # noqa: F401

TODAY = date(2024, 9, 12)


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


def _taste(db, bean, overall, **extra):
    return create_tasting(db, {"coffee_bean_id": bean.id, "overall_rating": overall, **extra}, today=TODAY)


def test_create_bean_derives_price_per_gram(db_session):
    bean = create_bean(
        db_session,
        {
            "name": "  Bourbon  ",
            "origin": "Rwanda",
            "roast_level": "Medium",
            "buying_price": 18.0,
            "amount_grams": 250,
            "buying_price_currency": "hkd",
        },
        owner="default",
    )

    assert bean.name == "Bourbon"
    assert bean.price_per_gram == pytest.approx(0.072)
    assert bean.buying_price_currency == "HKD"
    assert bean.total_cost == 0
    assert bean.cups_brewed == 0

    update_bean(db_session, bean, {"buying_price": 25.0})
    assert bean.price_per_gram == pytest.approx(0.1)


def test_bean_validation(db_session):
    with pytest.raises(ValueError):
        create_bean(db_session, {"name": "   "}, owner="default")
    with pytest.raises(ValueError):
        create_bean(db_session, {"name": "Odd", "roast_level": "Blonde"}, owner="default")
    with pytest.raises(ValueError):
        create_bean(db_session, {"name": "Euro", "buying_price_currency": "eur"}, owner="default")

    bean = create_bean(db_session, {"name": "Kept"}, owner="default")
    with pytest.raises(ValueError):
        update_bean(db_session, bean, {"buying_price_currency": "GBP"})
    assert bean.buying_price_currency == "USD"


def test_missing_price_or_amount_leaves_price_per_gram_zero(db_session):
    bean = create_bean(db_session, {"name": "Gift", "buying_price": 12.0}, owner="default")

    assert bean.price_per_gram == 0


def test_list_beans_filters_and_annotations(db_session):
    dark = create_bean(db_session, {"name": "Sumatra", "origin": "Indonesia", "roast_level": "Dark"}, owner="default")
    light = create_bean(db_session, {"name": "Kenya", "origin": "Kenya", "roast_level": "Light"}, owner="default")
    create_bean(db_session, {"name": "Other", "origin": "Kenya"}, owner="someone-else")
    _taste(db_session, light, 8)
    _taste(db_session, light, 6)

    beans = list_beans(db_session, owner="default")
    assert [bean.id for bean in beans] == [light.id, dark.id]
    assert beans[0].tasting_count == 2
    assert beans[0].avg_rating == pytest.approx(7.0)
    assert beans[1].tasting_count == 0
    assert beans[1].avg_rating is None

    assert [bean.id for bean in list_beans(db_session, owner="default", origin="KEN")] == [light.id]
    assert [bean.id for bean in list_beans(db_session, owner="default", roast_level="Dark")] == [dark.id]
    assert get_bean(db_session, light.id, owner="someone-else") is None


def test_beans_with_dates_only_lists_dated_beans(db_session):
    dated = create_bean(db_session, {"name": "Dated", "roast_date": date(2024, 9, 1)}, owner="default")
    create_bean(db_session, {"name": "Undated"}, owner="default")

    assert [bean.id for bean in beans_with_dates(db_session)] == [dated.id]


def test_tasting_defaults_and_celsius_conversion(db_session):
    bean = create_bean(db_session, {"name": "Typica"}, owner="default")

    tasting = _taste(db_session, bean, 9, water_temp=93.3, water_temp_unit="C", notes=" jammy ")

    assert tasting.tasting_date == TODAY
    assert tasting.water_temp == pytest.approx(199.9)
    assert tasting.notes == "jammy"

    fahrenheit = _taste(db_session, bean, 7, water_temp=200)
    assert fahrenheit.water_temp == pytest.approx(200)


def test_tasting_rating_bounds(db_session):
    bean = create_bean(db_session, {"name": "Typica"}, owner="default")

    with pytest.raises(ValueError):
        _taste(db_session, bean, 11)
    with pytest.raises(ValueError):
        _taste(db_session, bean, 7, aroma_rating=0)
    with pytest.raises(ValueError):
        create_tasting(db_session, {"coffee_bean_id": bean.id}, today=TODAY)

    tasting = _taste(db_session, bean, 5)
    with pytest.raises(ValueError):
        update_tasting(db_session, tasting, {"overall_rating": None})
    assert db_session.query(TastingNote).count() == 1


def test_tasting_listing_and_stats(db_session):
    bean = create_bean(db_session, {"name": "Pacamara"}, owner="default")
    other = create_bean(db_session, {"name": "Catuai"}, owner="default")
    early = _taste(db_session, bean, 9, tasting_date=date(2024, 9, 1), aroma_rating=8)
    late = _taste(db_session, bean, 6, tasting_date=date(2024, 9, 10), aroma_rating=6)
    poor = _taste(db_session, other, 4, tasting_date=date(2024, 8, 20))

    assert [t.id for t in list_tastings(db_session)] == [late.id, early.id, poor.id]
    assert [t.id for t in list_tastings(db_session, coffee_bean_id=bean.id)] == [late.id, early.id]
    ranged = list_tastings(db_session, start_date=date(2024, 8, 25), end_date=date(2024, 9, 5))
    assert [t.id for t in ranged] == [early.id]
    assert [t.id for t in top_rated(db_session, limit=2)] == [early.id, late.id]

    stats = tasting_stats(db_session)
    assert stats["total_tastings"] == 3
    assert stats["unique_beans"] == 2
    assert stats["avg_overall_rating"] == pytest.approx(6.33)
    assert stats["avg_aroma_rating"] == pytest.approx(7.0)
    assert stats["avg_body_rating"] is None
    assert stats["excellent_count"] == 1
    assert stats["good_count"] == 1
    assert stats["poor_count"] == 1


def test_deleting_bean_removes_tastings(db_session):
    bean = create_bean(db_session, {"name": "Short lived"}, owner="default")
    _taste(db_session, bean, 7)

    delete_bean(db_session, bean)

    assert db_session.query(TastingNote).count() == 0
    assert list_beans(db_session) == []
