import logging
import os
import sys
from datetime import date
from pathlib import Path

import pytest
from sqlalchemy import create_engine, update
from sqlalchemy.dialects import postgresql
from sqlalchemy.orm import sessionmaker

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

os.environ.setdefault("DATA_DIR", str(ROOT / "data"))

from beanbook.db.session import Base
from beanbook.crud.beans import create_bean, delete_bean, list_beans
from beanbook.crud.inventory import (
    adjust_lot_quantity,
    create_lot,
    get_lot,
    inventory_by_origin,
    inventory_summary,
    list_adjustments,
    list_lots,
    locked_quantity_stmt,
    total_inventory,
    update_lot,
)
from beanbook.models.inventory import InventoryAdjustment, InventoryLot
from beanbook.services.inventory import clamp_quantity, is_low_stock, low_stock_beans, origin_rollup

# Ensure models are imported so metadata is populated
from beanbook import models as _models  # noqa: F401

TODAY = date(2024, 5, 10)


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


def _bean(db, name, origin=None, owner="default"):
    return create_bean(db, {"name": name, "origin": origin}, owner=owner)


def test_adjustment_clamps_at_zero(db_session):
    bean = _bean(db_session, "Huila", "Colombia")
    lot = create_lot(db_session, {"coffee_bean_id": bean.id, "quantity_grams": 500})

    adjustment = adjust_lot_quantity(db_session, lot, -1000, reason="spilled")

    assert lot.quantity_grams == 0
    assert adjustment.requested_delta == -1000
    assert adjustment.applied_delta == -500
    assert adjustment.quantity_after == 0
    assert adjustment.clamped is True
    assert adjustment.reason == "spilled"


def test_adjustments_add_and_are_logged(db_session):
    bean = _bean(db_session, "Huila", "Colombia")
    lot = create_lot(db_session, {"coffee_bean_id": bean.id, "quantity_grams": 200})

    adjust_lot_quantity(db_session, lot, 250)
    adjust_lot_quantity(db_session, lot, -18)

    assert lot.quantity_grams == pytest.approx(432)
    history = list_adjustments(db_session, lot)
    assert [entry.requested_delta for entry in history] == [-18, 250]
    assert all(not entry.clamped for entry in history)


def test_applied_delta_uses_stored_quantity_not_stale_object(db_session):
    bean = _bean(db_session, "Huila", "Colombia")
    lot = create_lot(db_session, {"coffee_bean_id": bean.id, "quantity_grams": 500})
    # Another writer drains the lot behind this session's back.
    db_session.execute(
        update(InventoryLot)
        .where(InventoryLot.id == lot.id)
        .values(quantity_grams=100)
        .execution_options(synchronize_session=False)
    )

    adjustment = adjust_lot_quantity(db_session, lot, -300)

    assert adjustment.applied_delta == -100
    assert adjustment.quantity_after == 0
    assert adjustment.clamped is True


def test_quantity_read_locks_the_row():
    compiled = str(locked_quantity_stmt(7).compile(dialect=postgresql.dialect()))

    assert "FOR UPDATE" in compiled


def test_withdrawal_into_low_stock_is_logged(db_session, caplog):
    bean = _bean(db_session, "Huila", "Colombia")
    first = create_lot(db_session, {"coffee_bean_id": bean.id, "quantity_grams": 400})
    create_lot(db_session, {"coffee_bean_id": bean.id, "quantity_grams": 300})

    with caplog.at_level(logging.WARNING, logger="beanbook.inventory"):
        adjust_lot_quantity(db_session, first, -100)
        assert not [r for r in caplog.records if r.getMessage() == "inventory.low_stock"]
        adjust_lot_quantity(db_session, first, -150)

    warnings = [r for r in caplog.records if r.getMessage() == "inventory.low_stock"]
    assert len(warnings) == 1
    assert warnings[0].extra_data == {"coffee_bean_id": bean.id, "total_inventory": 450.0}


def test_negative_lot_quantity_is_rejected(db_session):
    bean = _bean(db_session, "Huila")

    with pytest.raises(ValueError):
        create_lot(db_session, {"coffee_bean_id": bean.id, "quantity_grams": -5})

    lot = create_lot(db_session, {"coffee_bean_id": bean.id, "quantity_grams": 5})
    with pytest.raises(ValueError):
        update_lot(db_session, lot, {"quantity_grams": -1})


def test_total_inventory_and_listing_annotations(db_session):
    bean = _bean(db_session, "Sidamo", "Ethiopia")
    empty = _bean(db_session, "Empty", "Ethiopia")
    create_lot(db_session, {"coffee_bean_id": bean.id, "quantity_grams": 300})
    create_lot(db_session, {"coffee_bean_id": bean.id, "quantity_grams": 450})

    assert total_inventory(db_session, bean.id) == pytest.approx(750)
    assert total_inventory(db_session, empty.id) == 0

    by_id = {row.id: row for row in list_beans(db_session)}
    assert by_id[bean.id].total_inventory == pytest.approx(750)
    assert by_id[empty.id].total_inventory == 0
    assert len(list_lots(db_session, coffee_bean_id=bean.id)) == 2


def test_low_stock_threshold():
    assert is_low_stock(499.9)
    assert is_low_stock(None)
    assert not is_low_stock(500)
    assert clamp_quantity(100, -250) == 0
    assert clamp_quantity(None, 40) == 40

    rows = [
        {"id": 1, "total_inventory": 400},
        {"id": 2, "total_inventory": 900},
        {"id": 3, "total_inventory": 0},
        {"id": 4, "total_inventory": 400},
    ]
    assert [row["id"] for row in low_stock_beans(rows)] == [3, 1, 4]


def test_origin_rollup_groups_beans():
    beans = [
        {"id": 1, "origin": "Kenya"},
        {"id": 2, "origin": "Kenya"},
        {"id": 3, "origin": "Brazil"},
        {"id": 4, "origin": None},
    ]
    lots = [
        {"coffee_bean_id": 1, "quantity_grams": 600, "purchase_date": date(2024, 1, 5)},
        {"coffee_bean_id": 1, "quantity_grams": 200, "purchase_date": date(2024, 3, 1)},
        {"coffee_bean_id": 2, "quantity_grams": 100, "purchase_date": None},
        {"coffee_bean_id": 3, "quantity_grams": 2000, "purchase_date": date(2024, 2, 2)},
    ]

    rollup = origin_rollup(beans, lots)

    assert [group["origin"] for group in rollup] == ["Brazil", "Kenya", None]
    kenya = rollup[1]
    assert kenya["unique_beans"] == 2
    assert kenya["total_items"] == 3
    assert kenya["total_quantity"] == pytest.approx(900)
    assert kenya["avg_quantity"] == pytest.approx(300)
    assert kenya["low_stock_count"] == 1
    assert kenya["earliest_purchase"] == date(2024, 1, 5)
    assert kenya["latest_purchase"] == date(2024, 3, 1)
    assert rollup[2]["low_stock_count"] == 1
    assert rollup[2]["total_items"] == 0


def test_inventory_summary_and_origin_listing(db_session):
    kenya = _bean(db_session, "Kenya AA", "Kenya")
    brazil = _bean(db_session, "Cerrado", "Brazil")
    _bean(db_session, "No lots", "Peru")
    create_lot(db_session, {"coffee_bean_id": kenya.id, "quantity_grams": 300, "expiry_date": date(2024, 5, 9)})
    create_lot(db_session, {"coffee_bean_id": brazil.id, "quantity_grams": 700, "expiry_date": date(2024, 5, 10)})

    summary = inventory_summary(db_session, TODAY)

    assert summary["total_beans"] == 2
    assert summary["total_lots"] == 2
    assert summary["total_quantity"] == pytest.approx(1000)
    assert summary["avg_quantity"] == pytest.approx(500)
    assert summary["low_stock_count"] == 1
    assert summary["expired_count"] == 1
    assert summary["unique_origins"] == 2

    origins = inventory_by_origin(db_session)
    assert [group["origin"] for group in origins] == ["Brazil", "Kenya", "Peru"]


def test_lots_are_scoped_to_bean_owner(db_session):
    mine = _bean(db_session, "Mine", owner="alice")
    lot = create_lot(db_session, {"coffee_bean_id": mine.id, "quantity_grams": 100})

    assert get_lot(db_session, lot.id, owner="alice") is not None
    assert get_lot(db_session, lot.id, owner="bob") is None
    assert list_lots(db_session, owner="bob") == []


def test_deleting_bean_removes_lots_and_adjustments(db_session):
    bean = _bean(db_session, "Gone")
    lot = create_lot(db_session, {"coffee_bean_id": bean.id, "quantity_grams": 100})
    adjust_lot_quantity(db_session, lot, -10)

    delete_bean(db_session, bean)

    assert db_session.query(InventoryLot).count() == 0
    assert db_session.query(InventoryAdjustment).count() == 0
