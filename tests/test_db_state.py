"""Tests for StateDB snapshot persistence."""

import pytest

from shopwell.db import StateDB
from shopwell.db.state import STATE_KEY
from shopwell.models import (
    AppSettings,
    AppState,
    PriceRecord,
    Product,
    Schedule,
    Shop,
    ShoppingItem,
    ShoppingList,
)


@pytest.fixture
def db(tmp_path):
    """Create a temporary StateDB."""
    state_db = StateDB(db_path=tmp_path / "test.db")
    yield state_db
    state_db.close()


@pytest.fixture
def sample_state():
    return AppState(
        products=(Product(id="p1", name="Milk", category="food", is_available=False),),
        shops=(Shop(id="s1", name="Aldi", latitude=52.52, longitude=13.405),),
        price_records=(
            PriceRecord(id="r1", product_id="p1", shop_id="s1", price=1.2, brand="Alpro"),
        ),
        shopping_lists=(
            ShoppingList(
                id="l1",
                name="Weekly",
                items=(ShoppingItem(id="i1", name="Milk", quantity=2, product_id="p1"),),
            ),
        ),
        schedules=(
            Schedule(id="t1", title="Groceries", date="2026-03-01", time="18:30"),
        ),
        settings=AppSettings(currency="$"),
    )


def test_load_missing_returns_none(db):
    assert db.load_state() is None


def test_save_and_load(db, sample_state):
    db.save_state(sample_state)
    loaded = db.load_state()

    assert loaded is not None
    assert loaded.products == sample_state.products
    assert loaded.shops == sample_state.shops
    assert loaded.shopping_lists == sample_state.shopping_lists
    assert loaded.schedules == sample_state.schedules
    assert loaded.settings.currency == "$"

    record = loaded.price_records[0]
    assert (record.id, record.product_id, record.shop_id) == ("r1", "p1", "s1")
    assert record.price == 1.2
    assert record.brand == "Alpro"


def test_save_replaces_previous(db, sample_state):
    db.save_state(sample_state)
    db.save_state(AppState())

    loaded = db.load_state()
    assert loaded.products == ()
    rows = db._get_conn().execute("SELECT COUNT(*) AS n FROM app_state").fetchone()
    assert rows["n"] == 1


def test_missing_settings_use_defaults(db):
    conn = db._get_conn()
    conn.execute(
        "INSERT INTO app_state (key, value) VALUES (?, ?)",
        (STATE_KEY, '{"products": [], "settings": {"currency": "$"}}'),
    )
    conn.commit()

    defaults = AppSettings(default_geofence_radius=500)
    loaded = db.load_state(default_settings=defaults)
    assert loaded.settings.currency == "$"
    assert loaded.settings.default_geofence_radius == 500


def test_corrupt_state_treated_as_missing(db):
    conn = db._get_conn()
    conn.execute(
        "INSERT INTO app_state (key, value) VALUES (?, ?)", (STATE_KEY, "{not json")
    )
    conn.commit()

    assert db.load_state() is None


def test_clear_state(db, sample_state):
    db.save_state(sample_state)
    db.clear_state()
    assert db.load_state() is None


def test_persists_across_connections(tmp_path, sample_state):
    path = tmp_path / "test.db"
    first = StateDB(path)
    first.save_state(sample_state)
    first.close()

    second = StateDB(path)
    try:
        assert second.load_state().products == sample_state.products
    finally:
        second.close()
