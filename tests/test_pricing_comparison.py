"""Tests for single-product price comparison."""

import pytest

from shopwell.models import PriceRecord, Product, Shop
from shopwell.pricing.comparison import (
    all_options_for_product,
    cheaper_elsewhere,
    cheapest_anywhere,
    cheapest_at_shop,
    compare,
    price_range,
)


def _record(id, product_id, shop_id, price, brand=None):
    return PriceRecord(
        id=id, product_id=product_id, shop_id=shop_id, price=price, brand=brand
    )


@pytest.fixture
def products():
    return [
        Product(id="p1", name="Milk", category="food", is_available=False),
        Product(id="p2", name="Bread", category="food", is_available=False),
        Product(id="p3", name="Soap", category="healthBeauty"),
    ]


@pytest.fixture
def shops():
    return [
        Shop(id="s1", name="Aldi", category="grocery"),
        Shop(id="s2", name="Lidl", category="grocery"),
        Shop(id="s3", name="Rewe", category="grocery"),
    ]


@pytest.fixture
def milk_records():
    return [
        _record("r1", "p1", "s1", 1.20, brand="Alpro"),
        _record("r2", "p1", "s2", 1.00, brand="Oatly"),
    ]


class TestCheapestAtShop:
    def test_no_records(self):
        assert cheapest_at_shop("p1", "s1", []) is None

    def test_no_match_for_pair(self, milk_records):
        assert cheapest_at_shop("p1", "s3", milk_records) is None
        assert cheapest_at_shop("p9", "s1", milk_records) is None

    def test_picks_cheapest_brand(self):
        records = [
            _record("r1", "p1", "s1", 1.50, brand="Alpro"),
            _record("r2", "p1", "s1", 0.99, brand="Store"),
            _record("r3", "p1", "s1", 1.20, brand="Oatly"),
            _record("r4", "p1", "s2", 0.50, brand="Other"),
        ]
        assert cheapest_at_shop("p1", "s1", records) is records[1]

    def test_tie_returns_minimal_price_record(self):
        records = [
            _record("r1", "p1", "s1", 1.00, brand="A"),
            _record("r2", "p1", "s1", 1.00, brand="B"),
        ]
        result = cheapest_at_shop("p1", "s1", records)
        assert result in records
        assert result.price == 1.00


class TestCheapestAnywhere:
    def test_no_records(self, shops):
        assert cheapest_anywhere("p1", [], shops) is None

    def test_returns_true_minimum(self, milk_records, shops):
        option = cheapest_anywhere("p1", milk_records, shops)
        assert option is not None
        assert option.price == min(r.price for r in milk_records)
        assert option.shop.id == "s2"
        assert option.record is milk_records[1]

    def test_dangling_shop_reference(self, shops):
        records = [
            _record("r1", "p1", "s1", 2.00),
            _record("r2", "p1", "gone", 1.00),
        ]
        assert cheapest_anywhere("p1", records, shops) is None

    def test_accepts_generators(self, milk_records, shops):
        option = cheapest_anywhere("p1", iter(milk_records), iter(shops))
        assert option.shop.name == "Lidl"


class TestCompare:
    def test_example_scenario(self, milk_records, shops):
        result = compare("p1", "s1", milk_records, shops)

        assert result is not None
        assert result.current_price == 1.20
        assert result.cheapest_price == 1.00
        assert result.cheapest_shop_id == "s2"
        assert result.cheapest_shop_name == "Lidl"
        assert result.savings == pytest.approx(0.20)
        assert result.savings_percent == pytest.approx(16.6667, rel=1e-4)
        assert result.is_cheapest is False

    def test_at_cheapest_shop(self, milk_records, shops):
        result = compare("p1", "s2", milk_records, shops)
        assert result.is_cheapest is True
        assert result.savings == 0
        assert result.savings_percent == 0

    def test_absent_when_shop_has_no_price(self, milk_records, shops):
        assert compare("p1", "s3", milk_records, shops) is None

    def test_absent_when_cheapest_shop_unknown(self, shops):
        records = [
            _record("r1", "p1", "s1", 2.00),
            _record("r2", "p1", "gone", 1.00),
        ]
        assert compare("p1", "s1", records, shops) is None

    def test_zero_current_price(self, shops):
        records = [
            _record("r1", "p1", "s1", 0.0),
            _record("r2", "p1", "s2", 0.0),
        ]
        result = compare("p1", "s2", records, shops)
        assert result.current_price == 0
        assert result.savings_percent == 0

    def test_equal_prices_only_one_shop_is_cheapest(self, shops):
        records = [
            _record("r1", "p1", "s1", 1.00),
            _record("r2", "p1", "s2", 1.00),
        ]
        first = compare("p1", "s1", records, shops)
        second = compare("p1", "s2", records, shops)

        assert first.is_cheapest is True
        assert second.is_cheapest is False
        assert second.savings == 0

    def test_is_cheapest_uses_record_identity(self, shops):
        """Two records with identical values are still different offers."""
        records = [
            _record("r1", "p1", "s1", 1.00, brand="X"),
            _record("r1", "p1", "s1", 1.00, brand="X"),
        ]
        result = compare("p1", "s1", records, shops)
        assert result.cheapest_record is records[0]
        assert result.current_record is records[0]
        assert result.is_cheapest is True


class TestAllOptionsForProduct:
    def test_groups_and_sorts(self, shops):
        records = [
            _record("r1", "p1", "s1", 1.50, brand="A"),
            _record("r2", "p1", "s2", 1.10, brand="B"),
            _record("r3", "p1", "s1", 0.90, brand="C"),
            _record("r4", "p1", "s3", 2.00, brand="D"),
            _record("r5", "p2", "s1", 0.10, brand="E"),
        ]
        options = all_options_for_product("p1", records, shops)

        assert [o.shop.id for o in options] == ["s1", "s2", "s3"]
        assert [o.price for o in options] == [0.90, 1.10, 2.00]
        assert [r.brand for r in options[0].records] == ["C", "A"]
        assert options[0].cheapest is records[2]

    def test_non_decreasing_prices(self, shops):
        records = [
            _record("r1", "p1", "s3", 3.00),
            _record("r2", "p1", "s1", 5.00),
            _record("r3", "p1", "s2", 1.00),
        ]
        prices = [o.price for o in all_options_for_product("p1", records, shops)]
        assert prices == sorted(prices)

    def test_cheaper_record_moves_shop_up(self, shops):
        records = [
            _record("r1", "p1", "s1", 3.00),
            _record("r2", "p1", "s2", 2.00),
        ]
        before = all_options_for_product("p1", records, shops)
        assert [o.shop.id for o in before] == ["s2", "s1"]

        records.append(_record("r3", "p1", "s1", 1.00))
        after = all_options_for_product("p1", records, shops)
        assert [o.shop.id for o in after] == ["s1", "s2"]

    def test_ties_keep_input_order(self, shops):
        records = [
            _record("r1", "p1", "s3", 1.00),
            _record("r2", "p1", "s1", 1.00),
        ]
        options = all_options_for_product("p1", records, shops)
        assert [o.shop.id for o in options] == ["s3", "s1"]

    def test_skips_unknown_shops(self, shops):
        records = [
            _record("r1", "p1", "gone", 0.50),
            _record("r2", "p1", "s1", 1.00),
        ]
        options = all_options_for_product("p1", records, shops)
        assert [o.shop.id for o in options] == ["s1"]

    def test_no_records(self, shops):
        assert all_options_for_product("p1", [], shops) == []


class TestPriceRange:
    def test_example(self, milk_records):
        pr = price_range("p1", milk_records)
        assert pr.min == 1.00
        assert pr.max == 1.20

    def test_single_record(self):
        pr = price_range("p1", [_record("r1", "p1", "s1", 2.49)])
        assert pr.min == pr.max == 2.49

    def test_absent(self, milk_records):
        assert price_range("p9", milk_records) is None

    def test_spans_brands_at_same_shop(self):
        records = [
            _record("r1", "p1", "s1", 3.00, brand="A"),
            _record("r2", "p1", "s1", 1.00, brand="B"),
        ]
        pr = price_range("p1", records)
        assert (pr.min, pr.max) == (1.00, 3.00)


class TestCheaperElsewhere:
    def test_example(self, milk_records, shops, products):
        alternatives = cheaper_elsewhere("s1", milk_records, shops, products)

        assert len(alternatives) == 1
        alt = alternatives[0]
        assert alt.product.name == "Milk"
        assert alt.savings == pytest.approx(0.20)
        assert alt.cheapest_shop.name == "Lidl"
        assert alt.cheapest_record.brand == "Oatly"
        assert alt.current_price == 1.20
        assert alt.cheapest_price == 1.00

    def test_nothing_at_cheapest_shop(self, milk_records, shops, products):
        assert cheaper_elsewhere("s2", milk_records, shops, products) == []

    def test_excludes_equal_price(self, shops, products):
        records = [
            _record("r1", "p1", "s2", 1.00),
            _record("r2", "p1", "s1", 1.00),
        ]
        assert cheaper_elsewhere("s1", records, shops, products) == []

    def test_sorted_by_savings(self, shops, products):
        records = [
            _record("r1", "p1", "s1", 1.20),
            _record("r2", "p1", "s2", 1.00),
            _record("r3", "p2", "s1", 3.00),
            _record("r4", "p2", "s3", 2.00),
        ]
        alternatives = cheaper_elsewhere("s1", records, shops, products)
        assert [a.product.id for a in alternatives] == ["p2", "p1"]
        assert alternatives[0].cheapest_shop.id == "s3"

    def test_skips_unknown_product(self, shops):
        records = [
            _record("r1", "p1", "s1", 1.20),
            _record("r2", "p1", "s2", 1.00),
        ]
        assert cheaper_elsewhere("s1", records, shops, []) == []

    def test_one_entry_per_product_with_brands(self, shops, products):
        records = [
            _record("r1", "p1", "s1", 1.50, brand="A"),
            _record("r2", "p1", "s1", 1.20, brand="B"),
            _record("r3", "p1", "s2", 1.00, brand="C"),
        ]
        alternatives = cheaper_elsewhere("s1", records, shops, products)
        assert len(alternatives) == 1
        assert alternatives[0].current_price == 1.20
