"""Price comparison for a single product across shops and brands.

Every function here is pure: it reads the collections it is given and
returns fresh result objects. "No data" is reported as ``None`` or an empty
list, never as an exception. Records pointing at a shop or product that is
not in the catalog are skipped.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass, field

from ..models import PriceRecord, Product, Shop


@dataclass
class CheapestOption:
    shop: Shop
    price: float
    record: PriceRecord


@dataclass
class ComparisonResult:
    """How the price at one shop compares with the best price anywhere."""

    current_price: float
    cheapest_price: float
    cheapest_shop_id: str
    cheapest_shop_name: str
    savings: float  # current - cheapest, may be <= 0
    savings_percent: float  # relative to current_price, 0 when it is 0
    is_cheapest: bool
    current_record: PriceRecord
    cheapest_record: PriceRecord


@dataclass
class ShopOption:
    """All records for a product at one shop, cheapest first."""

    shop: Shop
    price: float  # minimum over ``records``
    records: list[PriceRecord] = field(default_factory=list)

    @property
    def cheapest(self) -> PriceRecord:
        return self.records[0]


@dataclass
class PriceRange:
    min: float
    max: float


@dataclass
class CheaperAlternative:
    product: Product
    current_price: float
    cheapest_price: float
    cheapest_shop: Shop
    cheapest_record: PriceRecord
    savings: float


def find_shop(shop_id: str, shops: Iterable[Shop]) -> Shop | None:
    return next((s for s in shops if s.id == shop_id), None)


def find_product(product_id: str, products: Iterable[Product]) -> Product | None:
    return next((p for p in products if p.id == product_id), None)


def _cheapest(records: Iterable[PriceRecord]) -> PriceRecord | None:
    # min() keeps the first record on ties
    return min(records, key=lambda r: r.price, default=None)


def cheapest_at_shop(
    product_id: str,
    shop_id: str,
    records: Iterable[PriceRecord],
) -> PriceRecord | None:
    """Return the cheapest record for a product at one shop."""
    return _cheapest(
        r for r in records if r.product_id == product_id and r.shop_id == shop_id
    )


def cheapest_anywhere(
    product_id: str,
    records: Iterable[PriceRecord],
    shops: Iterable[Shop],
) -> CheapestOption | None:
    """Return the cheapest record for a product across all shops.

    Returns None when the product has no records, or when the cheapest
    record refers to a shop that is not in ``shops``.
    """
    record = _cheapest(r for r in records if r.product_id == product_id)
    if record is None:
        return None
    shop = find_shop(record.shop_id, shops)
    if shop is None:
        return None
    return CheapestOption(shop=shop, price=record.price, record=record)


def compare(
    product_id: str,
    shop_id: str,
    records: Iterable[PriceRecord],
    shops: Iterable[Shop],
) -> ComparisonResult | None:
    """Compare the price of a product at a shop with the cheapest price anywhere."""
    records = list(records)
    shops = list(shops)

    current = cheapest_at_shop(product_id, shop_id, records)
    if current is None:
        return None
    cheapest = cheapest_anywhere(product_id, records, shops)
    if cheapest is None:
        return None

    savings = current.price - cheapest.price
    savings_percent = (savings / current.price) * 100 if current.price > 0 else 0.0

    return ComparisonResult(
        current_price=current.price,
        cheapest_price=cheapest.price,
        cheapest_shop_id=cheapest.shop.id,
        cheapest_shop_name=cheapest.shop.name,
        savings=savings,
        savings_percent=savings_percent,
        # Identity, not price equality: of two equal offers only the one
        # cheapest_anywhere picked counts as the cheapest.
        is_cheapest=current is cheapest.record,
        current_record=current,
        cheapest_record=cheapest.record,
    )


def all_options_for_product(
    product_id: str,
    records: Iterable[PriceRecord],
    shops: Iterable[Shop],
) -> list[ShopOption]:
    """Group a product's records by shop, cheapest shop first."""
    shops = list(shops)
    grouped: dict[str, list[PriceRecord]] = {}
    for r in records:
        if r.product_id == product_id:
            grouped.setdefault(r.shop_id, []).append(r)

    options: list[ShopOption] = []
    for shop_id, shop_records in grouped.items():
        shop = find_shop(shop_id, shops)
        if shop is None:
            continue
        shop_records = sorted(shop_records, key=lambda r: r.price)
        options.append(
            ShopOption(shop=shop, price=shop_records[0].price, records=shop_records)
        )

    options.sort(key=lambda o: o.price)
    return options


def price_range(
    product_id: str,
    records: Iterable[PriceRecord],
) -> PriceRange | None:
    prices = [r.price for r in records if r.product_id == product_id]
    if not prices:
        return None
    return PriceRange(min=min(prices), max=max(prices))


def cheaper_elsewhere(
    shop_id: str,
    records: Iterable[PriceRecord],
    shops: Iterable[Shop],
    products: Iterable[Product],
) -> list[CheaperAlternative]:
    """List products carried at a shop that are cheaper at another shop.

    Sorted by savings, largest first.
    """
    records = list(records)
    shops = list(shops)
    products = list(products)

    product_ids = list(
        dict.fromkeys(r.product_id for r in records if r.shop_id == shop_id)
    )

    alternatives: list[CheaperAlternative] = []
    for product_id in product_ids:
        result = compare(product_id, shop_id, records, shops)
        if result is None or result.is_cheapest or result.savings <= 0:
            continue
        product = find_product(product_id, products)
        cheapest_shop = find_shop(result.cheapest_shop_id, shops)
        if product is None or cheapest_shop is None:
            continue
        alternatives.append(
            CheaperAlternative(
                product=product,
                current_price=result.current_price,
                cheapest_price=result.cheapest_price,
                cheapest_shop=cheapest_shop,
                cheapest_record=result.cheapest_record,
                savings=result.savings,
            )
        )

    alternatives.sort(key=lambda a: a.savings, reverse=True)
    return alternatives
