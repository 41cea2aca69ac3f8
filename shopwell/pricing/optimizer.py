"""Shop recommendations and totals for a whole shopping list."""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass
from typing import Protocol

from ..models import PriceRecord, Product, Shop


class ListItem(Protocol):
    product_id: str | None
    quantity: float


@dataclass
class ShopRanking:
    shop: Shop
    products_available: int
    cheapest_products_count: int
    estimated_total: float
    products_missing: int


@dataclass
class ListTotal:
    total: float
    items_with_prices: int
    items_without_prices: int


class PriceIndex:
    """Records indexed by product and by (product, shop).

    Built once per call so list-wide lookups do not rescan every record.
    Lookups keep the first record on price ties, like the comparison
    functions.
    """

    def __init__(self, records: Iterable[PriceRecord]) -> None:
        self._by_product: dict[str, list[PriceRecord]] = {}
        self._by_product_shop: dict[tuple[str, str], list[PriceRecord]] = {}
        for r in records:
            self._by_product.setdefault(r.product_id, []).append(r)
            self._by_product_shop.setdefault((r.product_id, r.shop_id), []).append(r)

    def for_product(self, product_id: str) -> list[PriceRecord]:
        return list(self._by_product.get(product_id, []))

    def cheapest_at_shop(self, product_id: str, shop_id: str) -> PriceRecord | None:
        return min(
            self._by_product_shop.get((product_id, shop_id), []),
            key=lambda r: r.price,
            default=None,
        )

    def cheapest(self, product_id: str) -> PriceRecord | None:
        return min(
            self._by_product.get(product_id, []),
            key=lambda r: r.price,
            default=None,
        )


def rank_shops_for_list(
    needed_products: Iterable[Product],
    records: Iterable[PriceRecord],
    shops: Iterable[Shop],
) -> list[ShopRanking]:
    """Rank shops by how many needed products they carry.

    Ties on coverage are broken by how many of those products are cheapest
    at the shop. Shops carrying none of the products are left out, so the
    first entry is the best one-stop shop.
    """
    needed = list(needed_products)
    shops = list(shops)
    shop_ids = {s.id for s in shops}
    index = PriceIndex(records)

    # Globally cheapest shop per product; unresolvable shops count as no data.
    cheapest_shop_id: dict[str, str | None] = {}
    for product in needed:
        best = index.cheapest(product.id)
        cheapest_shop_id[product.id] = (
            best.shop_id if best is not None and best.shop_id in shop_ids else None
        )

    rankings: list[ShopRanking] = []
    for shop in shops:
        available = 0
        cheapest_count = 0
        total = 0.0
        for product in needed:
            record = index.cheapest_at_shop(product.id, shop.id)
            if record is None:
                continue
            available += 1
            total += record.price
            if cheapest_shop_id[product.id] == shop.id:
                cheapest_count += 1
        if available == 0:
            continue
        rankings.append(
            ShopRanking(
                shop=shop,
                products_available=available,
                cheapest_products_count=cheapest_count,
                estimated_total=total,
                products_missing=len(needed) - available,
            )
        )

    rankings.sort(
        key=lambda r: (r.products_available, r.cheapest_products_count),
        reverse=True,
    )
    return rankings


def list_total_at_shop(
    items: Iterable[ListItem],
    shop_id: str,
    records: Iterable[PriceRecord],
) -> ListTotal:
    """Sum ``price * quantity`` for the items priced at a shop.

    When a product has several brands at the shop the cheapest one is used.
    Items without a product link or without a price at the shop are counted
    as unpriced.
    """
    index = PriceIndex(records)
    total = 0.0
    with_prices = 0
    without_prices = 0

    for item in items:
        record = (
            index.cheapest_at_shop(item.product_id, shop_id)
            if item.product_id
            else None
        )
        if record is None:
            without_prices += 1
            continue
        total += record.price * item.quantity
        with_prices += 1

    return ListTotal(
        total=total,
        items_with_prices=with_prices,
        items_without_prices=without_prices,
    )
