"""Application state store.

``AppStore`` owns a single immutable :class:`AppState`. Each transition
builds a new state, swaps it in and notifies subscribers, so a snapshot
taken earlier never changes under its reader.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import asdict, replace
from typing import TYPE_CHECKING, Any, TypeVar

from .errors import DuplicateIdError, InvalidPriceError
from .models import (
    AppSettings,
    AppState,
    PriceRecord,
    Product,
    Schedule,
    Shop,
    ShoppingList,
    now_iso,
)

if TYPE_CHECKING:
    from .db import StateDB

logger = logging.getLogger(__name__)

_E = TypeVar("_E")

Listener = Callable[[AppState], None]


def _added(items: tuple[_E, ...], item: _E, kind: str) -> tuple[_E, ...]:
    if any(i.id == item.id for i in items):  # type: ignore[attr-defined]
        raise DuplicateIdError(kind, item.id)  # type: ignore[attr-defined]
    return (*items, item)


def _updated(items: tuple[_E, ...], item: _E) -> tuple[_E, ...]:
    return tuple(
        item if i.id == item.id else i for i in items  # type: ignore[attr-defined]
    )


def _removed(items: tuple[_E, ...], item_id: str) -> tuple[_E, ...]:
    return tuple(i for i in items if i.id != item_id)  # type: ignore[attr-defined]


def _check_price(record: PriceRecord) -> None:
    if record.price < 0:
        raise InvalidPriceError(record.id, record.price)


class AppStore:
    """Holds the catalogs and applies add/update/delete transitions."""

    def __init__(
        self,
        state: AppState | None = None,
        default_settings: AppSettings | None = None,
    ) -> None:
        self._default_settings = default_settings or AppSettings()
        self._state = state or AppState(settings=self._default_settings)
        self._listeners: list[Listener] = []

    @classmethod
    def open(
        cls,
        db: StateDB,
        default_settings: AppSettings | None = None,
    ) -> AppStore:
        """Load the saved snapshot from ``db`` and save on every change."""
        store = cls(default_settings=default_settings)
        saved = db.load_state(default_settings=store._default_settings)
        if saved is not None:
            store._state = saved
        orphans = store.orphan_records()
        if orphans:
            logger.warning("Loaded state has %d orphan price records", len(orphans))
        store.subscribe(db.save_state)
        return store

    # -- observers ---------------------------------------------------------

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Register a callback run after every transition.

        Returns:
            A function that removes the callback again.
        """
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _commit(self, state: AppState, action: str) -> None:
        self._state = state
        logger.debug("State transition: %s", action)
        for listener in list(self._listeners):
            listener(state)

    # -- reads -------------------------------------------------------------

    def snapshot(self) -> AppState:
        return self._state

    @property
    def products(self) -> tuple[Product, ...]:
        return self._state.products

    @property
    def shops(self) -> tuple[Shop, ...]:
        return self._state.shops

    @property
    def price_records(self) -> tuple[PriceRecord, ...]:
        return self._state.price_records

    @property
    def settings(self) -> AppSettings:
        return self._state.settings

    def shopping_list(self) -> list[Product]:
        """Products still needed (``is_available`` is False)."""
        return [p for p in self._state.products if not p.is_available]

    def available_products(self) -> list[Product]:
        return [p for p in self._state.products if p.is_available]

    def brands_for_product_at_shop(
        self, product_id: str, shop_id: str
    ) -> list[PriceRecord]:
        return [
            r
            for r in self._state.price_records
            if r.product_id == product_id and r.shop_id == shop_id
        ]

    def products_for_shop(
        self, shop_id: str
    ) -> list[tuple[Product, list[PriceRecord]]]:
        """Products carried at a shop with their brand records.

        Records pointing at unknown products are skipped.
        """
        product_ids = dict.fromkeys(
            r.product_id for r in self._state.price_records if r.shop_id == shop_id
        )
        by_id = {p.id: p for p in self._state.products}
        return [
            (by_id[pid], self.brands_for_product_at_shop(pid, shop_id))
            for pid in product_ids
            if pid in by_id
        ]

    def shops_for_product(
        self, product_id: str
    ) -> list[tuple[Shop, list[PriceRecord]]]:
        """Shops carrying a product with their brand records."""
        shop_ids = dict.fromkeys(
            r.shop_id
            for r in self._state.price_records
            if r.product_id == product_id
        )
        by_id = {s.id: s for s in self._state.shops}
        return [
            (by_id[sid], self.brands_for_product_at_shop(product_id, sid))
            for sid in shop_ids
            if sid in by_id
        ]

    def orphan_records(self) -> list[PriceRecord]:
        """Price records whose product or shop is missing from the catalogs."""
        product_ids = {p.id for p in self._state.products}
        shop_ids = {s.id for s in self._state.shops}
        return [
            r
            for r in self._state.price_records
            if r.product_id not in product_ids or r.shop_id not in shop_ids
        ]

    # -- whole-state -------------------------------------------------------

    def replace_state(self, state: AppState) -> None:
        """Replace everything, e.g. after loading or restoring a backup.

        Settings are merged over the store defaults.
        """
        settings = AppSettings.from_dict(
            {**asdict(self._default_settings), **asdict(state.settings)}
        )
        self._commit(replace(state, settings=settings), "replace_state")

    # -- products ----------------------------------------------------------

    def add_product(self, product: Product) -> None:
        state = self._state
        self._commit(
            replace(state, products=_added(state.products, product, "Product")),
            "add_product",
        )

    def update_product(self, product: Product) -> None:
        state = self._state
        self._commit(
            replace(state, products=_updated(state.products, product)),
            "update_product",
        )

    def delete_product(self, product_id: str) -> None:
        """Delete a product together with its price records."""
        state = self._state
        self._commit(
            replace(
                state,
                products=_removed(state.products, product_id),
                price_records=tuple(
                    r for r in state.price_records if r.product_id != product_id
                ),
            ),
            "delete_product",
        )

    def toggle_product_availability(self, product_id: str) -> None:
        product = next((p for p in self._state.products if p.id == product_id), None)
        if product is None:
            return
        self.update_product(
            replace(product, is_available=not product.is_available, updated_at=now_iso())
        )

    # -- shops -------------------------------------------------------------

    def add_shop(self, shop: Shop) -> None:
        state = self._state
        self._commit(
            replace(state, shops=_added(state.shops, shop, "Shop")), "add_shop"
        )

    def update_shop(self, shop: Shop) -> None:
        state = self._state
        self._commit(replace(state, shops=_updated(state.shops, shop)), "update_shop")

    def delete_shop(self, shop_id: str) -> None:
        """Delete a shop together with its price records."""
        state = self._state
        self._commit(
            replace(
                state,
                shops=_removed(state.shops, shop_id),
                price_records=tuple(
                    r for r in state.price_records if r.shop_id != shop_id
                ),
            ),
            "delete_shop",
        )

    # -- price records -----------------------------------------------------

    def add_price_record(self, record: PriceRecord) -> None:
        """Add a price record.

        Raises:
            InvalidPriceError: If the price is negative.
            DuplicateIdError: If a record with the same id exists.
        """
        state = self._state
        _check_price(record)
        self._commit(
            replace(
                state,
                price_records=_added(state.price_records, record, "PriceRecord"),
            ),
            "add_price_record",
        )

    def update_price_record(self, record: PriceRecord) -> None:
        state = self._state
        _check_price(record)
        self._commit(
            replace(state, price_records=_updated(state.price_records, record)),
            "update_price_record",
        )

    def delete_price_record(self, record_id: str) -> None:
        state = self._state
        self._commit(
            replace(state, price_records=_removed(state.price_records, record_id)),
            "delete_price_record",
        )

    def delete_price_records_for_product(self, product_id: str) -> None:
        state = self._state
        self._commit(
            replace(
                state,
                price_records=tuple(
                    r for r in state.price_records if r.product_id != product_id
                ),
            ),
            "delete_price_records_for_product",
        )

    # -- shopping lists ----------------------------------------------------

    def add_list(self, shopping_list: ShoppingList) -> None:
        state = self._state
        self._commit(
            replace(
                state,
                shopping_lists=_added(
                    state.shopping_lists, shopping_list, "ShoppingList"
                ),
            ),
            "add_list",
        )

    def update_list(self, shopping_list: ShoppingList) -> None:
        state = self._state
        self._commit(
            replace(
                state,
                shopping_lists=_updated(state.shopping_lists, shopping_list),
            ),
            "update_list",
        )

    def delete_list(self, list_id: str) -> None:
        state = self._state
        self._commit(
            replace(state, shopping_lists=_removed(state.shopping_lists, list_id)),
            "delete_list",
        )

    # -- schedules ---------------------------------------------------------

    def add_schedule(self, schedule: Schedule) -> None:
        state = self._state
        self._commit(
            replace(
                state, schedules=_added(state.schedules, schedule, "Schedule")
            ),
            "add_schedule",
        )

    def update_schedule(self, schedule: Schedule) -> None:
        state = self._state
        self._commit(
            replace(state, schedules=_updated(state.schedules, schedule)),
            "update_schedule",
        )

    def delete_schedule(self, schedule_id: str) -> None:
        state = self._state
        self._commit(
            replace(state, schedules=_removed(state.schedules, schedule_id)),
            "delete_schedule",
        )

    # -- settings ----------------------------------------------------------

    def update_settings(self, **changes: Any) -> None:
        """Change individual settings, e.g. ``update_settings(currency="$")``."""
        state = self._state
        self._commit(
            replace(state, settings=replace(state.settings, **changes)),
            "update_settings",
        )
