"""Data models for products, shops, prices, lists and schedules."""

from __future__ import annotations

from dataclasses import asdict, dataclass, field, fields
from datetime import datetime, timezone
from typing import Any, TypeVar

PRODUCT_CATEGORIES: dict[str, str] = {
    "food": "Food",
    "healthBeauty": "Health & Beauty",
    "household": "Household",
    "electronics": "Electronics",
    "clothing": "Clothing",
    "other": "Other",
}

SHOP_CATEGORIES: dict[str, str] = {
    "grocery": "Grocery",
    "pharmacy": "Pharmacy",
    "electronics": "Electronics",
    "clothing": "Clothing",
    "homeGoods": "Home Goods",
    "other": "Other",
}

RECURRING_PATTERNS = ("daily", "weekly", "monthly")

DEFAULT_CURRENCY = "€"
DEFAULT_GEOFENCE_RADIUS = 200  # meters

_T = TypeVar("_T")


def now_iso() -> str:
    """Current UTC time as an ISO 8601 string."""
    return datetime.now(timezone.utc).isoformat(timespec="milliseconds")


def _from_dict(cls: type[_T], data: dict[str, Any]) -> _T:
    """Build a dataclass from a dict, ignoring unknown keys."""
    names = {f.name for f in fields(cls)}  # type: ignore[arg-type]
    return cls(**{k: v for k, v in data.items() if k in names})


@dataclass(frozen=True)
class Product:
    """A product the user buys; ``is_available=False`` puts it on the shopping list."""

    id: str
    name: str
    category: str = "other"
    is_available: bool = True
    default_unit: str | None = None
    notes: str | None = None
    created_at: str = ""
    updated_at: str = ""

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Product:
        return _from_dict(cls, data)


@dataclass(frozen=True)
class Shop:
    id: str
    name: str
    category: str = "other"
    address: str | None = None
    is_online: bool = False
    url: str | None = None
    notes: str | None = None
    is_favorite: bool = False
    latitude: float | None = None
    longitude: float | None = None
    geofence_radius: int | None = None  # meters
    notify_on_nearby: bool = False
    created_at: str = ""
    updated_at: str = ""

    @property
    def has_location(self) -> bool:
        return self.latitude is not None and self.longitude is not None

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Shop:
        return _from_dict(cls, data)


@dataclass(frozen=True, eq=False)
class PriceRecord:
    """A single price observation for a product at a shop.

    ``brand`` is None for plain per-shop prices. Several records may share
    (product_id, shop_id) when they differ by brand.

    Records compare by identity so that two observations with the same
    values stay distinguishable.
    """

    id: str
    product_id: str
    shop_id: str
    price: float
    brand: str | None = None
    currency: str = DEFAULT_CURRENCY
    last_updated: str = ""

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> PriceRecord:
        return _from_dict(cls, data)


@dataclass(frozen=True)
class ShoppingItem:
    id: str
    name: str
    quantity: float = 1
    product_id: str | None = None
    shop_id: str | None = None
    unit: str | None = None
    category: str | None = None
    notes: str | None = None
    is_completed: bool = False
    created_at: str = ""
    updated_at: str = ""

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> ShoppingItem:
        return _from_dict(cls, data)


@dataclass(frozen=True)
class ShoppingList:
    id: str
    name: str
    items: tuple[ShoppingItem, ...] = ()
    shop_id: str | None = None
    scheduled_date: str | None = None
    is_completed: bool = False
    created_at: str = ""
    updated_at: str = ""

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> ShoppingList:
        data = dict(data)
        data["items"] = tuple(
            ShoppingItem.from_dict(i) for i in data.get("items", [])
        )
        return _from_dict(cls, data)


@dataclass(frozen=True)
class Schedule:
    """A planned shopping trip, optionally with a reminder."""

    id: str
    title: str
    date: str  # YYYY-MM-DD
    shop_id: str | None = None
    list_id: str | None = None
    time: str | None = None  # "18:30" or "6:30 PM"
    is_recurring: bool = False
    recurring_pattern: str | None = None
    reminder: bool = False
    reminder_minutes: int | None = None
    notes: str | None = None
    is_completed: bool = False
    created_at: str = ""
    updated_at: str = ""

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Schedule:
        return _from_dict(cls, data)


@dataclass(frozen=True)
class AppSettings:
    location_notifications_enabled: bool = False
    default_geofence_radius: int = DEFAULT_GEOFENCE_RADIUS
    currency: str = DEFAULT_CURRENCY

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> AppSettings:
        return _from_dict(cls, data)


@dataclass(frozen=True)
class AppState:
    """Whole-application snapshot. Collections are tuples so a snapshot
    can be handed around without being changed underneath its reader."""

    products: tuple[Product, ...] = ()
    shops: tuple[Shop, ...] = ()
    price_records: tuple[PriceRecord, ...] = ()
    shopping_lists: tuple[ShoppingList, ...] = ()
    schedules: tuple[Schedule, ...] = ()
    settings: AppSettings = field(default_factory=AppSettings)

    def to_dict(self) -> dict[str, Any]:
        """Return a JSON-serializable dict."""
        return {
            "products": [asdict(p) for p in self.products],
            "shops": [asdict(s) for s in self.shops],
            "price_records": [asdict(r) for r in self.price_records],
            "shopping_lists": [asdict(sl) for sl in self.shopping_lists],
            "schedules": [asdict(s) for s in self.schedules],
            "settings": asdict(self.settings),
        }

    @classmethod
    def from_dict(
        cls,
        data: dict[str, Any],
        default_settings: AppSettings | None = None,
    ) -> AppState:
        """Build a state from a dict; missing settings fall back to defaults."""
        base = asdict(default_settings or AppSettings())
        settings = AppSettings.from_dict({**base, **data.get("settings", {})})
        return cls(
            products=tuple(Product.from_dict(p) for p in data.get("products", [])),
            shops=tuple(Shop.from_dict(s) for s in data.get("shops", [])),
            price_records=tuple(
                PriceRecord.from_dict(r) for r in data.get("price_records", [])
            ),
            shopping_lists=tuple(
                ShoppingList.from_dict(sl) for sl in data.get("shopping_lists", [])
            ),
            schedules=tuple(
                Schedule.from_dict(s) for s in data.get("schedules", [])
            ),
            settings=settings,
        )
