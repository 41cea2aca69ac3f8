"""Shopping list and shop management with price comparison."""

from .config import ShopWellConfig, load_config
from .db import StateDB
from .errors import (
    BackupFormatError,
    DuplicateIdError,
    InvalidPriceError,
    ShopWellError,
)
from .models import (
    AppSettings,
    AppState,
    PriceRecord,
    Product,
    Schedule,
    Shop,
    ShoppingItem,
    ShoppingList,
)
from .pricing import (
    ComparisonResult,
    all_options_for_product,
    cheaper_elsewhere,
    cheapest_anywhere,
    cheapest_at_shop,
    compare,
    format_price,
    list_total_at_shop,
    price_range,
    rank_shops_for_list,
)
from .store import AppStore

__all__ = [
    "Product",
    "Shop",
    "PriceRecord",
    "ShoppingItem",
    "ShoppingList",
    "Schedule",
    "AppSettings",
    "AppState",
    "AppStore",
    "StateDB",
    "ComparisonResult",
    "cheapest_at_shop",
    "cheapest_anywhere",
    "compare",
    "all_options_for_product",
    "price_range",
    "cheaper_elsewhere",
    "rank_shops_for_list",
    "list_total_at_shop",
    "format_price",
    "ShopWellConfig",
    "load_config",
    "ShopWellError",
    "DuplicateIdError",
    "BackupFormatError",
    "InvalidPriceError",
]
