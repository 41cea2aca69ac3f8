"""Price comparison and shopping list optimization."""

from .comparison import (
    CheaperAlternative,
    CheapestOption,
    ComparisonResult,
    PriceRange,
    ShopOption,
    all_options_for_product,
    cheaper_elsewhere,
    cheapest_anywhere,
    cheapest_at_shop,
    compare,
    price_range,
)
from .formatting import format_distance, format_price
from .optimizer import (
    ListTotal,
    PriceIndex,
    ShopRanking,
    list_total_at_shop,
    rank_shops_for_list,
)

__all__ = [
    "cheapest_at_shop",
    "cheapest_anywhere",
    "compare",
    "all_options_for_product",
    "price_range",
    "cheaper_elsewhere",
    "rank_shops_for_list",
    "list_total_at_shop",
    "PriceIndex",
    "CheapestOption",
    "ComparisonResult",
    "ShopOption",
    "PriceRange",
    "CheaperAlternative",
    "ShopRanking",
    "ListTotal",
    "format_price",
    "format_distance",
]
