"""
CardShop services.

Business logic for the storefront, pack opening and collection tracking.
"""

from cardshop.services.catalog import ImportResult, import_checklist
from cardshop.services.collection import (
    get_checklist,
    get_collection_stats,
    get_collection_summary,
    get_product_collection,
)
from cardshop.services.economy import claim_reward, get_economy
from cardshop.services.pack_opening import open_pack
from cardshop.services.pack_selector import select_pack
from cardshop.services.shop import buy, compute_box_price_cents, list_shop_products

__all__ = [
    "ImportResult",
    "buy",
    "claim_reward",
    "compute_box_price_cents",
    "get_checklist",
    "get_collection_stats",
    "get_collection_summary",
    "get_economy",
    "get_product_collection",
    "import_checklist",
    "list_shop_products",
    "open_pack",
    "select_pack",
]
