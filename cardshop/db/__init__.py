from cardshop.db.database import get_session, init_db, session_scope
from cardshop.db.operations import (
    add_packs,
    consume_pack,
    get_inventory,
    get_or_create_user,
    get_ownership_map,
    get_product,
    get_product_set,
    get_user,
    increment_ownership,
    list_cards,
    list_owned_cards,
    list_product_sets,
    list_products,
    upsert_card,
)

__all__ = [
    "add_packs",
    "consume_pack",
    "get_inventory",
    "get_or_create_user",
    "get_ownership_map",
    "get_product",
    "get_product_set",
    "get_session",
    "get_user",
    "increment_ownership",
    "init_db",
    "list_cards",
    "list_owned_cards",
    "list_product_sets",
    "list_products",
    "session_scope",
    "upsert_card",
]
