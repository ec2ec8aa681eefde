from cardshop.api.catalog import router as catalog_router
from cardshop.api.collection import router as collection_router
from cardshop.api.economy import router as economy_router
from cardshop.api.health import router as health_router
from cardshop.api.rip import router as rip_router
from cardshop.api.shop import router as shop_router

__all__ = [
    "catalog_router",
    "collection_router",
    "economy_router",
    "health_router",
    "rip_router",
    "shop_router",
]
