from poultry_stock.routers.health import router as health_router
from poultry_stock.routers.ingest import router as ingest_router
from poultry_stock.routers.stock import router as stock_router

__all__ = [
    "health_router",
    "ingest_router",
    "stock_router",
]
