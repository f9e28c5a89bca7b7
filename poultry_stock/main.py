from fastapi import FastAPI

from poultry_stock.config import Settings, get_settings
from poultry_stock.core.logging import setup_logging
from poultry_stock.database import Base, engine
from poultry_stock.models import import_all_models
from poultry_stock.routers import health_router, ingest_router, stock_router

setup_logging()
settings: Settings = get_settings()

import_all_models()
Base.metadata.create_all(bind=engine)

app = FastAPI(title=settings.APP_NAME)

app.include_router(health_router)
app.include_router(ingest_router)
app.include_router(stock_router)


__all__ = ["app"]
