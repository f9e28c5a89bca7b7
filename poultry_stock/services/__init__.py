from poultry_stock.services.ingestion_service import import_workbook
from poultry_stock.services.reconciliation_service import (
    daily_summary,
    reconcile_period,
    summarize_daily,
)
from poultry_stock.services.stock_api_client import StockApiClient, StockApiError

__all__ = [
    "StockApiClient",
    "StockApiError",
    "daily_summary",
    "import_workbook",
    "reconcile_period",
    "summarize_daily",
]
