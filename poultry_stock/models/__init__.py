import importlib

from poultry_stock.models.stock_record import StockRecordRow


def import_all_models() -> None:
    for module_name in ("poultry_stock.models.stock_record",):
        importlib.import_module(module_name)


__all__ = ["StockRecordRow", "import_all_models"]
