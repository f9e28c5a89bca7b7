import argparse
import sys
from pathlib import Path

# Ensure repo root is on sys.path when running this script directly.
REPO_ROOT = Path(__file__).resolve().parents[1]
if str(REPO_ROOT) not in sys.path:
    sys.path.insert(0, str(REPO_ROOT))

from sqlalchemy.exc import SQLAlchemyError

from poultry_stock.config import get_settings
from poultry_stock.core.dates import normalize_date
from poultry_stock.core.logging import setup_logging
from poultry_stock.core.reconciliation import flatten_result
from poultry_stock.database import Base, engine
from poultry_stock.models import import_all_models
from poultry_stock.services.export_service import (
    build_reconciliation_workbook,
    reconciliation_filename,
    save_workbook,
)
from poultry_stock.services.reconciliation_service import reconcile_period
from poultry_stock.services.stock_api_client import StockApiError


def _date_arg(value):
    parsed = normalize_date(value)
    if parsed is None:
        raise argparse.ArgumentTypeError(f"invalid date: {value}")
    return parsed


def parse_args():
    parser = argparse.ArgumentParser(
        description="Print the stock reconciliation for a day or a date range."
    )
    parser.add_argument("--date", type=_date_arg, help="Single day (YYYY-MM-DD).")
    parser.add_argument("--start-date", type=_date_arg, help="Range start (YYYY-MM-DD).")
    parser.add_argument("--end-date", type=_date_arg, help="Range end (YYYY-MM-DD).")
    parser.add_argument(
        "--export",
        nargs="?",
        const="",
        default=None,
        help="Also write an .xlsx workbook (default: EXPORT_DIR/<scope>.xlsx).",
    )
    args = parser.parse_args()
    if args.date and (args.start_date or args.end_date):
        parser.error("use either --date or --start-date/--end-date")
    if args.end_date and not args.start_date:
        parser.error("--end-date requires --start-date")
    return args


def main():
    setup_logging()
    args = parse_args()
    start_date = args.date or args.start_date
    end_date = args.date or args.end_date

    import_all_models()
    Base.metadata.create_all(bind=engine)

    try:
        period = reconcile_period(start_date, end_date)
    except (ValueError, StockApiError, SQLAlchemyError) as exc:
        raise SystemExit(f"Reconciliation failed: {exc}") from exc

    if period.start_date is None:
        print("Scope: all time")
    else:
        print(f"Scope: {period.start_date.isoformat()} to {period.end_date.isoformat()}")
    print(f"Records: {len(period.records)} ({period.result.ignored_count} ignored)")
    for label, value in flatten_result(period.result):
        if isinstance(value, float):
            print(f"  {label:<36} {value:>14.2f}")
        else:
            print(f"  {label:<36} {value:>14}")
    for warning in period.result.warnings:
        print(f"Warning: {warning.message}")

    if args.export is not None:
        target = args.export or Path(get_settings().EXPORT_DIR) / reconciliation_filename(period)
        path = save_workbook(build_reconciliation_workbook(period), target)
        print(f"Wrote {path}")


if __name__ == "__main__":
    main()
