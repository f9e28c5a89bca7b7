import calendar
import logging
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from datetime import date

from poultry_stock.config import get_settings
from poultry_stock.core.constants import InventoryType, StockType
from poultry_stock.core.dates import month_bounds, normalize_date, previous_day
from poultry_stock.core.reconciliation import (
    FEED_CONSUMED,
    MORTALITY,
    PURCHASES,
    ROUTES,
    SALES,
    ReconciliationResult,
    feed_consumed_amount,
    reconcile_records,
)
from poultry_stock.database.session import read_session
from poultry_stock.services.stock_api_client import StockApiClient
from poultry_stock.services.stock_record_service import list_records

logger = logging.getLogger(__name__)

SUMMARY_BUCKETS = ("purchase", "sale", "mortality", "feed_consume")

DAILY_KEYS = {
    "purchase": "totalPurchaseAmount",
    "sale": "totalSaleAmount",
    "mortality": "totalMortalityBirds",
    "feed_consume": "totalFeedConsumeAmount",
}

MONTHLY_KEYS = {
    "purchase": "purchaseAmount",
    "sale": "saleAmount",
    "mortality": "mortalityBirds",
    "feed_consume": "feedConsumeAmount",
}


@dataclass(frozen=True)
class PeriodReconciliation:
    start_date: date | None
    end_date: date | None
    previous_date: date | None
    records: tuple
    result: ReconciliationResult


def use_remote_source() -> bool:
    return bool((get_settings().STOCK_API_BASE_URL or "").strip())


def load_records(start_date=None, end_date=None, *, client=None, session_factory=None):
    """Records for a date range from the remote API or the local store."""
    if client is None and session_factory is None and use_remote_source():
        client = StockApiClient()
    if client is not None:
        return client.fetch_stock_records(start_date, end_date)

    with read_session(session_factory) as db:
        return list_records(db, start_date=start_date, end_date=end_date)


def _resolve_scope(start_date, end_date):
    start_date = normalize_date(start_date)
    end_date = normalize_date(end_date)
    if start_date is not None and end_date is None:
        end_date = start_date
    if start_date is not None and end_date < start_date:
        raise ValueError("end_date must not be before start_date")
    return start_date, end_date


def reconcile_period(
    start_date=None,
    end_date=None,
    *,
    client=None,
    session_factory=None,
    warn_ratio=None,
) -> PeriodReconciliation:
    """Reconcile a day, a date range, or (no dates) all recorded stock.

    The day before ``start_date`` is fetched alongside the scope so its feed
    consumption can be charged to this scope's profit. All-time scope has no
    previous period.
    """
    start_date, end_date = _resolve_scope(start_date, end_date)
    prev_date = previous_day(start_date) if start_date is not None else None
    if warn_ratio is None:
        warn_ratio = get_settings().NATURAL_LOSS_WARN_RATIO
    if client is None and session_factory is None and use_remote_source():
        client = StockApiClient()

    def _load(scope_start, scope_end):
        return load_records(
            scope_start,
            scope_end,
            client=client,
            session_factory=session_factory,
        )

    with ThreadPoolExecutor(max_workers=2, thread_name_prefix="stock-fetch") as pool:
        current_future = pool.submit(_load, start_date, end_date)
        previous_future = pool.submit(_load, prev_date, prev_date) if prev_date else None
        records = current_future.result()
        previous_records = previous_future.result() if previous_future is not None else []

    carry_forward = feed_consumed_amount(previous_records)
    result = reconcile_records(
        records,
        previous_period_feed_consumed_amount=carry_forward,
        natural_loss_warn_ratio=warn_ratio,
    )

    scope = "{}..{}".format(
        start_date.isoformat() if start_date else "start",
        end_date.isoformat() if end_date else "now",
    )
    logger.info(
        "Reconciled %s: %d records, net profit/loss %.2f",
        scope,
        len(records),
        result.profit.net_profit_loss,
        extra={"scope": scope, "record_count": len(records)},
    )
    for warning in result.warnings:
        logger.warning(
            "Reconciliation warning [%s]: %s",
            warning.code,
            warning.message,
            extra={"scope": scope, "warning_code": warning.code},
        )

    return PeriodReconciliation(
        start_date=start_date,
        end_date=end_date,
        previous_date=prev_date,
        records=tuple(records),
        result=result,
    )


def _summary_bucket(record):
    """Rollup column a record feeds, using the reconciliation routes."""
    route = ROUTES[InventoryType(record.inventory_type)][StockType(record.type)]
    if route == PURCHASES:
        return "purchase", record.amount
    if route == SALES:
        return "sale", record.amount
    if route == MORTALITY:
        return "mortality", record.birds
    if route == FEED_CONSUMED:
        return "feed_consume", record.amount
    return None, 0


def _rollup(records, key_fn):
    groups = {}
    for record in records:
        bucket, value = _summary_bucket(record)
        if bucket is None:
            continue
        values = groups.setdefault(key_fn(record), dict.fromkeys(SUMMARY_BUCKETS, 0))
        values[bucket] += value
    return groups


def summarize_daily(records, year, month):
    """Per-day rollup in the shape of ``/inventory-stock/stats/daily``."""
    start, end = month_bounds(year, month)
    in_month = [record for record in records if start <= record.date <= end]
    groups = _rollup(in_month, lambda record: record.date)

    totals = dict.fromkeys(SUMMARY_BUCKETS, 0)
    rows = []
    for day_date in sorted(groups):
        values = groups[day_date]
        for bucket in SUMMARY_BUCKETS:
            totals[bucket] += values[bucket]
        row = {"date": day_date, "formattedDate": day_date.isoformat()}
        row.update({DAILY_KEYS[bucket]: values[bucket] for bucket in SUMMARY_BUCKETS})
        rows.append(row)
    return {
        "year": int(year),
        "month": int(month),
        "days": rows,
        "totals": {DAILY_KEYS[bucket]: totals[bucket] for bucket in SUMMARY_BUCKETS},
    }


def financial_year_order(month):
    """April sorts first, March last."""
    return (int(month) + 8) % 12


def summarize_monthly(records, year):
    """Per-month rollup in the shape of ``/inventory-stock/stats/monthly``.

    Months are listed in financial-year order (April to March) for the
    calendar year given.
    """
    year = int(year)
    in_year = [record for record in records if record.date.year == year]
    groups = _rollup(in_year, lambda record: record.date.month)

    totals = dict.fromkeys(SUMMARY_BUCKETS, 0)
    rows = []
    for month in sorted(groups, key=financial_year_order):
        values = groups[month]
        for bucket in SUMMARY_BUCKETS:
            totals[bucket] += values[bucket]
        row = {"month": month, "name": calendar.month_name[month]}
        row.update({MONTHLY_KEYS[bucket]: values[bucket] for bucket in SUMMARY_BUCKETS})
        rows.append(row)
    return {
        "year": year,
        "months": rows,
        "totals": {MONTHLY_KEYS[bucket]: totals[bucket] for bucket in SUMMARY_BUCKETS},
    }


def _summary_client(client, session_factory):
    if client is None and session_factory is None and use_remote_source():
        return StockApiClient()
    return client


def daily_summary(year, month, *, client=None, session_factory=None):
    client = _summary_client(client, session_factory)
    if client is not None:
        return client.fetch_daily_stats(year, month)
    start, end = month_bounds(year, month)
    records = load_records(start, end, session_factory=session_factory)
    return summarize_daily(records, year, month)


def monthly_summary(year, *, client=None, session_factory=None):
    client = _summary_client(client, session_factory)
    if client is not None:
        data = client.fetch_monthly_stats(year)
        if isinstance(data, dict) and isinstance(data.get("months"), list):
            data["months"] = sorted(
                data["months"],
                key=lambda row: financial_year_order(row.get("month") or 0),
            )
        return data
    start = date(int(year), 1, 1)
    end = date(int(year), 12, 31)
    records = load_records(start, end, session_factory=session_factory)
    return summarize_monthly(records, year)
