import logging
from io import BytesIO
from pathlib import Path

from openpyxl import Workbook
from openpyxl.styles import Font

from poultry_stock.core.aggregator import sort_records
from poultry_stock.core.constants import InventoryType, StockType
from poultry_stock.core.reconciliation import flatten_result

logger = logging.getLogger(__name__)

XLSX_MEDIA_TYPE = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"

PURCHASE_TYPES = (StockType.OPENING, StockType.PURCHASE)
SALE_TYPES = (StockType.SALE, StockType.RECEIPT)

PURCHASE_COLUMNS = (
    ("Date", "date"),
    ("Type", "type"),
    ("Ref No", "ref_no"),
    ("Vehicle No", "vehicle_number"),
    ("Birds", "birds"),
    ("Weight", "weight"),
    ("Avg", "derived_avg_weight"),
    ("Rate", "rate"),
    ("Amount", "amount"),
)

SALE_COLUMNS = (
    ("Date", "date"),
    ("Type", "type"),
    ("Bill No", "bill_number"),
    ("Birds", "birds"),
    ("Weight", "weight"),
    ("Avg", "derived_avg_weight"),
    ("Rate", "rate"),
    ("Total", "amount"),
    ("Cash", "cash_paid"),
    ("Online", "online_paid"),
    ("Disc", "discount"),
)

DAILY_SUMMARY_COLUMNS = (
    ("Date", "formattedDate"),
    ("Purchase Amount", "totalPurchaseAmount"),
    ("Sale Amount", "totalSaleAmount"),
    ("Mortality (Birds)", "totalMortalityBirds"),
    ("Feed Consume Amount", "totalFeedConsumeAmount"),
)

MONTHLY_SUMMARY_COLUMNS = (
    ("Month", "name"),
    ("Purchase Amount", "purchaseAmount"),
    ("Sale Amount", "saleAmount"),
    ("Mortality (Birds)", "mortalityBirds"),
    ("Feed Consume Amount", "feedConsumeAmount"),
)


def _cell_value(record, attr):
    value = getattr(record, attr)
    if hasattr(value, "value"):
        return value.value
    return value


def _write_header(worksheet, headers):
    worksheet.append(list(headers))
    for cell in worksheet[1]:
        cell.font = Font(bold=True)


def _write_records(worksheet, records, columns):
    _write_header(worksheet, [label for label, _ in columns])
    for record in records:
        worksheet.append([_cell_value(record, attr) for _, attr in columns])


def build_reconciliation_workbook(period) -> Workbook:
    workbook = Workbook()
    summary = workbook.active
    summary.title = "Reconciliation"
    _write_header(summary, ["Particular", "Value"])
    if period.start_date is not None:
        summary.append(["Start Date", period.start_date.isoformat()])
        summary.append(["End Date", period.end_date.isoformat()])
    for label, value in flatten_result(period.result):
        summary.append([label, round(value, 2) if isinstance(value, float) else value])
    for warning in period.result.warnings:
        summary.append(["Warning", warning.message])
    summary.column_dimensions["A"].width = 36
    summary.column_dimensions["B"].width = 18

    bird_records = [
        record for record in period.records if record.inventory_type == InventoryType.BIRD
    ]
    purchases = sort_records(
        [record for record in bird_records if record.type in PURCHASE_TYPES]
    )
    sales = sort_records([record for record in bird_records if record.type in SALE_TYPES])
    _write_records(workbook.create_sheet("Purchases"), purchases, PURCHASE_COLUMNS)
    _write_records(workbook.create_sheet("Sales"), sales, SALE_COLUMNS)
    return workbook


def _build_summary_workbook(title, columns, rows, totals) -> Workbook:
    workbook = Workbook()
    worksheet = workbook.active
    worksheet.title = title
    _write_header(worksheet, [label for label, _ in columns])
    for row in rows:
        worksheet.append([row.get(key, 0) or 0 for _, key in columns])
    totals = totals or {}
    worksheet.append(["Grand Total"] + [totals.get(key, 0) or 0 for _, key in columns[1:]])
    return workbook


def build_daily_summary_workbook(summary) -> Workbook:
    return _build_summary_workbook(
        "Daily Stock Summary",
        DAILY_SUMMARY_COLUMNS,
        summary.get("days", []),
        summary.get("totals"),
    )


def build_monthly_summary_workbook(summary) -> Workbook:
    return _build_summary_workbook(
        "Monthly Stock Summary",
        MONTHLY_SUMMARY_COLUMNS,
        summary.get("months", []),
        summary.get("totals"),
    )


def workbook_bytes(workbook: Workbook) -> bytes:
    buffer = BytesIO()
    workbook.save(buffer)
    return buffer.getvalue()


def save_workbook(workbook: Workbook, path) -> Path:
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    workbook.save(path)
    logger.info("Wrote workbook %s", path)
    return path


def reconciliation_filename(period) -> str:
    if period.start_date is None:
        return "Stock_Reconciliation_All_Time.xlsx"
    if period.start_date == period.end_date:
        return f"Stock_Reconciliation_{period.start_date.isoformat()}.xlsx"
    return "Stock_Reconciliation_{}_{}.xlsx".format(
        period.start_date.isoformat(), period.end_date.isoformat()
    )
