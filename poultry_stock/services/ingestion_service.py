import logging
from datetime import date, datetime
from pathlib import Path

from openpyxl import load_workbook
from pydantic import ValidationError
from sqlalchemy.exc import SQLAlchemyError

from poultry_stock.core.constants import InventoryType, StockType
from poultry_stock.database import Base, SessionLocal, engine
from poultry_stock.models import import_all_models
from poultry_stock.schemas.stock import StockRecord
from poultry_stock.services.stock_record_service import upsert_record

logger = logging.getLogger(__name__)

_ALIAS_SPECS = (
    (("id",), "id"),
    (("record", "id"), "id"),
    (("inventory", "type"), "inventory_type"),
    (("inventory",), "inventory_type"),
    (("type",), "type"),
    (("particular",), "type"),
    (("no", "of", "birds"), "birds"),
    (("birds",), "birds"),
    (("weight",), "weight"),
    (("weight", "kg"), "weight"),
    (("bags",), "bags"),
    (("rate",), "rate"),
    (("amount",), "amount"),
    (("total",), "amount"),
    (("avg",), "avg_weight"),
    (("avg", "weight"), "avg_weight"),
    (("vendor", "id"), "vendor_id"),
    (("customer", "id"), "customer_id"),
    (("cash",), "cash_paid"),
    (("cash", "paid"), "cash_paid"),
    (("online",), "online_paid"),
    (("online", "paid"), "online_paid"),
    (("disc",), "discount"),
    (("discount",), "discount"),
    (("source",), "source"),
    (("ref", "no"), "ref_no"),
    (("dc", "no"), "ref_no"),
    (("bill", "no"), "bill_number"),
    (("bill", "number"), "bill_number"),
    (("vehicle", "no"), "vehicle_number"),
    (("vehicle", "number"), "vehicle_number"),
    (("date",), "date"),
)

HEADER_ALIASES = {"".join(parts): target for parts, target in _ALIAS_SPECS}

STOCK_RECORDS_SHEET = "stock_records"

# Sheets whose rows share one record type; a "type" column still wins.
SHEET_DEFAULTS = {
    STOCK_RECORDS_SHEET: {},
    "purchases": {"inventory_type": InventoryType.BIRD, "type": StockType.PURCHASE},
    "sales": {"inventory_type": InventoryType.BIRD, "type": StockType.SALE},
    "feed_purchases": {"inventory_type": InventoryType.FEED, "type": StockType.PURCHASE},
    "feed_consumption": {"inventory_type": InventoryType.FEED, "type": StockType.CONSUME},
}

REQUIRED_COLUMNS = {"date", "type"}

_PLACEHOLDER_VALUES = {"none", "[none]", "null", "[null]", "na", "n/a", "nan", "-", "--"}


def _is_blank(value):
    return value is None or (isinstance(value, str) and not value.strip())


def _clean_text(value):
    if _is_blank(value):
        return None
    text = str(value).strip()
    if not text:
        return None
    if text.lower() in _PLACEHOLDER_VALUES:
        return None
    return text


def _is_summary_value(value):
    if isinstance(value, str):
        value_text = value.strip().lower()
        if value_text and "total" in value_text:
            return True
    return False


def _is_footer_value(value):
    if not isinstance(value, str):
        return False
    value_text = value.strip().lower()
    return value_text.startswith("printed on") or value_text.startswith("generated on")


def _looks_like_header_row(row, header_set):
    matches = 0
    non_blank = 0
    for value in row:
        if _is_blank(value):
            continue
        non_blank += 1
        if normalize_header(value) in header_set:
            matches += 1
    return 0 < non_blank == matches


def normalize_header(value):
    if value is None:
        return ""
    value_text = str(value).strip().lower()
    if not value_text:
        return ""
    for char in (" ", "-", ".", "/", "(", ")"):
        value_text = value_text.replace(char, "_")
    value_text = "_".join(part for part in value_text.split("_") if part)
    alias = HEADER_ALIASES.get(value_text)
    if alias:
        return alias
    alias = HEADER_ALIASES.get(value_text.replace("_", ""))
    if alias:
        return alias
    return value_text


def normalize_sheet_name(name):
    value_text = str(name).strip().lower()
    if not value_text:
        return ""
    for char in (" ", "-", ".", "/"):
        value_text = value_text.replace(char, "_")
    return "_".join(part for part in value_text.split("_") if part)


def normalize_sheet_list(value):
    if not value:
        return None
    if isinstance(value, (list, tuple, set)):
        items = [str(item).strip() for item in value if str(item).strip()]
    else:
        items = [part.strip() for part in str(value).split(",") if part.strip()]
    return items or None


def normalize_type_value(value):
    text = _clean_text(value)
    if text is None:
        return None
    key = normalize_sheet_name(text)
    aliases = {
        "opening_stock": StockType.OPENING.value,
        "weight_loss_gain": StockType.WEIGHT_LOSS.value,
        "natural_weight_loss_on": StockType.NATURAL_WEIGHT_LOSS.value,
        "feed_consume": StockType.CONSUME.value,
        "consumption": StockType.CONSUME.value,
    }
    return aliases.get(key, key)


def to_date(value, field):
    if _is_blank(value):
        raise ValueError(f"{field} is required")
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, str):
        value_text = value.strip()
        try:
            return date.fromisoformat(value_text)
        except ValueError:
            pass
        for fmt in ("%Y/%m/%d", "%d/%m/%Y", "%d-%m-%Y", "%m/%d/%Y"):
            try:
                return datetime.strptime(value_text, fmt).date()
            except ValueError:
                continue
    raise ValueError(f"{field} must be a date (YYYY-MM-DD)")


def _to_number_text(value):
    if isinstance(value, str):
        return value.replace(",", "").strip()
    return value


def load_sheet_rows(worksheet):
    rows_iter = worksheet.iter_rows(values_only=True)
    headers = next(rows_iter, None)
    if not headers:
        return [], set()
    header_keys = [normalize_header(header) for header in headers]
    indices = [(idx, key) for idx, key in enumerate(header_keys) if key]
    columns = {key for key in header_keys if key}
    if not indices:
        return [], set()
    first_idx = indices[0][0]

    rows = []
    for row_idx, row in enumerate(rows_iter, start=2):
        if row is None or all(_is_blank(value) for value in row):
            continue
        if _looks_like_header_row(row, columns):
            continue
        lead_value = row[first_idx] if first_idx < len(row) else None
        if _is_summary_value(lead_value) or _is_footer_value(lead_value):
            continue
        record = {key: row[idx] for idx, key in indices if idx < len(row)}
        record["_row"] = row_idx
        rows.append(record)
    return rows, columns


def validate_columns(sheet_name, columns):
    defaults = SHEET_DEFAULTS.get(sheet_name, {})
    missing = sorted(REQUIRED_COLUMNS - columns - set(defaults))
    if missing:
        missing_text = ", ".join(missing)
        raise ValueError(f"{sheet_name} sheet missing columns: {missing_text}")


def build_record(row, defaults=None):
    values = dict(defaults or {})
    for key, value in row.items():
        if key.startswith("_"):
            continue
        if key == "date":
            values[key] = to_date(value, key)
        elif key == "type":
            type_value = normalize_type_value(value)
            if type_value is not None:
                values[key] = type_value
        elif key in ("inventory_type", "source"):
            text = _clean_text(value)
            if text is not None:
                values[key] = text.lower()
        elif key in ("id", "vendor_id", "customer_id", "ref_no", "bill_number", "vehicle_number"):
            values[key] = _clean_text(value)
        else:
            values[key] = _to_number_text(value)
    try:
        return StockRecord.model_validate(values)
    except ValidationError as exc:
        fields = ", ".join(
            ".".join(str(part) for part in err["loc"]) for err in exc.errors()
        )
        raise ValueError(f"row {row.get('_row', '?')}: invalid {fields}") from exc


def import_rows(db, sheet_name, rows):
    counts = {"inserted": 0, "updated": 0, "skipped": 0}
    defaults = SHEET_DEFAULTS.get(sheet_name)
    if defaults is None:
        raise ValueError(f"Unsupported sheet: {sheet_name}")
    for row in rows:
        if _is_blank(row.get("date")):
            counts["skipped"] += 1
            continue
        record = build_record(row, defaults)
        if record.type == StockType.NATURAL_WEIGHT_LOSS:
            # Natural loss is always derived by reconciliation.
            counts["skipped"] += 1
            continue
        action = upsert_record(db, record)
        counts[action] += 1
    return counts


def import_workbook(workbook_path, sheets=None, dry_run=False, session_factory=None):
    workbook_path = Path(workbook_path)
    if not workbook_path.exists():
        raise FileNotFoundError(f"File not found: {workbook_path}")
    if workbook_path.suffix.lower() != ".xlsx":
        raise ValueError("Only .xlsx files are supported.")

    workbook = load_workbook(workbook_path, data_only=True)
    sheet_map = {normalize_sheet_name(name): name for name in workbook.sheetnames}

    sheet_list = normalize_sheet_list(sheets)
    if sheet_list:
        requested = [normalize_sheet_name(name) for name in sheet_list]
    else:
        requested = [name for name in SHEET_DEFAULTS if name in sheet_map]

    if not requested:
        if len(sheet_map) == 1:
            only_key = next(iter(sheet_map))
            sheet_map[STOCK_RECORDS_SHEET] = sheet_map[only_key]
            requested = [STOCK_RECORDS_SHEET]
        else:
            raise ValueError("No matching sheets found to import.")

    if session_factory is None:
        import_all_models()
        Base.metadata.create_all(bind=engine)
        session_factory = SessionLocal

    results = {}
    db = session_factory()
    try:
        for sheet_key in requested:
            actual_name = sheet_map.get(sheet_key)
            if not actual_name:
                raise ValueError(f"Sheet not found: {sheet_key}")
            if sheet_key not in SHEET_DEFAULTS:
                raise ValueError(f"Unsupported sheet: {sheet_key}")
            worksheet = workbook[actual_name]
            rows, columns = load_sheet_rows(worksheet)
            validate_columns(sheet_key, columns)
            try:
                results[sheet_key] = import_rows(db, sheet_key, rows)
            except ValueError as exc:
                raise ValueError(f"{sheet_key}: {exc}") from exc
            logger.info(
                "Imported %s",
                summarize_results({sheet_key: results[sheet_key]}),
                extra={"sheet": sheet_key},
            )

        if dry_run:
            db.rollback()
        else:
            db.commit()
    except SQLAlchemyError:
        db.rollback()
        raise
    finally:
        db.close()

    return results


def summarize_results(results):
    parts = []
    for sheet_name, counts in results.items():
        parts.append(
            "{}: {} inserted, {} updated, {} skipped".format(
                sheet_name,
                counts.get("inserted", 0),
                counts.get("updated", 0),
                counts.get("skipped", 0),
            )
        )
    return "; ".join(parts) if parts else "no rows"
