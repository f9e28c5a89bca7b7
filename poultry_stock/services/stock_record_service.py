import logging
from datetime import date

from sqlalchemy import select
from sqlalchemy.orm import Session

from poultry_stock.core.constants import InventoryType, RecordSource
from poultry_stock.models.stock_record import StockRecordRow
from poultry_stock.schemas.stock import StockRecord, StockRecordCreate, StockRecordUpdate

logger = logging.getLogger(__name__)


class StockRecordNotFound(LookupError):
    pass


class ReadOnlyRecordError(ValueError):
    pass


def row_to_record(row: StockRecordRow) -> StockRecord:
    return StockRecord(
        id=row.external_id or str(row.id),
        date=row.date,
        inventory_type=row.inventory_type,
        type=row.type,
        birds=row.birds,
        weight=row.weight,
        bags=row.bags,
        rate=row.rate,
        amount=row.amount,
        avg_weight=row.avg_weight,
        vendor_id=row.vendor_id,
        customer_id=row.customer_id,
        cash_paid=row.cash_paid,
        online_paid=row.online_paid,
        discount=row.discount,
        source=row.source,
        ref_no=row.ref_no,
        bill_number=row.bill_number,
        vehicle_number=row.vehicle_number,
    )


def _row_values(record) -> dict:
    values = record.model_dump(exclude={"id"})
    values["inventory_type"] = InventoryType(values["inventory_type"]).value
    values["type"] = values["type"].value
    values["source"] = RecordSource(values["source"]).value
    values["avg_weight"] = record.derived_avg_weight
    return values


def list_records(
    db: Session,
    *,
    start_date: date | None = None,
    end_date: date | None = None,
    inventory_type: InventoryType | None = None,
) -> list[StockRecord]:
    stmt = select(StockRecordRow)
    if start_date is not None:
        stmt = stmt.where(StockRecordRow.date >= start_date)
    if end_date is not None:
        stmt = stmt.where(StockRecordRow.date <= end_date)
    if inventory_type is not None:
        stmt = stmt.where(StockRecordRow.inventory_type == InventoryType(inventory_type).value)
    stmt = stmt.order_by(StockRecordRow.date, StockRecordRow.id)
    rows = db.execute(stmt).scalars().all()
    return [row_to_record(row) for row in rows]


def _get_row(db: Session, record_id) -> StockRecordRow:
    row = db.execute(
        select(StockRecordRow).where(StockRecordRow.external_id == str(record_id))
    ).scalars().first()
    if row is None and str(record_id).isdigit():
        row = db.get(StockRecordRow, int(record_id))
    if row is None:
        raise StockRecordNotFound(f"Stock record {record_id} not found")
    return row


def get_record(db: Session, record_id) -> StockRecord:
    return row_to_record(_get_row(db, record_id))


def add_record(db: Session, record: StockRecordCreate, *, external_id: str | None = None) -> StockRecord:
    row = StockRecordRow(external_id=external_id, **_row_values(record))
    db.add(row)
    db.flush()
    logger.info(
        "Added %s %s record for %s",
        row.inventory_type,
        row.type,
        row.date.isoformat(),
    )
    return row_to_record(row)


def update_record(db: Session, record_id, changes: StockRecordUpdate) -> StockRecord:
    row = _get_row(db, record_id)
    if row.source == RecordSource.TRIP.value:
        raise ReadOnlyRecordError(f"Stock record {record_id} comes from a trip and is read-only")
    for key, value in changes.changes().items():
        setattr(row, key, value)
    row.avg_weight = row.weight / row.birds if row.birds and row.birds > 0 else 0.0
    db.flush()
    return row_to_record(row)


def delete_record(db: Session, record_id) -> None:
    row = _get_row(db, record_id)
    if row.source == RecordSource.TRIP.value:
        raise ReadOnlyRecordError(f"Stock record {record_id} comes from a trip and is read-only")
    db.delete(row)
    db.flush()
    logger.info("Deleted stock record %s", record_id)


def upsert_record(db: Session, record: StockRecord) -> str:
    """Insert or update by external id; used by the workbook import."""
    values = _row_values(record)
    row = None
    if record.id:
        row = db.execute(
            select(StockRecordRow).where(StockRecordRow.external_id == record.id)
        ).scalars().first()
    if row is not None:
        for key, value in values.items():
            setattr(row, key, value)
        return "updated"
    db.add(StockRecordRow(external_id=record.id, **values))
    return "inserted"
