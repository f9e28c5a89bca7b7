from datetime import date
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, Response
from sqlalchemy.orm import Session

from poultry_stock.core.aggregator import sort_records
from poultry_stock.core.constants import InventoryType
from poultry_stock.dependencies import get_db, require_stock_access
from poultry_stock.schemas.reconciliation import ReconciliationRead
from poultry_stock.schemas.stock import StockRecord, StockRecordCreate, StockRecordUpdate
from poultry_stock.services.export_service import (
    PURCHASE_TYPES,
    SALE_TYPES,
    XLSX_MEDIA_TYPE,
    build_daily_summary_workbook,
    build_monthly_summary_workbook,
    build_reconciliation_workbook,
    reconciliation_filename,
    workbook_bytes,
)
from poultry_stock.services.reconciliation_service import (
    daily_summary,
    monthly_summary,
    reconcile_period,
    use_remote_source,
)
from poultry_stock.services.stock_api_client import StockApiClient, StockApiError
from poultry_stock.services.stock_record_service import (
    ReadOnlyRecordError,
    StockRecordNotFound,
    add_record,
    delete_record,
    get_record,
    list_records,
    update_record,
)

router = APIRouter(prefix="/stock", tags=["Stock"])


def _remote_client():
    return StockApiClient() if use_remote_source() else None


def _api_error(exc: StockApiError) -> HTTPException:
    return HTTPException(status_code=502, detail=str(exc))


def _run_reconciliation(day, start_date, end_date):
    if day is not None:
        if start_date is not None or end_date is not None:
            raise HTTPException(
                status_code=400,
                detail="Use either date or start_date/end_date, not both.",
            )
        start_date = end_date = day
    elif end_date is not None and start_date is None:
        raise HTTPException(status_code=400, detail="end_date requires start_date.")
    try:
        return reconcile_period(start_date, end_date)
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    except StockApiError as exc:
        raise _api_error(exc) from exc


def _to_read(period) -> ReconciliationRead:
    bird_records = [
        record for record in period.records if record.inventory_type == InventoryType.BIRD
    ]
    return ReconciliationRead(
        start_date=period.start_date,
        end_date=period.end_date,
        previous_date=period.previous_date,
        record_count=len(period.records),
        purchases=period.result.purchases,
        sales=period.result.sales,
        sale_payments=period.result.sale_payments,
        closing_stock=period.result.closing_stock,
        feed_stock=period.result.feed_stock,
        profit=period.result.profit,
        has_opening_stock=period.result.has_opening_stock,
        has_mortality_record=period.result.has_mortality_record,
        has_weight_loss_record=period.result.has_weight_loss_record,
        ignored_count=period.result.ignored_count,
        warnings=list(period.result.warnings),
        purchase_records=sort_records(
            [record for record in bird_records if record.type in PURCHASE_TYPES]
        ),
        sale_records=sort_records(
            [record for record in bird_records if record.type in SALE_TYPES]
        ),
    )


def _xlsx_response(content: bytes, filename: str) -> Response:
    return Response(
        content=content,
        media_type=XLSX_MEDIA_TYPE,
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )


@router.get("/records", response_model=List[StockRecord])
def get_records(
    start_date: Optional[date] = Query(None),
    end_date: Optional[date] = Query(None),
    inventory_type: Optional[InventoryType] = Query(None),
    db: Session = Depends(get_db),
    _user=Depends(require_stock_access),
):
    client = _remote_client()
    if client is None:
        return list_records(
            db,
            start_date=start_date,
            end_date=end_date,
            inventory_type=inventory_type,
        )
    try:
        records = client.fetch_stock_records(start_date, end_date)
    except StockApiError as exc:
        raise _api_error(exc) from exc
    if inventory_type is not None:
        records = [record for record in records if record.inventory_type == inventory_type]
    return records


@router.post("/records", response_model=StockRecord, status_code=201)
def create_record(
    payload: StockRecordCreate,
    db: Session = Depends(get_db),
    _user=Depends(require_stock_access),
):
    client = _remote_client()
    if client is not None:
        try:
            created = client.create_stock_record(payload)
        except ValueError as exc:
            raise HTTPException(status_code=400, detail=str(exc)) from exc
        except StockApiError as exc:
            raise _api_error(exc) from exc
        return created or StockRecord.model_validate(payload.model_dump())

    record = add_record(db, payload)
    db.commit()
    return record


@router.get("/records/{record_id}", response_model=StockRecord)
def get_one_record(
    record_id: str,
    db: Session = Depends(get_db),
    _user=Depends(require_stock_access),
):
    client = _remote_client()
    if client is not None:
        try:
            return client.get_stock_record(record_id)
        except StockApiError as exc:
            if exc.status_code == 404:
                raise HTTPException(status_code=404, detail=str(exc)) from exc
            raise _api_error(exc) from exc

    try:
        return get_record(db, record_id)
    except StockRecordNotFound as exc:
        raise HTTPException(status_code=404, detail=str(exc)) from exc


@router.put("/records/{record_id}", response_model=StockRecord)
def edit_record(
    record_id: str,
    payload: StockRecordUpdate,
    db: Session = Depends(get_db),
    _user=Depends(require_stock_access),
):
    client = _remote_client()
    if client is not None:
        try:
            updated = client.update_stock_record(record_id, payload)
        except StockApiError as exc:
            raise _api_error(exc) from exc
        if updated is None:
            raise HTTPException(status_code=502, detail="Stock API returned no record.")
        return updated

    try:
        record = update_record(db, record_id, payload)
    except StockRecordNotFound as exc:
        raise HTTPException(status_code=404, detail=str(exc)) from exc
    except ReadOnlyRecordError as exc:
        raise HTTPException(status_code=409, detail=str(exc)) from exc
    db.commit()
    return record


@router.delete("/records/{record_id}", status_code=204)
def remove_record(
    record_id: str,
    db: Session = Depends(get_db),
    _user=Depends(require_stock_access),
):
    client = _remote_client()
    if client is not None:
        try:
            client.delete_stock_record(record_id)
        except StockApiError as exc:
            raise _api_error(exc) from exc
        return Response(status_code=204)

    try:
        delete_record(db, record_id)
    except StockRecordNotFound as exc:
        raise HTTPException(status_code=404, detail=str(exc)) from exc
    except ReadOnlyRecordError as exc:
        raise HTTPException(status_code=409, detail=str(exc)) from exc
    db.commit()
    return Response(status_code=204)


@router.get("/reconciliation", response_model=ReconciliationRead)
def get_reconciliation(
    day: Optional[date] = Query(None, alias="date"),
    start_date: Optional[date] = Query(None),
    end_date: Optional[date] = Query(None),
    _user=Depends(require_stock_access),
):
    return _to_read(_run_reconciliation(day, start_date, end_date))


@router.get("/reconciliation/export")
def export_reconciliation(
    day: Optional[date] = Query(None, alias="date"),
    start_date: Optional[date] = Query(None),
    end_date: Optional[date] = Query(None),
    _user=Depends(require_stock_access),
):
    period = _run_reconciliation(day, start_date, end_date)
    workbook = build_reconciliation_workbook(period)
    return _xlsx_response(workbook_bytes(workbook), reconciliation_filename(period))


def _load_daily_summary(year, month):
    try:
        return daily_summary(year, month)
    except StockApiError as exc:
        raise _api_error(exc) from exc


@router.get("/summary/daily")
def get_daily_summary(
    year: int = Query(..., ge=2000, le=2100),
    month: int = Query(..., ge=1, le=12),
    _user=Depends(require_stock_access),
):
    return _load_daily_summary(year, month)


@router.get("/summary/daily/export")
def export_daily_summary(
    year: int = Query(..., ge=2000, le=2100),
    month: int = Query(..., ge=1, le=12),
    _user=Depends(require_stock_access),
):
    summary = _load_daily_summary(year, month)
    workbook = build_daily_summary_workbook(summary)
    filename = "Daily_Stock_Summary_{}_{:02d}.xlsx".format(year, month)
    return _xlsx_response(workbook_bytes(workbook), filename)


def _load_monthly_summary(year):
    try:
        return monthly_summary(year)
    except StockApiError as exc:
        raise _api_error(exc) from exc


@router.get("/summary/monthly")
def get_monthly_summary(
    year: int = Query(..., ge=2000, le=2100),
    _user=Depends(require_stock_access),
):
    return _load_monthly_summary(year)


@router.get("/summary/monthly/export")
def export_monthly_summary(
    year: int = Query(..., ge=2000, le=2100),
    _user=Depends(require_stock_access),
):
    summary = _load_monthly_summary(year)
    workbook = build_monthly_summary_workbook(summary)
    return _xlsx_response(workbook_bytes(workbook), "Stock_Monthly_Summary_{}.xlsx".format(year))


__all__ = ["router"]
