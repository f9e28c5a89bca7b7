from fastapi import APIRouter, Depends, HTTPException
from openpyxl.utils.exceptions import InvalidFileException
from sqlalchemy.exc import SQLAlchemyError

from poultry_stock.dependencies import require_stock_access
from poultry_stock.schemas.stock import ExcelIngestRequest
from poultry_stock.services.ingestion_service import import_workbook, summarize_results

router = APIRouter(prefix="/ingest", tags=["Ingest"])


@router.post("/excel")
def ingest_excel(payload: ExcelIngestRequest, _user=Depends(require_stock_access)):
    try:
        results = import_workbook(
            payload.path,
            sheets=payload.sheets,
            dry_run=payload.dry_run,
        )
    except (OSError, ValueError, SQLAlchemyError, InvalidFileException) as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    return {
        "results": results,
        "summary": summarize_results(results),
        "dry_run": payload.dry_run,
    }
