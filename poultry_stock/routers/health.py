from datetime import datetime, timezone

from fastapi import APIRouter

from poultry_stock.config import get_settings

router = APIRouter(tags=["Health"])


@router.get("/health")
def health_check():
    settings = get_settings()
    return {
        "status": "ok",
        "app": settings.APP_NAME,
        "environment": settings.ENVIRONMENT,
        "time": datetime.now(timezone.utc).isoformat(),
    }


@router.get("/")
def root():
    settings = get_settings()
    return {"app": settings.APP_NAME, "docs": "/docs", "health": "/health"}
