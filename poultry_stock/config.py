from functools import lru_cache
from typing import Optional

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    # ==============================
    # Application
    # ==============================
    APP_NAME: str = "Poultry Stock Reconciliation"
    ENVIRONMENT: str = "local"

    # ==============================
    # Database
    # ==============================
    DATABASE_URL: str = "sqlite:///./poultry_stock.db"

    # ==============================
    # Logging
    # ==============================
    LOG_LEVEL: str = "INFO"
    LOG_JSON: bool = False

    # ==============================
    # Security
    # ==============================
    API_KEYS: Optional[str] = None
    JWT_SECRET: Optional[str] = None
    JWT_ALGORITHM: str = "HS256"
    JWT_AUDIENCE: Optional[str] = None
    JWT_ISSUER: Optional[str] = None
    JWT_REQUIRED: bool = False

    # ==============================
    # Remote Stock API
    # ==============================
    STOCK_API_BASE_URL: Optional[str] = None
    STOCK_API_TOKEN: Optional[str] = None
    STOCK_API_TIMEOUT_SECONDS: int = 15

    # ==============================
    # Reconciliation
    # ==============================
    NATURAL_LOSS_WARN_RATIO: float = 0.05

    # ==============================
    # Excel Export
    # ==============================
    EXPORT_DIR: str = "exports"


@lru_cache
def get_settings() -> Settings:
    """Cached settings loader (once per process)."""
    return Settings()


__all__ = ["Settings", "get_settings"]
