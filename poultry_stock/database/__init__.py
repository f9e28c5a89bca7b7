from poultry_stock.database.base import Base
from poultry_stock.database.engine import engine
from poultry_stock.database.session import SessionLocal, get_db, read_session

__all__ = ["Base", "engine", "SessionLocal", "get_db", "read_session"]
