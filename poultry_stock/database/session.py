from contextlib import contextmanager

from sqlalchemy.orm import sessionmaker

from poultry_stock.database.engine import engine

SessionLocal = sessionmaker(
    autocommit=False,
    autoflush=False,
    expire_on_commit=False,
    bind=engine,
)


def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


@contextmanager
def read_session(session_factory=None):
    """Short-lived session for read paths outside a request."""
    db = (session_factory or SessionLocal)()
    try:
        yield db
    finally:
        db.close()
