from datetime import datetime, timezone

from sqlalchemy import Column, Date, DateTime, Float, Index, Integer, String

from poultry_stock.database.base import Base


class StockRecordRow(Base):
    __tablename__ = "stock_records"

    id = Column(Integer, primary_key=True)
    external_id = Column(String, unique=True)

    date = Column(Date, nullable=False)
    inventory_type = Column(String, nullable=False, default="bird")
    type = Column(String, nullable=False)

    birds = Column(Integer, nullable=False, default=0)
    weight = Column(Float, nullable=False, default=0)
    bags = Column(Integer, nullable=False, default=0)
    rate = Column(Float, nullable=False, default=0)
    amount = Column(Float, nullable=False, default=0)
    avg_weight = Column(Float, nullable=False, default=0)

    vendor_id = Column(String)
    customer_id = Column(String)
    cash_paid = Column(Float, nullable=False, default=0)
    online_paid = Column(Float, nullable=False, default=0)
    discount = Column(Float, nullable=False, default=0)

    source = Column(String, nullable=False, default="manual")
    ref_no = Column(String)
    bill_number = Column(String)
    vehicle_number = Column(String)

    created_at = Column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
    )

    __table_args__ = (
        Index("idx_stock_records_date_inventory", "date", "inventory_type"),
        Index("idx_stock_records_type", "type"),
    )


__all__ = ["StockRecordRow"]
