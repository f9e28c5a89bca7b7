from datetime import date
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field

from poultry_stock.schemas.stock import StockRecord


class _FromAttributes(BaseModel):
    model_config = ConfigDict(from_attributes=True)


class AggregateRead(_FromAttributes):
    total_birds: int
    total_weight: float
    total_amount: float
    total_bags: int
    avg_weight: float
    avg_rate: float


class PaymentTotalsRead(_FromAttributes):
    billed: float
    cash_paid: float
    online_paid: float
    discount: float
    collected: float
    outstanding: float


class WaterfallRowRead(_FromAttributes):
    birds: int
    weight: float
    avg_weight: float
    rate: float
    total: float


class ClosingStockRead(_FromAttributes):
    gross: WaterfallRowRead
    mortality: WaterfallRowRead
    actual_loss: WaterfallRowRead
    natural_loss: WaterfallRowRead
    closing: WaterfallRowRead


class FeedRowRead(_FromAttributes):
    bags: int
    weight: float
    amount: float
    rate: float


class FeedStockRead(_FromAttributes):
    opening: FeedRowRead
    purchased: FeedRowRead
    consumed: FeedRowRead
    closing: FeedRowRead


class ProfitBreakdownRead(_FromAttributes):
    profit_margin_per_kg: float
    birds_sold_qty_in_kg: float
    gross_profit: float
    weight_loss_and_mortality: float
    feed_consumed: float
    net_profit_loss: float


class WarningRead(_FromAttributes):
    code: str
    message: str


class ReconciliationRead(BaseModel):
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    previous_date: Optional[date] = None
    record_count: int
    purchases: AggregateRead
    sales: AggregateRead
    sale_payments: PaymentTotalsRead
    closing_stock: ClosingStockRead
    feed_stock: FeedStockRead
    profit: ProfitBreakdownRead
    has_opening_stock: bool
    has_mortality_record: bool
    has_weight_loss_record: bool
    ignored_count: int
    warnings: List[WarningRead] = Field(default_factory=list)
    purchase_records: List[StockRecord] = Field(default_factory=list)
    sale_records: List[StockRecord] = Field(default_factory=list)

