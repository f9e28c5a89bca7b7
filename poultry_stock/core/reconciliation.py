from dataclasses import dataclass, field
from typing import Optional

from poultry_stock.core.aggregator import (
    PaymentTotals,
    StockAggregate,
    aggregate,
    payment_totals,
    sort_records,
)
from poultry_stock.core.closing_stock import ClosingStock, calculate_closing_stock
from poultry_stock.core.constants import (
    DEFAULT_NATURAL_LOSS_WARN_RATIO,
    InventoryType,
    StockType,
)
from poultry_stock.core.feed_stock import FeedStock, calculate_feed_stock
from poultry_stock.core.profit_breakdown import ProfitBreakdown, calculate_profit_breakdown

PURCHASES = "purchases"
SALES = "sales"
MORTALITY = "mortality"
WEIGHT_LOSS = "weight_loss"
FEED_OPENING = "feed_opening"
FEED_PURCHASED = "feed_purchased"
FEED_CONSUMED = "feed_consumed"
IGNORED = "ignored"

BIRD_ROUTES = {
    StockType.OPENING: PURCHASES,
    StockType.PURCHASE: PURCHASES,
    StockType.SALE: SALES,
    StockType.RECEIPT: SALES,
    StockType.MORTALITY: MORTALITY,
    StockType.WEIGHT_LOSS: WEIGHT_LOSS,
    StockType.NATURAL_WEIGHT_LOSS: IGNORED,
    StockType.CONSUME: IGNORED,
}

FEED_ROUTES = {
    StockType.OPENING: FEED_OPENING,
    StockType.PURCHASE: FEED_PURCHASED,
    StockType.CONSUME: FEED_CONSUMED,
    StockType.SALE: IGNORED,
    StockType.RECEIPT: IGNORED,
    StockType.MORTALITY: IGNORED,
    StockType.WEIGHT_LOSS: IGNORED,
    StockType.NATURAL_WEIGHT_LOSS: IGNORED,
}

ROUTES = {
    InventoryType.BIRD: BIRD_ROUTES,
    InventoryType.FEED: FEED_ROUTES,
}


def _check_routes():
    for inventory_type in InventoryType:
        routes = ROUTES.get(inventory_type)
        if routes is None:
            raise RuntimeError(f"No stock routing for inventory type {inventory_type.value}")
        missing = sorted(stock_type.value for stock_type in StockType if stock_type not in routes)
        if missing:
            raise RuntimeError(
                "Stock routing for {} is missing types: {}".format(
                    inventory_type.value, ", ".join(missing)
                )
            )


_check_routes()


@dataclass(frozen=True)
class ReconciliationWarning:
    code: str
    message: str


@dataclass(frozen=True)
class ReconciliationInput:
    purchase_records: tuple = ()
    sale_records: tuple = ()
    mortality_record: Optional[object] = None
    weight_loss_record: Optional[object] = None
    feed_opening_records: tuple = ()
    feed_purchased_records: tuple = ()
    feed_consumed_records: tuple = ()
    ignored_count: int = 0
    previous_period_feed_consumed_amount: float = 0.0
    natural_loss_warn_ratio: float = DEFAULT_NATURAL_LOSS_WARN_RATIO


@dataclass(frozen=True)
class ReconciliationResult:
    purchases: StockAggregate
    sales: StockAggregate
    sale_payments: PaymentTotals
    closing_stock: ClosingStock
    feed_stock: FeedStock
    profit: ProfitBreakdown
    has_opening_stock: bool
    has_mortality_record: bool
    has_weight_loss_record: bool
    ignored_count: int = 0
    warnings: tuple = field(default_factory=tuple)


def partition_records(
    records,
    previous_period_feed_consumed_amount=0.0,
    natural_loss_warn_ratio=DEFAULT_NATURAL_LOSS_WARN_RATIO,
) -> ReconciliationInput:
    groups = {
        PURCHASES: [],
        SALES: [],
        MORTALITY: [],
        WEIGHT_LOSS: [],
        FEED_OPENING: [],
        FEED_PURCHASED: [],
        FEED_CONSUMED: [],
        IGNORED: [],
    }
    for record in records:
        route = ROUTES[InventoryType(record.inventory_type)][StockType(record.type)]
        groups[route].append(record)

    # At most one of each per scope; the first one wins.
    mortality = groups[MORTALITY][0] if groups[MORTALITY] else None
    weight_loss = groups[WEIGHT_LOSS][0] if groups[WEIGHT_LOSS] else None

    return ReconciliationInput(
        purchase_records=tuple(sort_records(groups[PURCHASES])),
        sale_records=tuple(sort_records(groups[SALES])),
        mortality_record=mortality,
        weight_loss_record=weight_loss,
        feed_opening_records=tuple(groups[FEED_OPENING]),
        feed_purchased_records=tuple(groups[FEED_PURCHASED]),
        feed_consumed_records=tuple(groups[FEED_CONSUMED]),
        ignored_count=len(groups[IGNORED]),
        previous_period_feed_consumed_amount=previous_period_feed_consumed_amount,
        natural_loss_warn_ratio=natural_loss_warn_ratio,
    )


def check_natural_loss(closing_stock, warn_ratio=DEFAULT_NATURAL_LOSS_WARN_RATIO):
    warnings = []
    nat_weight = closing_stock.natural_loss.weight
    gross_weight = closing_stock.gross.weight
    if nat_weight < 0:
        warnings.append(
            ReconciliationWarning(
                code="natural_weight_gain",
                message="Natural weight loss is negative ({:.2f} kg): stock gained weight.".format(
                    nat_weight
                ),
            )
        )
    if gross_weight != 0 and abs(nat_weight) > warn_ratio * abs(gross_weight):
        warnings.append(
            ReconciliationWarning(
                code="natural_loss_out_of_range",
                message=(
                    "Natural weight loss {:.2f} kg exceeds {:.0%} of gross stock {:.2f} kg; "
                    "check mortality and sale weights."
                ).format(nat_weight, warn_ratio, gross_weight),
            )
        )
    return tuple(warnings)


def feed_consumed_amount(records) -> float:
    """Feed consumption cost over a record set, the carry-forward for the next day."""
    inp = partition_records(records)
    return aggregate(inp.feed_consumed_records).total_amount


def reconcile(inp: ReconciliationInput) -> ReconciliationResult:
    purchases = aggregate(inp.purchase_records)
    sales = aggregate(inp.sale_records)

    closing_stock = calculate_closing_stock(
        purchases,
        sales,
        mortality_record=inp.mortality_record,
        weight_loss_record=inp.weight_loss_record,
    )
    feed_stock = calculate_feed_stock(
        aggregate(inp.feed_opening_records),
        aggregate(inp.feed_purchased_records),
        aggregate(inp.feed_consumed_records),
    )
    profit = calculate_profit_breakdown(
        purchases,
        sales,
        closing_stock,
        inp.previous_period_feed_consumed_amount,
    )

    return ReconciliationResult(
        purchases=purchases,
        sales=sales,
        sale_payments=payment_totals(inp.sale_records),
        closing_stock=closing_stock,
        feed_stock=feed_stock,
        profit=profit,
        has_opening_stock=any(
            record.type == StockType.OPENING for record in inp.purchase_records
        ),
        has_mortality_record=inp.mortality_record is not None,
        has_weight_loss_record=inp.weight_loss_record is not None,
        ignored_count=inp.ignored_count,
        warnings=check_natural_loss(closing_stock, inp.natural_loss_warn_ratio),
    )


def reconcile_records(
    records,
    previous_period_feed_consumed_amount=0.0,
    natural_loss_warn_ratio=DEFAULT_NATURAL_LOSS_WARN_RATIO,
) -> ReconciliationResult:
    return reconcile(
        partition_records(
            records,
            previous_period_feed_consumed_amount=previous_period_feed_consumed_amount,
            natural_loss_warn_ratio=natural_loss_warn_ratio,
        )
    )


_WATERFALL_LABELS = (
    ("gross", "Gross Closing Stock"),
    ("mortality", "Less Mortality"),
    ("actual_loss", "Less Actual Weight Loss"),
    ("natural_loss", "Natural Weight Loss/On"),
    ("closing", "Closing Stock"),
)

_FEED_LABELS = (
    ("opening", "Feed Opening"),
    ("purchased", "Feed Purchased"),
    ("consumed", "Feed Consumed"),
    ("closing", "Feed Closing"),
)


def flatten_result(result: ReconciliationResult):
    """Two-column (label, value) rows for spreadsheets and terminal output."""
    rows = [
        ("Purchase Birds", result.purchases.total_birds),
        ("Purchase Weight", result.purchases.total_weight),
        ("Purchase Avg Weight", result.purchases.avg_weight),
        ("Purchase Rate", result.purchases.avg_rate),
        ("Purchase Amount", result.purchases.total_amount),
        ("Sale Birds", result.sales.total_birds),
        ("Sale Weight", result.sales.total_weight),
        ("Sale Avg Weight", result.sales.avg_weight),
        ("Sale Rate", result.sales.avg_rate),
        ("Sale Amount", result.sales.total_amount),
        ("Sale Cash", result.sale_payments.cash_paid),
        ("Sale Online", result.sale_payments.online_paid),
        ("Sale Discount", result.sale_payments.discount),
        ("Sale Outstanding", result.sale_payments.outstanding),
    ]
    for attr, label in _WATERFALL_LABELS:
        row = getattr(result.closing_stock, attr)
        rows.extend(
            [
                (f"{label} Birds", row.birds),
                (f"{label} Weight", row.weight),
                (f"{label} Avg", row.avg_weight),
                (f"{label} Rate", row.rate),
                (f"{label} Total", row.total),
            ]
        )
    for attr, label in _FEED_LABELS:
        row = getattr(result.feed_stock, attr)
        rows.extend(
            [
                (f"{label} Bags", row.bags),
                (f"{label} Weight", row.weight),
                (f"{label} Rate", row.rate),
                (f"{label} Amount", row.amount),
            ]
        )
    profit = result.profit
    rows.extend(
        [
            ("Profit Margin Per Kg", profit.profit_margin_per_kg),
            ("Birds Sold Qty (Kg)", profit.birds_sold_qty_in_kg),
            ("Gross Profit", profit.gross_profit),
            ("Less Weight Loss & Mortality", profit.weight_loss_and_mortality),
            ("Less Feed Consumed (Previous Day)", profit.feed_consumed),
            ("Net Profit/Loss", profit.net_profit_loss),
        ]
    )
    return rows
