from dataclasses import dataclass
from datetime import date

from poultry_stock.core.constants import StockType


@dataclass(frozen=True)
class StockAggregate:
    total_birds: int = 0
    total_weight: float = 0.0
    total_amount: float = 0.0
    total_bags: int = 0
    avg_weight: float = 0.0
    avg_rate: float = 0.0


@dataclass(frozen=True)
class PaymentTotals:
    billed: float = 0.0
    cash_paid: float = 0.0
    online_paid: float = 0.0
    discount: float = 0.0

    @property
    def collected(self) -> float:
        return self.cash_paid + self.online_paid

    @property
    def outstanding(self) -> float:
        return self.billed - self.cash_paid - self.online_paid - self.discount


EMPTY_AGGREGATE = StockAggregate()


def aggregate(records) -> StockAggregate:
    """Sum birds, weight, amount and bags over already-filtered records.

    ``amount`` is summed as stored; it is never rebuilt from rate and weight.
    """
    total_birds = 0
    total_weight = 0.0
    total_amount = 0.0
    total_bags = 0
    for record in records:
        total_birds += record.birds
        total_weight += record.weight
        total_amount += record.amount
        total_bags += record.bags

    avg_weight = total_weight / total_birds if total_birds > 0 else 0.0
    avg_rate = total_amount / total_weight if total_weight > 0 else 0.0
    return StockAggregate(
        total_birds=total_birds,
        total_weight=total_weight,
        total_amount=total_amount,
        total_bags=total_bags,
        avg_weight=avg_weight,
        avg_rate=avg_rate,
    )


def payment_totals(records) -> PaymentTotals:
    billed = 0.0
    cash_paid = 0.0
    online_paid = 0.0
    discount = 0.0
    for record in records:
        billed += record.amount
        cash_paid += record.cash_paid
        online_paid += record.online_paid
        discount += record.discount
    return PaymentTotals(
        billed=billed,
        cash_paid=cash_paid,
        online_paid=online_paid,
        discount=discount,
    )


def _sort_key(record):
    record_date = record.date or date.min
    return record_date.toordinal()


def sort_records(records):
    """Opening stock first, then newest date first."""
    opening = [record for record in records if record.type == StockType.OPENING]
    others = [record for record in records if record.type != StockType.OPENING]
    others.sort(key=_sort_key, reverse=True)
    return opening + others
