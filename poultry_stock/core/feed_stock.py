from dataclasses import dataclass


@dataclass(frozen=True)
class FeedRow:
    bags: int = 0
    weight: float = 0.0
    amount: float = 0.0

    @property
    def rate(self) -> float:
        if self.weight > 0:
            return self.amount / self.weight
        return 0.0


@dataclass(frozen=True)
class FeedStock:
    opening: FeedRow
    purchased: FeedRow
    consumed: FeedRow
    closing: FeedRow


def _row_from_aggregate(agg) -> FeedRow:
    return FeedRow(bags=agg.total_bags, weight=agg.total_weight, amount=agg.total_amount)


def calculate_feed_stock(opening_agg, purchased_agg, consumed_agg) -> FeedStock:
    opening = _row_from_aggregate(opening_agg)
    purchased = _row_from_aggregate(purchased_agg)
    consumed = _row_from_aggregate(consumed_agg)
    closing = FeedRow(
        bags=opening.bags + purchased.bags - consumed.bags,
        weight=opening.weight + purchased.weight - consumed.weight,
        amount=opening.amount + purchased.amount - consumed.amount,
    )
    return FeedStock(opening=opening, purchased=purchased, consumed=consumed, closing=closing)
