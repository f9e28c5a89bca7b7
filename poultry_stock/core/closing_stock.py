from dataclasses import dataclass


@dataclass(frozen=True)
class WaterfallRow:
    birds: int = 0
    weight: float = 0.0
    avg_weight: float = 0.0
    rate: float = 0.0
    total: float = 0.0


@dataclass(frozen=True)
class ClosingStock:
    gross: WaterfallRow
    mortality: WaterfallRow
    actual_loss: WaterfallRow
    natural_loss: WaterfallRow
    closing: WaterfallRow

    @property
    def accounted_weight(self) -> float:
        return (
            self.mortality.weight
            + self.actual_loss.weight
            + self.natural_loss.weight
            + self.closing.weight
        )


def calculate_closing_stock(
    purchase_agg,
    sale_agg,
    mortality_record=None,
    weight_loss_record=None,
) -> ClosingStock:
    """Bird waterfall: gross stock, less mortality and actual loss, to closing.

    Every line is valued at the purchase-side average rate. Mortality and
    closing birds are weighed at the sale-side average weight per bird.
    Natural weight loss is the balancing figure and may be negative (a gain).
    """
    gross_birds = purchase_agg.total_birds - sale_agg.total_birds
    gross_weight = purchase_agg.total_weight - sale_agg.total_weight
    gross_avg = gross_weight / gross_birds if gross_birds != 0 else 0.0
    gross_rate = purchase_agg.avg_rate
    gross_total = gross_rate * gross_weight

    mort_birds = mortality_record.birds if mortality_record is not None else 0
    mort_avg = sale_agg.avg_weight
    mort_weight = mort_birds * mort_avg
    mort_total = gross_rate * mort_weight

    act_weight = weight_loss_record.weight if weight_loss_record is not None else 0.0
    act_total = gross_rate * act_weight

    close_birds = gross_birds - mort_birds
    close_avg = sale_agg.avg_weight
    close_weight = close_birds * close_avg
    close_total = gross_rate * close_weight

    nat_weight = gross_weight - mort_weight - act_weight - close_weight
    nat_total = gross_rate * nat_weight

    return ClosingStock(
        gross=WaterfallRow(gross_birds, gross_weight, gross_avg, gross_rate, gross_total),
        mortality=WaterfallRow(mort_birds, mort_weight, mort_avg, gross_rate, mort_total),
        actual_loss=WaterfallRow(0, act_weight, 0.0, gross_rate, act_total),
        natural_loss=WaterfallRow(0, nat_weight, 0.0, gross_rate, nat_total),
        closing=WaterfallRow(close_birds, close_weight, close_avg, gross_rate, close_total),
    )
