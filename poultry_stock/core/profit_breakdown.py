from dataclasses import dataclass


@dataclass(frozen=True)
class ProfitBreakdown:
    profit_margin_per_kg: float
    birds_sold_qty_in_kg: float
    gross_profit: float
    weight_loss_and_mortality: float
    feed_consumed: float
    net_profit_loss: float


def calculate_profit_breakdown(
    purchase_agg,
    sale_agg,
    closing_stock,
    previous_period_feed_consumed_amount=0.0,
) -> ProfitBreakdown:
    """Net profit for the scope.

    Feed cost is the previous period's consumption: feed eaten yesterday is
    charged against the birds sold today.
    """
    profit_margin_per_kg = sale_agg.avg_rate - purchase_agg.avg_rate
    birds_sold_qty_in_kg = sale_agg.total_weight
    gross_profit = birds_sold_qty_in_kg * profit_margin_per_kg
    weight_loss_and_mortality = (
        closing_stock.natural_loss.total
        + closing_stock.actual_loss.total
        + closing_stock.mortality.total
    )
    feed_consumed = previous_period_feed_consumed_amount
    net_profit_loss = gross_profit - weight_loss_and_mortality - feed_consumed
    return ProfitBreakdown(
        profit_margin_per_kg=profit_margin_per_kg,
        birds_sold_qty_in_kg=birds_sold_qty_in_kg,
        gross_profit=gross_profit,
        weight_loss_and_mortality=weight_loss_and_mortality,
        feed_consumed=feed_consumed,
        net_profit_loss=net_profit_loss,
    )
