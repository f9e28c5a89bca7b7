import unittest
from datetime import date

from poultry_stock.core.constants import InventoryType, StockType
from poultry_stock.core.reconciliation import (
    BIRD_ROUTES,
    FEED_ROUTES,
    check_natural_loss,
    feed_consumed_amount,
    flatten_result,
    partition_records,
    reconcile_records,
)
from poultry_stock.schemas.stock import StockRecord

DAY = date(2024, 5, 1)


def _bird(stock_type, **values):
    return StockRecord(date=DAY, inventory_type="bird", type=stock_type, **values)


def _feed(stock_type, **values):
    return StockRecord(date=DAY, inventory_type="feed", type=stock_type, **values)


def _simple_day():
    return [
        _bird("purchase", birds=1000, weight=2000, amount=200000),
        _bird("sale", birds=900, weight=1850, amount=203500),
        _bird("mortality", birds=50),
        _bird("weight_loss", weight=5),
    ]


class RoutingTest(unittest.TestCase):
    def test_every_type_is_routed(self):
        for routes in (BIRD_ROUTES, FEED_ROUTES):
            self.assertEqual(set(routes), set(StockType))

    def test_partition_groups_records(self):
        records = _simple_day() + [
            _bird("opening", birds=100, weight=200, amount=20000),
            _bird("receipt", amount=1000),
            _bird("natural_weight_loss", weight=3),
            _feed("opening", bags=5, weight=250, amount=7500),
            _feed("purchase", bags=10, weight=500, amount=16000),
            _feed("consume", bags=4, weight=200, amount=6200),
            _feed("sale", bags=1),
        ]
        inp = partition_records(records, previous_period_feed_consumed_amount=900.0)
        self.assertEqual(len(inp.purchase_records), 2)
        self.assertEqual(inp.purchase_records[0].type, StockType.OPENING)
        self.assertEqual(len(inp.sale_records), 2)
        self.assertEqual(inp.mortality_record.birds, 50)
        self.assertEqual(inp.weight_loss_record.weight, 5)
        self.assertEqual(len(inp.feed_opening_records), 1)
        self.assertEqual(len(inp.feed_purchased_records), 1)
        self.assertEqual(len(inp.feed_consumed_records), 1)
        self.assertEqual(inp.ignored_count, 2)
        self.assertEqual(inp.previous_period_feed_consumed_amount, 900.0)

    def test_first_mortality_record_wins(self):
        records = [_bird("mortality", birds=5), _bird("mortality", birds=7)]
        self.assertEqual(partition_records(records).mortality_record.birds, 5)

    def test_feed_records_never_reach_bird_waterfall(self):
        result = reconcile_records([_feed("purchase", birds=10, weight=500, amount=16000)])
        self.assertEqual(result.purchases.total_birds, 0)
        self.assertEqual(result.feed_stock.purchased.weight, 500)


class ReconcileTest(unittest.TestCase):
    def test_simple_day(self):
        result = reconcile_records(_simple_day())
        stock = result.closing_stock
        self.assertEqual(stock.gross.birds, 100)
        self.assertAlmostEqual(stock.natural_loss.weight, -60.56, places=2)
        self.assertAlmostEqual(result.profit.gross_profit, 18500.0)
        self.assertTrue(result.has_mortality_record)
        self.assertTrue(result.has_weight_loss_record)
        self.assertFalse(result.has_opening_stock)

    def test_without_loss_records(self):
        result = reconcile_records(
            [
                _bird("purchase", birds=1000, weight=2000, amount=200000),
                _bird("sale", birds=900, weight=1800, amount=198000),
            ]
        )
        stock = result.closing_stock
        self.assertEqual(stock.closing.birds, stock.gross.birds)
        self.assertEqual(stock.natural_loss.weight, stock.gross.weight - stock.closing.weight)
        self.assertFalse(result.has_mortality_record)
        self.assertEqual(result.warnings, ())

    def test_feed_carry_forward_reduces_net(self):
        result = reconcile_records(_simple_day(), previous_period_feed_consumed_amount=1200.0)
        self.assertEqual(result.profit.feed_consumed, 1200.0)
        self.assertAlmostEqual(result.profit.net_profit_loss, 12577.78, places=2)

    def test_same_day_feed_consumption_does_not_hit_profit(self):
        result = reconcile_records(_simple_day() + [_feed("consume", amount=5000)])
        self.assertEqual(result.profit.feed_consumed, 0.0)
        self.assertEqual(result.feed_stock.consumed.amount, 5000)

    def test_empty_scope(self):
        result = reconcile_records([])
        self.assertEqual(result.profit.net_profit_loss, 0.0)
        self.assertEqual(result.closing_stock.closing.birds, 0)
        self.assertEqual(result.warnings, ())

    def test_feed_consumed_amount(self):
        records = [_feed("consume", amount=1000), _feed("consume", amount=250), _feed("purchase", amount=99)]
        self.assertEqual(feed_consumed_amount(records), 1250)

    def test_same_input_gives_identical_result(self):
        records = _simple_day() + [
            _bird("opening", birds=100, weight=200, amount=20000),
            _feed("purchase", bags=10, weight=500, amount=16000),
            _feed("consume", bags=4, weight=200, amount=6200),
        ]
        first = reconcile_records(records, previous_period_feed_consumed_amount=900.0)
        second = reconcile_records(list(records), previous_period_feed_consumed_amount=900.0)

        self.assertEqual(first, second)
        self.assertEqual(flatten_result(first), flatten_result(second))


class NaturalLossWarningTest(unittest.TestCase):
    def test_negative_natural_loss_is_flagged_without_changing_figures(self):
        result = reconcile_records(_simple_day())
        codes = [warning.code for warning in result.warnings]
        self.assertEqual(codes, ["natural_weight_gain", "natural_loss_out_of_range"])
        self.assertAlmostEqual(result.closing_stock.natural_loss.weight, -60.56, places=2)

    def test_ratio_threshold(self):
        stock = reconcile_records(_simple_day()).closing_stock
        codes = [warning.code for warning in check_natural_loss(stock, warn_ratio=0.5)]
        self.assertEqual(codes, ["natural_weight_gain"])


class FlattenResultTest(unittest.TestCase):
    def test_labels_and_values(self):
        rows = dict(flatten_result(reconcile_records(_simple_day())))
        self.assertEqual(rows["Purchase Birds"], 1000)
        self.assertEqual(rows["Gross Closing Stock Birds"], 100)
        self.assertAlmostEqual(rows["Gross Profit"], 18500.0)
        self.assertIn("Feed Closing Amount", rows)
        self.assertIn("Net Profit/Loss", rows)
        self.assertEqual(rows["Sale Outstanding"], 203500)

    def test_inventory_type_defaults_to_bird(self):
        record = StockRecord(date=DAY, type="purchase", birds=1)
        self.assertEqual(record.inventory_type, InventoryType.BIRD)
