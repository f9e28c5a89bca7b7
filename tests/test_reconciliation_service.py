import unittest
from datetime import date
from unittest.mock import patch

from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from poultry_stock.database.base import Base
from poultry_stock.models import import_all_models
from poultry_stock.schemas.stock import StockRecord, StockRecordCreate
from poultry_stock.services.reconciliation_service import (
    daily_summary,
    financial_year_order,
    monthly_summary,
    reconcile_period,
    summarize_daily,
    summarize_monthly,
)
from poultry_stock.services.stock_record_service import add_record


def _record(day, stock_type, inventory_type="bird", **values):
    return StockRecord(date=day, inventory_type=inventory_type, type=stock_type, **values)


class FakeStockClient:
    def __init__(self, records):
        self.records = records
        self.calls = []

    def fetch_stock_records(self, start_date=None, end_date=None):
        self.calls.append((start_date, end_date))
        return [
            record
            for record in self.records
            if (start_date is None or record.date >= start_date)
            and (end_date is None or record.date <= end_date)
        ]

    def fetch_daily_stats(self, year, month):
        return {"year": year, "month": month, "days": [], "totals": {}}

    def fetch_monthly_stats(self, year):
        return {
            "year": year,
            "months": [
                {"month": 1, "name": "January", "purchaseAmount": 10},
                {"month": 12, "name": "December", "purchaseAmount": 20},
                {"month": 4, "name": "April", "purchaseAmount": 30},
            ],
            "totals": {"purchaseAmount": 60},
        }


RECORDS = [
    _record(date(2024, 4, 30), "consume", inventory_type="feed", amount=1200),
    _record(date(2024, 5, 1), "purchase", birds=1000, weight=2000, amount=200000),
    _record(date(2024, 5, 1), "sale", birds=900, weight=1850, amount=203500),
    _record(date(2024, 5, 1), "mortality", birds=50),
    _record(date(2024, 5, 1), "weight_loss", weight=5),
    _record(date(2024, 5, 1), "consume", inventory_type="feed", amount=800),
    _record(date(2024, 5, 2), "purchase", birds=500, weight=1000, amount=101000),
]


class ReconcilePeriodTest(unittest.TestCase):
    def test_single_day_uses_previous_day_feed(self):
        client = FakeStockClient(RECORDS)

        period = reconcile_period(date(2024, 5, 1), client=client)

        self.assertEqual(period.start_date, date(2024, 5, 1))
        self.assertEqual(period.end_date, date(2024, 5, 1))
        self.assertEqual(period.previous_date, date(2024, 4, 30))
        self.assertEqual(len(period.records), 5)
        self.assertEqual(period.result.profit.feed_consumed, 1200)
        self.assertEqual(period.result.feed_stock.consumed.amount, 800)
        self.assertAlmostEqual(period.result.profit.net_profit_loss, 12577.78, places=2)
        self.assertIn((date(2024, 4, 30), date(2024, 4, 30)), client.calls)

    def test_accepts_iso_strings(self):
        period = reconcile_period("2024-05-01", "2024-05-02", client=FakeStockClient(RECORDS))
        self.assertEqual(len(period.records), 6)
        self.assertEqual(period.result.purchases.total_birds, 1500)

    def test_all_time_has_no_carry_forward(self):
        client = FakeStockClient(RECORDS)
        period = reconcile_period(client=client)
        self.assertIsNone(period.previous_date)
        self.assertEqual(period.result.profit.feed_consumed, 0.0)
        self.assertEqual(client.calls, [(None, None)])

    def test_rejects_inverted_range(self):
        with self.assertRaises(ValueError):
            reconcile_period(date(2024, 5, 2), date(2024, 5, 1), client=FakeStockClient([]))

    def test_warn_ratio_override(self):
        period = reconcile_period(date(2024, 5, 1), client=FakeStockClient(RECORDS), warn_ratio=1.0)
        codes = [warning.code for warning in period.result.warnings]
        self.assertEqual(codes, ["natural_weight_gain"])

    def test_reads_local_store(self):
        import_all_models()
        engine = create_engine(
            "sqlite://",
            connect_args={"check_same_thread": False},
            poolclass=StaticPool,
        )
        Base.metadata.create_all(bind=engine)
        session_factory = sessionmaker(bind=engine)
        db = session_factory()
        for record in RECORDS:
            add_record(db, StockRecordCreate(**record.model_dump(exclude={"id"})))
        db.commit()
        db.close()

        with patch(
            "poultry_stock.services.reconciliation_service.use_remote_source",
            return_value=False,
        ):
            period = reconcile_period(date(2024, 5, 1), session_factory=session_factory)

        self.assertEqual(len(period.records), 5)
        self.assertEqual(period.result.profit.feed_consumed, 1200)


class DailySummaryTest(unittest.TestCase):
    def test_summarize_daily(self):
        summary = summarize_daily(RECORDS, 2024, 5)

        self.assertEqual([day["formattedDate"] for day in summary["days"]], ["2024-05-01", "2024-05-02"])
        first = summary["days"][0]
        self.assertEqual(first["totalPurchaseAmount"], 200000)
        self.assertEqual(first["totalSaleAmount"], 203500)
        self.assertEqual(first["totalMortalityBirds"], 50)
        self.assertEqual(first["totalFeedConsumeAmount"], 800)
        self.assertEqual(summary["totals"]["totalPurchaseAmount"], 301000)

    def test_remote_client_stats_are_passed_through(self):
        summary = daily_summary(2024, 5, client=FakeStockClient([]))
        self.assertEqual(summary["month"], 5)

    def test_opening_and_receipt_follow_reconciliation_routes(self):
        records = [
            _record(date(2024, 5, 3), "opening", birds=100, weight=200, amount=20000),
            _record(date(2024, 5, 3), "receipt", amount=5000, cash_paid=5000),
            _record(date(2024, 5, 3), "natural_weight_loss", weight=3),
            _record(date(2024, 5, 4), "consume", amount=999),
        ]
        summary = summarize_daily(records, 2024, 5)

        self.assertEqual(len(summary["days"]), 1)
        day = summary["days"][0]
        self.assertEqual(day["totalPurchaseAmount"], 20000)
        self.assertEqual(day["totalSaleAmount"], 5000)
        self.assertEqual(day["totalFeedConsumeAmount"], 0)


class MonthlySummaryTest(unittest.TestCase):
    def test_months_follow_financial_year(self):
        records = [
            _record(date(2024, 1, 10), "purchase", birds=10, weight=20, amount=2000),
            _record(date(2024, 4, 2), "sale", birds=5, weight=11, amount=1300),
            _record(date(2024, 12, 31), "mortality", birds=3),
            _record(date(2024, 12, 5), "consume", inventory_type="feed", amount=450),
            _record(date(2023, 12, 5), "purchase", birds=1, weight=2, amount=200),
        ]
        summary = summarize_monthly(records, 2024)

        self.assertEqual(summary["year"], 2024)
        self.assertEqual([row["month"] for row in summary["months"]], [4, 12, 1])
        self.assertEqual([row["name"] for row in summary["months"]], ["April", "December", "January"])
        december = summary["months"][1]
        self.assertEqual(december["mortalityBirds"], 3)
        self.assertEqual(december["feedConsumeAmount"], 450)
        self.assertEqual(
            summary["totals"],
            {
                "purchaseAmount": 2000,
                "saleAmount": 1300,
                "mortalityBirds": 3,
                "feedConsumeAmount": 450,
            },
        )

    def test_financial_year_order(self):
        months = sorted(range(1, 13), key=financial_year_order)
        self.assertEqual(months, [4, 5, 6, 7, 8, 9, 10, 11, 12, 1, 2, 3])

    def test_remote_months_are_sorted(self):
        summary = monthly_summary(2024, client=FakeStockClient([]))
        self.assertEqual([row["month"] for row in summary["months"]], [4, 12, 1])
        self.assertEqual(summary["totals"]["purchaseAmount"], 60)

    def test_local_store_rollup(self):
        import_all_models()
        engine = create_engine(
            "sqlite://",
            connect_args={"check_same_thread": False},
            poolclass=StaticPool,
        )
        Base.metadata.create_all(bind=engine)
        session_factory = sessionmaker(bind=engine)
        db = session_factory()
        for record in RECORDS:
            add_record(db, StockRecordCreate(**record.model_dump(exclude={"id"})))
        db.commit()
        db.close()

        summary = monthly_summary(2024, session_factory=session_factory)

        self.assertEqual([row["name"] for row in summary["months"]], ["April", "May"])
        self.assertEqual(summary["months"][0]["feedConsumeAmount"], 1200)
        self.assertEqual(summary["months"][1]["purchaseAmount"], 301000)
        self.assertEqual(summary["months"][1]["mortalityBirds"], 50)


if __name__ == "__main__":
    unittest.main()
