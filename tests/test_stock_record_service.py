import unittest
from datetime import date

from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from poultry_stock.database.base import Base
from poultry_stock.models import import_all_models
from poultry_stock.models.stock_record import StockRecordRow
from poultry_stock.schemas.stock import StockRecord, StockRecordCreate, StockRecordUpdate
from poultry_stock.services.stock_record_service import (
    ReadOnlyRecordError,
    StockRecordNotFound,
    add_record,
    delete_record,
    get_record,
    list_records,
    update_record,
    upsert_record,
)


class StockRecordServiceTest(unittest.TestCase):
    def setUp(self):
        import_all_models()
        engine = create_engine(
            "sqlite://",
            connect_args={"check_same_thread": False},
            poolclass=StaticPool,
        )
        Base.metadata.create_all(bind=engine)
        self.db = sessionmaker(bind=engine)()

    def tearDown(self):
        self.db.close()

    def test_add_and_list_by_range(self):
        add_record(self.db, StockRecordCreate(date=date(2024, 5, 1), type="purchase", birds=10, weight=25))
        add_record(self.db, StockRecordCreate(date=date(2024, 5, 2), type="sale", birds=4, weight=9))
        add_record(
            self.db,
            StockRecordCreate(date=date(2024, 5, 2), inventory_type="feed", type="consume", bags=2),
        )
        self.db.commit()

        day_two = list_records(self.db, start_date=date(2024, 5, 2), end_date=date(2024, 5, 2))
        self.assertEqual(len(day_two), 2)
        feed_only = list_records(self.db, inventory_type="feed")
        self.assertEqual([record.bags for record in feed_only], [2])
        everything = list_records(self.db)
        self.assertEqual(len(everything), 3)
        self.assertAlmostEqual(everything[0].avg_weight, 2.5)

    def test_update_recomputes_average(self):
        created = add_record(
            self.db, StockRecordCreate(date=date(2024, 5, 1), type="purchase", birds=10, weight=20)
        )
        updated = update_record(self.db, created.id, StockRecordUpdate(weight=30))
        self.assertAlmostEqual(updated.weight, 30)
        self.assertAlmostEqual(updated.avg_weight, 3.0)

    def test_update_treats_null_numbers_as_zero(self):
        created = add_record(
            self.db, StockRecordCreate(date=date(2024, 5, 1), type="purchase", birds=10, weight=20)
        )
        changes = StockRecordUpdate.model_validate({"birds": None, "weight": 30, "date": None})

        updated = update_record(self.db, created.id, changes)
        self.db.commit()

        self.assertEqual(updated.birds, 0)
        self.assertAlmostEqual(updated.weight, 30)
        self.assertEqual(updated.avg_weight, 0.0)
        self.assertEqual(updated.date, date(2024, 5, 1))

    def test_update_keeps_unsent_fields(self):
        created = add_record(
            self.db,
            StockRecordCreate(date=date(2024, 5, 1), type="sale", birds=4, amount=900, bill_number="B-1"),
        )
        updated = update_record(self.db, created.id, StockRecordUpdate.model_validate({"cashPaid": 500}))
        self.assertEqual(updated.cash_paid, 500)
        self.assertEqual(updated.amount, 900)
        self.assertEqual(updated.bill_number, "B-1")

    def test_trip_records_are_read_only(self):
        created = add_record(
            self.db, StockRecordCreate(date=date(2024, 5, 1), type="purchase", source="trip", birds=5)
        )
        with self.assertRaises(ReadOnlyRecordError):
            update_record(self.db, created.id, StockRecordUpdate(birds=6))
        with self.assertRaises(ReadOnlyRecordError):
            delete_record(self.db, created.id)

    def test_delete_and_missing_record(self):
        created = add_record(self.db, StockRecordCreate(date=date(2024, 5, 1), type="mortality", birds=3))
        delete_record(self.db, created.id)
        with self.assertRaises(StockRecordNotFound):
            get_record(self.db, created.id)
        with self.assertRaises(StockRecordNotFound):
            update_record(self.db, "missing", StockRecordUpdate(birds=1))

    def test_upsert_by_external_id(self):
        record = StockRecord(id="ext-1", date=date(2024, 5, 1), type="sale", amount=100)
        self.assertEqual(upsert_record(self.db, record), "inserted")
        self.db.flush()
        changed = record.model_copy(update={"amount": 250.0})
        self.assertEqual(upsert_record(self.db, changed), "updated")
        self.db.commit()

        rows = self.db.query(StockRecordRow).all()
        self.assertEqual(len(rows), 1)
        self.assertEqual(rows[0].amount, 250.0)
        self.assertEqual(get_record(self.db, "ext-1").amount, 250.0)


if __name__ == "__main__":
    unittest.main()
