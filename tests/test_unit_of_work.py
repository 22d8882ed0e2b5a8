import os
import tempfile
import threading
import unittest
from datetime import date, datetime, timezone
from decimal import Decimal

from fakes import make_medicine, make_session_factory
from sqlalchemy import create_engine, select
from sqlalchemy.orm import sessionmaker

from medpos.core.exceptions import ConcurrencyConflictError, InsufficientInventoryError
from medpos.database.base import Base
from medpos.database.engine import configure_sqlite
from medpos.models.medicine import Medicine
from medpos.models.order import Order
from medpos.models.purchase_order import PurchaseOrder
from medpos.models.supplier import Supplier
from medpos.services.order_service import CartLine, create_order, get_order, list_orders
from medpos.services.purchase_order_service import (
    PurchaseLine,
    ReceivedLine,
    cancel_purchase_order,
    create_purchase_order,
    list_overdue_purchase_orders,
    list_purchase_orders,
    receive_purchase_order,
)
from medpos.services.unit_of_work import SqlAlchemyUnitOfWork

NOW = datetime(2026, 3, 14, 12, 30, tzinfo=timezone.utc)


class SqlAlchemyUnitOfWorkTest(unittest.TestCase):
    def setUp(self):
        self.Session = make_session_factory()
        db = self.Session()
        db.add_all(
            [
                make_medicine(1, name="Paracetamol", quantity=5),
                make_medicine(2, name="Ibuprofen", quantity=1),
                Supplier(id=1, name="City Pharma"),
            ]
        )
        db.commit()
        db.close()

    def _quantity(self, medicine_id):
        with SqlAlchemyUnitOfWork(self.Session) as uow:
            return uow.medicines.current_quantity(medicine_id)

    def test_compare_and_swap_decrement(self):
        with SqlAlchemyUnitOfWork(self.Session) as uow:
            self.assertTrue(uow.medicines.decrement_stock(2, 1))
            self.assertFalse(uow.medicines.decrement_stock(2, 1))
            uow.commit()
        self.assertEqual(self._quantity(2), 0)

    def test_leaving_without_commit_rolls_back(self):
        with SqlAlchemyUnitOfWork(self.Session) as uow:
            uow.medicines.decrement_stock(1, 3)
        self.assertEqual(self._quantity(1), 5)

    def test_order_is_persisted_with_items(self):
        order = create_order(
            SqlAlchemyUnitOfWork(self.Session),
            [CartLine(1, 2, discount_percent=Decimal("10"))],
            now=NOW,
        )

        db = self.Session()
        try:
            stored = get_order(db, order.id)
            self.assertEqual(stored.order_number, order.order_number)
            self.assertEqual(len(stored.items), 1)
            self.assertEqual(stored.items[0].total_price, Decimal("190"))
            self.assertEqual(stored.total, Decimal("190"))
        finally:
            db.close()
        self.assertEqual(self._quantity(1), 3)

    def test_failed_order_leaves_database_untouched(self):
        with self.assertRaises(InsufficientInventoryError):
            create_order(
                SqlAlchemyUnitOfWork(self.Session),
                [CartLine(1, 2), CartLine(2, 2)],
                now=NOW,
            )

        db = self.Session()
        try:
            self.assertEqual(db.execute(select(Order)).scalars().all(), [])
        finally:
            db.close()
        self.assertEqual(self._quantity(1), 5)
        self.assertEqual(self._quantity(2), 1)

    def test_trading_day_filter_and_summary(self):
        create_order(SqlAlchemyUnitOfWork(self.Session), [CartLine(1, 1)], now=NOW)
        late_night = datetime(2026, 3, 15, 1, 30, tzinfo=timezone.utc)
        create_order(SqlAlchemyUnitOfWork(self.Session), [CartLine(1, 1)], now=late_night)
        next_day = datetime(2026, 3, 15, 11, 0, tzinfo=timezone.utc)
        create_order(SqlAlchemyUnitOfWork(self.Session), [CartLine(1, 1)], now=next_day)

        db = self.Session()
        try:
            rows, summary = list_orders(db, day=NOW.date())
            self.assertEqual(len(rows), 2)
            self.assertEqual(summary["total_orders"], 2)
            self.assertEqual(summary["total_sales"], Decimal("210"))
            self.assertEqual(summary["total_profit"], Decimal("80"))
        finally:
            db.close()

    def test_purchase_order_receiving_commits_stock(self):
        created = create_purchase_order(
            SqlAlchemyUnitOfWork(self.Session),
            1,
            [PurchaseLine(1, 10, Decimal("40"))],
        )
        item_id = created.items[0].id

        receive_purchase_order(
            SqlAlchemyUnitOfWork(self.Session),
            created.id,
            [ReceivedLine(item_id, 10)],
            received_by=None,
        )

        self.assertEqual(self._quantity(1), 15)
        db = self.Session()
        try:
            stored = db.get(PurchaseOrder, created.id)
            self.assertEqual(stored.status, "received")
            self.assertEqual(stored.items[0].received_quantity, 10)
        finally:
            db.close()

    def test_overdue_lists_open_orders_past_delivery_date(self):
        late = create_purchase_order(
            SqlAlchemyUnitOfWork(self.Session),
            1,
            [PurchaseLine(1, 1, Decimal("40"))],
            expected_delivery_date=date(2026, 3, 1),
        )
        create_purchase_order(
            SqlAlchemyUnitOfWork(self.Session),
            1,
            [PurchaseLine(2, 1, Decimal("40"))],
            expected_delivery_date=date(2026, 3, 20),
        )

        db = self.Session()
        try:
            overdue = list_overdue_purchase_orders(db, today=date(2026, 3, 10))
            self.assertEqual([po.id for po in overdue], [late.id])
            _rows, total = list_purchase_orders(db, supplier_id=1)
            self.assertEqual(total, 2)
        finally:
            db.close()

        cancel_purchase_order(SqlAlchemyUnitOfWork(self.Session), late.id)
        db = self.Session()
        try:
            self.assertEqual(list_overdue_purchase_orders(db, today=date(2026, 3, 10)), [])
        finally:
            db.close()

    def test_failed_receiving_undoes_earlier_increments(self):
        created = create_purchase_order(
            SqlAlchemyUnitOfWork(self.Session),
            1,
            [PurchaseLine(1, 10, Decimal("40")), PurchaseLine(2, 4, Decimal("20"))],
        )
        first, second = created.items

        with self.assertRaises(RuntimeError):
            receive_purchase_order(
                FailingSecondIncrementUnitOfWork(self.Session),
                created.id,
                [ReceivedLine(first.id, 10, batch_number="PCM-NEW"), ReceivedLine(second.id, 4)],
            )

        self.assertEqual(self._quantity(1), 5)
        self.assertEqual(self._quantity(2), 1)
        db = self.Session()
        try:
            stored = db.get(PurchaseOrder, created.id)
            self.assertEqual(stored.status, "pending")
            self.assertIsNone(stored.received_at)
            self.assertEqual([item.received_quantity for item in stored.items], [0, 0])
            self.assertEqual(db.get(Medicine, 1).batch_number, "B-1")
        finally:
            db.close()


class FailingSecondIncrementUnitOfWork(SqlAlchemyUnitOfWork):
    """Raises on the second stock increment, after the first one was flushed."""

    def __enter__(self):
        super().__enter__()
        increment = self.medicines.increment_stock
        calls = []

        def increment_stock(medicine_id, quantity):
            calls.append(medicine_id)
            if len(calls) == 2:
                raise RuntimeError("disk full")
            return increment(medicine_id, quantity)

        self.medicines.increment_stock = increment_stock
        return self


class LastUnitRaceTest(unittest.TestCase):
    """Two tills racing for the last unit on a file-backed SQLite database."""

    def setUp(self):
        directory = tempfile.TemporaryDirectory()
        self.addCleanup(directory.cleanup)
        self.engine = create_engine(
            "sqlite:///{}".format(os.path.join(directory.name, "race.db")),
            connect_args={"check_same_thread": False, "timeout": 30},
        )
        self.addCleanup(self.engine.dispose)
        configure_sqlite(self.engine)
        Base.metadata.create_all(bind=self.engine)
        self.Session = sessionmaker(bind=self.engine, autoflush=False, expire_on_commit=False)

        db = self.Session()
        db.add(make_medicine(1, name="Insulin", quantity=1))
        db.commit()
        db.close()

    def test_only_one_till_sells_the_last_unit(self):
        barrier = threading.Barrier(2)
        outcomes = []
        lock = threading.Lock()

        def sell():
            barrier.wait()
            try:
                create_order(SqlAlchemyUnitOfWork(self.Session), [CartLine(1, 1)])
                outcome = "ok"
            except (ConcurrencyConflictError, InsufficientInventoryError) as exc:
                outcome = type(exc).__name__
            with lock:
                outcomes.append(outcome)

        threads = [threading.Thread(target=sell) for _ in range(2)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join(timeout=60)

        self.assertEqual(len(outcomes), 2)
        self.assertEqual(outcomes.count("ok"), 1)
        self.assertIn(
            [outcome for outcome in outcomes if outcome != "ok"][0],
            ("ConcurrencyConflictError", "InsufficientInventoryError"),
        )

        db = self.Session()
        try:
            self.assertEqual(db.get(Medicine, 1).quantity, 0)
            self.assertEqual(len(db.execute(select(Order)).scalars().all()), 1)
        finally:
            db.close()


if __name__ == "__main__":
    unittest.main()
