import csv
import io
import unittest
from datetime import date, datetime, timedelta, timezone
from decimal import Decimal
from unittest import mock

from fakes import make_medicine, make_session_factory

from medpos.config import get_settings
from medpos.core.exceptions import InvalidInputError, NotFoundError
from medpos.models.medicine import Medicine
from medpos.services import medicine_service

TODAY = date(2026, 6, 1)


class MedicineQueriesTest(unittest.TestCase):
    def setUp(self):
        self.db = make_session_factory()()
        self.db.add_all(
            [
                make_medicine(1, name="Paracetamol 500", category="Analgesic", quantity=40),
                make_medicine(2, name="Paracetamol Syrup", category="Analgesic", quantity=0),
                make_medicine(3, name="Amoxicillin", manufacturer="Zen Pharma", category="Antibiotic", quantity=4),
                make_medicine(4, name="Old Cough Syrup", expiry_date=TODAY - timedelta(days=2)),
                make_medicine(5, name="Vitamin C", expiry_date=TODAY + timedelta(days=10), quantity=50),
            ]
        )
        self.db.commit()

    def tearDown(self):
        self.db.close()

    def test_search_matches_name_manufacturer_and_category_in_stock_only(self):
        names = [m.name for m in medicine_service.search_medicines(self.db, "paracetamol")]
        self.assertEqual(names, ["Paracetamol 500"])

        by_manufacturer = medicine_service.search_medicines(self.db, "ZEN")
        self.assertEqual([m.id for m in by_manufacturer], [3])

        by_category = medicine_service.search_medicines(self.db, "antibio")
        self.assertEqual([m.id for m in by_category], [3])

    def test_blank_search_returns_nothing(self):
        self.assertEqual(medicine_service.search_medicines(self.db, "   "), [])
        self.assertEqual(medicine_service.search_medicines(self.db, None), [])

    def test_search_treats_wildcards_literally(self):
        self.assertEqual(medicine_service.search_medicines(self.db, "%"), [])

    def test_list_paginates_and_filters(self):
        rows, total = medicine_service.list_medicines(self.db, page=1, limit=2)
        self.assertEqual(total, 5)
        self.assertEqual(len(rows), 2)

        rows, total = medicine_service.list_medicines(self.db, category="analgesic")
        self.assertEqual(total, 2)
        self.assertEqual({m.id for m in rows}, {1, 2})

    def test_low_stock_uses_reorder_threshold(self):
        low = medicine_service.find_low_stock(self.db)
        self.assertEqual([m.id for m in low], [2, 3, 4])
        self.assertEqual(medicine_service.count_low_stock(self.db), 3)

    def test_expired_and_expiring_soon(self):
        expired = medicine_service.find_expired(self.db, today=TODAY)
        self.assertEqual([m.id for m in expired], [4])

        soon = medicine_service.find_expiring_soon(self.db, days=30, today=TODAY)
        self.assertEqual([m.id for m in soon], [5])

        with self.assertRaises(InvalidInputError):
            medicine_service.find_expiring_soon(self.db, days=-1, today=TODAY)

    def test_medicine_expiring_today_counts_as_expired(self):
        self.db.add(make_medicine(6, name="Last Day Drops", expiry_date=TODAY))
        self.db.commit()

        expired = medicine_service.find_expired(self.db, today=TODAY)
        self.assertEqual([m.id for m in expired], [4, 6])
        soon = medicine_service.find_expiring_soon(self.db, days=30, today=TODAY)
        self.assertEqual([m.id for m in soon], [5])

        medicine = self.db.get(Medicine, 6)
        self.assertTrue(medicine.is_expired_on(TODAY))
        self.assertFalse(medicine.is_expiring_soon_on(TODAY))

    def test_default_day_follows_the_utc_clock(self):
        self.db.add(make_medicine(6, name="Last Day Drops", expiry_date=TODAY))
        self.db.commit()
        medicine = self.db.get(Medicine, 6)

        # 23:30 UTC the evening before expiry.
        before = datetime(2026, 5, 31, 23, 30, tzinfo=timezone.utc)
        with mock.patch("medpos.core.dates.utcnow", return_value=before):
            self.assertFalse(medicine.is_expired)
            self.assertNotIn(6, [m.id for m in medicine_service.find_expired(self.db)])

        after = datetime(2026, 6, 1, 0, 30, tzinfo=timezone.utc)
        with mock.patch("medpos.core.dates.utcnow", return_value=after):
            self.assertTrue(medicine.is_expired)
            self.assertIn(6, [m.id for m in medicine_service.find_expired(self.db)])

    def test_expiring_soon_flag_uses_configured_window(self):
        medicine = self.db.get(Medicine, 5)
        settings = get_settings()
        self.assertTrue(medicine.is_expiring_soon_on(TODAY))
        with mock.patch.object(settings, "EXPIRING_SOON_DAYS", 5):
            self.assertFalse(medicine.is_expiring_soon_on(TODAY))
            self.assertEqual(medicine_service.find_expiring_soon(self.db, today=TODAY), [])

    def test_update_stock_sets_absolute_quantity(self):
        medicine = medicine_service.update_stock(self.db, 3, 25)
        self.assertEqual(medicine.quantity, 25)

        with self.assertRaises(InvalidInputError):
            medicine_service.update_stock(self.db, 3, -1)
        with self.assertRaises(NotFoundError):
            medicine_service.update_stock(self.db, 404, 1)

    def test_create_applies_default_threshold_and_ignores_unknown_fields(self):
        medicine = medicine_service.create_medicine(
            self.db,
            {
                "name": "Cetirizine",
                "manufacturer": "Acme Labs",
                "retail_price": Decimal("12.5"),
                "trade_price": Decimal("8"),
                "quantity": 30,
                "expiry_date": TODAY + timedelta(days=400),
                "reorder_threshold": None,
                "id": 999,
            },
        )
        self.assertNotEqual(medicine.id, 999)
        self.assertEqual(medicine.reorder_threshold, 10)

    def test_delete_missing_medicine(self):
        medicine_service.delete_medicine(self.db, 1)
        with self.assertRaises(NotFoundError):
            medicine_service.get_medicine(self.db, 1)
        with self.assertRaises(NotFoundError):
            medicine_service.delete_medicine(self.db, 1)

    def test_csv_export_quotes_every_field(self):
        content = medicine_service.export_inventory_csv(self.db)
        lines = content.splitlines()
        self.assertEqual(lines[0].split(",")[0], '"Name"')
        self.assertEqual(len(lines), 6)

        rows = list(csv.reader(io.StringIO(content)))
        self.assertEqual(tuple(rows[0]), medicine_service.EXPORT_COLUMNS)
        amoxicillin = next(row for row in rows if row[0] == "Amoxicillin")
        self.assertEqual(amoxicillin[1], "Zen Pharma")
        self.assertEqual(amoxicillin[3], "100.00")
        self.assertEqual(amoxicillin[6], "4")


if __name__ == "__main__":
    unittest.main()
