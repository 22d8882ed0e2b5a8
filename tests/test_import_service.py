import os
import tempfile
import unittest
from datetime import date, datetime
from decimal import Decimal

from fakes import make_session_factory
from openpyxl import Workbook
from sqlalchemy import select

from medpos.models.medicine import Medicine
from medpos.services.import_service import (
    build_medicine_values,
    import_rows,
    import_workbook,
    normalize_header,
    summarize_results,
    to_date,
    to_int,
)


class HeaderAndValueParsingTest(unittest.TestCase):
    def test_header_aliases(self):
        self.assertEqual(normalize_header("Medicine Name"), "name")
        self.assertEqual(normalize_header("MRP"), "retail_price")
        self.assertEqual(normalize_header("Batch No."), "batch_number")
        self.assertEqual(normalize_header("Exp-Date"), "expiry_date")
        self.assertEqual(normalize_header("Qty"), "quantity")
        self.assertEqual(normalize_header("Category"), "category")
        self.assertEqual(normalize_header(None), "")

    def test_integer_coercion(self):
        self.assertEqual(to_int("12", "quantity"), 12)
        self.assertEqual(to_int(12.0, "quantity"), 12)
        self.assertIsNone(to_int("", "quantity", required=False))
        with self.assertRaises(ValueError):
            to_int("1.5", "quantity")
        with self.assertRaises(ValueError):
            to_int(True, "quantity")

    def test_date_formats(self):
        self.assertEqual(to_date("2027-01-31", "expiry_date"), date(2027, 1, 31))
        self.assertEqual(to_date("31/01/2027", "expiry_date"), date(2027, 1, 31))
        self.assertEqual(to_date(datetime(2027, 1, 31, 8, 0), "expiry_date"), date(2027, 1, 31))
        with self.assertRaises(ValueError):
            to_date("soon", "expiry_date")

    def test_row_defaults(self):
        values = build_medicine_values(
            {
                "name": " Cetirizine ",
                "manufacturer": "n/a",
                "retail_price": "12.50",
                "trade_price": 8,
                "quantity": "30",
                "expiry_date": "2027-05-01",
            }
        )
        self.assertEqual(values["name"], "Cetirizine")
        self.assertEqual(values["manufacturer"], "Unknown")
        self.assertEqual(values["retail_price"], Decimal("12.50"))
        self.assertEqual(values["gst_per_unit"], 0)
        self.assertEqual(values["reorder_threshold"], 10)

    def test_negative_values_are_rejected(self):
        row = {
            "name": "Cetirizine",
            "retail_price": "-1",
            "trade_price": 8,
            "quantity": 3,
            "expiry_date": "2027-05-01",
        }
        with self.assertRaises(ValueError):
            build_medicine_values(row)
        row.update(retail_price=10, quantity=-3)
        with self.assertRaises(ValueError):
            build_medicine_values(row)

    def test_non_finite_prices_are_row_errors(self):
        base = {"name": "Cetirizine", "trade_price": 8, "quantity": 3, "expiry_date": "2027-05-01"}
        rows = [
            dict(base, _row=2, retail_price="nan"),
            dict(base, _row=3, retail_price="Infinity"),
            dict(base, _row=4, retail_price=float("inf")),
            dict(base, _row=5, retail_price="12.50", batch_number="C-1"),
        ]
        db = make_session_factory()()
        try:
            counts = import_rows(db, rows)
        finally:
            db.close()

        self.assertEqual(counts["inserted"], 1)
        self.assertEqual(counts["skipped"], 3)
        self.assertEqual(
            counts["errors"],
            [
                "Row 2: retail_price must be a number",
                "Row 3: retail_price must be a number",
                "Row 4: retail_price must be a number",
            ],
        )


class ImportWorkbookTest(unittest.TestCase):
    def setUp(self):
        self.Session = make_session_factory()
        handle, self.path = tempfile.mkstemp(suffix=".xlsx")
        os.close(handle)

        workbook = Workbook()
        sheet = workbook.active
        sheet.title = "Stock"
        sheet.append(["Medicine Name", "Company", "Batch No", "MRP", "Cost Price", "GST", "Qty", "Expiry"])
        sheet.append(["Paracetamol", "Acme Labs", "P-1", 20, 12, 1, 100, date(2027, 6, 30)])
        sheet.append([None, None, None, None, None, None, None, None])
        sheet.append(["Ibuprofen", "Acme Labs", "I-1", 35, 20, None, 50, "2027-08-31"])
        sheet.append(["Broken", "Acme Labs", "X-1", "abc", 20, None, 5, "2027-08-31"])
        workbook.save(self.path)

    def tearDown(self):
        os.remove(self.path)

    def _names(self):
        db = self.Session()
        try:
            return sorted(db.execute(select(Medicine.name)).scalars().all())
        finally:
            db.close()

    def test_imports_rows_and_reports_errors(self):
        counts = import_workbook(self.path, session_factory=self.Session)

        self.assertEqual(counts["inserted"], 2)
        self.assertEqual(counts["updated"], 0)
        self.assertEqual(counts["skipped"], 1)
        self.assertEqual(len(counts["errors"]), 1)
        self.assertIn("retail_price must be a number", counts["errors"][0])
        self.assertEqual(self._names(), ["Ibuprofen", "Paracetamol"])
        self.assertEqual(summarize_results(counts), "2 inserted, 0 updated, 1 skipped")

    def test_second_import_updates_matching_batches(self):
        import_workbook(self.path, session_factory=self.Session)
        counts = import_workbook(self.path, sheet="Stock", session_factory=self.Session)
        self.assertEqual(counts["inserted"], 0)
        self.assertEqual(counts["updated"], 2)
        self.assertEqual(self._names(), ["Ibuprofen", "Paracetamol"])

    def test_dry_run_writes_nothing(self):
        counts = import_workbook(self.path, dry_run=True, session_factory=self.Session)
        self.assertEqual(counts["inserted"], 2)
        self.assertEqual(self._names(), [])

    def test_bad_inputs(self):
        with self.assertRaises(ValueError):
            import_workbook(self.path, sheet="Missing", session_factory=self.Session)
        with self.assertRaises(FileNotFoundError):
            import_workbook(self.path + ".gone", session_factory=self.Session)

    def test_missing_required_columns(self):
        workbook = Workbook()
        workbook.active.append(["Medicine Name", "Qty"])
        workbook.active.append(["Paracetamol", 3])
        workbook.save(self.path)
        with self.assertRaises(ValueError):
            import_workbook(self.path, session_factory=self.Session)


if __name__ == "__main__":
    unittest.main()
