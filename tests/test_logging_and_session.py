import json
import logging
import unittest

from fakes import make_medicine, make_session_factory
from sqlalchemy import select

from medpos.core.logging import JsonFormatter, setup_logging
from medpos.database.session import session_scope
from medpos.models.medicine import Medicine


class JsonFormatterTest(unittest.TestCase):
    def _record(self, **extra):
        record = logging.LogRecord(
            "medpos.services.order_service", logging.INFO, __file__, 1, "Order %s created", ("ORD-1",), None
        )
        for key, value in extra.items():
            setattr(record, key, value)
        return record

    def test_context_fields_are_included(self):
        line = JsonFormatter().format(self._record(order_number="ORD-1", order_id=7, unrelated="x"))
        payload = json.loads(line)

        self.assertEqual(payload["message"], "Order ORD-1 created")
        self.assertEqual(payload["level"], "INFO")
        self.assertEqual(payload["order_number"], "ORD-1")
        self.assertEqual(payload["order_id"], 7)
        self.assertNotIn("unrelated", payload)
        self.assertNotIn("medicine_id", payload)


class SetupLoggingTest(unittest.TestCase):
    def setUp(self):
        root = logging.getLogger()
        sql = logging.getLogger("sqlalchemy.engine")
        saved = (list(root.handlers), root.level, sql.level)

        def restore():
            root.handlers[:] = saved[0]
            root.setLevel(saved[1])
            sql.setLevel(saved[2])

        self.addCleanup(restore)

    def test_level_override(self):
        setup_logging("debug")
        root = logging.getLogger()
        self.assertEqual(root.level, logging.DEBUG)
        self.assertEqual(len(root.handlers), 1)

    def test_default_level_quiets_sql_echo(self):
        setup_logging()
        self.assertEqual(logging.getLogger().level, logging.INFO)
        self.assertEqual(logging.getLogger("sqlalchemy.engine").level, logging.WARNING)


class SessionScopeTest(unittest.TestCase):
    def setUp(self):
        self.Session = make_session_factory()

    def _names(self):
        with session_scope(self.Session) as db:
            return db.execute(select(Medicine.name)).scalars().all()

    def test_error_discards_uncommitted_work(self):
        with self.assertRaises(RuntimeError):
            with session_scope(self.Session) as db:
                db.add(make_medicine(1))
                db.flush()
                raise RuntimeError("boom")
        self.assertEqual(self._names(), [])

    def test_committed_work_is_kept(self):
        with session_scope(self.Session) as db:
            db.add(make_medicine(1, name="Paracetamol"))
            db.commit()
        self.assertEqual(self._names(), ["Paracetamol"])


if __name__ == "__main__":
    unittest.main()
