import argparse
from datetime import timedelta
from decimal import Decimal

from sqlalchemy import delete, select

from medpos.core.constants import ROLE_ADMIN, ROLE_COUNTER, ROLE_WAREHOUSE
from medpos.core.dates import today as utc_today
from medpos.core.logging import setup_logging
from medpos.database import Base, engine, session_scope
from medpos.models import import_all_models
from medpos.models.medicine import Medicine
from medpos.models.order import Order, OrderItem
from medpos.models.purchase_order import PurchaseOrder, PurchaseOrderItem
from medpos.models.supplier import Supplier
from medpos.services.user_service import create_user

DEMO_PASSWORD = "changeme123"


def parse_args():
    parser = argparse.ArgumentParser(description="Seed a demo catalog, suppliers and staff users.")
    parser.add_argument(
        "--reset",
        action="store_true",
        help="Clear catalog, orders and suppliers before seeding.",
    )
    parser.add_argument(
        "--with-users",
        action="store_true",
        help=f"Also create admin/counter/warehouse users (password '{DEMO_PASSWORD}').",
    )
    return parser.parse_args()


def main():
    setup_logging()
    args = parse_args()

    import_all_models()
    Base.metadata.create_all(bind=engine)

    with session_scope() as db:
        if args.reset:
            db.execute(delete(OrderItem))
            db.execute(delete(Order))
            db.execute(delete(PurchaseOrderItem))
            db.execute(delete(PurchaseOrder))
            db.execute(delete(Medicine))
            db.execute(delete(Supplier))
            db.commit()

        has_medicine = db.execute(select(Medicine.id).limit(1)).first()
        if has_medicine:
            print("Seed skipped: medicines already exist.")
            return

        today = utc_today()
        db.add_all(
            [
                Medicine(
                    name="Paracetamol 500mg",
                    manufacturer="GSK",
                    batch_number="PCM-2401",
                    category="Analgesic",
                    retail_price=Decimal("2.50"),
                    trade_price=Decimal("1.60"),
                    gst_per_unit=Decimal("0.12"),
                    quantity=500,
                    expiry_date=today + timedelta(days=540),
                    reorder_threshold=50,
                ),
                Medicine(
                    name="Amoxicillin 250mg",
                    manufacturer="Abbott",
                    batch_number="AMX-118",
                    category="Antibiotic",
                    retail_price=Decimal("12.00"),
                    trade_price=Decimal("8.40"),
                    gst_per_unit=Decimal("0.60"),
                    quantity=8,
                    expiry_date=today + timedelta(days=20),
                ),
                Medicine(
                    name="Cetirizine 10mg",
                    manufacturer="Cipla",
                    batch_number="CTZ-77",
                    category="Antihistamine",
                    retail_price=Decimal("3.00"),
                    trade_price=Decimal("1.90"),
                    quantity=120,
                    expiry_date=today - timedelta(days=5),
                ),
            ]
        )
        db.add_all(
            [
                Supplier(name="City Pharma Distributors", contact_person="R. Khan", city="Karachi"),
                Supplier(name="MedLine Wholesale", contact_person="S. Ali", city="Lahore"),
            ]
        )
        db.commit()

        if args.with_users:
            for username, role in (
                ("admin", ROLE_ADMIN),
                ("counter", ROLE_COUNTER),
                ("warehouse", ROLE_WAREHOUSE),
            ):
                create_user(db, username=username, password=DEMO_PASSWORD, role=role)
    print("Seed data created.")


if __name__ == "__main__":
    main()
