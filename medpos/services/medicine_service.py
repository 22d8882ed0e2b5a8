import csv
import io
from datetime import date, timedelta
from typing import Optional, cast

from sqlalchemy import func, or_, select
from sqlalchemy.orm import Session

from medpos.config import get_settings
from medpos.core.dates import today as utc_today
from medpos.core.exceptions import InvalidInputError, NotFoundError
from medpos.models.medicine import Medicine

EXPORT_COLUMNS = (
    "Name",
    "Manufacturer",
    "Batch Number",
    "Retail Price",
    "Trade Price",
    "GST Per Unit",
    "Quantity",
    "Expiry Date",
    "Category",
    "Description",
)

_MUTABLE_FIELDS = (
    "name",
    "manufacturer",
    "batch_number",
    "category",
    "description",
    "retail_price",
    "trade_price",
    "gst_per_unit",
    "quantity",
    "expiry_date",
    "reorder_threshold",
)


def _like(term: str) -> str:
    escaped = term.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")
    return "%{}%".format(escaped.lower())


def _text_match(term: str):
    pattern = _like(term)
    return or_(
        func.lower(Medicine.name).like(pattern, escape="\\"),
        func.lower(Medicine.manufacturer).like(pattern, escape="\\"),
        func.lower(func.coalesce(Medicine.category, "")).like(pattern, escape="\\"),
    )


def get_medicine(db: Session, medicine_id: int) -> Medicine:
    medicine = db.get(Medicine, medicine_id)
    if medicine is None:
        raise NotFoundError("Medicine not found")
    return medicine


def list_medicines(
    db: Session,
    *,
    page: int = 1,
    limit: int = 20,
    term: Optional[str] = None,
    category: Optional[str] = None,
):
    filters = []
    if term and term.strip():
        filters.append(_text_match(term.strip()))
    elif category and category.strip():
        filters.append(
            func.lower(func.coalesce(Medicine.category, "")).like(_like(category.strip()), escape="\\")
        )

    total = db.execute(select(func.count(Medicine.id)).where(*filters)).scalar_one()
    rows = (
        db.execute(
            select(Medicine)
            .where(*filters)
            .order_by(Medicine.name, Medicine.id)
            .offset((page - 1) * limit)
            .limit(limit)
        )
        .scalars()
        .all()
    )
    return cast(list[Medicine], list(rows)), total


def search_medicines(db: Session, term: Optional[str], limit: int = 10) -> list[Medicine]:
    """Case-insensitive substring match over name, manufacturer and category; in-stock only."""
    if not term or not term.strip():
        return []
    rows = (
        db.execute(
            select(Medicine)
            .where(_text_match(term.strip()), Medicine.quantity > 0)
            .order_by(Medicine.name)
            .limit(limit)
        )
        .scalars()
        .all()
    )
    return list(rows)


def find_low_stock(db: Session) -> list[Medicine]:
    rows = (
        db.execute(
            select(Medicine)
            .where(Medicine.quantity <= Medicine.reorder_threshold)
            .order_by(Medicine.quantity, Medicine.name)
        )
        .scalars()
        .all()
    )
    return list(rows)


def count_low_stock(db: Session) -> int:
    return db.execute(
        select(func.count(Medicine.id)).where(Medicine.quantity <= Medicine.reorder_threshold)
    ).scalar_one()


def find_expired(db: Session, today: Optional[date] = None) -> list[Medicine]:
    today = today or utc_today()
    rows = (
        db.execute(
            select(Medicine).where(Medicine.expiry_date <= today).order_by(Medicine.expiry_date)
        )
        .scalars()
        .all()
    )
    return list(rows)


def find_expiring_soon(
    db: Session,
    days: Optional[int] = None,
    today: Optional[date] = None,
) -> list[Medicine]:
    if days is None:
        days = get_settings().EXPIRING_SOON_DAYS
    if days < 0:
        raise InvalidInputError("days must be non-negative.")
    today = today or utc_today()
    horizon = today + timedelta(days=days)
    rows = (
        db.execute(
            select(Medicine)
            .where(Medicine.expiry_date > today, Medicine.expiry_date <= horizon)
            .order_by(Medicine.expiry_date)
        )
        .scalars()
        .all()
    )
    return list(rows)


def create_medicine(db: Session, values: dict) -> Medicine:
    values = {key: value for key, value in values.items() if key in _MUTABLE_FIELDS}
    if values.get("reorder_threshold") is None:
        values["reorder_threshold"] = get_settings().DEFAULT_REORDER_THRESHOLD
    medicine = Medicine(**values)
    db.add(medicine)
    db.commit()
    db.refresh(medicine)
    return medicine


def update_medicine(db: Session, medicine_id: int, values: dict) -> Medicine:
    medicine = get_medicine(db, medicine_id)
    for key, value in values.items():
        if key in _MUTABLE_FIELDS:
            setattr(medicine, key, value)
    db.commit()
    db.refresh(medicine)
    return medicine


def delete_medicine(db: Session, medicine_id: int) -> None:
    medicine = get_medicine(db, medicine_id)
    db.delete(medicine)
    db.commit()


def update_stock(db: Session, medicine_id: int, quantity: int) -> Medicine:
    if quantity is None or quantity < 0:
        raise InvalidInputError("Quantity cannot be negative")
    medicine = get_medicine(db, medicine_id)
    medicine.quantity = int(quantity)
    db.commit()
    db.refresh(medicine)
    return medicine


def export_inventory_csv(db: Session) -> str:
    medicines = db.execute(select(Medicine).order_by(Medicine.name)).scalars().all()
    buffer = io.StringIO()
    writer = csv.writer(buffer, quoting=csv.QUOTE_ALL, lineterminator="\n")
    writer.writerow(EXPORT_COLUMNS)
    for medicine in medicines:
        writer.writerow(
            [
                medicine.name,
                medicine.manufacturer,
                medicine.batch_number or "",
                f"{medicine.retail_price:.2f}",
                f"{medicine.trade_price:.2f}",
                f"{medicine.gst_per_unit or 0:.2f}",
                medicine.quantity,
                medicine.expiry_date.isoformat() if medicine.expiry_date else "",
                medicine.category or "",
                medicine.description or "",
            ]
        )
    return buffer.getvalue()
