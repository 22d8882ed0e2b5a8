import logging
from datetime import date, datetime
from pathlib import Path

from openpyxl import load_workbook
from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError

from medpos.config import get_settings
from medpos.core.constants import UNKNOWN_MANUFACTURER
from medpos.core.money import to_decimal
from medpos.database import SessionLocal
from medpos.models.medicine import Medicine

logger = logging.getLogger(__name__)

_ALIAS_SPECS = (
    (("medicine", "name"), "name"),
    (("product", "name"), "name"),
    (("item", "name"), "name"),
    (("drug", "name"), "name"),
    (("company",), "manufacturer"),
    (("brand",), "manufacturer"),
    (("mfg",), "manufacturer"),
    (("batch",), "batch_number"),
    (("batch", "no"), "batch_number"),
    (("batch", "number"), "batch_number"),
    (("mrp",), "retail_price"),
    (("price",), "retail_price"),
    (("sale", "price"), "retail_price"),
    (("retail", "price"), "retail_price"),
    (("cost", "price"), "trade_price"),
    (("purchase", "price"), "trade_price"),
    (("tp",), "trade_price"),
    (("gst",), "gst_per_unit"),
    (("gst", "per", "unit"), "gst_per_unit"),
    (("qty",), "quantity"),
    (("stock",), "quantity"),
    (("expiry",), "expiry_date"),
    (("exp", "date"), "expiry_date"),
    (("reorder", "level"), "reorder_threshold"),
)

HEADER_ALIASES = {"".join(parts): target for parts, target in _ALIAS_SPECS}

REQUIRED_COLUMNS = {"name", "retail_price", "trade_price", "quantity", "expiry_date"}

_PLACEHOLDER_VALUES = {"none", "null", "na", "n/a", "nan", "-", "--"}


def _is_blank(value):
    return value is None or (isinstance(value, str) and not value.strip())


def _clean_text(value):
    if _is_blank(value):
        return None
    text = str(value).strip()
    if text.lower() in _PLACEHOLDER_VALUES:
        return None
    return text


def normalize_header(value):
    if value is None:
        return ""
    value_text = str(value).strip().lower()
    if not value_text:
        return ""
    for char in (" ", "-", ".", "/"):
        value_text = value_text.replace(char, "_")
    value_text = "_".join(part for part in value_text.split("_") if part)
    alias = HEADER_ALIASES.get(value_text)
    if alias:
        return alias
    return HEADER_ALIASES.get(value_text.replace("_", ""), value_text)


def to_int(value, field, required=True):
    if _is_blank(value):
        if required:
            raise ValueError(f"{field} is required")
        return None
    if isinstance(value, bool):
        raise ValueError(f"{field} must be an integer")
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        if value.is_integer():
            return int(value)
        raise ValueError(f"{field} must be an integer")
    value_text = str(value).strip()
    try:
        return int(value_text)
    except ValueError:
        try:
            numeric = float(value_text)
        except ValueError:
            raise ValueError(f"{field} must be an integer") from None
        if not numeric.is_integer():
            raise ValueError(f"{field} must be an integer")
        return int(numeric)


def to_price(value, field, required=True):
    price = to_decimal(value, field) if not _is_blank(value) else None
    if price is None:
        if required:
            raise ValueError(f"{field} is required")
        return None
    if price < 0:
        raise ValueError(f"{field} must not be negative")
    return price


def to_date(value, field):
    if _is_blank(value):
        raise ValueError(f"{field} is required")
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    value_text = str(value).strip()
    try:
        return date.fromisoformat(value_text)
    except ValueError:
        pass
    for fmt in ("%Y/%m/%d", "%d/%m/%Y", "%d-%m-%Y", "%m/%Y"):
        try:
            return datetime.strptime(value_text, fmt).date()
        except ValueError:
            continue
    raise ValueError(f"{field} must be a date (YYYY-MM-DD)")


def load_sheet_rows(worksheet):
    """Read a header row plus data rows; blank rows and repeated headers are skipped."""
    rows_iter = worksheet.iter_rows(values_only=True)
    headers = next(rows_iter, None)
    if not headers:
        return [], set()
    header_keys = [normalize_header(header) for header in headers]
    indices = [(idx, key) for idx, key in enumerate(header_keys) if key]
    columns = {key for key in header_keys if key}

    rows = []
    for row_number, row in enumerate(rows_iter, start=2):
        if row is None or all(_is_blank(value) for value in row):
            continue
        record = {key: row[idx] for idx, key in indices if idx < len(row)}
        if normalize_header(record.get("name")) == "name":
            continue
        record["_row"] = row_number
        rows.append(record)
    return rows, columns


def validate_columns(columns):
    missing = sorted(REQUIRED_COLUMNS - columns)
    if missing:
        raise ValueError("medicine sheet missing columns: {}".format(", ".join(missing)))


def build_medicine_values(row):
    name = _clean_text(row.get("name"))
    if not name:
        raise ValueError("name is required")
    quantity = to_int(row.get("quantity"), "quantity")
    if quantity < 0:
        raise ValueError("quantity must not be negative")
    values = {
        "name": name,
        "manufacturer": _clean_text(row.get("manufacturer")) or UNKNOWN_MANUFACTURER,
        "batch_number": _clean_text(row.get("batch_number")),
        "category": _clean_text(row.get("category")),
        "retail_price": to_price(row.get("retail_price"), "retail_price"),
        "trade_price": to_price(row.get("trade_price"), "trade_price"),
        "gst_per_unit": to_price(row.get("gst_per_unit"), "gst_per_unit", required=False) or 0,
        "quantity": quantity,
        "expiry_date": to_date(row.get("expiry_date"), "expiry_date"),
    }
    threshold = to_int(row.get("reorder_threshold"), "reorder_threshold", required=False)
    values["reorder_threshold"] = (
        threshold if threshold is not None else get_settings().DEFAULT_REORDER_THRESHOLD
    )
    return values


def upsert_medicine(db, values):
    existing = (
        db.execute(
            select(Medicine).where(
                Medicine.name == values["name"],
                Medicine.manufacturer == values["manufacturer"],
                Medicine.batch_number.is_(None)
                if values["batch_number"] is None
                else Medicine.batch_number == values["batch_number"],
            )
        )
        .scalars()
        .first()
    )
    if existing:
        for key, value in values.items():
            setattr(existing, key, value)
        return "updated"
    db.add(Medicine(**values))
    return "inserted"


def import_rows(db, rows):
    counts = {"inserted": 0, "updated": 0, "skipped": 0, "errors": []}
    for row in rows:
        try:
            values = build_medicine_values(row)
        except ValueError as exc:
            counts["skipped"] += 1
            counts["errors"].append(f"Row {row.get('_row', '?')}: {exc}")
            continue
        counts[upsert_medicine(db, values)] += 1
        db.flush()
    return counts


def import_workbook(workbook_path, sheet=None, dry_run=False, session_factory=SessionLocal):
    workbook_path = Path(workbook_path)
    if not workbook_path.exists():
        raise FileNotFoundError(f"File not found: {workbook_path}")
    if workbook_path.suffix.lower() != ".xlsx":
        raise ValueError("Only .xlsx files are supported.")

    workbook = load_workbook(workbook_path, data_only=True, read_only=True)
    try:
        if sheet:
            if sheet not in workbook.sheetnames:
                raise ValueError(f"Sheet not found: {sheet}")
            worksheet = workbook[sheet]
        else:
            worksheet = workbook.worksheets[0]
        rows, columns = load_sheet_rows(worksheet)
    finally:
        workbook.close()
    validate_columns(columns)

    db = session_factory()
    try:
        counts = import_rows(db, rows)
        if dry_run:
            db.rollback()
        else:
            db.commit()
    except SQLAlchemyError:
        db.rollback()
        raise
    finally:
        db.close()

    logger.info(
        "Imported %s: %d inserted, %d updated, %d skipped%s",
        workbook_path.name,
        counts["inserted"],
        counts["updated"],
        counts["skipped"],
        " (dry run)" if dry_run else "",
        extra={"row_count": counts["inserted"] + counts["updated"] + counts["skipped"]},
    )
    return counts


def summarize_results(counts):
    return "{} inserted, {} updated, {} skipped".format(
        counts.get("inserted", 0),
        counts.get("updated", 0),
        counts.get("skipped", 0),
    )
