import logging
from typing import Optional

from sqlalchemy import func, or_, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from medpos.core.constants import PO_OPEN_STATUSES
from medpos.core.exceptions import ConflictError, InvalidStateError, NotFoundError
from medpos.models.purchase_order import PurchaseOrder
from medpos.models.supplier import Supplier

logger = logging.getLogger(__name__)

_MUTABLE_FIELDS = (
    "name",
    "contact_person",
    "email",
    "phone",
    "address",
    "city",
    "notes",
    "is_active",
)


def get_supplier(db: Session, supplier_id: int) -> Supplier:
    supplier = db.get(Supplier, supplier_id)
    if supplier is None:
        raise NotFoundError("Supplier not found")
    return supplier


def list_suppliers(
    db: Session,
    *,
    page: int = 1,
    limit: int = 20,
    search: Optional[str] = None,
    is_active: Optional[bool] = None,
):
    filters = []
    if search and search.strip():
        pattern = "%{}%".format(search.strip().lower())
        filters.append(
            or_(
                func.lower(Supplier.name).like(pattern),
                func.lower(func.coalesce(Supplier.contact_person, "")).like(pattern),
                func.lower(func.coalesce(Supplier.email, "")).like(pattern),
                func.lower(func.coalesce(Supplier.city, "")).like(pattern),
            )
        )
    if is_active is not None:
        filters.append(Supplier.is_active.is_(is_active))

    total = db.execute(select(func.count(Supplier.id)).where(*filters)).scalar_one()
    rows = (
        db.execute(
            select(Supplier)
            .where(*filters)
            .order_by(Supplier.name)
            .offset((page - 1) * limit)
            .limit(limit)
        )
        .scalars()
        .all()
    )
    return list(rows), total


def _commit_unique(db: Session, supplier: Supplier) -> Supplier:
    try:
        db.commit()
    except IntegrityError as exc:
        db.rollback()
        raise ConflictError("Supplier with this name already exists") from exc
    db.refresh(supplier)
    return supplier


def create_supplier(db: Session, values: dict, *, created_by: Optional[int] = None) -> Supplier:
    supplier = Supplier(
        **{key: value for key, value in values.items() if key in _MUTABLE_FIELDS},
        created_by=created_by,
    )
    db.add(supplier)
    supplier = _commit_unique(db, supplier)
    logger.info("Supplier %s created", supplier.name)
    return supplier


def update_supplier(db: Session, supplier_id: int, values: dict) -> Supplier:
    supplier = get_supplier(db, supplier_id)
    for key, value in values.items():
        if key in _MUTABLE_FIELDS:
            setattr(supplier, key, value)
    return _commit_unique(db, supplier)


def toggle_supplier_status(db: Session, supplier_id: int) -> Supplier:
    supplier = get_supplier(db, supplier_id)
    supplier.is_active = not supplier.is_active
    db.commit()
    db.refresh(supplier)
    return supplier


def delete_supplier(db: Session, supplier_id: int) -> None:
    supplier = get_supplier(db, supplier_id)
    open_orders = db.execute(
        select(func.count(PurchaseOrder.id)).where(
            PurchaseOrder.supplier_id == supplier.id,
            PurchaseOrder.status.in_(PO_OPEN_STATUSES),
        )
    ).scalar_one()
    if open_orders:
        raise InvalidStateError("Cannot delete a supplier with open purchase orders")
    history = db.execute(
        select(func.count(PurchaseOrder.id)).where(PurchaseOrder.supplier_id == supplier.id)
    ).scalar_one()
    if history:
        raise InvalidStateError(
            "Supplier has purchase order history; deactivate it instead of deleting"
        )
    db.delete(supplier)
    db.commit()
    logger.info("Supplier %s deleted", supplier_id)
