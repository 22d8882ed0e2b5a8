"""
Purchase orders placed with suppliers.

Lifecycle: pending -> ordered -> received, with cancellation allowed from
any open state. Items and totals may only change while pending; receiving
and cancellation are terminal.
"""
import logging
from dataclasses import dataclass
from datetime import date, datetime
from decimal import Decimal
from typing import Iterable, Optional

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from medpos.core.constants import (
    HUNDRED,
    PO_OPEN_STATUSES,
    PO_STATUS_CANCELLED,
    PO_STATUS_ORDERED,
    PO_STATUS_PENDING,
    PO_STATUS_RECEIVED,
    UNKNOWN_MANUFACTURER,
    ZERO,
)
from medpos.core.dates import today as utc_today, utcnow
from medpos.core.exceptions import InvalidInputError, InvalidStateError, NotFoundError
from medpos.core.money import non_negative, to_decimal
from medpos.models.purchase_order import PurchaseOrder, PurchaseOrderItem

logger = logging.getLogger(__name__)

_UNSET = object()


@dataclass(frozen=True)
class PurchaseLine:
    medicine_id: int
    quantity: int
    unit_price: Decimal
    batch_number: Optional[str] = None
    expiry_date: Optional[date] = None
    notes: Optional[str] = None


@dataclass(frozen=True)
class ReceivedLine:
    item_id: int
    received_quantity: int
    batch_number: Optional[str] = None
    expiry_date: Optional[date] = None


def calculate_totals(purchase_order: PurchaseOrder) -> None:
    subtotal = ZERO
    for item in purchase_order.items:
        item.total_price = Decimal(item.quantity) * to_decimal(item.unit_price)
        subtotal += item.total_price
    tax_percent = to_decimal(purchase_order.tax_percent) or ZERO
    discount = to_decimal(purchase_order.discount_amount) or ZERO
    purchase_order.subtotal = subtotal
    purchase_order.tax_amount = subtotal * tax_percent / HUNDRED
    purchase_order.total = non_negative(subtotal + purchase_order.tax_amount - discount)


def _build_items(uow, lines: Iterable[PurchaseLine]) -> list[PurchaseOrderItem]:
    lines = list(lines or [])
    if not lines:
        raise InvalidInputError("Purchase order must contain at least one item.")
    items = []
    for idx, line in enumerate(lines):
        if isinstance(line.quantity, bool) or not isinstance(line.quantity, int) or line.quantity <= 0:
            raise InvalidInputError(f"Item {idx}: quantity must be a positive integer.")
        unit_price = to_decimal(line.unit_price, "unit_price")
        if unit_price is None or unit_price < ZERO:
            raise InvalidInputError(f"Item {idx}: unit price must be non-negative.")
        medicine = uow.medicines.get(line.medicine_id)
        if medicine is None:
            raise NotFoundError(f"Medicine with ID {line.medicine_id} not found")
        items.append(
            PurchaseOrderItem(
                medicine_id=medicine.id,
                name=medicine.name,
                manufacturer=medicine.manufacturer or UNKNOWN_MANUFACTURER,
                quantity=line.quantity,
                unit_price=unit_price,
                total_price=unit_price * line.quantity,
                received_quantity=0,
                batch_number=line.batch_number,
                expiry_date=line.expiry_date,
                notes=line.notes,
            )
        )
    return items


def _validate_adjustments(tax_percent, discount_amount):
    if tax_percent is not None and (tax_percent < ZERO or tax_percent > HUNDRED):
        raise InvalidInputError("tax_percent must be between 0 and 100.")
    if discount_amount is not None and discount_amount < ZERO:
        raise InvalidInputError("discount_amount must be non-negative.")


def _load(uow, purchase_order_id, *, for_update=True) -> PurchaseOrder:
    purchase_order = uow.purchase_orders.get(purchase_order_id, for_update=for_update)
    if purchase_order is None:
        raise NotFoundError("Purchase order not found")
    return purchase_order


def create_purchase_order(
    uow,
    supplier_id: int,
    items: Iterable[PurchaseLine],
    *,
    tax_percent=0,
    discount_amount=0,
    expected_delivery_date: Optional[date] = None,
    notes: Optional[str] = None,
    created_by: Optional[int] = None,
) -> PurchaseOrder:
    tax_percent = to_decimal(tax_percent, "tax_percent") or ZERO
    discount_amount = to_decimal(discount_amount, "discount_amount") or ZERO
    _validate_adjustments(tax_percent, discount_amount)

    with uow:
        supplier = uow.suppliers.get(supplier_id)
        if supplier is None:
            raise NotFoundError("Supplier not found")

        purchase_order = PurchaseOrder(
            supplier_id=supplier.id,
            supplier_name=supplier.name,
            status=PO_STATUS_PENDING,
            tax_percent=tax_percent,
            discount_amount=discount_amount,
            expected_delivery_date=expected_delivery_date,
            notes=notes,
            created_by=created_by,
        )
        purchase_order.items.extend(_build_items(uow, items))
        calculate_totals(purchase_order)
        uow.purchase_orders.add(purchase_order)
        uow.commit()

    logger.info(
        "Purchase order %s created for supplier %s: total %s",
        purchase_order.id,
        purchase_order.supplier_name,
        purchase_order.total,
        extra={"purchase_order_id": purchase_order.id, "supplier_id": purchase_order.supplier_id},
    )
    return purchase_order


def update_purchase_order(
    uow,
    purchase_order_id: int,
    *,
    items: Optional[Iterable[PurchaseLine]] = None,
    tax_percent=None,
    discount_amount=None,
    expected_delivery_date=_UNSET,
    notes=_UNSET,
) -> PurchaseOrder:
    tax_percent = to_decimal(tax_percent, "tax_percent")
    discount_amount = to_decimal(discount_amount, "discount_amount")
    _validate_adjustments(tax_percent, discount_amount)

    with uow:
        purchase_order = _load(uow, purchase_order_id)
        if purchase_order.status != PO_STATUS_PENDING:
            raise InvalidStateError("Cannot update a purchase order that is not pending")

        if items is not None:
            new_items = _build_items(uow, items)
            purchase_order.items.clear()
            purchase_order.items.extend(new_items)
        if tax_percent is not None:
            purchase_order.tax_percent = tax_percent
        if discount_amount is not None:
            purchase_order.discount_amount = discount_amount
        if expected_delivery_date is not _UNSET:
            purchase_order.expected_delivery_date = expected_delivery_date
        if notes is not _UNSET:
            purchase_order.notes = notes

        calculate_totals(purchase_order)
        uow.commit()
    return purchase_order


def mark_purchase_order_ordered(uow, purchase_order_id: int, *, now: Optional[datetime] = None) -> PurchaseOrder:
    with uow:
        purchase_order = _load(uow, purchase_order_id)
        if purchase_order.status != PO_STATUS_PENDING:
            raise InvalidStateError("Can only mark pending orders as ordered")
        purchase_order.status = PO_STATUS_ORDERED
        purchase_order.ordered_at = now or utcnow()
        uow.commit()
    logger.info("Purchase order %s marked as ordered", purchase_order_id)
    return purchase_order


def cancel_purchase_order(
    uow,
    purchase_order_id: int,
    reason: Optional[str] = None,
    *,
    now: Optional[datetime] = None,
) -> PurchaseOrder:
    with uow:
        purchase_order = _load(uow, purchase_order_id)
        if purchase_order.status == PO_STATUS_RECEIVED:
            raise InvalidStateError("Cannot cancel a received purchase order")
        if purchase_order.status == PO_STATUS_CANCELLED:
            raise InvalidStateError("Purchase order is already cancelled")
        purchase_order.status = PO_STATUS_CANCELLED
        purchase_order.cancellation_reason = reason
        purchase_order.cancelled_at = now or utcnow()
        uow.commit()
    logger.info("Purchase order %s cancelled", purchase_order_id)
    return purchase_order


def receive_purchase_order(
    uow,
    purchase_order_id: int,
    updates: Iterable[ReceivedLine],
    *,
    received_by: Optional[int] = None,
    now: Optional[datetime] = None,
) -> PurchaseOrder:
    """
    Receive stock against a purchase order in one transaction.

    Every catalog increment and the status change commit together, or
    none of them do.
    """
    updates = list(updates or [])
    for update in updates:
        if isinstance(update.received_quantity, bool) or not isinstance(update.received_quantity, int):
            raise InvalidInputError("receivedQuantity must be an integer.")
        if update.received_quantity < 0:
            raise InvalidInputError("receivedQuantity cannot be negative.")

    with uow:
        purchase_order = _load(uow, purchase_order_id)
        if purchase_order.status in (PO_STATUS_RECEIVED, PO_STATUS_CANCELLED):
            raise InvalidStateError("Purchase order is already received or cancelled")

        items_by_id = {item.id: item for item in purchase_order.items}
        for update in updates:
            if update.received_quantity <= 0:
                continue
            item = items_by_id.get(update.item_id)
            if item is None:
                logger.warning(
                    "Purchase order %s has no item %s; skipping",
                    purchase_order_id,
                    update.item_id,
                )
                continue

            medicine = uow.medicines.increment_stock(item.medicine_id, update.received_quantity)
            if medicine is None:
                logger.warning(
                    "Medicine %s for purchase order %s no longer exists; skipping",
                    item.medicine_id,
                    purchase_order_id,
                )
                continue
            if update.batch_number:
                medicine.batch_number = update.batch_number
                item.batch_number = update.batch_number
            if update.expiry_date:
                medicine.expiry_date = update.expiry_date
                item.expiry_date = update.expiry_date
            item.received_quantity = (item.received_quantity or 0) + update.received_quantity

        purchase_order.status = PO_STATUS_RECEIVED
        purchase_order.received_by = received_by
        purchase_order.received_at = now or utcnow()
        uow.commit()

    logger.info(
        "Purchase order %s received", purchase_order_id, extra={"purchase_order_id": purchase_order_id}
    )
    return purchase_order


def list_purchase_orders(
    db: Session,
    *,
    page: int = 1,
    limit: int = 20,
    status: Optional[str] = None,
    supplier_id: Optional[int] = None,
):
    filters = []
    if status:
        filters.append(PurchaseOrder.status == status)
    if supplier_id is not None:
        filters.append(PurchaseOrder.supplier_id == supplier_id)

    total = db.execute(select(func.count(PurchaseOrder.id)).where(*filters)).scalar_one()
    rows = (
        db.execute(
            select(PurchaseOrder)
            .where(*filters)
            .order_by(PurchaseOrder.created_at.desc(), PurchaseOrder.id.desc())
            .offset((page - 1) * limit)
            .limit(limit)
        )
        .scalars()
        .all()
    )
    return list(rows), total


def list_overdue_purchase_orders(db: Session, today: Optional[date] = None) -> list[PurchaseOrder]:
    today = today or utc_today()
    rows = (
        db.execute(
            select(PurchaseOrder)
            .where(
                PurchaseOrder.status.in_(PO_OPEN_STATUSES),
                PurchaseOrder.expected_delivery_date.is_not(None),
                PurchaseOrder.expected_delivery_date < today,
            )
            .order_by(PurchaseOrder.expected_delivery_date)
        )
        .scalars()
        .all()
    )
    return list(rows)
