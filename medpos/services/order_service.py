"""
Order Service Layer - atomic sale creation.

Flow inside one unit of work:
1. Reject an empty cart or non-positive quantities before touching stock
2. Look up every line, collecting not-found / short-stock / expired problems
3. If ANY line has a problem: roll back and report all of them at once
4. Re-check stock and decrement it with a compare-and-swap per line
5. Persist the order with immutable line snapshots and commit
"""
import logging
import secrets
from dataclasses import dataclass
from datetime import date, datetime
from decimal import Decimal
from typing import Iterable, Optional

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from medpos.core.constants import (
    DEFAULT_CUSTOMER_NAME,
    DEFAULT_PAYMENT_METHOD,
    HUNDRED,
    ORDER_STATUS_COMPLETED,
    ORDER_STATUSES,
    UNKNOWN_MANUFACTURER,
    ZERO,
)
from medpos.core.dates import as_utc, trading_day_window, utcnow
from medpos.core.exceptions import (
    ConcurrencyConflictError,
    InsufficientInventoryError,
    InvalidInputError,
    NotFoundError,
)
from medpos.core.money import non_negative, to_decimal
from medpos.models.order import Order, OrderItem

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CartLine:
    medicine_id: int
    quantity: int
    unit_price: Optional[Decimal] = None
    trade_price: Optional[Decimal] = None
    discount_percent: Optional[Decimal] = None
    gst_per_unit: Optional[Decimal] = None


@dataclass(frozen=True)
class Customer:
    name: Optional[str] = None
    phone: Optional[str] = None


@dataclass(frozen=True)
class Payment:
    method: Optional[str] = None
    tax_percent: Optional[Decimal] = None
    global_discount: Optional[Decimal] = None


@dataclass(frozen=True)
class Totals:
    subtotal: Optional[Decimal] = None
    tax_amount: Optional[Decimal] = None
    grand_total: Optional[Decimal] = None


@dataclass(frozen=True)
class LinePricing:
    unit_price: Decimal
    trade_price: Decimal
    discount_percent: Decimal
    line_subtotal: Decimal
    discount_amount: Decimal
    gst_amount: Decimal
    line_total: Decimal
    profit_per_unit: Decimal
    line_profit: Decimal


@dataclass(frozen=True)
class OrderTotals:
    subtotal: Decimal
    tax_percent: Decimal
    tax_amount: Decimal
    discount_amount: Decimal
    grand_total: Decimal
    profit: Decimal


def validate_cart(items: Iterable[CartLine]) -> list[CartLine]:
    lines = list(items or [])
    if not lines:
        raise InvalidInputError("Order items are required and must be a non-empty list.")
    for idx, line in enumerate(lines):
        if line.medicine_id is None:
            raise InvalidInputError(f"Item {idx}: missing medicine reference.")
        if isinstance(line.quantity, bool) or not isinstance(line.quantity, int) or line.quantity <= 0:
            raise InvalidInputError(f"Item {idx}: quantity must be a positive integer.")
    return lines


def price_line(
    quantity: int,
    unit_price,
    trade_price,
    *,
    discount_percent=None,
    gst_per_unit=None,
    label: str = "item",
) -> LinePricing:
    """
    Price one cart line at full precision.

    ``discount_amount`` is the discount on the whole line; profit per unit
    is floored at zero so loss-leader sales never report negative profit.
    """
    unit_price = to_decimal(unit_price, "unit_price")
    trade_price = to_decimal(trade_price, "trade_price")
    discount = to_decimal(discount_percent, "discount_percent") or ZERO
    gst = to_decimal(gst_per_unit, "gst_per_unit") or ZERO

    if unit_price is None or trade_price is None or unit_price < ZERO or trade_price < ZERO:
        raise InvalidInputError(f"Invalid price for {label}")
    if discount < ZERO or discount > HUNDRED:
        raise InvalidInputError(f"Invalid discount percentage for {label}")
    if gst < ZERO:
        raise InvalidInputError(f"Invalid GST for {label}")

    qty = Decimal(quantity)
    line_subtotal = unit_price * qty
    discount_amount = line_subtotal * discount / HUNDRED
    after_discount = line_subtotal - discount_amount
    gst_amount = gst * qty
    line_total = after_discount + gst_amount
    profit_per_unit = non_negative(unit_price - discount_amount / qty - trade_price)

    return LinePricing(
        unit_price=unit_price,
        trade_price=trade_price,
        discount_percent=discount,
        line_subtotal=line_subtotal,
        discount_amount=discount_amount,
        gst_amount=gst_amount,
        line_total=line_total,
        profit_per_unit=profit_per_unit,
        line_profit=profit_per_unit * qty,
    )


def _first_present(*values):
    for value in values:
        if value is not None:
            return value
    return None


def compute_order_totals(
    computed_subtotal: Decimal,
    computed_profit: Decimal,
    payment: Optional[Payment] = None,
    totals: Optional[Totals] = None,
) -> OrderTotals:
    """Combine computed figures with caller-supplied totals; every field is clamped to >= 0."""
    payment = payment or Payment()
    totals = totals or Totals()

    tax_percent = to_decimal(payment.tax_percent, "tax_percent") or ZERO
    global_discount = to_decimal(payment.global_discount, "global_discount") or ZERO

    subtotal = _first_present(to_decimal(totals.subtotal, "subtotal"), computed_subtotal)
    tax_amount = _first_present(
        to_decimal(totals.tax_amount, "tax_amount"),
        subtotal * tax_percent / HUNDRED,
    )
    grand_total = _first_present(
        to_decimal(totals.grand_total, "grand_total"),
        subtotal + tax_amount - global_discount,
    )

    return OrderTotals(
        subtotal=non_negative(subtotal),
        tax_percent=non_negative(tax_percent),
        tax_amount=non_negative(tax_amount),
        discount_amount=non_negative(global_discount),
        grand_total=non_negative(grand_total),
        profit=non_negative(computed_profit),
    )


def generate_order_number(now: Optional[datetime] = None) -> str:
    now = now or utcnow()
    return "ORD-{}-{}".format(now.strftime("%Y%m%d"), secrets.token_hex(3).upper())


def create_order(
    uow,
    items: Iterable[CartLine],
    *,
    customer: Optional[Customer] = None,
    payment: Optional[Payment] = None,
    totals: Optional[Totals] = None,
    status: str = ORDER_STATUS_COMPLETED,
    created_by: Optional[int] = None,
    now: Optional[datetime] = None,
) -> Order:
    """
    Validate a cart, decrement stock and persist the order atomically.

    Raises:
        InvalidInputError: empty cart, bad quantity, price or discount
        InsufficientInventoryError: every missing / short / expired line
        ConcurrencyConflictError: stock drained before the decrement
    """
    lines = validate_cart(items)
    now = now or utcnow()
    today: date = as_utc(now).date()
    customer = customer or Customer()
    payment = payment or Payment()

    with uow:
        inventory_errors: list[str] = []
        priced: list[tuple[CartLine, object, LinePricing]] = []
        requested: dict[int, int] = {}
        subtotal = ZERO
        total_profit = ZERO

        for line in lines:
            medicine = uow.medicines.get(line.medicine_id, for_update=True)
            if medicine is None:
                inventory_errors.append(f"Medicine with ID {line.medicine_id} not found")
                continue

            wanted = requested.get(medicine.id, 0) + line.quantity
            if medicine.quantity < wanted:
                inventory_errors.append(
                    f"{medicine.name}: requested {wanted}, available {medicine.quantity}"
                )
                continue

            if medicine.is_expired_on(today):
                inventory_errors.append(f"{medicine.name} has expired")
                continue

            pricing = price_line(
                line.quantity,
                _first_present(line.unit_price, medicine.retail_price),
                _first_present(line.trade_price, medicine.trade_price),
                discount_percent=line.discount_percent,
                gst_per_unit=_first_present(line.gst_per_unit, medicine.gst_per_unit),
                label=medicine.name,
            )
            requested[medicine.id] = wanted
            subtotal += pricing.line_total
            total_profit += pricing.line_profit
            priced.append((line, medicine, pricing))

        if inventory_errors:
            logger.warning("Order rejected: %d inventory problem(s)", len(inventory_errors))
            raise InsufficientInventoryError(inventory_errors)

        for line, medicine, _pricing in priced:
            available = uow.medicines.current_quantity(medicine.id)
            if available is None or available < line.quantity:
                logger.warning(
                    "Concurrent stock conflict on medicine %s",
                    medicine.id,
                    extra={"medicine_id": medicine.id},
                )
                raise ConcurrencyConflictError(
                    f"Insufficient stock for {medicine.name} (concurrent order conflict)"
                )
            if not uow.medicines.decrement_stock(medicine.id, line.quantity):
                logger.warning(
                    "Concurrent stock conflict on medicine %s",
                    medicine.id,
                    extra={"medicine_id": medicine.id},
                )
                raise ConcurrencyConflictError(
                    f"Insufficient stock for {medicine.name} (concurrent order conflict)"
                )

        order_totals = compute_order_totals(subtotal, total_profit, payment, totals)

        order = Order(
            order_number=generate_order_number(now),
            customer_name=customer.name or DEFAULT_CUSTOMER_NAME,
            customer_phone=customer.phone or "",
            status=status,
            payment_method=payment.method or DEFAULT_PAYMENT_METHOD,
            subtotal=order_totals.subtotal,
            tax_percent=order_totals.tax_percent,
            tax_amount=order_totals.tax_amount,
            discount_amount=order_totals.discount_amount,
            total=order_totals.grand_total,
            profit=order_totals.profit,
            created_by=created_by,
            created_at=now,
        )
        for line, medicine, pricing in priced:
            order.items.append(
                OrderItem(
                    medicine_id=medicine.id,
                    name=medicine.name,
                    manufacturer=medicine.manufacturer or UNKNOWN_MANUFACTURER,
                    quantity=line.quantity,
                    retail_price=pricing.unit_price,
                    trade_price=pricing.trade_price,
                    discount_percent=pricing.discount_percent,
                    discount_amount=pricing.discount_amount,
                    gst_amount=pricing.gst_amount,
                    total_price=pricing.line_total,
                    profit=pricing.line_profit,
                )
            )

        uow.orders.add(order)
        uow.commit()

    logger.info(
        "Order %s created: %d items, total %s",
        order.order_number,
        len(order.items),
        order.total,
        extra={"order_number": order.order_number, "order_id": order.id},
    )
    return order


def _order_filters(status=None, day=None, date_from=None, date_to=None):
    filters = []
    if status:
        filters.append(Order.status == status)
    if day is not None:
        start, end = trading_day_window(day)
        filters.append(Order.created_at >= start)
        filters.append(Order.created_at < end)
    elif date_from is not None and date_to is not None:
        filters.append(Order.created_at >= as_utc(date_from))
        filters.append(Order.created_at <= as_utc(date_to))
    return filters


def list_orders(
    db: Session,
    *,
    page: int = 1,
    limit: int = 20,
    status: Optional[str] = None,
    day: Optional[date] = None,
    date_from: Optional[datetime] = None,
    date_to: Optional[datetime] = None,
):
    """Page through the ledger and summarize the whole filtered range."""
    filters = _order_filters(status, day, date_from, date_to)
    summary_row = db.execute(
        select(
            func.count(Order.id),
            func.coalesce(func.sum(Order.total), 0),
            func.coalesce(func.sum(Order.profit), 0),
        ).where(*filters)
    ).one()
    rows = (
        db.execute(
            select(Order)
            .where(*filters)
            .order_by(Order.created_at.desc(), Order.id.desc())
            .offset((page - 1) * limit)
            .limit(limit)
        )
        .scalars()
        .all()
    )
    summary = {
        "total_orders": summary_row[0],
        "total_sales": to_decimal(summary_row[1]),
        "total_profit": to_decimal(summary_row[2]),
    }
    return list(rows), summary


def get_order(db: Session, order_id: int) -> Order:
    order = db.get(Order, order_id)
    if order is None:
        raise NotFoundError("Order not found")
    return order


def update_order_status(db: Session, order_id: int, status: str) -> Order:
    if status not in ORDER_STATUSES:
        raise InvalidInputError("status must be one of: {}".format(", ".join(ORDER_STATUSES)))
    order = get_order(db, order_id)
    order.status = status
    db.commit()
    db.refresh(order)
    logger.info("Order %s status changed to %s", order.order_number, status)
    return order
