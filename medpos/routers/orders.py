from datetime import date, datetime
from typing import List, Optional

from fastapi import APIRouter, Depends, Query
from fastapi.responses import StreamingResponse
from sqlalchemy.orm import Session

from medpos.config import get_settings
from medpos.core.constants import ROLE_ADMIN, ROLE_COUNTER
from medpos.dependencies import get_db, get_uow, require_roles
from medpos.models.user import User
from medpos.schemas.common import Pagination
from medpos.schemas.dashboard import SalesReportRow
from medpos.schemas.order import (
    OrderCreate,
    OrderCreated,
    OrderList,
    OrderRead,
    OrderStatusUpdate,
    OrderSummary,
)
from medpos.services import dashboard_service, order_service
from medpos.services.order_service import CartLine, Customer, Payment, Totals
from medpos.services.receipt_service import generate_receipt_pdf

router = APIRouter(prefix="/orders", tags=["Orders"])

sales_staff = require_roles(ROLE_ADMIN, ROLE_COUNTER)
admin_only = require_roles(ROLE_ADMIN)


@router.post("", response_model=OrderCreated, status_code=201)
def create_order(
    payload: OrderCreate,
    db: Session = Depends(get_db),
    uow=Depends(get_uow),
    current_user: User = Depends(sales_staff),
):
    lines = [CartLine(**item.model_dump()) for item in payload.items]
    customer = Customer(**payload.customer.model_dump()) if payload.customer else None
    payment = Payment(**payload.payment.model_dump()) if payload.payment else None
    totals = Totals(**payload.totals.model_dump()) if payload.totals else None

    created = order_service.create_order(
        uow,
        lines,
        customer=customer,
        payment=payment,
        totals=totals,
        created_by=current_user.id,
    )
    order = order_service.get_order(db, created.id)
    return OrderCreated(
        order_id=order.id,
        order_number=order.order_number,
        order=OrderRead.model_validate(order),
    )


@router.get("", response_model=OrderList)
def list_orders(
    page: int = Query(1, ge=1),
    limit: Optional[int] = Query(None, ge=1),
    status: Optional[str] = Query(None),
    day: Optional[date] = Query(None, alias="date"),
    date_from: Optional[datetime] = Query(None, alias="from"),
    date_to: Optional[datetime] = Query(None, alias="to"),
    db: Session = Depends(get_db),
    _user: User = Depends(sales_staff),
):
    settings = get_settings()
    limit = min(limit or settings.DEFAULT_PAGE_SIZE, settings.MAX_PAGE_SIZE)
    rows, summary = order_service.list_orders(
        db,
        page=page,
        limit=limit,
        status=status,
        day=day,
        date_from=date_from,
        date_to=date_to,
    )
    return OrderList(
        orders=[OrderRead.model_validate(row) for row in rows],
        pagination=Pagination.build(page, limit, summary["total_orders"]),
        summary=OrderSummary(**summary),
    )


@router.get("/sales-report", response_model=List[SalesReportRow])
def sales_report(
    start: Optional[datetime] = Query(None, alias="startDate"),
    end: Optional[datetime] = Query(None, alias="endDate"),
    group_by: str = Query("day", alias="groupBy"),
    db: Session = Depends(get_db),
    _user: User = Depends(admin_only),
):
    return dashboard_service.sales_report(db, start, end, group_by)


@router.get("/{order_id}", response_model=OrderRead)
def get_order(order_id: int, db: Session = Depends(get_db), _user: User = Depends(sales_staff)):
    return order_service.get_order(db, order_id)


@router.patch("/{order_id}/status", response_model=OrderRead)
def update_order_status(
    order_id: int,
    payload: OrderStatusUpdate,
    db: Session = Depends(get_db),
    _user: User = Depends(sales_staff),
):
    return order_service.update_order_status(db, order_id, payload.status)


@router.get("/{order_id}/receipt")
def order_receipt(order_id: int, db: Session = Depends(get_db), _user: User = Depends(sales_staff)):
    order = order_service.get_order(db, order_id)
    buffer = generate_receipt_pdf(order)
    return StreamingResponse(
        buffer,
        media_type="application/pdf",
        headers={"Content-Disposition": f"attachment; filename=receipt_{order.order_number}.pdf"},
    )


__all__ = ["router"]
