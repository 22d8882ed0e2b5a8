from typing import List, Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from medpos.config import get_settings
from medpos.core.constants import ROLE_ADMIN, ROLE_WAREHOUSE
from medpos.core.exceptions import NotFoundError
from medpos.dependencies import get_db, get_uow, require_roles
from medpos.models.purchase_order import PurchaseOrder
from medpos.models.user import User
from medpos.schemas.common import Pagination
from medpos.schemas.purchase_order import (
    CancelPurchaseOrder,
    PurchaseOrderCreate,
    PurchaseOrderList,
    PurchaseOrderRead,
    PurchaseOrderUpdate,
    ReceivePurchaseOrder,
)
from medpos.services import purchase_order_service
from medpos.services.purchase_order_service import PurchaseLine, ReceivedLine

router = APIRouter(prefix="/purchase-orders", tags=["Purchase Orders"])

procurement = require_roles(ROLE_ADMIN, ROLE_WAREHOUSE)


def _load(db: Session, purchase_order_id: int) -> PurchaseOrder:
    purchase_order = db.get(PurchaseOrder, purchase_order_id)
    if purchase_order is None:
        raise NotFoundError("Purchase order not found")
    return purchase_order


@router.get("", response_model=PurchaseOrderList)
def list_purchase_orders(
    page: int = Query(1, ge=1),
    limit: Optional[int] = Query(None, ge=1),
    status: Optional[str] = Query(None),
    supplier_id: Optional[int] = Query(None, alias="supplierId"),
    db: Session = Depends(get_db),
    _user: User = Depends(procurement),
):
    settings = get_settings()
    limit = min(limit or settings.DEFAULT_PAGE_SIZE, settings.MAX_PAGE_SIZE)
    rows, total = purchase_order_service.list_purchase_orders(
        db, page=page, limit=limit, status=status, supplier_id=supplier_id
    )
    return PurchaseOrderList(
        purchase_orders=[PurchaseOrderRead.model_validate(row) for row in rows],
        pagination=Pagination.build(page, limit, total),
    )


@router.get("/overdue", response_model=List[PurchaseOrderRead])
def overdue_purchase_orders(db: Session = Depends(get_db), _user: User = Depends(procurement)):
    return purchase_order_service.list_overdue_purchase_orders(db)


@router.post("", response_model=PurchaseOrderRead, status_code=201)
def create_purchase_order(
    payload: PurchaseOrderCreate,
    db: Session = Depends(get_db),
    uow=Depends(get_uow),
    current_user: User = Depends(procurement),
):
    created = purchase_order_service.create_purchase_order(
        uow,
        payload.supplier_id,
        [PurchaseLine(**item.model_dump()) for item in payload.items],
        tax_percent=payload.tax_percent,
        discount_amount=payload.discount_amount,
        expected_delivery_date=payload.expected_delivery_date,
        notes=payload.notes,
        created_by=current_user.id,
    )
    return _load(db, created.id)


@router.get("/{purchase_order_id}", response_model=PurchaseOrderRead)
def get_purchase_order(
    purchase_order_id: int,
    db: Session = Depends(get_db),
    _user: User = Depends(procurement),
):
    return _load(db, purchase_order_id)


@router.put("/{purchase_order_id}", response_model=PurchaseOrderRead)
def update_purchase_order(
    purchase_order_id: int,
    payload: PurchaseOrderUpdate,
    db: Session = Depends(get_db),
    uow=Depends(get_uow),
    _user: User = Depends(procurement),
):
    changes = {}
    if payload.items is not None:
        changes["items"] = [PurchaseLine(**item.model_dump()) for item in payload.items]
    for field in ("expected_delivery_date", "notes"):
        if field in payload.model_fields_set:
            changes[field] = getattr(payload, field)
    purchase_order_service.update_purchase_order(
        uow,
        purchase_order_id,
        tax_percent=payload.tax_percent,
        discount_amount=payload.discount_amount,
        **changes,
    )
    return _load(db, purchase_order_id)


@router.post("/{purchase_order_id}/order", response_model=PurchaseOrderRead)
def mark_ordered(
    purchase_order_id: int,
    db: Session = Depends(get_db),
    uow=Depends(get_uow),
    _user: User = Depends(procurement),
):
    purchase_order_service.mark_purchase_order_ordered(uow, purchase_order_id)
    return _load(db, purchase_order_id)


@router.post("/{purchase_order_id}/receive", response_model=PurchaseOrderRead)
def receive_purchase_order(
    purchase_order_id: int,
    payload: ReceivePurchaseOrder,
    db: Session = Depends(get_db),
    uow=Depends(get_uow),
    current_user: User = Depends(procurement),
):
    purchase_order_service.receive_purchase_order(
        uow,
        purchase_order_id,
        [ReceivedLine(**item.model_dump()) for item in payload.items],
        received_by=current_user.id,
    )
    return _load(db, purchase_order_id)


@router.post("/{purchase_order_id}/cancel", response_model=PurchaseOrderRead)
def cancel_purchase_order(
    purchase_order_id: int,
    payload: Optional[CancelPurchaseOrder] = None,
    db: Session = Depends(get_db),
    uow=Depends(get_uow),
    _user: User = Depends(procurement),
):
    purchase_order_service.cancel_purchase_order(
        uow,
        purchase_order_id,
        payload.reason if payload else None,
    )
    return _load(db, purchase_order_id)


__all__ = ["router"]
