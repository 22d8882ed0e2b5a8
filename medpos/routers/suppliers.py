from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from medpos.config import get_settings
from medpos.core.constants import ROLE_ADMIN, ROLE_WAREHOUSE
from medpos.dependencies import get_db, require_roles
from medpos.models.user import User
from medpos.schemas.common import Pagination
from medpos.schemas.supplier import SupplierCreate, SupplierList, SupplierRead, SupplierUpdate
from medpos.services import supplier_service

router = APIRouter(prefix="/suppliers", tags=["Suppliers"])

procurement = require_roles(ROLE_ADMIN, ROLE_WAREHOUSE)
admin_only = require_roles(ROLE_ADMIN)


@router.get("", response_model=SupplierList)
def list_suppliers(
    page: int = Query(1, ge=1),
    limit: Optional[int] = Query(None, ge=1),
    search: Optional[str] = Query(None),
    is_active: Optional[bool] = Query(None, alias="isActive"),
    db: Session = Depends(get_db),
    _user: User = Depends(procurement),
):
    settings = get_settings()
    limit = min(limit or settings.DEFAULT_PAGE_SIZE, settings.MAX_PAGE_SIZE)
    rows, total = supplier_service.list_suppliers(
        db, page=page, limit=limit, search=search, is_active=is_active
    )
    return SupplierList(
        suppliers=[SupplierRead.model_validate(row) for row in rows],
        pagination=Pagination.build(page, limit, total),
    )


@router.post("", response_model=SupplierRead, status_code=201)
def create_supplier(
    payload: SupplierCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(procurement),
):
    return supplier_service.create_supplier(db, payload.model_dump(), created_by=current_user.id)


@router.get("/{supplier_id}", response_model=SupplierRead)
def get_supplier(supplier_id: int, db: Session = Depends(get_db), _user: User = Depends(procurement)):
    return supplier_service.get_supplier(db, supplier_id)


@router.put("/{supplier_id}", response_model=SupplierRead)
def update_supplier(
    supplier_id: int,
    payload: SupplierUpdate,
    db: Session = Depends(get_db),
    _user: User = Depends(procurement),
):
    return supplier_service.update_supplier(db, supplier_id, payload.model_dump(exclude_unset=True))


@router.patch("/{supplier_id}/toggle-status", response_model=SupplierRead)
def toggle_supplier_status(
    supplier_id: int,
    db: Session = Depends(get_db),
    _user: User = Depends(procurement),
):
    return supplier_service.toggle_supplier_status(db, supplier_id)


@router.delete("/{supplier_id}", status_code=204)
def delete_supplier(supplier_id: int, db: Session = Depends(get_db), _user: User = Depends(admin_only)):
    supplier_service.delete_supplier(db, supplier_id)


__all__ = ["router"]
