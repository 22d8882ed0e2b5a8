from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from fastapi.responses import StreamingResponse
from openpyxl.utils.exceptions import InvalidFileException
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from medpos.config import get_settings
from medpos.core.constants import ROLE_ADMIN, ROLE_WAREHOUSE
from medpos.core.dates import today as utc_today
from medpos.dependencies import get_current_user, get_db, require_roles
from medpos.models.user import User
from medpos.schemas.common import Pagination
from medpos.schemas.medicine import (
    MedicineCreate,
    MedicineImportRequest,
    MedicineList,
    MedicineRead,
    MedicineUpdate,
    StockUpdate,
)
from medpos.services import medicine_service
from medpos.services.import_service import import_workbook

router = APIRouter(prefix="/medicines", tags=["Medicines"])

catalog_writer = require_roles(ROLE_ADMIN, ROLE_WAREHOUSE)


@router.get("", response_model=MedicineList)
def list_medicines(
    page: int = Query(1, ge=1),
    limit: Optional[int] = Query(None, ge=1),
    search: Optional[str] = Query(None),
    category: Optional[str] = Query(None),
    db: Session = Depends(get_db),
    _user: User = Depends(get_current_user),
):
    settings = get_settings()
    limit = min(limit or settings.DEFAULT_PAGE_SIZE, settings.MAX_PAGE_SIZE)
    rows, total = medicine_service.list_medicines(
        db, page=page, limit=limit, term=search, category=category
    )
    return MedicineList(
        medicines=[MedicineRead.model_validate(row) for row in rows],
        pagination=Pagination.build(page, limit, total),
    )


@router.get("/search", response_model=List[MedicineRead])
def search_medicines(
    q: str = Query(..., min_length=1),
    limit: int = Query(10, ge=1, le=50),
    db: Session = Depends(get_db),
    _user: User = Depends(get_current_user),
):
    return medicine_service.search_medicines(db, q, limit=limit)


@router.get("/low-stock", response_model=List[MedicineRead])
def low_stock(db: Session = Depends(get_db), _user: User = Depends(get_current_user)):
    return medicine_service.find_low_stock(db)


@router.get("/expired", response_model=List[MedicineRead])
def expired(db: Session = Depends(get_db), _user: User = Depends(get_current_user)):
    return medicine_service.find_expired(db)


@router.get("/expiring-soon", response_model=List[MedicineRead])
def expiring_soon(
    days: Optional[int] = Query(None, ge=0, le=365),
    db: Session = Depends(get_db),
    _user: User = Depends(get_current_user),
):
    return medicine_service.find_expiring_soon(db, days=days)


@router.get("/export.csv")
def export_inventory(db: Session = Depends(get_db), _user: User = Depends(get_current_user)):
    content = medicine_service.export_inventory_csv(db)
    return StreamingResponse(
        iter([content]),
        media_type="text/csv",
        headers={"Content-Disposition": f"attachment; filename=inventory_{utc_today()}.csv"},
    )


@router.post("/import")
def import_medicines(payload: MedicineImportRequest, _user: User = Depends(catalog_writer)):
    try:
        results = import_workbook(payload.path, sheet=payload.sheet, dry_run=payload.dry_run)
    except (OSError, ValueError, SQLAlchemyError, InvalidFileException) as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    return {"results": results}


@router.get("/{medicine_id}", response_model=MedicineRead)
def get_medicine(
    medicine_id: int,
    db: Session = Depends(get_db),
    _user: User = Depends(get_current_user),
):
    return medicine_service.get_medicine(db, medicine_id)


@router.post("", response_model=MedicineRead, status_code=201)
def create_medicine(
    payload: MedicineCreate,
    db: Session = Depends(get_db),
    _user: User = Depends(catalog_writer),
):
    return medicine_service.create_medicine(db, payload.model_dump())


@router.put("/{medicine_id}", response_model=MedicineRead)
def update_medicine(
    medicine_id: int,
    payload: MedicineUpdate,
    db: Session = Depends(get_db),
    _user: User = Depends(catalog_writer),
):
    return medicine_service.update_medicine(db, medicine_id, payload.model_dump(exclude_unset=True))


@router.patch("/{medicine_id}/stock", response_model=MedicineRead)
def update_stock(
    medicine_id: int,
    payload: StockUpdate,
    db: Session = Depends(get_db),
    _user: User = Depends(catalog_writer),
):
    return medicine_service.update_stock(db, medicine_id, payload.quantity)


@router.delete("/{medicine_id}", status_code=204)
def delete_medicine(
    medicine_id: int,
    db: Session = Depends(get_db),
    _user: User = Depends(catalog_writer),
):
    medicine_service.delete_medicine(db, medicine_id)


__all__ = ["router"]
