from typing import List

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from medpos.core.constants import ROLE_ADMIN
from medpos.dependencies import get_db, require_roles
from medpos.models.user import User
from medpos.schemas.dashboard import Activity, DashboardStats, SalesAnalytics, TodayMetrics
from medpos.services import dashboard_service

router = APIRouter(prefix="/dashboard", tags=["Dashboard"])

admin_only = require_roles(ROLE_ADMIN)


@router.get("/stats", response_model=DashboardStats)
def dashboard_stats(db: Session = Depends(get_db), _user: User = Depends(admin_only)):
    return dashboard_service.dashboard_stats(db)


@router.get("/sales-analytics", response_model=SalesAnalytics)
def sales_analytics(
    period: str = Query("7days", pattern="^(7days|30days)$"),
    db: Session = Depends(get_db),
    _user: User = Depends(admin_only),
):
    return dashboard_service.sales_analytics(db, period)


@router.get("/recent-activities", response_model=List[Activity])
def recent_activities(
    limit: int = Query(10, ge=1, le=50),
    db: Session = Depends(get_db),
    _user: User = Depends(admin_only),
):
    return dashboard_service.recent_activities(db, limit)


@router.get("/today-metrics", response_model=TodayMetrics)
def today_metrics(db: Session = Depends(get_db), _user: User = Depends(admin_only)):
    return dashboard_service.today_metrics(db)


__all__ = ["router"]
