from datetime import date, datetime
from typing import Any, Dict, List, Optional

from pydantic import BaseModel

from medpos.schemas.common import Money


class SalesBucket(BaseModel):
    total_orders: int
    total_revenue: Money
    total_profit: Money
    average_order_value: Money


class SalesReportRow(SalesBucket):
    period: str


class DashboardStats(BaseModel):
    date: date
    total_users: int
    total_orders: int
    total_medicines: int
    today_orders: int
    today_revenue: Money
    today_profit: Money
    low_stock_items: int
    total_suppliers: int
    pending_purchase_orders: int
    monthly_stats: SalesBucket
    users_by_role: Dict[str, int]


class DailySales(BaseModel):
    date: str
    total_sales: Money
    total_orders: int
    total_profit: Money


class TopMedicine(BaseModel):
    medicine_id: Optional[int]
    name: str
    manufacturer: str
    total_quantity: int
    total_revenue: Money


class StatusCount(BaseModel):
    status: str
    count: int
    total_value: Money


class SalesAnalytics(BaseModel):
    period: str
    sales_data: List[DailySales]
    top_medicines: List[TopMedicine]
    order_status_stats: List[StatusCount]


class Activity(BaseModel):
    id: str
    type: str
    description: str
    timestamp: datetime
    user: str
    details: Dict[str, Any]


class TodayMetrics(BaseModel):
    today_orders: int
    active_sessions: int
    timestamp: str
