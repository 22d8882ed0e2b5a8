from datetime import date, datetime, timedelta

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from medpos.core.constants import ORDER_STATUS_COMPLETED, PO_OPEN_STATUSES, USER_ROLES, ZERO
from medpos.core.dates import as_utc, end_of_day, start_of_day, utcnow
from medpos.core.exceptions import InvalidInputError
from medpos.core.money import format_money, round_money, to_decimal
from medpos.models.medicine import Medicine
from medpos.models.order import Order, OrderItem
from medpos.models.purchase_order import PurchaseOrder
from medpos.models.supplier import Supplier
from medpos.models.user import User
from medpos.services.medicine_service import count_low_stock

ANALYTICS_PERIODS = {"7days": 7, "30days": 30}
SALES_REPORT_GROUPS = ("day", "week", "month")


def _empty_sales_bucket():
    return {
        "total_orders": 0,
        "total_revenue": ZERO,
        "total_profit": ZERO,
        "average_order_value": ZERO,
    }


def _sales_between(db: Session, start: datetime, end: datetime) -> dict:
    row = db.execute(
        select(
            func.count(Order.id),
            func.coalesce(func.sum(Order.total), 0),
            func.coalesce(func.sum(Order.profit), 0),
        ).where(
            Order.status == ORDER_STATUS_COMPLETED,
            Order.created_at >= start,
            Order.created_at <= end,
        )
    ).one()
    bucket = _empty_sales_bucket()
    bucket["total_orders"] = row[0]
    bucket["total_revenue"] = to_decimal(row[1])
    bucket["total_profit"] = to_decimal(row[2])
    if row[0]:
        bucket["average_order_value"] = bucket["total_revenue"] / row[0]
    return bucket


def users_by_role(db: Session) -> dict:
    counts = {role: 0 for role in USER_ROLES}
    rows = db.execute(
        select(User.role, func.count(User.id)).where(User.is_active.is_(True)).group_by(User.role)
    ).all()
    for role, count in rows:
        counts[role] = count
    return counts


def dashboard_stats(db: Session, today: date | None = None) -> dict:
    today = today or utcnow().date()
    day_start, day_end = start_of_day(today), end_of_day(today)
    month_start = start_of_day(today.replace(day=1))

    today_sales = _sales_between(db, day_start, day_end)

    return {
        "date": today,
        "total_users": db.execute(
            select(func.count(User.id)).where(User.is_active.is_(True))
        ).scalar_one(),
        "total_orders": db.execute(select(func.count(Order.id))).scalar_one(),
        "total_medicines": db.execute(select(func.count(Medicine.id))).scalar_one(),
        "today_orders": today_sales["total_orders"],
        "today_revenue": today_sales["total_revenue"],
        "today_profit": today_sales["total_profit"],
        "low_stock_items": count_low_stock(db),
        "total_suppliers": db.execute(
            select(func.count(Supplier.id)).where(Supplier.is_active.is_(True))
        ).scalar_one(),
        "pending_purchase_orders": db.execute(
            select(func.count(PurchaseOrder.id)).where(PurchaseOrder.status.in_(PO_OPEN_STATUSES))
        ).scalar_one(),
        "monthly_stats": _sales_between(db, month_start, day_end),
        "users_by_role": users_by_role(db),
    }


def _group_key(created_at: datetime, group_by: str) -> str:
    if group_by == "month":
        return created_at.strftime("%Y-%m")
    if group_by == "week":
        return created_at.strftime("%Y-W%U")
    return created_at.strftime("%Y-%m-%d")


def sales_report(
    db: Session,
    start: datetime | None = None,
    end: datetime | None = None,
    group_by: str = "day",
) -> list[dict]:
    if group_by not in SALES_REPORT_GROUPS:
        raise InvalidInputError("groupBy must be one of: {}".format(", ".join(SALES_REPORT_GROUPS)))
    end = as_utc(end) or utcnow()
    start = as_utc(start) or end - timedelta(days=30)

    rows = db.execute(
        select(Order.created_at, Order.total, Order.profit).where(
            Order.status == ORDER_STATUS_COMPLETED,
            Order.created_at >= start,
            Order.created_at <= end,
        )
    ).all()

    buckets = {}
    for created_at, total, profit in rows:
        key = _group_key(as_utc(created_at), group_by)
        bucket = buckets.setdefault(key, {"period": key, **_empty_sales_bucket()})
        bucket["total_orders"] += 1
        bucket["total_revenue"] += to_decimal(total)
        bucket["total_profit"] += to_decimal(profit)

    results = []
    for key in sorted(buckets):
        bucket = buckets[key]
        bucket["average_order_value"] = bucket["total_revenue"] / bucket["total_orders"]
        results.append(bucket)
    return results


def sales_analytics(db: Session, period: str = "7days", now: datetime | None = None) -> dict:
    days = ANALYTICS_PERIODS.get(period, ANALYTICS_PERIODS["7days"])
    now = as_utc(now) or utcnow()
    start = now - timedelta(days=days)

    daily = {}
    rows = db.execute(
        select(Order.created_at, Order.total, Order.profit).where(
            Order.status == ORDER_STATUS_COMPLETED,
            Order.created_at >= start,
        )
    ).all()
    for created_at, total, profit in rows:
        key = as_utc(created_at).strftime("%Y-%m-%d")
        entry = daily.setdefault(
            key,
            {"date": key, "total_sales": ZERO, "total_orders": 0, "total_profit": ZERO},
        )
        entry["total_sales"] += to_decimal(total)
        entry["total_orders"] += 1
        entry["total_profit"] += to_decimal(profit)

    top_rows = db.execute(
        select(
            OrderItem.medicine_id,
            func.min(OrderItem.name),
            func.min(OrderItem.manufacturer),
            func.sum(OrderItem.quantity).label("total_quantity"),
            func.sum(OrderItem.total_price),
        )
        .join(Order, Order.id == OrderItem.order_id)
        .where(Order.status == ORDER_STATUS_COMPLETED)
        .group_by(OrderItem.medicine_id)
        .order_by(func.sum(OrderItem.quantity).desc())
        .limit(10)
    ).all()
    top_medicines = [
        {
            "medicine_id": medicine_id,
            "name": name,
            "manufacturer": manufacturer,
            "total_quantity": int(total_quantity or 0),
            "total_revenue": to_decimal(total_revenue or 0),
        }
        for medicine_id, name, manufacturer, total_quantity, total_revenue in top_rows
    ]

    status_rows = db.execute(
        select(Order.status, func.count(Order.id), func.coalesce(func.sum(Order.total), 0)).group_by(
            Order.status
        )
    ).all()
    order_status_stats = [
        {"status": status, "count": count, "total_value": to_decimal(total_value)}
        for status, count, total_value in status_rows
    ]

    return {
        "period": period if period in ANALYTICS_PERIODS else "7days",
        "sales_data": [daily[key] for key in sorted(daily)],
        "top_medicines": top_medicines,
        "order_status_stats": order_status_stats,
    }


def recent_activities(db: Session, limit: int = 10) -> list[dict]:
    activities = []

    orders = (
        db.execute(select(Order).order_by(Order.created_at.desc(), Order.id.desc()).limit(limit))
        .scalars()
        .all()
    )
    for order in orders:
        creator = order.creator
        activities.append(
            {
                "id": f"order_{order.id}",
                "type": "order",
                "description": "Order #{} {} - {}".format(
                    order.order_number, order.status, format_money(order.total)
                ),
                "timestamp": as_utc(order.created_at),
                "user": (creator.full_name or creator.username) if creator else "Unknown",
                "details": {
                    "order_id": order.id,
                    "amount": float(round_money(order.total)),
                    "status": order.status,
                    "customer": order.customer_name,
                },
            }
        )

    users = (
        db.execute(
            select(User)
            .where(User.is_active.is_(True))
            .order_by(User.created_at.desc())
            .limit(5)
        )
        .scalars()
        .all()
    )
    for user in users:
        activities.append(
            {
                "id": f"user_{user.id}",
                "type": "user",
                "description": f"New {user.role} user registered: {user.full_name or user.username}",
                "timestamp": as_utc(user.created_at),
                "user": "System",
                "details": {"user_id": user.id, "username": user.username, "role": user.role},
            }
        )

    activities.sort(key=lambda item: item["timestamp"], reverse=True)
    return activities[:limit]


def today_metrics(db: Session, now: datetime | None = None) -> dict:
    now = as_utc(now) or utcnow()
    return {
        "today_orders": db.execute(
            select(func.count(Order.id)).where(
                Order.status == ORDER_STATUS_COMPLETED,
                Order.created_at >= start_of_day(now.date()),
            )
        ).scalar_one(),
        "active_sessions": db.execute(
            select(func.count(User.id)).where(
                User.is_active.is_(True),
                User.last_login >= now - timedelta(hours=24),
            )
        ).scalar_one(),
        "timestamp": now.isoformat(),
    }
