from medpos.routers.auth import router as auth_router
from medpos.routers.dashboard import router as dashboard_router
from medpos.routers.health import router as health_router
from medpos.routers.medicines import router as medicines_router
from medpos.routers.orders import router as orders_router
from medpos.routers.purchase_orders import router as purchase_orders_router
from medpos.routers.suppliers import router as suppliers_router
from medpos.routers.users import router as users_router

__all__ = [
    "auth_router",
    "dashboard_router",
    "health_router",
    "medicines_router",
    "orders_router",
    "purchase_orders_router",
    "suppliers_router",
    "users_router",
]
