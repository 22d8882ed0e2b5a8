import importlib

from medpos.models.medicine import Medicine
from medpos.models.order import Order, OrderItem
from medpos.models.purchase_order import PurchaseOrder, PurchaseOrderItem
from medpos.models.supplier import Supplier
from medpos.models.user import User


def import_all_models() -> None:
    for module_name in (
        "medpos.models.medicine",
        "medpos.models.order",
        "medpos.models.purchase_order",
        "medpos.models.supplier",
        "medpos.models.user",
    ):
        importlib.import_module(module_name)


__all__ = [
    "Medicine",
    "Order",
    "OrderItem",
    "PurchaseOrder",
    "PurchaseOrderItem",
    "Supplier",
    "User",
    "import_all_models",
]
