from medpos.services.import_service import import_workbook
from medpos.services.order_service import create_order
from medpos.services.purchase_order_service import receive_purchase_order
from medpos.services.receipt_service import generate_receipt_pdf
from medpos.services.unit_of_work import SqlAlchemyUnitOfWork

__all__ = [
    "SqlAlchemyUnitOfWork",
    "create_order",
    "generate_receipt_pdf",
    "import_workbook",
    "receive_purchase_order",
]
