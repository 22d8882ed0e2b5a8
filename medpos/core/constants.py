from decimal import Decimal


ROLE_ADMIN = "admin"
ROLE_COUNTER = "counter"
ROLE_WAREHOUSE = "warehouse"
USER_ROLES = (ROLE_ADMIN, ROLE_COUNTER, ROLE_WAREHOUSE)

ORDER_STATUSES = ("pending", "completed", "cancelled", "refunded")
ORDER_STATUS_COMPLETED = "completed"

PO_STATUS_PENDING = "pending"
PO_STATUS_ORDERED = "ordered"
PO_STATUS_RECEIVED = "received"
PO_STATUS_CANCELLED = "cancelled"
PURCHASE_ORDER_STATUSES = (
    PO_STATUS_PENDING,
    PO_STATUS_ORDERED,
    PO_STATUS_RECEIVED,
    PO_STATUS_CANCELLED,
)
PO_OPEN_STATUSES = (PO_STATUS_PENDING, PO_STATUS_ORDERED)

DEFAULT_CUSTOMER_NAME = "Walk-in Customer"
DEFAULT_PAYMENT_METHOD = "cash"
UNKNOWN_MANUFACTURER = "Unknown"

# The trading day runs from 10:00 to 02:00 the following morning.
TRADING_DAY_START_HOUR = 10
TRADING_DAY_END_HOUR = 2

ZERO = Decimal("0")
HUNDRED = Decimal("100")
