from datetime import datetime, timezone

from sqlalchemy import Column, DateTime, ForeignKey, Index, Integer, Numeric, String
from sqlalchemy.orm import relationship

from medpos.core.constants import DEFAULT_CUSTOMER_NAME, DEFAULT_PAYMENT_METHOD
from medpos.database.base import Base


class Order(Base):
    """A completed sale. Line items are immutable snapshots taken at sale time."""

    __tablename__ = "orders"

    id = Column(Integer, primary_key=True)
    order_number = Column(String(32), nullable=False, unique=True)

    customer_name = Column(String(255), nullable=False, default=DEFAULT_CUSTOMER_NAME)
    customer_phone = Column(String(50), nullable=False, default="")

    status = Column(String(20), nullable=False, default="completed", index=True)
    payment_method = Column(String(30), nullable=False, default=DEFAULT_PAYMENT_METHOD)

    subtotal = Column(Numeric(14, 4), nullable=False)
    tax_percent = Column(Numeric(7, 4), nullable=False)
    tax_amount = Column(Numeric(14, 4), nullable=False)
    discount_amount = Column(Numeric(14, 4), nullable=False)
    total = Column(Numeric(14, 4), nullable=False)
    profit = Column(Numeric(14, 4), nullable=False)

    created_by = Column(Integer, ForeignKey("users.id"))
    created_at = Column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
        index=True,
    )

    items = relationship(
        "OrderItem",
        back_populates="order",
        cascade="all, delete-orphan",
        order_by="OrderItem.id",
        lazy="selectin",
    )
    creator = relationship("User", lazy="joined")

    __table_args__ = (
        Index("idx_orders_status_created", "status", "created_at"),
    )


class OrderItem(Base):
    __tablename__ = "order_items"

    id = Column(Integer, primary_key=True)
    order_id = Column(Integer, ForeignKey("orders.id", ondelete="CASCADE"), nullable=False)
    medicine_id = Column(Integer, ForeignKey("medicines.id", ondelete="SET NULL"))

    name = Column(String(255), nullable=False)
    manufacturer = Column(String(255), nullable=False)
    quantity = Column(Integer, nullable=False)
    retail_price = Column(Numeric(14, 4), nullable=False)
    trade_price = Column(Numeric(14, 4), nullable=False)
    discount_percent = Column(Numeric(7, 4), nullable=False)
    discount_amount = Column(Numeric(14, 4), nullable=False)
    gst_amount = Column(Numeric(14, 4), nullable=False)
    total_price = Column(Numeric(14, 4), nullable=False)
    profit = Column(Numeric(14, 4), nullable=False)

    order = relationship("Order", back_populates="items")


__all__ = ["Order", "OrderItem"]
