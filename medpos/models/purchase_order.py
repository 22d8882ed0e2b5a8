from datetime import datetime, timezone

from sqlalchemy import Column, Date, DateTime, ForeignKey, Integer, Numeric, String, Text
from sqlalchemy.orm import relationship

from medpos.core.constants import PO_STATUS_PENDING
from medpos.database.base import Base


class PurchaseOrder(Base):
    __tablename__ = "purchase_orders"

    id = Column(Integer, primary_key=True)
    supplier_id = Column(Integer, ForeignKey("suppliers.id"), nullable=False, index=True)
    supplier_name = Column(String(255), nullable=False)

    status = Column(String(20), nullable=False, default=PO_STATUS_PENDING, index=True)

    subtotal = Column(Numeric(14, 4), nullable=False)
    tax_percent = Column(Numeric(7, 4), nullable=False)
    tax_amount = Column(Numeric(14, 4), nullable=False)
    discount_amount = Column(Numeric(14, 4), nullable=False)
    total = Column(Numeric(14, 4), nullable=False)

    expected_delivery_date = Column(Date)
    notes = Column(Text)
    cancellation_reason = Column(Text)

    created_by = Column(Integer, ForeignKey("users.id"))
    received_by = Column(Integer, ForeignKey("users.id"))
    created_at = Column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
    )
    updated_at = Column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
        onupdate=lambda: datetime.now(timezone.utc),
    )
    ordered_at = Column(DateTime(timezone=True))
    received_at = Column(DateTime(timezone=True))
    cancelled_at = Column(DateTime(timezone=True))

    items = relationship(
        "PurchaseOrderItem",
        back_populates="purchase_order",
        cascade="all, delete-orphan",
        order_by="PurchaseOrderItem.id",
        lazy="selectin",
    )


class PurchaseOrderItem(Base):
    __tablename__ = "purchase_order_items"

    id = Column(Integer, primary_key=True)
    purchase_order_id = Column(
        Integer,
        ForeignKey("purchase_orders.id", ondelete="CASCADE"),
        nullable=False,
    )
    medicine_id = Column(Integer, ForeignKey("medicines.id", ondelete="SET NULL"))

    name = Column(String(255), nullable=False)
    manufacturer = Column(String(255), nullable=False)
    quantity = Column(Integer, nullable=False)
    unit_price = Column(Numeric(14, 4), nullable=False)
    total_price = Column(Numeric(14, 4), nullable=False)
    received_quantity = Column(Integer, nullable=False, default=0)
    batch_number = Column(String(100))
    expiry_date = Column(Date)
    notes = Column(Text)

    purchase_order = relationship("PurchaseOrder", back_populates="items")


__all__ = ["PurchaseOrder", "PurchaseOrderItem"]
