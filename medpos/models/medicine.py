from datetime import date, datetime, timedelta, timezone
from typing import Optional

from sqlalchemy import Column, Date, DateTime, Index, Integer, Numeric, String, Text

from medpos.config import get_settings
from medpos.core.constants import ZERO
from medpos.core.dates import today as utc_today
from medpos.database.base import Base


class Medicine(Base):
    __tablename__ = "medicines"

    id = Column(Integer, primary_key=True)

    name = Column(String(255), nullable=False, index=True)
    manufacturer = Column(String(255), nullable=False, index=True)
    batch_number = Column(String(100))
    category = Column(String(120), index=True)
    description = Column(Text)

    retail_price = Column(Numeric(14, 4), nullable=False)
    trade_price = Column(Numeric(14, 4), nullable=False)
    gst_per_unit = Column(Numeric(14, 4), nullable=False, default=ZERO)

    quantity = Column(Integer, nullable=False, default=0, index=True)
    expiry_date = Column(Date, nullable=False, index=True)
    reorder_threshold = Column(Integer, nullable=False, default=10)

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

    __table_args__ = (
        Index("idx_medicine_name_manufacturer", "name", "manufacturer"),
    )

    @property
    def is_low_stock(self) -> bool:
        return (self.quantity or 0) <= (self.reorder_threshold or 0)

    def is_expired_on(self, today: date) -> bool:
        # Expired from the first moment of the expiry date.
        return self.expiry_date is not None and self.expiry_date <= today

    def is_expiring_soon_on(self, today: date, days: Optional[int] = None) -> bool:
        if self.expiry_date is None:
            return False
        if days is None:
            days = get_settings().EXPIRING_SOON_DAYS
        return today < self.expiry_date <= today + timedelta(days=days)

    @property
    def is_expired(self) -> bool:
        return self.is_expired_on(utc_today())

    @property
    def is_expiring_soon(self) -> bool:
        return self.is_expiring_soon_on(utc_today())


__all__ = ["Medicine"]
