"""
Unit-of-work boundary for the transactional routines.

The order and receiving routines only talk to the repositories exposed
here, so they run unchanged against SQLAlchemy or an in-memory fake.
Leaving the ``with`` block without calling ``commit()`` rolls everything
back, whether the block exited normally or through an exception.
"""
from __future__ import annotations

import logging
from typing import Optional, Protocol

from sqlalchemy import select, update
from sqlalchemy.orm import Session

from medpos.database.session import SessionLocal
from medpos.models.medicine import Medicine
from medpos.models.order import Order
from medpos.models.purchase_order import PurchaseOrder
from medpos.models.supplier import Supplier

logger = logging.getLogger(__name__)


class MedicineRepository(Protocol):
    def get(self, medicine_id: int, *, for_update: bool = False) -> Optional[Medicine]: ...

    def current_quantity(self, medicine_id: int) -> Optional[int]: ...

    def decrement_stock(self, medicine_id: int, quantity: int) -> bool: ...

    def increment_stock(self, medicine_id: int, quantity: int) -> Optional[Medicine]: ...


class OrderRepository(Protocol):
    def add(self, order: Order) -> None: ...


class PurchaseOrderRepository(Protocol):
    def get(self, purchase_order_id: int, *, for_update: bool = False) -> Optional[PurchaseOrder]: ...

    def add(self, purchase_order: PurchaseOrder) -> None: ...


class SupplierRepository(Protocol):
    def get(self, supplier_id: int) -> Optional[Supplier]: ...


class UnitOfWork(Protocol):
    medicines: MedicineRepository
    orders: OrderRepository
    purchase_orders: PurchaseOrderRepository
    suppliers: SupplierRepository

    def __enter__(self) -> "UnitOfWork": ...

    def __exit__(self, exc_type, exc, tb) -> None: ...

    def commit(self) -> None: ...

    def rollback(self) -> None: ...


class SqlAlchemyMedicineRepository:
    def __init__(self, session: Session):
        self.session = session

    def get(self, medicine_id, *, for_update=False):
        stmt = select(Medicine).where(Medicine.id == medicine_id)
        if for_update:
            stmt = stmt.with_for_update()
        return self.session.execute(stmt).scalars().first()

    def current_quantity(self, medicine_id):
        stmt = select(Medicine.quantity).where(Medicine.id == medicine_id)
        return self.session.execute(stmt).scalar_one_or_none()

    def decrement_stock(self, medicine_id, quantity):
        # Compare-and-swap on quantity; a concurrent sale that already took
        # the stock makes this match zero rows.
        result = self.session.execute(
            update(Medicine)
            .where(Medicine.id == medicine_id, Medicine.quantity >= quantity)
            .values(quantity=Medicine.quantity - quantity)
            .execution_options(synchronize_session="fetch")
        )
        return result.rowcount == 1

    def increment_stock(self, medicine_id, quantity):
        medicine = self.get(medicine_id, for_update=True)
        if medicine is None:
            return None
        medicine.quantity = (medicine.quantity or 0) + quantity
        self.session.flush()
        return medicine


class SqlAlchemyOrderRepository:
    def __init__(self, session: Session):
        self.session = session

    def add(self, order):
        self.session.add(order)
        self.session.flush()


class SqlAlchemyPurchaseOrderRepository:
    def __init__(self, session: Session):
        self.session = session

    def get(self, purchase_order_id, *, for_update=False):
        stmt = select(PurchaseOrder).where(PurchaseOrder.id == purchase_order_id)
        if for_update:
            stmt = stmt.with_for_update()
        return self.session.execute(stmt).scalars().first()

    def add(self, purchase_order):
        self.session.add(purchase_order)
        self.session.flush()


class SqlAlchemySupplierRepository:
    def __init__(self, session: Session):
        self.session = session

    def get(self, supplier_id):
        return self.session.get(Supplier, supplier_id)


class SqlAlchemyUnitOfWork:
    def __init__(self, session_factory=SessionLocal):
        self.session_factory = session_factory
        self.session: Optional[Session] = None
        self._committed = False

    def __enter__(self):
        self.session = self.session_factory()
        self._committed = False
        self.medicines = SqlAlchemyMedicineRepository(self.session)
        self.orders = SqlAlchemyOrderRepository(self.session)
        self.purchase_orders = SqlAlchemyPurchaseOrderRepository(self.session)
        self.suppliers = SqlAlchemySupplierRepository(self.session)
        return self

    def __exit__(self, exc_type, exc, tb):
        try:
            if exc_type is not None or not self._committed:
                self.rollback()
        finally:
            self.session.close()

    def commit(self):
        self.session.commit()
        self._committed = True

    def rollback(self):
        self.session.rollback()


__all__ = [
    "MedicineRepository",
    "OrderRepository",
    "PurchaseOrderRepository",
    "SqlAlchemyUnitOfWork",
    "SupplierRepository",
    "UnitOfWork",
]
