from datetime import date, datetime
from decimal import Decimal
from typing import List, Optional

from pydantic import AliasChoices, BaseModel, ConfigDict, Field

from medpos.schemas.common import Money, Pagination


class PurchaseItemIn(BaseModel):
    medicine_id: int = Field(validation_alias=AliasChoices("medicine_id", "medicineId", "medicine"))
    quantity: int
    unit_price: Decimal = Field(validation_alias=AliasChoices("unit_price", "unitPrice"))
    batch_number: Optional[str] = Field(
        default=None,
        validation_alias=AliasChoices("batch_number", "batchNumber"),
    )
    expiry_date: Optional[date] = Field(
        default=None,
        validation_alias=AliasChoices("expiry_date", "expiryDate"),
    )
    notes: Optional[str] = None

    model_config = ConfigDict(populate_by_name=True)


class PurchaseOrderCreate(BaseModel):
    supplier_id: int = Field(validation_alias=AliasChoices("supplier_id", "supplierId", "supplier"))
    items: List[PurchaseItemIn]
    tax_percent: Decimal = Field(
        default=Decimal("0"),
        validation_alias=AliasChoices("tax_percent", "taxPercent", "tax"),
    )
    discount_amount: Decimal = Field(
        default=Decimal("0"),
        validation_alias=AliasChoices("discount_amount", "discountAmount", "discount"),
    )
    expected_delivery_date: Optional[date] = Field(
        default=None,
        validation_alias=AliasChoices("expected_delivery_date", "expectedDeliveryDate"),
    )
    notes: Optional[str] = None

    model_config = ConfigDict(populate_by_name=True)


class PurchaseOrderUpdate(BaseModel):
    items: Optional[List[PurchaseItemIn]] = None
    tax_percent: Optional[Decimal] = Field(
        default=None,
        validation_alias=AliasChoices("tax_percent", "taxPercent", "tax"),
    )
    discount_amount: Optional[Decimal] = Field(
        default=None,
        validation_alias=AliasChoices("discount_amount", "discountAmount", "discount"),
    )
    expected_delivery_date: Optional[date] = Field(
        default=None,
        validation_alias=AliasChoices("expected_delivery_date", "expectedDeliveryDate"),
    )
    notes: Optional[str] = None

    model_config = ConfigDict(populate_by_name=True)


class ReceivedItemIn(BaseModel):
    item_id: int = Field(validation_alias=AliasChoices("item_id", "itemId"))
    received_quantity: int = Field(
        validation_alias=AliasChoices("received_quantity", "receivedQuantity"),
    )
    batch_number: Optional[str] = Field(
        default=None,
        validation_alias=AliasChoices("batch_number", "batchNumber"),
    )
    expiry_date: Optional[date] = Field(
        default=None,
        validation_alias=AliasChoices("expiry_date", "expiryDate"),
    )

    model_config = ConfigDict(populate_by_name=True)


class ReceivePurchaseOrder(BaseModel):
    items: List[ReceivedItemIn] = []


class CancelPurchaseOrder(BaseModel):
    reason: Optional[str] = None


class PurchaseOrderItemRead(BaseModel):
    id: int
    medicine_id: Optional[int]
    name: str
    manufacturer: str
    quantity: int
    unit_price: Money
    total_price: Money
    received_quantity: int
    batch_number: Optional[str]
    expiry_date: Optional[date]
    notes: Optional[str]

    model_config = ConfigDict(from_attributes=True)


class PurchaseOrderRead(BaseModel):
    id: int
    supplier_id: int
    supplier_name: str
    status: str
    subtotal: Money
    tax_percent: Money
    tax_amount: Money
    discount_amount: Money
    total: Money
    expected_delivery_date: Optional[date]
    notes: Optional[str]
    cancellation_reason: Optional[str]
    created_by: Optional[int]
    received_by: Optional[int]
    created_at: datetime
    ordered_at: Optional[datetime]
    received_at: Optional[datetime]
    cancelled_at: Optional[datetime]
    items: List[PurchaseOrderItemRead]

    model_config = ConfigDict(from_attributes=True)


class PurchaseOrderList(BaseModel):
    purchase_orders: List[PurchaseOrderRead]
    pagination: Pagination
