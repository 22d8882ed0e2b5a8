from datetime import datetime
from decimal import Decimal
from typing import List, Optional

from pydantic import AliasChoices, BaseModel, ConfigDict, Field

from medpos.schemas.common import Money, Pagination


class CartItemIn(BaseModel):
    medicine_id: int = Field(
        validation_alias=AliasChoices("medicine_id", "medicineId", "medicine"),
    )
    quantity: int
    unit_price: Optional[Decimal] = Field(
        default=None,
        validation_alias=AliasChoices("unit_price", "unitPrice", "price"),
    )
    trade_price: Optional[Decimal] = Field(
        default=None,
        validation_alias=AliasChoices("trade_price", "tradePrice"),
    )
    discount_percent: Optional[Decimal] = Field(
        default=None,
        validation_alias=AliasChoices("discount_percent", "discountPercent", "discount"),
    )
    gst_per_unit: Optional[Decimal] = Field(
        default=None,
        validation_alias=AliasChoices("gst_per_unit", "gstPerUnit"),
    )

    model_config = ConfigDict(populate_by_name=True)


class CustomerIn(BaseModel):
    name: Optional[str] = None
    phone: Optional[str] = None


class PaymentIn(BaseModel):
    method: Optional[str] = None
    tax_percent: Optional[Decimal] = Field(
        default=None,
        validation_alias=AliasChoices("tax_percent", "taxPercent", "tax"),
    )
    global_discount: Optional[Decimal] = Field(
        default=None,
        validation_alias=AliasChoices("global_discount", "globalDiscount", "discount"),
    )

    model_config = ConfigDict(populate_by_name=True)


class TotalsIn(BaseModel):
    subtotal: Optional[Decimal] = None
    tax_amount: Optional[Decimal] = Field(
        default=None,
        validation_alias=AliasChoices("tax_amount", "taxAmount"),
    )
    grand_total: Optional[Decimal] = Field(
        default=None,
        validation_alias=AliasChoices("grand_total", "grandTotal", "total"),
    )

    model_config = ConfigDict(populate_by_name=True)


class OrderCreate(BaseModel):
    items: List[CartItemIn]
    customer: Optional[CustomerIn] = None
    payment: Optional[PaymentIn] = None
    totals: Optional[TotalsIn] = None


class OrderStatusUpdate(BaseModel):
    status: str


class OrderItemRead(BaseModel):
    id: int
    medicine_id: Optional[int]
    name: str
    manufacturer: str
    quantity: int
    retail_price: Money
    trade_price: Money
    discount_percent: Money
    discount_amount: Money
    gst_amount: Money
    total_price: Money
    profit: Money

    model_config = ConfigDict(from_attributes=True)


class OrderRead(BaseModel):
    id: int
    order_number: str
    customer_name: str
    customer_phone: str
    status: str
    payment_method: str
    subtotal: Money
    tax_percent: Money
    tax_amount: Money
    discount_amount: Money
    total: Money
    profit: Money
    created_by: Optional[int]
    created_at: datetime
    items: List[OrderItemRead]

    model_config = ConfigDict(from_attributes=True)


class OrderSummary(BaseModel):
    total_orders: int
    total_sales: Money
    total_profit: Money


class OrderList(BaseModel):
    orders: List[OrderRead]
    pagination: Pagination
    summary: OrderSummary


class OrderCreated(BaseModel):
    success: bool = True
    message: str = "Order created successfully"
    order_id: int
    order_number: str
    order: OrderRead
