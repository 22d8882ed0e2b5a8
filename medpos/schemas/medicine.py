from datetime import date, datetime
from decimal import Decimal
from typing import List, Optional

from pydantic import AliasChoices, BaseModel, ConfigDict, Field

from medpos.schemas.common import Money, Pagination


class MedicineBase(BaseModel):
    name: str = Field(min_length=1, max_length=255)
    manufacturer: str = Field(min_length=1, max_length=255)
    batch_number: Optional[str] = Field(
        default=None,
        validation_alias=AliasChoices("batch_number", "batchNumber"),
    )
    category: Optional[str] = None
    description: Optional[str] = None
    retail_price: Decimal = Field(
        ge=0,
        validation_alias=AliasChoices("retail_price", "retailPrice", "price"),
    )
    trade_price: Decimal = Field(
        ge=0,
        validation_alias=AliasChoices("trade_price", "tradePrice"),
    )
    gst_per_unit: Decimal = Field(
        default=Decimal("0"),
        ge=0,
        validation_alias=AliasChoices("gst_per_unit", "gstPerUnit", "gst"),
    )
    quantity: int = Field(ge=0)
    expiry_date: date = Field(validation_alias=AliasChoices("expiry_date", "expiryDate"))

    model_config = ConfigDict(populate_by_name=True)


class MedicineCreate(MedicineBase):
    reorder_threshold: Optional[int] = Field(
        default=None,
        ge=0,
        validation_alias=AliasChoices("reorder_threshold", "reorderThreshold"),
    )


class MedicineUpdate(BaseModel):
    name: Optional[str] = Field(default=None, min_length=1, max_length=255)
    manufacturer: Optional[str] = Field(default=None, min_length=1, max_length=255)
    batch_number: Optional[str] = Field(
        default=None,
        validation_alias=AliasChoices("batch_number", "batchNumber"),
    )
    category: Optional[str] = None
    description: Optional[str] = None
    retail_price: Optional[Decimal] = Field(
        default=None,
        ge=0,
        validation_alias=AliasChoices("retail_price", "retailPrice", "price"),
    )
    trade_price: Optional[Decimal] = Field(
        default=None,
        ge=0,
        validation_alias=AliasChoices("trade_price", "tradePrice"),
    )
    gst_per_unit: Optional[Decimal] = Field(
        default=None,
        ge=0,
        validation_alias=AliasChoices("gst_per_unit", "gstPerUnit", "gst"),
    )
    quantity: Optional[int] = Field(default=None, ge=0)
    expiry_date: Optional[date] = Field(
        default=None,
        validation_alias=AliasChoices("expiry_date", "expiryDate"),
    )
    reorder_threshold: Optional[int] = Field(
        default=None,
        ge=0,
        validation_alias=AliasChoices("reorder_threshold", "reorderThreshold"),
    )

    model_config = ConfigDict(populate_by_name=True)


class StockUpdate(BaseModel):
    quantity: int


class MedicineRead(BaseModel):
    id: int
    name: str
    manufacturer: str
    batch_number: Optional[str]
    category: Optional[str]
    description: Optional[str]
    retail_price: Money
    trade_price: Money
    gst_per_unit: Money
    quantity: int
    expiry_date: date
    reorder_threshold: int
    is_low_stock: bool
    is_expired: bool
    is_expiring_soon: bool
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)


class MedicineList(BaseModel):
    medicines: List[MedicineRead]
    pagination: Pagination


class MedicineImportRequest(BaseModel):
    path: str
    sheet: Optional[str] = None
    dry_run: bool = False
