from datetime import datetime
from typing import List, Optional

from pydantic import AliasChoices, BaseModel, ConfigDict, Field

from medpos.schemas.common import Pagination


class SupplierBase(BaseModel):
    name: str = Field(min_length=1, max_length=255)
    contact_person: Optional[str] = Field(
        default=None,
        validation_alias=AliasChoices("contact_person", "contactPerson"),
    )
    email: Optional[str] = None
    phone: Optional[str] = None
    address: Optional[str] = None
    city: Optional[str] = None
    notes: Optional[str] = None

    model_config = ConfigDict(populate_by_name=True)


class SupplierCreate(SupplierBase):
    pass


class SupplierUpdate(BaseModel):
    name: Optional[str] = Field(default=None, min_length=1, max_length=255)
    contact_person: Optional[str] = Field(
        default=None,
        validation_alias=AliasChoices("contact_person", "contactPerson"),
    )
    email: Optional[str] = None
    phone: Optional[str] = None
    address: Optional[str] = None
    city: Optional[str] = None
    notes: Optional[str] = None
    is_active: Optional[bool] = Field(
        default=None,
        validation_alias=AliasChoices("is_active", "isActive"),
    )

    model_config = ConfigDict(populate_by_name=True)


class SupplierRead(BaseModel):
    id: int
    name: str
    contact_person: Optional[str]
    email: Optional[str]
    phone: Optional[str]
    address: Optional[str]
    city: Optional[str]
    notes: Optional[str]
    is_active: bool
    created_by: Optional[int]
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class SupplierList(BaseModel):
    suppliers: List[SupplierRead]
    pagination: Pagination
